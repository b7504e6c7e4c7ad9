"""Serialized, paced execution of registry requests."""

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from .types import DEFAULT_REQUEST_DELAY

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestThrottler:
    """FIFO queue running one request at a time with a pause between requests.

    Each caller gets its own future back from :meth:`enqueue` and awaits it
    independently. A single drain task works through the queue; tasks
    enqueued while it runs are picked up by that same task. The pause is
    applied only when another task is waiting, so the last task never pays
    for it.

    No timeout is applied here. A task that never finishes holds the queue;
    wrap the returned future in ``asyncio.wait_for`` to bound the wait.
    """

    def __init__(
        self,
        delay: float = DEFAULT_REQUEST_DELAY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize the throttler.

        Args:
            delay: Seconds to wait between consecutive tasks
            sleep: Coroutine used for the pause (injectable for tests)
        """
        self.delay = delay
        self._sleep = sleep
        self._queue: deque[tuple[Callable[[], Awaitable[Any]], asyncio.Future]] = (
            deque()
        )
        self._drain_task: asyncio.Task | None = None

    @property
    def is_processing(self) -> bool:
        """True while the drain task is running."""
        return self._drain_task is not None

    @property
    def pending(self) -> int:
        """Number of tasks waiting to start."""
        return len(self._queue)

    def enqueue(self, task: Callable[[], Awaitable[T]]) -> "asyncio.Future[T]":
        """Queue a request and return a future for its result.

        Args:
            task: Zero-argument callable returning an awaitable

        Returns:
            Future resolved with the task's result or its exception
        """
        loop = asyncio.get_running_loop()
        future: asyncio.Future[T] = loop.create_future()
        self._queue.append((task, future))
        if self._drain_task is None:
            self._drain_task = loop.create_task(self._drain())
        return future

    async def _drain(self) -> None:
        try:
            while self._queue:
                task, future = self._queue.popleft()
                if future.cancelled():
                    logger.debug("Skipping cancelled request")
                    continue
                request = asyncio.ensure_future(task())
                try:
                    # wait() does not raise the request's own cancellation
                    await asyncio.wait({request})
                except asyncio.CancelledError:
                    request.cancel()
                    future.cancel()
                    raise
                _settle(future, request)

                if self._queue:
                    await self._sleep(self.delay)
        except asyncio.CancelledError:
            self._cancel_pending()
            raise
        finally:
            self._drain_task = None

    def _cancel_pending(self) -> None:
        while self._queue:
            _, future = self._queue.popleft()
            future.cancel()


def _settle(future: asyncio.Future, request: asyncio.Future) -> None:
    if future.done():
        return
    if request.cancelled():
        logger.debug("Request was cancelled by its task")
        future.cancel()
    elif request.exception() is not None:
        future.set_exception(request.exception())
    else:
        future.set_result(request.result())
