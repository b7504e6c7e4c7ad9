"""Key-value storage backends for the image cache."""

import json
import os
import tempfile
from collections.abc import Iterator
from pathlib import Path
from typing import Protocol

from ..exceptions import CacheStorageError


class CacheBackend(Protocol):
    """String-to-string storage shared with other users of the same store."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def keys(self) -> Iterator[str]: ...


class MemoryBackend:
    """In-process storage with an optional byte quota."""

    def __init__(self, max_bytes: int | None = None) -> None:
        self.max_bytes = max_bytes
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.max_bytes is not None:
            used = sum(
                len(v.encode("utf-8")) for k, v in self._items.items() if k != key
            )
            if used + len(value.encode("utf-8")) > self.max_bytes:
                raise CacheStorageError(
                    f"Quota exceeded: {self.max_bytes} bytes available"
                )
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> Iterator[str]:
        return iter(list(self._items))


class FileBackend:
    """Storage persisted as a single JSON object in a file.

    The file is re-read on every access so that several processes can share
    it; writes replace the file atomically.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def _load(self) -> dict[str, str]:
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except OSError as e:
            raise CacheStorageError(f"Cannot read cache file {self.path}: {e}") from e

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise CacheStorageError(f"Corrupt cache file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise CacheStorageError(f"Corrupt cache file {self.path}: not an object")
        return data

    def _dump(self, data: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(data, f)
                os.replace(tmp_path, self.path)
            except BaseException:
                Path(tmp_path).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise CacheStorageError(f"Cannot write cache file {self.path}: {e}") from e

    def get_item(self, key: str) -> str | None:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._dump(data)

    def keys(self) -> Iterator[str]:
        return iter(list(self._load()))
