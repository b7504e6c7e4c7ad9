"""Shared data types for registry-lens."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from ..exceptions import ConfigurationError

DEFAULT_REQUEST_DELAY = 0.1  # seconds between throttled requests
DEFAULT_PAGE_SIZE = 100
DEFAULT_USER_AGENT = "registry-lens/0.1.0"

ENV_TIMEOUT = "REGISTRY_LENS_TIMEOUT"
ENV_REQUEST_DELAY = "REGISTRY_LENS_REQUEST_DELAY"
ENV_PAGE_SIZE = "REGISTRY_LENS_PAGE_SIZE"


@dataclass(frozen=True)
class RegistryConfig:
    """Transport settings for a RegistryClient.

    Attributes:
        timeout: Total request timeout in seconds, None disables it
        request_delay: Pause between consecutive throttled requests
        page_size: Catalog page size (``n`` query parameter)
        user_agent: User-Agent header value
    """

    timeout: float | None = None
    request_delay: float = DEFAULT_REQUEST_DELAY
    page_size: int = DEFAULT_PAGE_SIZE
    user_agent: str = DEFAULT_USER_AGENT

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ConfigurationError(f"page_size must be >= 1, got {self.page_size}")
        if self.request_delay < 0:
            raise ConfigurationError(
                f"request_delay must be >= 0, got {self.request_delay}"
            )
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {self.timeout}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "RegistryConfig":
        """Build a config from ``REGISTRY_LENS_*`` environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            RegistryConfig with defaults for unset variables

        Raises:
            ConfigurationError: If a variable cannot be parsed
        """
        env = os.environ if environ is None else environ
        kwargs: dict[str, float | int | None] = {}
        try:
            if env.get(ENV_TIMEOUT):
                kwargs["timeout"] = float(env[ENV_TIMEOUT])
            if env.get(ENV_REQUEST_DELAY):
                kwargs["request_delay"] = float(env[ENV_REQUEST_DELAY])
            if env.get(ENV_PAGE_SIZE):
                kwargs["page_size"] = int(env[ENV_PAGE_SIZE])
        except ValueError as e:
            raise ConfigurationError(f"Invalid registry-lens setting: {e}") from e
        return cls(**kwargs)  # type: ignore[arg-type]


@dataclass(frozen=True)
class Credentials:
    """Registry location plus optional basic-auth pair."""

    registry_url: str
    username: str | None = None
    password: str | None = field(default=None, repr=False)


@dataclass(frozen=True)
class StorageInfo:
    """How a credential provider keeps credentials."""

    method: str
    description: str
    secure: bool


@dataclass(frozen=True)
class SaveResult:
    """Outcome of saving credentials."""

    method: str


@dataclass(frozen=True)
class ConnectResult:
    """Outcome of a connectivity check or a connect attempt."""

    success: bool
    error: str | None = None
    storage_method: str | None = None
