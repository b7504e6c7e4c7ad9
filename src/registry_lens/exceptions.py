"""Custom exceptions for the registry-lens client."""


class RegistryError(Exception):
    """Base exception for all registry-related errors."""

    pass


class ConfigurationError(RegistryError):
    """Raised when the client is not configured (e.g. no registry URL)."""

    pass


class RegistryConnectionError(RegistryError):
    """Raised when unable to connect to the registry."""

    pass


class RegistryHTTPError(RegistryError):
    """Raised when the registry answers with a non-success status."""

    def __init__(self, status: int, reason: str = "", message: str | None = None):
        self.status = status
        self.reason = reason
        super().__init__(message or f"Registry API error: {status} {reason}".rstrip())


class AuthenticationError(RegistryHTTPError):
    """Raised on HTTP 401."""

    def __init__(self, reason: str = "Unauthorized"):
        super().__init__(
            401, reason, "Authentication failed. Check your credentials."
        )


class NotFoundError(RegistryHTTPError):
    """Raised on HTTP 404."""

    def __init__(self, reason: str = "Not Found"):
        super().__init__(404, reason, "Resource not found")


class ManifestError(RegistryError):
    """Raised when manifest operations fail."""

    pass


class InvalidManifestError(ManifestError):
    """Raised when a manifest is neither a manifest list nor an image manifest."""

    pass


class CredentialStoreError(Exception):
    """Raised by credential providers when they cannot load, save or clear."""

    pass


class CacheStorageError(Exception):
    """Raised by cache backends; never escapes CacheStore."""

    pass
