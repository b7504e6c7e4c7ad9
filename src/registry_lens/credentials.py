"""Credential providers.

A provider persists the registry URL and the optional basic-auth pair
between sessions. The browser only needs ``load``, ``save``, ``clear`` and
``describe``; any of them may raise CredentialStoreError.
"""

import json
import logging
import os
from pathlib import Path
from typing import Protocol

from .core.types import Credentials, SaveResult, StorageInfo
from .exceptions import CredentialStoreError

logger = logging.getLogger(__name__)


class CredentialProvider(Protocol):
    def load(self) -> Credentials | None: ...

    def save(
        self, registry_url: str, username: str | None, password: str | None
    ) -> SaveResult: ...

    def clear(self) -> None: ...

    def describe(self) -> StorageInfo: ...


class MemoryCredentialStore:
    """Keeps credentials for the lifetime of the process only."""

    def __init__(self, credentials: Credentials | None = None) -> None:
        self._credentials = credentials

    def load(self) -> Credentials | None:
        return self._credentials

    def save(
        self, registry_url: str, username: str | None, password: str | None
    ) -> SaveResult:
        self._credentials = Credentials(
            registry_url=registry_url,
            username=username or None,
            password=password or None,
        )
        return SaveResult(method="memory")

    def clear(self) -> None:
        self._credentials = None

    def describe(self) -> StorageInfo:
        return StorageInfo(
            method="Memory",
            description="Credentials are kept in memory and forgotten when the process exits.",
            secure=True,
        )


class FileCredentialStore:
    """Stores credentials in a JSON file readable only by the owner."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path).expanduser()

    def load(self) -> Credentials | None:
        """Load saved credentials.

        Returns:
            Credentials, or None if nothing usable is stored

        Raises:
            CredentialStoreError: If the file exists but cannot be read
        """
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CredentialStoreError(f"Cannot read {self.path}: {e}") from e

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise CredentialStoreError(f"Corrupt credentials file {self.path}: {e}") from e

        if not isinstance(data, dict) or not data.get("registry_url"):
            logger.warning("Ignoring credentials file %s without registry_url", self.path)
            return None

        return Credentials(
            registry_url=data["registry_url"],
            username=data.get("username") or None,
            password=data.get("password") or None,
        )

    def save(
        self, registry_url: str, username: str | None, password: str | None
    ) -> SaveResult:
        """Write credentials with 0600 permissions.

        Raises:
            CredentialStoreError: If the file cannot be written
        """
        payload = json.dumps(
            {
                "registry_url": registry_url,
                "username": username or None,
                "password": password or None,
            }
        )
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.chmod(self.path, 0o600)
        except OSError as e:
            raise CredentialStoreError(f"Cannot write {self.path}: {e}") from e
        return SaveResult(method="file")

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise CredentialStoreError(f"Cannot remove {self.path}: {e}") from e

    def describe(self) -> StorageInfo:
        return StorageInfo(
            method="File",
            description=(
                f"Credentials are stored unencrypted in {self.path}, readable only "
                "by the current user, until you disconnect."
            ),
            secure=False,
        )
