"""Exception hierarchy for the provider registry.

Every failure the registry can report is a ``RegistryError`` subclass that
carries a machine-readable ``error_code`` and the HTTP status the web layer
answers with. Client mistakes map to 4xx, server or environment faults to 5xx.

Hierarchy::

    RegistryError
        ├── BadRequestError        400  missing/invalid caller input
        ├── NotFoundError          404  no record at the key or prefix
        ├── CorruptRecordError     500  stored payload is not a valid record
        ├── MisconfiguredError     500  required server configuration absent
        ├── KeyUnavailableError    500  signing key could not be retrieved
        ├── StoreWriteError        500  record could not be persisted
        └── StorageError           500  storage could not be read
"""

from __future__ import annotations

from typing import Any, Optional


class RegistryError(Exception):
    """Base exception for all provider registry errors.

    Attributes:
        message: Human-readable error description.
        error_code: UPPER_SNAKE_CASE code for programmatic handling.
        details: Extra debugging context (keys, paths, tool output).
    """

    status_code: int = 500
    default_code: str = "REGISTRY_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON logging and API error bodies."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"error_code={self.error_code!r}, "
            f"details={self.details!r})"
        )


class BadRequestError(RegistryError):
    """A caller-supplied parameter or body is missing or invalid."""

    status_code = 400
    default_code = "BAD_REQUEST"


class NotFoundError(RegistryError):
    """No record exists at the requested key or under the requested scope."""

    status_code = 404
    default_code = "NOT_FOUND"


class CorruptRecordError(RegistryError):
    """A stored record exists but cannot be decoded."""

    default_code = "CORRUPT_RECORD"


class MisconfiguredError(RegistryError):
    """Required server-side configuration is absent or invalid.

    Raised at request time when no signing identity is configured, and at
    startup when an environment value cannot be parsed.
    """

    default_code = "MISCONFIGURED"


class KeyUnavailableError(RegistryError):
    """The publisher's public signing key could not be retrieved."""

    default_code = "KEY_UNAVAILABLE"


class StoreWriteError(RegistryError):
    """A record could not be written to the artifact store."""

    default_code = "STORE_WRITE"


class StorageError(RegistryError):
    """The artifact store exists but could not be read."""

    default_code = "STORAGE_ERROR"
