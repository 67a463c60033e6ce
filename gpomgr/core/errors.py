"""
Error types for GPO retrieval and management.

Exceptions are raised for call-level faults. Per-item faults that must not
abort a batch are collected as RetrievalError entries instead.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel


class GpoError(Exception):
    """Base class for all gpomgr errors."""
    pass


class InvalidArgumentError(GpoError, ValueError):
    """Raised when a call receives malformed input, e.g. a blank OU path."""
    pass


class IdentityNotFoundError(GpoError):
    """Raised when a selector matches no policy object."""

    def __init__(self, name: str):
        super().__init__(f"GPO not found: {name}")
        self.name = name


class RecordConstructionError(GpoError):
    """Raised when an upstream record cannot be mapped to a PolicyRecord."""
    pass


class DirectoryUnavailableError(GpoError):
    """Raised when the directory backing a query cannot be reached."""
    pass


class RemoteExecutionError(GpoError):
    """Raised when a remote query fails as a whole."""

    def __init__(self, message: str, host: Optional[str] = None):
        super().__init__(message)
        self.host = host


class TransportUnreachableError(RemoteExecutionError):
    """Raised when the remote host cannot be contacted."""
    pass


class AccessDeniedError(RemoteExecutionError):
    """Raised when the remote host rejects the supplied credentials."""
    pass


class ConfigError(GpoError):
    """Raised when the configuration file is invalid."""
    pass


class SecretStoreError(GpoError):
    """Raised when the secret store cannot be read or written."""
    pass


class SecretNotFoundError(SecretStoreError):
    """Raised when a named secret does not exist."""

    def __init__(self, name: str):
        super().__init__(f"Secret not found: {name}")
        self.name = name


# ============================================================================
# Per-item errors
# ============================================================================

class ErrorKind(str, Enum):
    IDENTITY_NOT_FOUND = "identity_not_found"
    RECORD_CONSTRUCTION = "record_construction"
    GENERIC = "generic"


class RetrievalError(BaseModel):
    """A non-fatal error recorded while resolving one selector or record."""
    kind: ErrorKind
    message: str
    selector: Optional[str] = None

    def __str__(self) -> str:
        return self.message
