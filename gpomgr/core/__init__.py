"""
Core modules for Group Policy Object management.
"""

from .models import (
    PolicyRecord,
    Credentials,
    RetrievalResult,
    ExecutionMode,
    GpoStatus,
    EMPTY_ID,
    MIN_TIMESTAMP,
    flatten_raw_record,
)
from .errors import (
    GpoError,
    InvalidArgumentError,
    IdentityNotFoundError,
    RecordConstructionError,
    DirectoryUnavailableError,
    RemoteExecutionError,
    TransportUnreachableError,
    AccessDeniedError,
    ConfigError,
    SecretStoreError,
    SecretNotFoundError,
    ErrorKind,
    RetrievalError,
)
from .engine import RetrievalEngine, SelectorKind, classify_selectors, serve_remote_query
from .config import GpoManagerConfig
from .validator import Validator

__all__ = [
    "PolicyRecord",
    "Credentials",
    "RetrievalResult",
    "ExecutionMode",
    "GpoStatus",
    "EMPTY_ID",
    "MIN_TIMESTAMP",
    "flatten_raw_record",
    "GpoError",
    "InvalidArgumentError",
    "IdentityNotFoundError",
    "RecordConstructionError",
    "DirectoryUnavailableError",
    "RemoteExecutionError",
    "TransportUnreachableError",
    "AccessDeniedError",
    "ConfigError",
    "SecretStoreError",
    "SecretNotFoundError",
    "ErrorKind",
    "RetrievalError",
    "RetrievalEngine",
    "SelectorKind",
    "classify_selectors",
    "serve_remote_query",
    "GpoManagerConfig",
    "Validator",
]
