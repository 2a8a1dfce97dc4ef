"""Core package for pendector."""

from .types import (
    ChangeKind,
    ChangedFile,
    RepositoryHandle,
    WorkingTreeStatus,
    SyncState,
    RepositoryReport,
    ErrorKind,
    FetchOutcome,
)

from .errors import (
    PendectorError,
    RepositoryNotFound,
    RepositoryOperationFailed,
    FileSystemError,
    InvalidPathError,
    NetworkError,
    FetchTimeoutError,
    AuthenticationError,
    FetchFailedError,
    ConfigError,
)

from .ancestry import Divergence, classify

__all__ = [
    # Types
    'ChangeKind',
    'ChangedFile',
    'RepositoryHandle',
    'WorkingTreeStatus',
    'SyncState',
    'RepositoryReport',
    'ErrorKind',
    'FetchOutcome',
    # Errors
    'PendectorError',
    'RepositoryNotFound',
    'RepositoryOperationFailed',
    'FileSystemError',
    'InvalidPathError',
    'NetworkError',
    'FetchTimeoutError',
    'AuthenticationError',
    'FetchFailedError',
    'ConfigError',
    # Ancestry
    'Divergence',
    'classify',
]
