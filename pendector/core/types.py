"""Core types for repository scanning."""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Any, List, Optional, TYPE_CHECKING

from .errors import (
    PendectorError,
    FetchTimeoutError,
    NetworkError,
    AuthenticationError,
    FetchFailedError,
)

if TYPE_CHECKING:
    from .ancestry import Divergence


class ChangeKind(Enum):
    """Kind of change reported for a single file."""
    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    RENAMED = "renamed"
    OTHER = "other"

    @property
    def marker(self) -> str:
        """Two-column status marker used in text output."""
        return _CHANGE_MARKERS[self]


_CHANGE_MARKERS = {
    ChangeKind.ADDED: "??",
    ChangeKind.MODIFIED: " M",
    ChangeKind.DELETED: " D",
    ChangeKind.RENAMED: " R",
    ChangeKind.OTHER: "  ",
}


@dataclass(frozen=True)
class ChangedFile:
    """A file that differs from HEAD, the index, or is untracked."""
    kind: ChangeKind
    path: str

    def to_dict(self) -> Dict[str, str]:
        return {'kind': self.kind.value, 'path': self.path}


@dataclass(frozen=True)
class RepositoryHandle:
    """A discovered repository root."""
    path: str  # Absolute path
    name: str  # Display name

    @classmethod
    def from_path(cls, path: str) -> 'RepositoryHandle':
        """Build a handle from a (possibly relative) repository path.

        The display name is the final path segment. Paths without a usable
        segment, such as ".", are resolved first and named after the
        resolved directory.

        Args:
            path: Repository root path

        Returns:
            RepositoryHandle with an absolute path
        """
        path = os.fspath(path)
        name = os.path.basename(os.path.normpath(path))
        if name in ('', '.', '..'):
            name = os.path.basename(os.path.realpath(path)) or path
        return cls(path=os.path.abspath(path), name=name)


@dataclass(frozen=True)
class WorkingTreeStatus:
    """Local modification state of a repository."""
    has_changes: bool = False
    changed_files: List[ChangedFile] = field(default_factory=list)
    current_branch: Optional[str] = None  # None on unborn HEAD

    @classmethod
    def from_changes(
        cls,
        changed_files: List[ChangedFile],
        current_branch: Optional[str]
    ) -> 'WorkingTreeStatus':
        return cls(
            has_changes=bool(changed_files),
            changed_files=list(changed_files),
            current_branch=current_branch
        )


@dataclass(frozen=True)
class SyncState:
    """Relationship between the local branch and its remote tracking ref."""
    remote_branch: Optional[str] = None
    needs_pull: bool = False
    needs_push: bool = False

    @classmethod
    def none(cls) -> 'SyncState':
        """Sync state for a repository with no matching remote tracking ref."""
        return cls()

    @classmethod
    def from_divergence(cls, remote_branch: str, divergence: 'Divergence') -> 'SyncState':
        return cls(
            remote_branch=remote_branch,
            needs_pull=divergence.needs_pull,
            needs_push=divergence.needs_push
        )

    @property
    def has_remote(self) -> bool:
        return self.remote_branch is not None


@dataclass(frozen=True)
class RepositoryReport:
    """Final per-repository result handed to the output layer."""
    handle: RepositoryHandle
    status: WorkingTreeStatus
    sync: SyncState

    @property
    def name(self) -> str:
        return self.handle.name

    @property
    def path(self) -> str:
        return self.handle.path

    @property
    def has_changes(self) -> bool:
        return self.status.has_changes

    @property
    def current_branch(self) -> Optional[str]:
        return self.status.current_branch

    @property
    def changed_files(self) -> List[ChangedFile]:
        return self.status.changed_files

    @property
    def remote_branch(self) -> Optional[str]:
        return self.sync.remote_branch

    @property
    def needs_pull(self) -> bool:
        return self.sync.needs_pull

    @property
    def needs_push(self) -> bool:
        return self.sync.needs_push

    def to_dict(self) -> Dict[str, Any]:
        """Flat dictionary form used for structured output."""
        return {
            'name': self.name,
            'path': self.path,
            'has_changes': self.has_changes,
            'current_branch': self.current_branch,
            'changed_files': [f.to_dict() for f in self.changed_files],
            'remote_branch': self.remote_branch,
            'needs_pull': self.needs_pull,
            'needs_push': self.needs_push,
        }


class ErrorKind(Enum):
    """Classification of a failed fetch."""
    TIMEOUT = "timeout"
    REPOSITORY_UNREACHABLE = "repository_unreachable"
    AUTHENTICATION_FAILED = "authentication_failed"
    NETWORK_ERROR = "network_error"
    FETCH_FAILED = "fetch_failed"


@dataclass(frozen=True)
class FetchOutcome:
    """Result of fetching a single repository. Failures are data, not exceptions."""
    path: str
    success: bool
    error_kind: Optional[ErrorKind] = None
    message: Optional[str] = None
    timeout: Optional[float] = None  # Configured seconds, set for TIMEOUT only

    @classmethod
    def ok(cls, path: str) -> 'FetchOutcome':
        return cls(path=path, success=True)

    @classmethod
    def failed(cls, path: str, kind: ErrorKind, message: str) -> 'FetchOutcome':
        return cls(path=path, success=False, error_kind=kind, message=message)

    @classmethod
    def timed_out(cls, path: str, seconds: float) -> 'FetchOutcome':
        return cls(
            path=path,
            success=False,
            error_kind=ErrorKind.TIMEOUT,
            message=f"Timed out after {seconds:g}s",
            timeout=seconds
        )

    @property
    def error(self) -> Optional[PendectorError]:
        """Exception describing this failure, or None on success."""
        if self.success:
            return None
        name = os.path.basename(os.path.normpath(self.path)) or self.path
        message = self.message or "Failed to fetch from remote"
        if self.error_kind == ErrorKind.TIMEOUT:
            return FetchTimeoutError(name, self.timeout if self.timeout is not None else 0)
        if self.error_kind == ErrorKind.AUTHENTICATION_FAILED:
            return AuthenticationError(name, message)
        if self.error_kind in (ErrorKind.NETWORK_ERROR, ErrorKind.REPOSITORY_UNREACHABLE):
            return NetworkError(name, message)
        return FetchFailedError(name, message)
