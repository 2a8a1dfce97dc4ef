"""Read working tree status and remote sync state for one repository."""

import logging
from typing import List, Optional

from .ancestry import classify
from .fetch import fetch_repository, DEFAULT_FETCH_TIMEOUT
from .types import (
    ChangeKind,
    ChangedFile,
    RepositoryHandle,
    RepositoryReport,
    SyncState,
    WorkingTreeStatus,
)
from ..utils.git import (
    open_repository,
    get_current_branch,
    get_porcelain_status,
    resolve_commit,
    get_merge_base,
)

logger = logging.getLogger('pendector')

DEFAULT_REMOTE = 'origin'
DETACHED_HEAD = 'HEAD'


def change_kind(xy: str) -> ChangeKind:
    """Map a porcelain XY code to a change kind.

    Index and worktree columns are checked together; the first matching
    kind wins in the order added, modified, deleted, renamed.

    Args:
        xy: Two-character status code

    Returns:
        ChangeKind for the entry
    """
    if xy == '??' or 'A' in xy:
        return ChangeKind.ADDED
    if 'M' in xy:
        return ChangeKind.MODIFIED
    if 'D' in xy:
        return ChangeKind.DELETED
    if 'R' in xy:
        return ChangeKind.RENAMED
    return ChangeKind.OTHER


def parse_porcelain(output: str) -> List[ChangedFile]:
    """Parse ``git status --porcelain=v1 -z`` output.

    Args:
        output: NUL-separated status records

    Returns:
        Changed files in the order git reported them
    """
    records = output.split('\0')
    changed: List[ChangedFile] = []
    i = 0
    while i < len(records):
        record = records[i]
        i += 1
        if len(record) < 4:
            continue
        xy, path = record[:2], record[3:]
        # Rename and copy records carry the source path as an extra field
        if 'R' in xy or 'C' in xy:
            i += 1
        changed.append(ChangedFile(kind=change_kind(xy), path=path))
    return changed


def read_sync_state(repo_path: str, branch: Optional[str], remote: str = DEFAULT_REMOTE) -> SyncState:
    """Compare the local branch tip with ``<remote>/<branch>``.

    Args:
        repo_path: Repository root
        branch: Current branch (None on unborn HEAD, "HEAD" when detached)
        remote: Remote name

    Returns:
        SyncState; empty when there is no branch or no tracking ref
    """
    if not branch or branch == DETACHED_HEAD:
        return SyncState.none()

    local_tip = resolve_commit(repo_path, 'HEAD')
    if local_tip is None:
        return SyncState.none()

    remote_branch = f"{remote}/{branch}"
    remote_tip = resolve_commit(repo_path, f"refs/remotes/{remote_branch}")
    if remote_tip is None:
        return SyncState.none()

    divergence = classify(
        local_tip,
        remote_tip,
        lambda a, b: get_merge_base(repo_path, a, b)
    )
    logger.debug(f"{repo_path}: {branch} is {divergence.value} relative to {remote_branch}")
    return SyncState.from_divergence(remote_branch, divergence)


def read_repository(
    path: str,
    fetch_first: bool = False,
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
    remote: str = DEFAULT_REMOTE
) -> RepositoryReport:
    """Compute the full report for a repository.

    Args:
        path: Repository root
        fetch_first: Fetch from remotes before reading status
        fetch_timeout: Fetch timeout in seconds
        remote: Remote whose tracking branch is compared

    Returns:
        RepositoryReport for the repository

    Raises:
        RepositoryNotFound: If path is not a valid repository root
        RepositoryOperationFailed: If reading status fails
    """
    handle = RepositoryHandle.from_path(path)
    open_repository(handle.path)

    if fetch_first:
        outcome = fetch_repository(handle.path, fetch_timeout)
        if not outcome.success:
            logger.warning(f"{outcome.error}")

    branch = get_current_branch(handle.path)
    changed_files = parse_porcelain(get_porcelain_status(handle.path))
    status = WorkingTreeStatus.from_changes(changed_files, branch)
    sync = read_sync_state(handle.path, branch, remote)

    return RepositoryReport(handle=handle, status=status, sync=sync)
