"""Find repository roots under a base directory."""

import os
import logging
from typing import List, Optional

from .types import RepositoryHandle
from ..utils.filters import ExcludeFilter
from ..utils.git import GIT_DIR_NAME

logger = logging.getLogger('pendector')


def discover(
    root: str,
    max_depth: int,
    exclude: Optional[ExcludeFilter] = None
) -> List[RepositoryHandle]:
    """Walk ``root`` and collect directories that contain a ``.git`` directory.

    Symbolic links are not followed and ``.git`` directories are never
    entered. ``max_depth`` counts levels below ``root``: 0 checks only
    ``root`` itself. Repositories nested inside other repositories are
    reported too. Directories that cannot be read are logged and skipped.

    Args:
        root: Base directory
        max_depth: Deepest level (relative to root) that is checked
        exclude: Optional filter for directories to skip, matched against
            paths relative to root

    Returns:
        Repository handles in no particular order
    """
    if max_depth < 0:
        raise ValueError(f"max_depth must be non-negative, got {max_depth}")

    exclude = exclude or ExcludeFilter()
    found: List[RepositoryHandle] = []
    # Depth-first with an explicit stack of (path, depth)
    stack = [(root, 0)]

    while stack:
        path, depth = stack.pop()

        try:
            entries = list(os.scandir(path))
        except OSError as e:
            logger.warning(f"Failed to access path during scan: {path}: {e}")
            continue

        subdirs = []
        is_repo = False
        for entry in entries:
            try:
                if not entry.is_dir(follow_symlinks=False):
                    continue
            except OSError as e:
                logger.warning(f"Failed to access path during scan: {entry.path}: {e}")
                continue

            if entry.name == GIT_DIR_NAME:
                is_repo = True
            else:
                subdirs.append(entry)

        if is_repo:
            logger.debug(f"Found repository: {path}")
            found.append(RepositoryHandle.from_path(path))

        if depth >= max_depth:
            continue

        for entry in subdirs:
            rel_path = os.path.relpath(entry.path, root)
            if exclude.is_excluded(rel_path):
                logger.debug(f"Excluded: {entry.path}")
                continue
            stack.append((entry.path, depth + 1))

    return found
