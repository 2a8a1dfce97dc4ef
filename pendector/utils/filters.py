"""Exclude patterns for discovery and filters over scan results."""

import fnmatch
import logging
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional

from ..core.types import RepositoryReport

logger = logging.getLogger('pendector')


class ExcludeFilter:
    """Gitignore-style exclusion of directories during discovery.

    A pattern without a slash matches any single path component
    (``node_modules`` excludes ``a/b/node_modules``). A pattern containing a
    slash is matched against the whole relative path; a leading ``**/`` is
    optional and ``*`` may span directories.
    """

    def __init__(self, patterns: Optional[Iterable[str]] = None):
        """Initialize exclude filter.

        Args:
            patterns: Glob patterns; blank entries and ``#`` comments are ignored
        """
        self.patterns: List[str] = []
        for pattern in patterns or []:
            pattern = pattern.strip()
            if pattern and not pattern.startswith('#'):
                self.patterns.append(pattern)

    @property
    def is_empty(self) -> bool:
        return not self.patterns

    def is_excluded(self, rel_path: str) -> bool:
        """Check whether a path relative to the scan root is excluded.

        Args:
            rel_path: Path relative to the scan root

        Returns:
            True if any pattern matches
        """
        if self.is_empty:
            return False

        path = PurePosixPath(str(rel_path).replace('\\', '/'))
        posix = path.as_posix()
        if posix in ('', '.'):
            return False

        for pattern in self.patterns:
            trimmed = pattern.rstrip('/')
            if '/' not in trimmed:
                if any(fnmatch.fnmatchcase(part, trimmed) for part in path.parts):
                    return True
                continue

            anchored = trimmed.lstrip('/')
            candidates = [anchored]
            if anchored.startswith('**/'):
                candidates.append(anchored[3:])
            if any(fnmatch.fnmatchcase(posix, candidate) for candidate in candidates):
                return True
        return False


def filter_changes_only(reports: List[RepositoryReport]) -> List[RepositoryReport]:
    """Keep only repositories with local changes.

    Args:
        reports: Scan results

    Returns:
        Reports whose working tree has changes
    """
    filtered = [r for r in reports if r.has_changes]
    logger.debug(f"Filtered {len(reports)} repositories to {len(filtered)} with changes")
    return filtered


def unique_by_path(reports: List[RepositoryReport]) -> List[RepositoryReport]:
    """Drop repeated reports for the same repository.

    Overlapping base paths find the same repository more than once; the
    first report for each path is kept.

    Args:
        reports: Scan results

    Returns:
        Reports with distinct paths, in their original order
    """
    unique: Dict[str, RepositoryReport] = {}
    for report in reports:
        unique.setdefault(report.path, report)
    if len(unique) < len(reports):
        logger.debug(f"Dropped {len(reports) - len(unique)} duplicate repositories")
    return list(unique.values())
