"""Repository manager for running fetches and status reads across many repositories."""

import os
import logging
import multiprocessing
from typing import List, Optional, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed

from .discovery import discover
from .errors import InvalidPathError, RepositoryNotFound, RepositoryOperationFailed
from .fetch import fetch_repository, DEFAULT_FETCH_TIMEOUT
from .status import read_repository
from .types import ErrorKind, FetchOutcome, RepositoryReport
from ..config import ScanOptions
from ..utils.filters import ExcludeFilter
from ..utils.progress import ProgressTracker

logger = logging.getLogger('pendector')


def validate_base_path(path: str) -> None:
    """Check that a scan root exists and is a directory.

    Args:
        path: Base directory

    Raises:
        InvalidPathError: If the path is missing or not a directory
    """
    if not os.path.exists(path):
        raise InvalidPathError(path, "does not exist")
    if not os.path.isdir(path):
        raise InvalidPathError(path, "is not a directory")


class RepoManager:
    """Manager for orchestrating per-repository work on a worker pool."""

    def __init__(self, max_workers: Optional[int] = None):
        """Initialize repository manager.

        Args:
            max_workers: Maximum number of parallel workers (None = CPU count)
        """
        if max_workers is None:
            self.max_workers = multiprocessing.cpu_count()
        else:
            self.max_workers = max(1, max_workers)

    def _pool_size(self, count: int) -> int:
        return max(1, min(self.max_workers, count))

    def fetch_all(
        self,
        paths: Sequence[str],
        timeout: float = DEFAULT_FETCH_TIMEOUT,
        show_progress: bool = False
    ) -> List[FetchOutcome]:
        """Fetch many repositories in parallel.

        A failing repository never stops the others; every failure is
        logged as a warning and returned as data.

        Args:
            paths: Repository roots
            timeout: Per-repository fetch timeout in seconds
            show_progress: Display a progress bar on stderr

        Returns:
            One outcome per path, in the same order as ``paths``
        """
        if not paths:
            return []

        progress_tracker = ProgressTracker(len(paths)) if show_progress else None
        outcomes: List[Optional[FetchOutcome]] = [None] * len(paths)

        logger.info(f"Fetching {len(paths)} repositories with {self._pool_size(len(paths))} workers")
        with ThreadPoolExecutor(max_workers=self._pool_size(len(paths))) as executor:
            future_to_index = {
                executor.submit(fetch_repository, path, timeout): index
                for index, path in enumerate(paths)
            }

            for future in as_completed(future_to_index):
                index = future_to_index[future]
                try:
                    outcome = future.result()
                except Exception as e:
                    logger.error(f"Unexpected error fetching {paths[index]}: {e}")
                    outcome = FetchOutcome.failed(paths[index], ErrorKind.FETCH_FAILED, f"Unexpected error: {e}")
                outcomes[index] = outcome

                if progress_tracker:
                    progress_tracker.update(outcome)
                if not outcome.success:
                    logger.warning(f"{outcome.error}")

        if progress_tracker:
            progress_tracker.finish()

        return outcomes

    def read_all(
        self,
        paths: Sequence[str],
        fetch_first: bool = False,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT
    ) -> List[RepositoryReport]:
        """Read status for many repositories in parallel.

        Paths that turn out not to be repositories, or whose status cannot
        be read, are left out with a warning.

        Args:
            paths: Repository roots
            fetch_first: Fetch each repository before reading it
            fetch_timeout: Fetch timeout in seconds

        Returns:
            Reports in no particular order
        """
        if not paths:
            return []

        reports: List[RepositoryReport] = []
        with ThreadPoolExecutor(max_workers=self._pool_size(len(paths))) as executor:
            future_to_path = {
                executor.submit(read_repository, path, fetch_first, fetch_timeout): path
                for path in paths
            }

            for future in as_completed(future_to_path):
                path = future_to_path[future]
                try:
                    reports.append(future.result())
                except RepositoryNotFound as e:
                    logger.warning(f"{e}")
                except RepositoryOperationFailed as e:
                    logger.warning(f"Skipping {path}: {e}")
                except Exception as e:
                    logger.error(f"Unexpected error reading {path}: {e}")

        return reports

    def scan(
        self,
        root: str,
        options: ScanOptions,
        exclude: Optional[ExcludeFilter] = None,
        show_progress: bool = False
    ) -> List[RepositoryReport]:
        """Discover repositories under a base directory and report on each.

        Args:
            root: Base directory
            options: Resolved scan options
            exclude: Directories to skip during discovery (default: from options)
            show_progress: Display fetch progress on stderr

        Returns:
            Reports in no particular order

        Raises:
            InvalidPathError: If root is missing or not a directory
        """
        validate_base_path(root)

        if exclude is None:
            exclude = ExcludeFilter(options.exclude)

        handles = discover(root, options.max_depth, exclude)
        logger.info(f"Found {len(handles)} repositories under {root}")

        paths = [handle.path for handle in handles]
        if options.fetch:
            self.fetch_all(paths, options.fetch_timeout, show_progress)

        return self.read_all(paths)
