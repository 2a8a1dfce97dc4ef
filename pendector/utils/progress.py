"""Progress tracking utilities."""

import sys
import time
import logging
from typing import Optional, TextIO

from ..core.types import FetchOutcome

logger = logging.getLogger('pendector')


class ProgressTracker:
    """Track and display progress for a batch of repository fetches."""

    def __init__(self, total: int, label: str = "Fetching repositories", stream: Optional[TextIO] = None):
        """Initialize progress tracker.

        Args:
            total: Total number of repositories to process
            label: Text shown before the bar
            stream: Output stream (default: stderr)
        """
        self.total = total
        self.label = label
        self.stream = stream if stream is not None else sys.stderr
        self.completed = 0
        self.success_count = 0
        self.failed_count = 0
        self.started_at = time.monotonic()

    @property
    def percentage(self) -> float:
        return (self.completed / self.total * 100) if self.total > 0 else 100.0

    def update(self, outcome: FetchOutcome) -> None:
        """Record one finished repository, successful or not.

        Args:
            outcome: Fetch outcome
        """
        self.completed += 1
        if outcome.success:
            self.success_count += 1
        else:
            self.failed_count += 1
        self.display()

    def display(self) -> None:
        """Display current progress."""
        bar_width = 20
        filled = int(bar_width * self.completed / self.total) if self.total > 0 else bar_width
        bar = '█' * filled + '░' * (bar_width - filled)
        elapsed = time.monotonic() - self.started_at

        status = (
            f"\r{self.label} [{bar}] {self.percentage:.0f}% "
            f"({self.completed}/{self.total}) {elapsed:.1f}s "
            f"✓{self.success_count} ✗{self.failed_count}"
        )

        self.stream.write(status)
        self.stream.flush()

    def finish(self) -> None:
        """Finish progress tracking."""
        # Move past the progress line
        self.stream.write("\n")
        self.stream.flush()

        logger.info(f"Fetched {self.total} repositories: "
                    f"{self.success_count} succeeded, {self.failed_count} failed")
