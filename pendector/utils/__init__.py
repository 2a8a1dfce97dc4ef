"""Utility modules for pendector."""

from .filters import ExcludeFilter, filter_changes_only, unique_by_path
from .progress import ProgressTracker

__all__ = [
    'ExcludeFilter',
    'filter_changes_only',
    'unique_by_path',
    'ProgressTracker',
]
