"""Output rendering for scan results."""

from .formatter import OutputFormatter

__all__ = ['OutputFormatter']
