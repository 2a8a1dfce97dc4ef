"""Pendector: report pending changes and remote sync state for local git repositories."""

__version__ = "0.1.0"
