"""Error types raised by the repository scanner."""

from typing import Optional


class PendectorError(Exception):
    """Base class for all scanner errors."""


class RepositoryNotFound(PendectorError):
    """The path is not a usable git repository root (metadata missing or corrupt)."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Git repository not found at '{path}'")


class RepositoryOperationFailed(PendectorError):
    """A git command failed inside an otherwise valid repository."""

    def __init__(self, path: str, operation: str, cause: object):
        self.path = path
        self.operation = operation
        self.cause = cause
        super().__init__(f"Git operation '{operation}' failed in '{path}': {cause}")


class FileSystemError(PendectorError):
    """A file or directory could not be read."""

    def __init__(self, path: str, cause: object):
        self.path = path
        self.cause = cause
        super().__init__(f"File system error for '{path}': {cause}")


class InvalidPathError(PendectorError):
    """A base directory given to the scanner is missing or not a directory."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Path '{path}' {reason}")


class NetworkError(PendectorError):
    """Fetch failed because the remote could not be reached."""

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"Network error for '{path}': {message}")


class FetchTimeoutError(PendectorError):
    """Fetch was cut off after the configured number of seconds."""

    def __init__(self, path: str, seconds: float):
        self.path = path
        self.seconds = seconds
        super().__init__(f"Operation timed out after {seconds:g}s for '{path}'")


class AuthenticationError(PendectorError):
    """Fetch was refused by the remote (credentials or access rights)."""

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"Authentication error for '{path}': {message}")


class FetchFailedError(PendectorError):
    """Fetch failed for a reason no classification rule recognised."""

    def __init__(self, path: str, message: str):
        self.path = path
        self.message = message
        super().__init__(f"Fetch failed for '{path}': {message}")


class ConfigError(PendectorError):
    """Configuration file could not be read or is invalid."""

    def __init__(self, path: Optional[str], message: str):
        self.path = path
        self.message = message
        where = f" in '{path}'" if path else ""
        super().__init__(f"Configuration error{where}: {message}")
