"""Custom exceptions for filesystem operations."""

from typing import Any


class FileOpsError(Exception):
    """Base exception for filesystem operations."""

    def __init__(self, message: str, error_details: dict[str, Any] | None = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            error_details: Optional dictionary with detailed error information
        """
        super().__init__(message)
        self.error_details = error_details


class FileOpsCopyError(FileOpsError):
    """Raised (and reported through progress messages) when a file copy fails."""


class FileOpsChannelClosedError(FileOpsError):
    """Raised when reading from a progress channel the consumer has already closed."""


class FileOpsSettingsError(FileOpsError):
    """Raised when a settings file cannot be decoded or holds invalid values."""
