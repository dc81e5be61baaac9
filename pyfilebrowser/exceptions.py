"""Custom exceptions for the File Browser client."""

from typing import Optional


class FileBrowserError(Exception):
    """Base exception for all File Browser client errors."""


class FileBrowserConfigError(FileBrowserError):
    """Raised when configuration or user input is invalid.

    Covers missing server URL or credentials and malformed ignore patterns.
    """


class FileBrowserNetworkError(FileBrowserError):
    """Raised when the server cannot be reached."""


class FileBrowserAPIError(FileBrowserError):
    """Raised when the server answers with a non-success status code."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: str = "",
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class FileBrowserNotFoundError(FileBrowserAPIError):
    """Raised when a remote resource does not exist (HTTP 404)."""


class FileBrowserAuthenticationError(FileBrowserAPIError):
    """Raised when login fails or the token is rejected."""


class FileBrowserInvalidResponseError(FileBrowserError):
    """Raised when a response cannot be decoded into the expected shape."""


class FileBrowserLocalIOError(FileBrowserError):
    """Raised when the local filesystem cannot be walked, read or written."""
