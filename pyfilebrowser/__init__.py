"""pyfilebrowser - command line client and sync engine for File Browser."""

from .api import FileBrowserClient
from .exceptions import (
    FileBrowserAPIError,
    FileBrowserAuthenticationError,
    FileBrowserConfigError,
    FileBrowserError,
    FileBrowserInvalidResponseError,
    FileBrowserLocalIOError,
    FileBrowserNetworkError,
    FileBrowserNotFoundError,
)
from .utils import calculate_sha256

__version__ = "0.1.0"

__all__ = [
    "FileBrowserClient",
    "FileBrowserError",
    "FileBrowserAPIError",
    "FileBrowserAuthenticationError",
    "FileBrowserConfigError",
    "FileBrowserInvalidResponseError",
    "FileBrowserLocalIOError",
    "FileBrowserNetworkError",
    "FileBrowserNotFoundError",
    "calculate_sha256",
    "__version__",
]
