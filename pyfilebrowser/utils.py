"""Utility functions for the File Browser client."""

import hashlib
import posixpath
from pathlib import Path
from typing import Union
from urllib.parse import quote

# =============================================================================
# Constants
# =============================================================================

# Browser-like user agent; some File Browser deployments sit behind proxies
# that reject unknown clients
USER_AGENT: str = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/138.0.0.0 Safari/537.36"
)

# Files at or above this size are compared by size only (1 MiB)
HASH_SIZE_LIMIT: int = 1024 * 1024

# Read size for hashing and streamed downloads
IO_CHUNK_SIZE: int = 64 * 1024

# Characters left unescaped in whole resource paths and in single segments
_PATH_SAFE_CHARS = "/!$&'()*+,;=:@"
_SEGMENT_SAFE_CHARS = "$&+=:@"


# =============================================================================
# Remote path helpers
# =============================================================================


def normalize_remote_path(path: str) -> str:
    """Normalize a remote path to an absolute POSIX path.

    Args:
        path: Remote path, with or without leading slash

    Returns:
        Absolute path without trailing slash ("/" for the root)

    Examples:
        >>> normalize_remote_path("docs/")
        '/docs'
        >>> normalize_remote_path("")
        '/'
    """
    path = path.strip("/")
    if not path:
        return "/"
    return posixpath.normpath("/" + path)


def join_remote(base: str, *parts: str) -> str:
    """Join remote path components and normalize the result.

    Examples:
        >>> join_remote("/docs", "a/b.txt")
        '/docs/a/b.txt'
        >>> join_remote("/", "")
        '/'
    """
    joined = posixpath.join(normalize_remote_path(base), *[p for p in parts if p])
    return normalize_remote_path(joined)


def remote_parent(path: str) -> str:
    """Return the parent directory of a remote path."""
    return posixpath.dirname(normalize_remote_path(path)) or "/"


def remote_basename(path: str) -> str:
    """Return the last segment of a remote path ("" for the root)."""
    return posixpath.basename(normalize_remote_path(path))


def encode_path(path: str) -> str:
    """Percent-encode a remote path, preserving slashes (read operations).

    Examples:
        >>> encode_path("/my docs/a#1.txt")
        '/my%20docs/a%231.txt'
    """
    return quote(normalize_remote_path(path), safe=_PATH_SAFE_CHARS)


def encode_segments(path: str) -> str:
    """Percent-encode each segment of a remote path (write operations).

    Returns:
        Encoded path with a leading slash, or "" for the root

    Examples:
        >>> encode_segments("/a b/c")
        '/a%20b/c'
        >>> encode_segments("/")
        ''
    """
    trimmed = path.strip("/")
    if not trimmed:
        return ""
    segments = [quote(seg, safe=_SEGMENT_SAFE_CHARS) for seg in trimmed.split("/")]
    return "/" + "/".join(segments)


# =============================================================================
# Hash calculation utilities
# =============================================================================


def calculate_sha256(file_path: Union[str, Path]) -> str:
    """Calculate the SHA-256 hex digest of a local file.

    Args:
        file_path: Path to the file

    Returns:
        Lowercase hexadecimal digest

    Raises:
        OSError: If the file cannot be read
    """
    digest = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(IO_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def normalize_hash(value: str) -> str:
    """Normalize a hex digest for comparison (trimmed, lowercase)."""
    return value.strip().lower()


# =============================================================================
# Formatting utilities
# =============================================================================


def format_modified(timestamp: str) -> str:
    """Shorten a server timestamp to ``YYYY-MM-DD HH:MM:SS``.

    The value is treated as an opaque string: only the first 19 characters
    are kept and an ISO ``T`` separator becomes a space.

    Examples:
        >>> format_modified("2025-01-15T10:30:00.123456789+01:00")
        '2025-01-15 10:30:00'
        >>> format_modified("yesterday")
        'yesterday'
    """
    if len(timestamp) > 19:
        short = timestamp[:19]
        if "T" in timestamp:
            short = short.replace("T", " ", 1)
        return short
    return timestamp


def redact_password(password: str) -> str:
    """Mask a password, keeping first and last character for long values.

    Examples:
        >>> redact_password("secret")
        's****t'
        >>> redact_password("ab")
        '**'
    """
    length = len(password)
    if length <= 2:
        return "*" * length
    return password[0] + "*" * (length - 2) + password[-1]
