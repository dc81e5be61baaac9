"""Data models for File Browser API responses.

A ``GET /api/resources/<path>`` answers with one of two JSON shapes: a
directory object carrying an ``items`` array, or a bare file object. The
shape is resolved once here into a :data:`RemoteNode` so callers never have
to guess from raw dictionaries.
"""

from dataclasses import dataclass, field
from typing import Any, Union

from .exceptions import FileBrowserInvalidResponseError


@dataclass
class FileItem:
    """One file or directory as listed by the server."""

    name: str
    """Entry name as returned by the server (may carry stray CR/LF)"""

    is_dir: bool
    """Whether the entry is a directory"""

    size: int = 0
    """Size in bytes (directories report a server-defined value)"""

    modified: str = ""
    """Modification time, kept as the opaque server string"""

    path: str = ""
    """Server-side path, when present in the response"""

    @property
    def normalized_name(self) -> str:
        """Name with trailing carriage returns and newlines removed."""
        return self.name.rstrip("\r\n")

    @property
    def display_name(self) -> str:
        """Name without any CR/LF, with a trailing slash for directories."""
        name = self.name.replace("\n", "").replace("\r", "")
        if self.is_dir and not name.endswith("/"):
            name += "/"
        return name

    @classmethod
    def from_dict(cls, data: Any) -> "FileItem":
        """Create a FileItem from an API dictionary.

        Raises:
            FileBrowserInvalidResponseError: If the data is not an object
                or lacks a name
        """
        if not isinstance(data, dict):
            raise FileBrowserInvalidResponseError(
                f"Expected a resource object, got {type(data).__name__}"
            )
        name = data.get("name")
        if not isinstance(name, str):
            raise FileBrowserInvalidResponseError("Resource object has no name")
        try:
            size = int(data.get("size") or 0)
        except (TypeError, ValueError) as e:
            raise FileBrowserInvalidResponseError(
                f"Invalid size for '{name}': {data.get('size')!r}"
            ) from e
        return cls(
            name=name,
            is_dir=bool(data.get("isDir", False)),
            size=size,
            modified=str(data.get("modified") or ""),
            path=str(data.get("path") or ""),
        )

    def to_dict(self) -> dict:
        """Convert to a JSON-serializable dictionary."""
        return {
            "name": self.normalized_name,
            "isDir": self.is_dir,
            "size": self.size,
            "modified": self.modified,
        }


@dataclass
class RemoteFileResource:
    """A remote path that resolved to a single file."""

    path: str
    item: FileItem

    @property
    def is_dir(self) -> bool:
        return False


@dataclass
class RemoteDirectory:
    """A remote path that resolved to a directory listing."""

    path: str
    items: list[FileItem] = field(default_factory=list)

    @property
    def is_dir(self) -> bool:
        return True


RemoteNode = Union[RemoteFileResource, RemoteDirectory]


def parse_resource(data: Any, path: str) -> RemoteNode:
    """Resolve a resource response into a file or directory node.

    An object with an ``items`` array is a directory; a bare object is a
    file. Directories that report ``isDir`` with a null ``items`` value are
    treated as empty.

    Args:
        data: Decoded JSON response
        path: Remote path the response belongs to

    Returns:
        RemoteDirectory or RemoteFileResource

    Raises:
        FileBrowserInvalidResponseError: For any other shape
    """
    if not isinstance(data, dict):
        raise FileBrowserInvalidResponseError(
            f"Could not determine if '{path}' is a directory: "
            "unexpected JSON structure"
        )

    if "items" in data:
        items = data["items"]
        if items is None and data.get("isDir", False):
            return RemoteDirectory(path=path, items=[])
        if not isinstance(items, list):
            raise FileBrowserInvalidResponseError(
                f"Failed to decode directory listing for '{path}': "
                "'items' is not an array"
            )
        return RemoteDirectory(
            path=path,
            items=deduplicate_items(FileItem.from_dict(i) for i in items),
        )

    if data.get("isDir", False):
        return RemoteDirectory(path=path, items=[])

    return RemoteFileResource(path=path, item=FileItem.from_dict(data))


def deduplicate_items(items: Any) -> list[FileItem]:
    """Collapse duplicate listing entries.

    Names are compared after trimming trailing CR/LF. For duplicates the
    entry with the lexicographically greatest ``modified`` string wins (the
    first one on ties). Entries whose name is blank after trimming are
    dropped. First-seen order is preserved.

    Args:
        items: Iterable of FileItem

    Returns:
        List of unique FileItem
    """
    unique: dict[str, FileItem] = {}
    for item in items:
        key = item.normalized_name
        if not key.strip():
            continue
        existing = unique.get(key)
        if existing is None or item.modified > existing.modified:
            unique[key] = item
    return list(unique.values())


def sort_for_display(items: list[FileItem]) -> list[FileItem]:
    """Sort by modification time (newest first), then by name."""
    by_name = sorted(items, key=lambda i: i.name)
    return sorted(by_name, key=lambda i: i.modified, reverse=True)
