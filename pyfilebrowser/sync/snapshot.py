"""Snapshots of one side of a sync.

A snapshot maps POSIX relative paths to entries for a single subtree at one
point in time. The subtree root is stored under the empty path ``ROOT`` and
is skipped by the iteration helpers.
"""

import posixpath
from pathlib import Path
from typing import Any, Iterator, Optional, Union

ROOT = ""


class Snapshot:
    """Relative path to entry mapping for a local or remote subtree."""

    def __init__(self, root: Union[str, Path]):
        """Initialize an empty snapshot.

        Args:
            root: Local Path or remote path the relative paths are based on
        """
        self.root = root
        self.entries: dict[str, Any] = {}
        # Directories whose contents could not be listed
        self.incomplete: set[str] = set()
        self._children: Optional[dict[str, list[str]]] = None

    def add(self, relative_path: str, entry: Any) -> None:
        self.entries[relative_path] = entry
        self._children = None

    def mark_incomplete(self, relative_path: str) -> None:
        self.incomplete.add(relative_path)

    def get(self, relative_path: str) -> Any:
        return self.entries.get(relative_path)

    def __contains__(self, relative_path: object) -> bool:
        return relative_path in self.entries

    def __len__(self) -> int:
        """Number of entries, excluding the root sentinel."""
        return len(self.entries) - (1 if ROOT in self.entries else 0)

    def __iter__(self) -> Iterator[str]:
        return iter(self.paths())

    def paths(self) -> list[str]:
        """Relative paths in sorted order (parents before children)."""
        return sorted(p for p in self.entries if p != ROOT)

    def items(self) -> list[tuple[str, Any]]:
        return [(p, self.entries[p]) for p in self.paths()]

    def is_dir(self, relative_path: str) -> bool:
        entry = self.entries.get(relative_path)
        return entry is not None and entry.is_dir

    def children(self, parent: str = ROOT) -> list[str]:
        """Relative paths of the direct children of ``parent``, sorted."""
        if self._children is None:
            index: dict[str, list[str]] = {}
            for path in self.entries:
                if path == ROOT:
                    continue
                index.setdefault(posixpath.dirname(path), []).append(path)
            for paths in index.values():
                paths.sort()
            self._children = index
        return list(self._children.get(parent, []))

    def summary(self) -> dict[str, tuple[bool, int]]:
        """Map each path to ``(is_dir, size)``, sizes of directories as 0."""
        return {
            path: (entry.is_dir, 0 if entry.is_dir else entry.size)
            for path, entry in self.items()
        }
