"""Directory scanning utilities for sync operations."""

import logging
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..api import FileBrowserClient
from ..exceptions import FileBrowserError, FileBrowserLocalIOError
from ..models import FileItem
from ..utils import join_remote, normalize_remote_path, remote_basename
from .ignore import IgnoreFilter
from .snapshot import ROOT, Snapshot

logger = logging.getLogger(__name__)


@dataclass
class LocalEntry:
    """Represents a local file or directory with metadata."""

    path: Path
    """Absolute path to the entry"""

    relative_path: str
    """Relative path (using forward slashes for cross-platform compatibility)"""

    is_dir: bool
    """Whether the entry is a directory"""

    size: int
    """File size in bytes (0 for directories)"""

    mtime: float
    """Last modification time (Unix timestamp)"""

    @property
    def name(self) -> str:
        return self.path.name

    @classmethod
    def from_path(cls, path: Path, base_path: Path) -> "LocalEntry":
        """Create LocalEntry from a path.

        Symbolic links to files are followed. Broken links and links to
        directories are rejected so the walk never leaves the tree.

        Args:
            path: Absolute path to the entry
            base_path: Base path for calculating relative paths

        Returns:
            LocalEntry instance

        Raises:
            OSError: If the entry cannot be stat'ed
            FileBrowserLocalIOError: For symbolic links to directories
        """
        st = path.stat()
        is_dir = stat.S_ISDIR(st.st_mode)
        if is_dir and path.is_symlink():
            raise FileBrowserLocalIOError(
                f"Symbolic link to a directory is not supported: {path}"
            )
        # Use as_posix() to ensure forward slashes on all platforms
        relative_path = path.relative_to(base_path).as_posix()
        if relative_path == ".":
            relative_path = ROOT
        return cls(
            path=path,
            relative_path=relative_path,
            is_dir=is_dir,
            size=0 if is_dir else st.st_size,
            mtime=st.st_mtime,
        )


@dataclass
class RemoteEntry:
    """Represents a remote file or directory with metadata."""

    item: FileItem
    """Remote entry from the listing API"""

    relative_path: str
    """Relative path below the scanned remote root"""

    remote_path: str
    """Absolute remote path"""

    @property
    def name(self) -> str:
        return self.item.normalized_name

    @property
    def is_dir(self) -> bool:
        return self.item.is_dir

    @property
    def size(self) -> int:
        return self.item.size

    @property
    def modified(self) -> str:
        """Modification time as the opaque server string."""
        return self.item.modified


class DirectoryScanner:
    """Builds local and remote snapshots.

    With an ignore filter, an entry whose relative path has a matching
    segment is left out; for a directory the whole subtree is pruned.

    Examples:
        >>> scanner = DirectoryScanner(compile_ignore_pattern("^node_modules$"))
        >>> snapshot = scanner.scan_local(Path("/sync/folder"))
        >>> for path, entry in snapshot.items():
        ...     print(path, entry.size)
    """

    def __init__(self, ignore_filter: Optional[IgnoreFilter] = None):
        """Initialize directory scanner.

        Args:
            ignore_filter: Compiled ignore pattern (None ignores nothing)
        """
        self.ignore_filter = ignore_filter or IgnoreFilter()

    def _is_ignored(self, relative_path: str, top_level_only: bool) -> bool:
        if top_level_only:
            return self.ignore_filter.should_ignore_top_level(relative_path)
        return self.ignore_filter.should_ignore(relative_path)

    # =========================
    # Local
    # =========================

    def scan_local(self, root: Path, top_level_only: bool = False) -> Snapshot:
        """Recursively scan a local directory.

        Any error while walking (permission denied, vanished entries, broken
        symbolic links) aborts the scan.

        Args:
            root: Directory to scan
            top_level_only: Apply the ignore filter to first-level entries
                only (deeper entries are always included)

        Returns:
            Snapshot keyed by relative path, root stored under ROOT

        Raises:
            FileBrowserLocalIOError: If the tree cannot be walked
        """
        snapshot = Snapshot(root)
        try:
            root_entry = LocalEntry.from_path(root, root)
        except OSError as e:
            raise FileBrowserLocalIOError(f"Error accessing local path: {e}") from e
        if not root_entry.is_dir:
            raise FileBrowserLocalIOError(f"Local path is not a directory: {root}")

        snapshot.add(ROOT, root_entry)
        self._walk_local(root, root, snapshot, top_level_only)
        logger.debug(f"Local scan of {root}: {len(snapshot)} entries")
        return snapshot

    def _walk_local(
        self,
        directory: Path,
        base_path: Path,
        snapshot: Snapshot,
        top_level_only: bool,
    ) -> None:
        try:
            children = sorted(directory.iterdir())
        except OSError as e:
            raise FileBrowserLocalIOError(
                f"Error walking local path {directory}: {e}"
            ) from e

        for item in children:
            relative_path = item.relative_to(base_path).as_posix()
            if self._is_ignored(relative_path, top_level_only):
                logger.debug(f"Ignoring (local): {relative_path}")
                continue

            try:
                entry = LocalEntry.from_path(item, base_path)
            except OSError as e:
                raise FileBrowserLocalIOError(
                    f"Error walking local path {item}: {e}"
                ) from e

            if not entry.is_dir and not item.is_file():
                logger.warning(f"Skipping special file: {item}")
                continue

            snapshot.add(relative_path, entry)
            if entry.is_dir:
                self._walk_local(item, base_path, snapshot, top_level_only)

    # =========================
    # Remote
    # =========================

    def scan_remote(
        self,
        client: FileBrowserClient,
        root: str,
        items: Optional[list[FileItem]] = None,
    ) -> Snapshot:
        """Recursively list a remote directory.

        The root listing must succeed; a subdirectory that cannot be listed
        is recorded as incomplete and its contents are left out.

        Args:
            client: File Browser client
            root: Remote directory path
            items: Root listing when the caller already fetched it

        Returns:
            Snapshot keyed by relative path, root stored under ROOT

        Raises:
            FileBrowserError: If the root cannot be listed
        """
        root = normalize_remote_path(root)
        if items is None:
            items = client.list_directory(root)

        snapshot = Snapshot(root)
        root_item = FileItem(name=remote_basename(root), is_dir=True)
        snapshot.add(
            ROOT, RemoteEntry(item=root_item, relative_path=ROOT, remote_path=root)
        )
        self._collect_remote(client, root, ROOT, items, snapshot)
        logger.debug(f"Remote scan of {root}: {len(snapshot)} entries")
        return snapshot

    def _collect_remote(
        self,
        client: FileBrowserClient,
        remote_dir: str,
        relative_dir: str,
        items: list[FileItem],
        snapshot: Snapshot,
    ) -> None:
        for item in items:
            name = item.normalized_name
            if name in (".", "..") or "/" in name:
                logger.warning(
                    f"Skipping invalid remote name in {remote_dir}: {item.name!r}"
                )
                continue

            relative_path = f"{relative_dir}/{name}" if relative_dir else name
            if self.ignore_filter.should_ignore(relative_path):
                logger.debug(f"Ignoring (remote): {relative_path}")
                continue

            remote_path = join_remote(remote_dir, name)
            snapshot.add(
                relative_path,
                RemoteEntry(
                    item=item, relative_path=relative_path, remote_path=remote_path
                ),
            )

            if item.is_dir:
                try:
                    children = client.list_directory(remote_path)
                except FileBrowserError as e:
                    logger.warning(
                        f"Failed to list remote directory {remote_path}: {e}"
                    )
                    snapshot.mark_incomplete(relative_path)
                    continue
                self._collect_remote(
                    client, remote_path, relative_path, children, snapshot
                )

