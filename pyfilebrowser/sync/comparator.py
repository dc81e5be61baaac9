"""File comparison logic for sync operations."""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from ..api import FileBrowserClient
from ..exceptions import FileBrowserError
from ..utils import HASH_SIZE_LIMIT, calculate_sha256, normalize_hash
from .scanner import LocalEntry, RemoteEntry

logger = logging.getLogger(__name__)


class SyncAction(str, Enum):
    """Actions that can be taken during sync."""

    UPLOAD = "upload"
    """Upload local file to remote"""

    DOWNLOAD = "download"
    """Download remote file to local"""

    CREATE_REMOTE_DIR = "create_remote_dir"
    """Create a remote directory"""

    CREATE_LOCAL_DIR = "create_local_dir"
    """Create a local directory"""

    DELETE_LOCAL = "delete_local"
    """Delete local file or directory"""

    DELETE_REMOTE = "delete_remote"
    """Delete remote file or directory"""

    SKIP = "skip"
    """Skip entry (no action needed)"""

    CONFLICT = "conflict"
    """Entry is a file on one side and a directory on the other"""


@dataclass
class SyncDecision:
    """Represents a decision about how to sync an entry."""

    action: SyncAction
    """Action to take"""

    reason: str
    """Human-readable reason for this decision"""

    relative_path: str
    """Relative path of the entry"""

    local: Optional[LocalEntry] = None
    """Local entry (if exists)"""

    remote: Optional[RemoteEntry] = None
    """Remote entry (if exists)"""

    local_path: Optional[Path] = None
    """Local target path"""

    remote_path: Optional[str] = None
    """Remote target path"""


class FileComparator:
    """Decides whether a local and a remote file hold the same content.

    The check errs toward transferring:

    1. Different sizes are never in sync.
    2. Equal sizes at or above ``HASH_SIZE_LIMIT`` are assumed in sync
       without hashing.
    3. Smaller files compare the local SHA-256 with the checksum computed
       by the server. Any failure to obtain either hash counts as a
       mismatch.
    """

    def __init__(
        self,
        client: FileBrowserClient,
        hash_size_limit: int = HASH_SIZE_LIMIT,
    ):
        """Initialize file comparator.

        Args:
            client: File Browser client used to fetch remote checksums
            hash_size_limit: Size from which files are compared by size only
        """
        self.client = client
        self.hash_size_limit = hash_size_limit

    def check(
        self,
        local_path: Path,
        local_size: int,
        remote_path: str,
        remote_size: int,
    ) -> tuple[bool, str]:
        """Compare a local file with a remote file.

        Args:
            local_path: Local file path
            local_size: Local file size in bytes
            remote_path: Remote file path
            remote_size: Remote file size in bytes

        Returns:
            Tuple of (in_sync, reason)
        """
        if local_size != remote_size:
            return False, f"File size mismatch ({local_size} vs {remote_size})"

        if local_size >= self.hash_size_limit:
            return True, "Already in sync (size match, not hashing >1MB)"

        try:
            local_hash = normalize_hash(calculate_sha256(local_path))
        except OSError as e:
            logger.warning(f"Error hashing local file {local_path}: {e}")
            return False, "Local hash unavailable"

        try:
            remote_hash = normalize_hash(self.client.get_checksum(remote_path))
        except FileBrowserError as e:
            logger.warning(f"Error fetching remote hash for {remote_path}: {e}")
            return False, "Remote hash unavailable"

        if not remote_hash or local_hash != remote_hash:
            return False, "File hash mismatch"
        return True, "Already in sync"

    def in_sync(
        self,
        local_path: Path,
        remote_path: str,
        remote_size: int,
    ) -> bool:
        """Check whether a local file matches a remote file.

        Args:
            local_path: Local file path
            remote_path: Remote file path
            remote_size: Size reported by the remote listing

        Returns:
            True if the files are judged equivalent
        """
        try:
            local_size = local_path.stat().st_size
        except OSError:
            return False
        in_sync, _ = self.check(local_path, local_size, remote_path, remote_size)
        return in_sync

    def compare_for_upload(
        self,
        relative_path: str,
        local: LocalEntry,
        remote: Optional[RemoteEntry],
        remote_path: str,
    ) -> SyncDecision:
        """Decide whether a local file must be uploaded.

        Args:
            relative_path: Relative path of the file
            local: Local file entry
            remote: Remote entry at the same path (None if absent)
            remote_path: Remote target path

        Returns:
            SyncDecision with UPLOAD, SKIP or CONFLICT
        """
        decision = SyncDecision(
            action=SyncAction.UPLOAD,
            reason="New local file",
            relative_path=relative_path,
            local=local,
            remote=remote,
            local_path=local.path,
            remote_path=remote_path,
        )
        if remote is None:
            return decision
        if remote.is_dir:
            decision.action = SyncAction.CONFLICT
            decision.reason = "Local file but remote directory"
            return decision

        in_sync, reason = self.check(local.path, local.size, remote_path, remote.size)
        decision.reason = reason
        if in_sync:
            decision.action = SyncAction.SKIP
        return decision

    def compare_for_download(
        self,
        relative_path: str,
        remote: RemoteEntry,
        local: Optional[LocalEntry],
        local_path: Path,
    ) -> SyncDecision:
        """Decide whether a remote file must be downloaded.

        Args:
            relative_path: Relative path of the file
            remote: Remote file entry
            local: Local entry at the same path (None if absent)
            local_path: Local target path

        Returns:
            SyncDecision with DOWNLOAD, SKIP or CONFLICT
        """
        decision = SyncDecision(
            action=SyncAction.DOWNLOAD,
            reason="New remote file",
            relative_path=relative_path,
            local=local,
            remote=remote,
            local_path=local_path,
            remote_path=remote.remote_path,
        )
        if local is None:
            return decision
        if local.is_dir:
            decision.action = SyncAction.CONFLICT
            decision.reason = "Remote file but local directory"
            return decision

        in_sync, reason = self.check(
            local.path, local.size, remote.remote_path, remote.size
        )
        decision.reason = reason
        if in_sync:
            decision.action = SyncAction.SKIP
        return decision
