"""Sync operations wrapper for a unified transfer interface."""

import logging
import shutil
from pathlib import Path

from ..api import FileBrowserClient
from ..exceptions import FileBrowserLocalIOError
from ..utils import remote_basename, remote_parent

logger = logging.getLogger(__name__)


class SyncOperations:
    """Unified create/transfer/delete operations on both sides."""

    def __init__(self, client: FileBrowserClient):
        """Initialize sync operations.

        Args:
            client: File Browser API client
        """
        self.client = client

    def upload_file(self, local_path: Path, remote_path: str) -> None:
        """Upload a local file to a remote file path.

        Args:
            local_path: Local file to upload
            remote_path: Full remote path of the file
        """
        self.client.upload_file(
            file_path=local_path,
            remote_dir=remote_parent(remote_path),
            filename=remote_basename(remote_path),
        )

    def download_file(self, remote_path: str, local_path: Path) -> Path:
        """Download a remote file to a local path.

        Args:
            remote_path: Remote file to download
            local_path: Local path where file should be saved

        Returns:
            Path where file was saved
        """
        return self.client.download_file(remote_path, local_path)

    def create_remote_dir(self, remote_path: str) -> None:
        self.client.create_directory(remote_path)

    def create_local_dir(self, local_path: Path) -> None:
        try:
            local_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FileBrowserLocalIOError(
                f"Failed to create directory {local_path}: {e}"
            ) from e

    def delete_remote(self, remote_path: str) -> None:
        """Delete a remote file or directory (recursive on the server)."""
        self.client.delete(remote_path)

    def delete_local(self, local_path: Path) -> None:
        """Delete a local file, or a directory with its contents.

        Args:
            local_path: Local file or directory
        """
        logger.debug(f"Deleting local {local_path}")
        try:
            if local_path.is_dir() and not local_path.is_symlink():
                shutil.rmtree(local_path)
            else:
                local_path.unlink()
        except OSError as e:
            raise FileBrowserLocalIOError(f"Error deleting {local_path}: {e}") from e
