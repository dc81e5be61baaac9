"""Plain upload, download and delete operations with ignore filtering.

Unlike the sync engine these never compare or delete on the destination
side: an upload overwrites, a download overwrites, and a delete only
touches the named path.
"""

import logging
import stat
from pathlib import Path
from typing import Optional

from .api import FileBrowserClient
from .exceptions import FileBrowserError, FileBrowserLocalIOError
from .models import FileItem
from .output import OutputFormatter
from .sync.ignore import IgnoreFilter
from .sync.scanner import DirectoryScanner
from .utils import join_remote, normalize_remote_path, remote_basename, remote_parent

logger = logging.getLogger(__name__)


def _ignoring(ignore_filter: IgnoreFilter) -> str:
    if not ignore_filter:
        return ""
    return f" (ignoring '{ignore_filter.pattern.pattern}')"


def upload_path(
    client: FileBrowserClient,
    out: OutputFormatter,
    local_path: Path,
    remote_dir: str,
    ignore_filter: Optional[IgnoreFilter] = None,
) -> dict:
    """Upload a file into ``remote_dir``, or a directory as ``remote_dir/<name>``.

    Directory uploads mirror the pruned local tree. The first failure
    aborts the upload.

    Args:
        client: Logged-in client
        out: Output formatter
        local_path: Local file or directory
        remote_dir: Remote destination directory
        ignore_filter: Entries with a matching path segment are skipped

    Returns:
        Dictionary with ``uploaded``, ``dirs_created`` and ``ignored`` counts

    Raises:
        FileBrowserLocalIOError: If the local path cannot be read
        FileBrowserError: If an upload or directory creation fails
    """
    ignore_filter = ignore_filter or IgnoreFilter()
    remote_dir = normalize_remote_path(remote_dir)
    stats = {"uploaded": 0, "dirs_created": 0, "ignored": 0}

    try:
        is_dir = stat.S_ISDIR(local_path.stat().st_mode)
    except OSError as e:
        raise FileBrowserLocalIOError(f"Error accessing local path: {e}") from e

    name = local_path.resolve().name
    if not is_dir:
        if ignore_filter.matches(name):
            out.info(f"Ignoring file: {name}")
            stats["ignored"] += 1
            return stats
        client.upload_file(local_path, remote_dir)
        stats["uploaded"] += 1
        out.success("Upload complete.")
        return stats

    if ignore_filter.matches(name):
        out.info(f"Ignoring directory: {name}")
        stats["ignored"] += 1
        return stats

    out.info(
        f"Uploading directory '{local_path}' to '{remote_dir}'"
        f"{_ignoring(ignore_filter)}"
    )
    snapshot = DirectoryScanner(ignore_filter).scan_local(local_path)
    full_remote_dir = join_remote(remote_dir, name)
    client.create_directory(full_remote_dir)
    stats["dirs_created"] += 1

    for relative_path, entry in snapshot.items():
        target = join_remote(full_remote_dir, relative_path)
        if entry.is_dir:
            out.info(f"Creating remote directory: {target}")
            client.create_directory(target)
            stats["dirs_created"] += 1
        else:
            out.info(f"Uploading file {entry.path} to {remote_parent(target)}")
            client.upload_file(entry.path, remote_parent(target))
            stats["uploaded"] += 1

    out.success("Directory upload complete.")
    return stats


def download_path(
    client: FileBrowserClient,
    out: OutputFormatter,
    remote_path: str,
    local_path: Optional[Path] = None,
    ignore_filter: Optional[IgnoreFilter] = None,
) -> dict:
    """Download a remote file or directory.

    ``local_path`` defaults to the remote basename; an existing local
    directory receives ``<basename>`` inside it. Directories are fetched
    recursively, skipping entries with a matching path segment. Failures on
    single entries are reported and the download continues.

    Returns:
        Dictionary with ``downloaded``, ``dirs_created`` and ``errors`` counts
    """
    ignore_filter = ignore_filter or IgnoreFilter()
    remote_path = normalize_remote_path(remote_path)
    basename = remote_basename(remote_path)
    stats = {"downloaded": 0, "dirs_created": 0, "errors": 0}

    if local_path is None:
        local_path = Path(basename or ".")
    elif basename:
        try:
            if local_path.is_dir():
                local_path = local_path / basename
        except OSError as e:
            raise FileBrowserLocalIOError(
                f"Error accessing local path {local_path}: {e}"
            ) from e

    node = client.get_resource(remote_path)
    if not node.is_dir:
        if ignore_filter.matches(basename):
            out.info(f"Ignoring file: {basename}")
            return stats
        out.info(f"Downloading file '{remote_path}' to '{local_path}'...")
        client.download_file(remote_path, local_path)
        stats["downloaded"] += 1
        out.success("Download complete.")
        return stats

    out.info(
        f"Downloading directory '{remote_path}' to '{local_path}'"
        f"{_ignoring(ignore_filter)}..."
    )
    _make_local_dir(local_path)
    snapshot = DirectoryScanner(ignore_filter).scan_remote(
        client, remote_path, items=node.items
    )
    for relative_path in sorted(snapshot.incomplete):
        stats["errors"] += 1
        out.error(
            "Failed to list remote directory "
            f"{join_remote(remote_path, relative_path)}"
        )

    for relative_path, entry in snapshot.items():
        target = local_path.joinpath(*relative_path.split("/"))
        try:
            if entry.is_dir:
                _make_local_dir(target)
                stats["dirs_created"] += 1
            else:
                client.download_file(entry.remote_path, target)
                stats["downloaded"] += 1
        except FileBrowserError as e:
            stats["errors"] += 1
            out.error(f"Failed to download {entry.remote_path}: {e}")

    out.success("Directory download complete.")
    return stats


def _make_local_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise FileBrowserLocalIOError(f"Failed to create directory {path}: {e}") from e


def delete_path(
    client: FileBrowserClient,
    out: OutputFormatter,
    remote_path: str,
    ignore_filter: Optional[IgnoreFilter] = None,
) -> dict:
    """Delete a remote path, honoring an ignore pattern.

    Without a pattern the path is deleted outright (directories
    recursively, server-side). With a pattern a file is deleted unless its
    name matches; for a directory only its contents are deleted, entry by
    entry, and any subdirectory that still holds an ignored entry is kept.

    Returns:
        Dictionary with ``deleted`` and ``ignored`` counts
    """
    ignore_filter = ignore_filter or IgnoreFilter()
    remote_path = normalize_remote_path(remote_path)
    stats = {"deleted": 0, "ignored": 0}

    if not ignore_filter:
        client.delete(remote_path)
        stats["deleted"] += 1
        out.success(f"Deleted: {remote_path}")
        return stats

    node = client.get_resource(remote_path)
    if not node.is_dir:
        if ignore_filter.matches(remote_basename(remote_path)):
            out.info(f"Ignoring file: {remote_path}")
            stats["ignored"] += 1
        else:
            client.delete(remote_path)
            stats["deleted"] += 1
            out.success(f"Deleted: {remote_path}")
        return stats

    out.info(f"Deleting contents of '{remote_path}'{_ignoring(ignore_filter)}")
    _delete_contents(client, out, remote_path, node.items, ignore_filter, stats)
    out.success("Deletion complete.")
    return stats


def _delete_contents(
    client: FileBrowserClient,
    out: OutputFormatter,
    directory: str,
    items: list[FileItem],
    ignore_filter: IgnoreFilter,
    stats: dict,
) -> bool:
    """Delete non-ignored entries below ``directory``.

    Returns:
        True if anything was kept below ``directory``
    """
    kept = False
    for item in items:
        name = item.normalized_name
        item_path = join_remote(directory, name)
        if ignore_filter.matches(name):
            out.info(f"Ignoring: {item_path}")
            stats["ignored"] += 1
            kept = True
            continue

        if item.is_dir:
            children = client.list_directory(item_path)
            if _delete_contents(client, out, item_path, children, ignore_filter, stats):
                logger.debug(f"Keeping {item_path}, it holds ignored entries")
                kept = True
                continue

        client.delete(item_path)
        stats["deleted"] += 1
        out.info(f"Deleted: {item_path}")
    return kept
