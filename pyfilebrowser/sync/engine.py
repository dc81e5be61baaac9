"""Core sync engine for executing sync operations."""

import logging
import posixpath
import stat
import time
from pathlib import Path
from typing import Optional, Union

from rich.progress import Progress, SpinnerColumn, TextColumn

from ..api import FileBrowserClient
from ..exceptions import (
    FileBrowserError,
    FileBrowserLocalIOError,
    FileBrowserNotFoundError,
)
from ..models import RemoteDirectory
from ..output import OutputFormatter
from ..utils import join_remote, normalize_remote_path, remote_basename, remote_parent
from .comparator import FileComparator, SyncAction, SyncDecision
from .ignore import IgnoreFilter, compile_ignore_pattern
from .modes import SyncDirection
from .operations import SyncOperations
from .scanner import DirectoryScanner, LocalEntry, RemoteEntry
from .snapshot import ROOT, Snapshot

logger = logging.getLogger(__name__)

IgnoreSpec = Union[str, IgnoreFilter, None]


def _local_target(root: Path, relative_path: str) -> Path:
    return root.joinpath(*relative_path.split("/")) if relative_path else root


def _below_conflict(relative_path: str, conflicts: set[str]) -> bool:
    """Check whether an ancestor of ``relative_path`` is a conflicted path."""
    parent = posixpath.dirname(relative_path)
    while parent:
        if parent in conflicts:
            return True
        parent = posixpath.dirname(parent)
    return False


class SyncEngine:
    """Core sync engine that mirrors one side of a tree onto the other.

    A run has three phases: scan both sides into snapshots, plan a list of
    decisions (creates and updates first, then deletions), and execute the
    plan entry by entry. A failure on one entry is reported and counted,
    and the run continues with the next one.
    """

    def __init__(
        self,
        client: FileBrowserClient,
        output: Optional[OutputFormatter] = None,
    ):
        """Initialize sync engine.

        Args:
            client: File Browser API client
            output: Output formatter for displaying progress/status
        """
        self.client = client
        self.output = output or OutputFormatter()
        self.operations = SyncOperations(client)
        self.comparator = FileComparator(client)

    def sync(
        self,
        direction: SyncDirection,
        source: Union[str, Path],
        destination: Union[str, Path],
        ignore: IgnoreSpec = None,
        dry_run: bool = False,
    ) -> dict:
        """Sync ``source`` onto ``destination`` in the given direction.

        Args:
            direction: TO_REMOTE (source is local) or FROM_REMOTE
            source: Authoritative path
            destination: Mirrored path
            ignore: Ignore pattern string or compiled filter
            dry_run: If True, only show what would be done

        Returns:
            Dictionary with sync statistics
        """
        if direction is SyncDirection.TO_REMOTE:
            return self.sync_to_remote(Path(source), str(destination), ignore, dry_run)
        return self.sync_from_remote(str(source), Path(destination), ignore, dry_run)

    # =========================
    # Local -> remote
    # =========================

    def sync_to_remote(
        self,
        local_path: Path,
        remote_path: str,
        ignore: IgnoreSpec = None,
        dry_run: bool = False,
    ) -> dict:
        """Make the remote tree mirror a local file or directory.

        Args:
            local_path: Local file or directory (source of truth)
            remote_path: Remote directory to mirror into
            ignore: Ignore pattern string or compiled filter
            dry_run: If True, only show what would be done

        Returns:
            Dictionary with sync statistics

        Raises:
            FileBrowserConfigError: If the ignore pattern is invalid
            FileBrowserLocalIOError: If the local tree cannot be read
            FileBrowserError: If the remote root cannot be reached

        Examples:
            >>> engine = SyncEngine(client)
            >>> stats = engine.sync_to_remote(Path("./docs"), "/docs", "^\\.git$")
            >>> print(f"Uploaded {stats['uploads']} files")
        """
        ignore_filter = self._compile(ignore)
        remote_path = normalize_remote_path(remote_path)
        try:
            is_dir = stat.S_ISDIR(local_path.stat().st_mode)
        except OSError as e:
            raise FileBrowserLocalIOError(f"Error accessing local path: {e}") from e

        self._display_header(
            f"Syncing from local '{local_path}' to remote '{remote_path}'",
            ignore_filter,
            dry_run,
        )

        if not is_dir:
            decisions = self._plan_file_to_remote(
                local_path, remote_path, ignore_filter
            )
        else:
            decisions = self._plan_to_remote(
                local_path, remote_path, ignore_filter, dry_run
            )
        return self._run(decisions, dry_run)

    def _plan_file_to_remote(
        self, local_path: Path, remote_path: str, ignore_filter: IgnoreFilter
    ) -> list[SyncDecision]:
        if ignore_filter.matches(local_path.name):
            self.output.info(f"Ignoring file: {local_path.name}")
            return []

        try:
            local = LocalEntry.from_path(local_path, local_path.parent)
        except OSError as e:
            raise FileBrowserLocalIOError(f"Error accessing local path: {e}") from e

        target = join_remote(remote_path, local_path.name)
        remote = self._lookup_remote_file(target)
        return [
            self.comparator.compare_for_upload(local.name, local, remote, target)
        ]

    def _lookup_remote_file(self, remote_path: str) -> Optional[RemoteEntry]:
        """Find a remote entry by listing its parent.

        Any listing failure means the remote does not have the file yet.
        """
        name = remote_basename(remote_path)
        try:
            items = self.client.list_directory(remote_parent(remote_path))
        except FileBrowserError as e:
            logger.debug(f"Remote lookup of {remote_path} failed: {e}")
            return None
        for item in items:
            if item.normalized_name == name:
                return RemoteEntry(
                    item=item, relative_path=name, remote_path=remote_path
                )
        return None

    def _plan_to_remote(
        self,
        local_path: Path,
        remote_path: str,
        ignore_filter: IgnoreFilter,
        dry_run: bool,
    ) -> list[SyncDecision]:
        scanner = DirectoryScanner(ignore_filter)
        with self._spinner("Scanning local directory...") as progress:
            local_snapshot = scanner.scan_local(local_path)
            progress(f"Found {len(local_snapshot)} local entries")

        decisions: list[SyncDecision] = []
        with self._spinner("Scanning remote directory...") as progress:
            try:
                remote_snapshot = scanner.scan_remote(self.client, remote_path)
            except FileBrowserNotFoundError:
                logger.debug(f"Remote root {remote_path} not found, starting empty")
                remote_snapshot = Snapshot(remote_path)
                decisions.append(
                    SyncDecision(
                        action=SyncAction.CREATE_REMOTE_DIR,
                        reason="Remote root does not exist",
                        relative_path=ROOT,
                        remote_path=remote_path,
                    )
                )
            progress(f"Found {len(remote_snapshot)} remote entries")

        conflicts: set[str] = set()
        for relative_path, local in local_snapshot.items():
            if _below_conflict(relative_path, conflicts):
                logger.debug(f"Skipping {relative_path}, parent is in conflict")
                continue
            target = join_remote(remote_path, relative_path)
            remote = remote_snapshot.get(relative_path)
            if not local.is_dir:
                decisions.append(
                    self.comparator.compare_for_upload(
                        relative_path, local, remote, target
                    )
                )
            elif remote is None:
                decisions.append(
                    SyncDecision(
                        action=SyncAction.CREATE_REMOTE_DIR,
                        reason="New local directory",
                        relative_path=relative_path,
                        local=local,
                        remote_path=target,
                    )
                )
            elif not remote.is_dir:
                conflicts.add(relative_path)
                decisions.append(
                    SyncDecision(
                        action=SyncAction.CONFLICT,
                        reason="Local directory but remote file",
                        relative_path=relative_path,
                        local=local,
                        remote=remote,
                    )
                )

        decisions.extend(
            self._plan_remote_deletions(local_snapshot, remote_snapshot, ROOT)
        )
        return decisions

    def _plan_remote_deletions(
        self, local_snapshot: Snapshot, remote_snapshot: Snapshot, parent: str
    ) -> list[SyncDecision]:
        """Walk the remote snapshot and delete what the local side lacks.

        Descends only where both sides hold a directory; a deleted directory
        takes its contents with it.
        """
        decisions: list[SyncDecision] = []
        for relative_path in remote_snapshot.children(parent):
            remote = remote_snapshot.get(relative_path)
            local = local_snapshot.get(relative_path)
            if local is None:
                kind = "directory" if remote.is_dir else "file"
                decisions.append(
                    SyncDecision(
                        action=SyncAction.DELETE_REMOTE,
                        reason=f"Remote {kind} not in source",
                        relative_path=relative_path,
                        remote=remote,
                        remote_path=remote.remote_path,
                    )
                )
            elif (
                remote.is_dir
                and local.is_dir
                and relative_path not in remote_snapshot.incomplete
            ):
                decisions.extend(
                    self._plan_remote_deletions(
                        local_snapshot, remote_snapshot, relative_path
                    )
                )
        return decisions

    # =========================
    # Remote -> local
    # =========================

    def sync_from_remote(
        self,
        remote_path: str,
        local_path: Path,
        ignore: IgnoreSpec = None,
        dry_run: bool = False,
    ) -> dict:
        """Make a local file or directory mirror the remote tree.

        Local entries are protected from deletion by the ignore pattern only
        when their *first* path segment matches. A nested local entry whose
        name matches is absent from the pruned remote snapshot and is
        therefore deleted. This matches the established behavior of the
        ``syncfrom`` command and is kept for compatibility.

        Args:
            remote_path: Remote file or directory (source of truth)
            local_path: Local path to mirror into
            ignore: Ignore pattern string or compiled filter
            dry_run: If True, only show what would be done

        Returns:
            Dictionary with sync statistics

        Raises:
            FileBrowserConfigError: If the ignore pattern is invalid
            FileBrowserError: If the remote root cannot be reached
            FileBrowserLocalIOError: If the local tree cannot be read
        """
        ignore_filter = self._compile(ignore)
        remote_path = normalize_remote_path(remote_path)
        node = self.client.get_resource(remote_path)

        self._display_header(
            f"Syncing from remote '{remote_path}' to local '{local_path}'",
            ignore_filter,
            dry_run,
        )

        if not isinstance(node, RemoteDirectory):
            name = remote_basename(remote_path)
            if ignore_filter.matches(name):
                self.output.info(f"Ignoring file: {name}")
                return self._run([], dry_run)
            remote = RemoteEntry(
                item=node.item, relative_path=name, remote_path=remote_path
            )
            local = self._stat_local(local_path)
            decisions = [
                self.comparator.compare_for_download(name, remote, local, local_path)
            ]
            return self._run(decisions, dry_run)

        decisions = self._plan_from_remote(
            node, local_path, ignore_filter, dry_run
        )
        return self._run(decisions, dry_run)

    def _stat_local(self, local_path: Path) -> Optional[LocalEntry]:
        try:
            return LocalEntry.from_path(local_path, local_path.parent)
        except FileNotFoundError:
            return None
        except OSError as e:
            raise FileBrowserLocalIOError(
                f"Error accessing local path {local_path}: {e}"
            ) from e

    def _plan_from_remote(
        self,
        node: RemoteDirectory,
        local_path: Path,
        ignore_filter: IgnoreFilter,
        dry_run: bool,
    ) -> list[SyncDecision]:
        scanner = DirectoryScanner(ignore_filter)
        with self._spinner("Scanning remote directory...") as progress:
            remote_snapshot = scanner.scan_remote(
                self.client, node.path, items=node.items
            )
            progress(f"Found {len(remote_snapshot)} remote entries")

        decisions: list[SyncDecision] = []
        if not local_path.exists():
            if dry_run:
                decisions.append(
                    SyncDecision(
                        action=SyncAction.CREATE_LOCAL_DIR,
                        reason="Local root does not exist",
                        relative_path=ROOT,
                        local_path=local_path,
                    )
                )
            else:
                self.operations.create_local_dir(local_path)
                self.output.info(f"Directory created: {local_path}")

        if local_path.exists():
            with self._spinner("Scanning local directory...") as progress:
                local_snapshot = scanner.scan_local(local_path, top_level_only=True)
                progress(f"Found {len(local_snapshot)} local entries")
        else:
            local_snapshot = Snapshot(local_path)

        conflicts: set[str] = set()
        for relative_path, remote in remote_snapshot.items():
            if _below_conflict(relative_path, conflicts):
                logger.debug(f"Skipping {relative_path}, parent is in conflict")
                continue
            target = _local_target(local_path, relative_path)
            local = local_snapshot.get(relative_path)
            if not remote.is_dir:
                decisions.append(
                    self.comparator.compare_for_download(
                        relative_path, remote, local, target
                    )
                )
            elif local is None:
                decisions.append(
                    SyncDecision(
                        action=SyncAction.CREATE_LOCAL_DIR,
                        reason="New remote directory",
                        relative_path=relative_path,
                        remote=remote,
                        local_path=target,
                    )
                )
            elif not local.is_dir:
                conflicts.add(relative_path)
                decisions.append(
                    SyncDecision(
                        action=SyncAction.CONFLICT,
                        reason="Remote directory but local file",
                        relative_path=relative_path,
                        local=local,
                        remote=remote,
                    )
                )

        decisions.extend(
            self._plan_local_deletions(local_snapshot, remote_snapshot, ROOT)
        )
        return decisions

    def _plan_local_deletions(
        self, local_snapshot: Snapshot, remote_snapshot: Snapshot, parent: str
    ) -> list[SyncDecision]:
        decisions: list[SyncDecision] = []
        for relative_path in local_snapshot.children(parent):
            local = local_snapshot.get(relative_path)
            remote = remote_snapshot.get(relative_path)
            if remote is None:
                kind = "directory" if local.is_dir else "file"
                decisions.append(
                    SyncDecision(
                        action=SyncAction.DELETE_LOCAL,
                        reason=f"Local {kind} not in remote",
                        relative_path=relative_path,
                        local=local,
                        local_path=local.path,
                    )
                )
            elif (
                remote.is_dir
                and local.is_dir
                and relative_path not in remote_snapshot.incomplete
            ):
                decisions.extend(
                    self._plan_local_deletions(
                        local_snapshot, remote_snapshot, relative_path
                    )
                )
        return decisions

    # =========================
    # Execution
    # =========================

    def _compile(self, ignore: IgnoreSpec) -> IgnoreFilter:
        if isinstance(ignore, IgnoreFilter):
            return ignore
        return compile_ignore_pattern(ignore)

    def _spinner(self, description: str) -> "_Spinner":
        return _Spinner(description, enabled=not self.output.quiet)

    def _run(self, decisions: list[SyncDecision], dry_run: bool) -> dict:
        planned = self._categorize_decisions(decisions)
        self._display_sync_plan(planned, decisions, dry_run)

        if dry_run:
            stats = planned
        else:
            stats = self._execute_decisions(decisions)
            stats["skips"] = planned["skips"]
            stats["conflicts"] = planned["conflicts"]

        if not self.output.quiet:
            self._display_summary(stats, dry_run)
        return stats

    def _create_empty_stats(self) -> dict:
        """Create an empty statistics dictionary.

        Returns:
            Dictionary with zero counts for all stat categories
        """
        return {
            "uploads": 0,
            "downloads": 0,
            "dirs_created": 0,
            "deletes_local": 0,
            "deletes_remote": 0,
            "skips": 0,
            "conflicts": 0,
            "errors": 0,
        }

    _STAT_KEYS = {
        SyncAction.UPLOAD: "uploads",
        SyncAction.DOWNLOAD: "downloads",
        SyncAction.CREATE_REMOTE_DIR: "dirs_created",
        SyncAction.CREATE_LOCAL_DIR: "dirs_created",
        SyncAction.DELETE_LOCAL: "deletes_local",
        SyncAction.DELETE_REMOTE: "deletes_remote",
        SyncAction.SKIP: "skips",
        SyncAction.CONFLICT: "conflicts",
    }

    def _categorize_decisions(self, decisions: list[SyncDecision]) -> dict:
        stats = self._create_empty_stats()
        for decision in decisions:
            stats[self._STAT_KEYS[decision.action]] += 1
        return stats

    def _execute_decisions(self, decisions: list[SyncDecision]) -> dict:
        """Execute sync decisions in order.

        Args:
            decisions: Planned decisions (SKIP and CONFLICT are not executed)

        Returns:
            Statistics of successful operations and errors
        """
        stats = self._create_empty_stats()
        actionable = [
            d
            for d in decisions
            if d.action not in (SyncAction.SKIP, SyncAction.CONFLICT)
        ]

        for decision in actionable:
            action_start = time.time()
            try:
                self._execute_single_decision(decision)
            except (FileBrowserError, ValueError) as e:
                # Log error but continue with remaining entries
                stats["errors"] += 1
                self.output.error(f"Error syncing {decision.relative_path}: {e}")
                logger.debug(f"Failed {decision.action.value} {decision.relative_path}")
                continue
            stats[self._STAT_KEYS[decision.action]] += 1
            logger.debug(
                f"{decision.action.value} {decision.relative_path} took "
                f"{time.time() - action_start:.2f}s"
            )
        return stats

    def _execute_single_decision(self, decision: SyncDecision) -> None:
        """Execute a single sync decision.

        Args:
            decision: Sync decision to execute
        """
        action = decision.action
        if action == SyncAction.UPLOAD:
            self.output.info(f"Uploading {decision.local_path} ({decision.reason})")
            self.operations.upload_file(decision.local_path, decision.remote_path)

        elif action == SyncAction.DOWNLOAD:
            self.output.info(
                f"Downloading {decision.remote_path} ({decision.reason})"
            )
            self.operations.download_file(decision.remote_path, decision.local_path)

        elif action == SyncAction.CREATE_REMOTE_DIR:
            self.operations.create_remote_dir(decision.remote_path)
            self.output.info(f"Directory created: {decision.remote_path}")

        elif action == SyncAction.CREATE_LOCAL_DIR:
            self.operations.create_local_dir(decision.local_path)
            self.output.info(f"Directory created: {decision.local_path}")

        elif action == SyncAction.DELETE_REMOTE:
            self.output.info(
                f"Deleting {decision.reason.lower()}: {decision.remote_path}"
            )
            self.operations.delete_remote(decision.remote_path)

        elif action == SyncAction.DELETE_LOCAL:
            self.output.info(
                f"Deleting {decision.reason.lower()}: {decision.local_path}"
            )
            self.operations.delete_local(decision.local_path)

    # =========================
    # Display
    # =========================

    def _display_header(
        self, message: str, ignore_filter: IgnoreFilter, dry_run: bool
    ) -> None:
        if self.output.quiet:
            return
        if ignore_filter:
            message = f"{message} (ignoring '{ignore_filter.pattern.pattern}')"
        self.output.info(message)
        if dry_run:
            self.output.info("Dry run: No changes will be made")

    def _display_sync_plan(
        self,
        stats: dict,
        decisions: list[SyncDecision],
        dry_run: bool,
    ) -> None:
        """Display sync plan to user.

        Args:
            stats: Statistics dictionary
            decisions: List of sync decisions
            dry_run: Whether this is a dry run
        """
        if self.output.quiet:
            return

        for decision in decisions:
            if decision.action == SyncAction.SKIP:
                logger.debug(f"Skip {decision.relative_path}: {decision.reason}")

        self.output.info("Sync plan:")
        if stats["dirs_created"] > 0:
            self.output.info(f"  + Create directory: {stats['dirs_created']}")
        if stats["uploads"] > 0:
            self.output.info(f"  ↑ Upload: {stats['uploads']} file(s)")
        if stats["downloads"] > 0:
            self.output.info(f"  ↓ Download: {stats['downloads']} file(s)")
        if stats["deletes_local"] > 0:
            self.output.info(f"  ✗ Delete local: {stats['deletes_local']} item(s)")
        if stats["deletes_remote"] > 0:
            self.output.info(f"  ✗ Delete remote: {stats['deletes_remote']} item(s)")
        if stats["skips"] > 0:
            self.output.info(f"  = Already in sync: {stats['skips']} file(s)")
        if stats["conflicts"] > 0:
            self.output.warning(f"  ⚠ Conflicts: {stats['conflicts']} item(s)")

        if stats["conflicts"] > 0:
            self.output.print("")
            self.output.warning("Conflict details:")
            for decision in decisions:
                if decision.action == SyncAction.CONFLICT:
                    self.output.warning(
                        f"  {decision.relative_path}: {decision.reason}"
                    )

        if dry_run:
            for decision in decisions:
                if decision.action not in (SyncAction.SKIP, SyncAction.CONFLICT):
                    self.output.info(
                        f"  {decision.action.value}: "
                        f"{decision.relative_path or '.'} ({decision.reason})"
                    )

        self.output.print("")

    def _display_summary(self, stats: dict, dry_run: bool) -> None:
        """Display sync summary.

        Args:
            stats: Statistics dictionary
            dry_run: Whether this was a dry run
        """
        self.output.print("")
        if dry_run:
            self.output.success("Dry run complete!")
        elif stats["errors"]:
            self.output.warning(f"Sync finished with {stats['errors']} error(s)")
        else:
            self.output.success("Sync complete!")

        total_actions = (
            stats["uploads"]
            + stats["downloads"]
            + stats["dirs_created"]
            + stats["deletes_local"]
            + stats["deletes_remote"]
        )

        if total_actions > 0:
            self.output.info(f"Total actions: {total_actions}")
            if stats["dirs_created"] > 0:
                self.output.info(f"  Directories created: {stats['dirs_created']}")
            if stats["uploads"] > 0:
                self.output.info(f"  Uploaded: {stats['uploads']}")
            if stats["downloads"] > 0:
                self.output.info(f"  Downloaded: {stats['downloads']}")
            if stats["deletes_local"] > 0:
                self.output.info(f"  Deleted locally: {stats['deletes_local']}")
            if stats["deletes_remote"] > 0:
                self.output.info(f"  Deleted remotely: {stats['deletes_remote']}")
        elif not stats["errors"]:
            self.output.info("No changes needed - everything is in sync!")


class _Spinner:
    """Transient rich spinner around a scan; a no-op when output is quiet."""

    def __init__(self, description: str, enabled: bool = True):
        self.description = description
        self.enabled = enabled
        self._progress: Optional[Progress] = None

    def __enter__(self):
        if not self.enabled:
            return lambda description: None
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        )
        self._progress.__enter__()
        task = self._progress.add_task(self.description, total=None)

        def update(description: str) -> None:
            self._progress.update(task, description=description)

        return update

    def __exit__(self, *exc_info):
        if self._progress is not None:
            self._progress.__exit__(*exc_info)
            self._progress = None
        return False
