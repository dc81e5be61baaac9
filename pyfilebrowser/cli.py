"""CLI interface for File Browser servers."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from . import __version__
from .auth import require_client
from .config import ENV_PASSWORD, ENV_URL, ENV_USERNAME, config
from .exceptions import FileBrowserError
from .models import sort_for_display
from .output import OutputFormatter
from .sync import IgnoreFilter, SyncDirection, SyncEngine, compile_ignore_pattern
from .transfer import delete_path, download_path, upload_path
from .utils import redact_password

logger = logging.getLogger(__name__)

ignore_option = click.option(
    "--ignore",
    "-i",
    "ignore",
    default=None,
    metavar="REGEX",
    help="Skip entries with a path segment matching this regular expression",
)


def _compile_ignore(ctx: Any, pattern: Optional[str]) -> IgnoreFilter:
    """Compile the ignore pattern or exit before any network traffic."""
    out: OutputFormatter = ctx.obj["out"]
    try:
        return compile_ignore_pattern(pattern)
    except FileBrowserError as e:
        out.error(str(e))
        ctx.exit(1)


@click.group()
@click.option("--url", envvar=ENV_URL, help="File Browser server URL")
@click.option("--username", "-u", envvar=ENV_USERNAME, help="Login name")
@click.option(
    "--password",
    envvar=ENV_PASSWORD,
    help="Password (prompted for if not set)",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option("--json", is_flag=True, help="Output in JSON format")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(version=__version__, prog_name="pyfilebrowser")
@click.pass_context
def main(
    ctx: Any,
    url: Optional[str],
    username: Optional[str],
    password: Optional[str],
    quiet: bool,
    json: bool,
    verbose: bool,
) -> None:
    """pyfilebrowser - Browse, transfer and sync files on a File Browser server."""
    # Store settings in context for subcommands to access
    ctx.ensure_object(dict)
    ctx.obj["url"] = url
    ctx.obj["username"] = username
    ctx.obj["password"] = password
    ctx.obj["out"] = OutputFormatter(json_output=json, quiet=quiet)
    ctx.obj["verbose"] = verbose

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("pyfilebrowser").setLevel(logging.DEBUG)
    else:
        # Set default logging level to WARNING to suppress debug/info messages
        logging.basicConfig(level=logging.WARNING)


@main.command()
@click.pass_context
def show(ctx: Any) -> None:
    """Show the current configuration."""
    out: OutputFormatter = ctx.obj["out"]
    url = ctx.obj.get("url") or config.url or ""
    username = ctx.obj.get("username") or config.username or ""
    password = ctx.obj.get("password") or config.password or ""

    if out.json_output:
        out.output_json(
            {
                "version": __version__,
                "url": url,
                "username": username,
                "password": redact_password(password),
            }
        )
        return

    out.print_summary(
        "Configuration",
        [
            ("Version", __version__),
            ("URL", url or "(not set)"),
            ("Username", username or "(not set)"),
            ("Password", redact_password(password) if password else "(not set)"),
            ("Config file", str(config.get_config_path())),
        ],
    )


@main.command()
@click.option("--url", prompt="Enter File Browser URL", help="Server URL")
@click.option("--username", "-u", prompt="Enter Username", help="Login name")
@click.pass_context
def init(ctx: Any, url: str, username: str) -> None:
    """Initialize configuration.

    Stores URL and username in ~/.config/pyfilebrowser/config.json. The
    password is never stored; set FILEBROWSER_PASSWORD or enter it when
    prompted.
    """
    out: OutputFormatter = ctx.obj["out"]

    try:
        config_path = config.save(url, username)
    except OSError as e:
        out.error(f"Initialization failed: {e}")
        ctx.exit(1)

    out.print_summary(
        "Initialization Complete",
        [
            ("Status", "✓ Configuration saved successfully"),
            ("Config file", str(config_path)),
        ],
    )


def _list_remote(
    ctx: Any, path: tuple[str, ...], ignore: Optional[str], long: bool, script: bool
) -> None:
    out: OutputFormatter = ctx.obj["out"]
    ignore_filter = _compile_ignore(ctx, ignore)
    # Unquoted paths with spaces arrive as several arguments
    remote_path = " ".join(path) if path else "/"
    client = require_client(ctx)

    try:
        items = client.list_directory(remote_path)
    except FileBrowserError as e:
        out.error(str(e))
        ctx.exit(1)

    items = sort_for_display(
        [item for item in items if not ignore_filter.matches(item.normalized_name)]
    )
    if long:
        out.output_listing(items)
    else:
        out.output_names(items, script=script)


@main.command()
@click.argument("path", nargs=-1)
@ignore_option
@click.option("--long", "-l", is_flag=True, help="Detailed view with sizes and dates")
@click.option(
    "--script",
    "-s",
    is_flag=True,
    help="Script-friendly output (one name per line, no colors)",
)
@click.pass_context
def ls(
    ctx: Any, path: tuple[str, ...], ignore: Optional[str], long: bool, script: bool
) -> None:
    """List files and directories.

    PATH: Remote directory (defaults to /)

    Entries are sorted newest first; directories end with a slash.
    """
    _list_remote(ctx, path, ignore, long, script)


@main.command(name="list")
@click.argument("path", nargs=-1)
@ignore_option
@click.pass_context
def list_cmd(ctx: Any, path: tuple[str, ...], ignore: Optional[str]) -> None:
    """List files with modification time and size (like ls -l).

    PATH: Remote directory (defaults to /)
    """
    _list_remote(ctx, path, ignore, long=True, script=False)


@main.command()
@click.argument("paths", nargs=-1, required=True)
@click.pass_context
def mkdir(ctx: Any, paths: tuple[str, ...]) -> None:
    """Create one or more directories.

    PATHS: Remote directories to create (parents are created as needed)
    """
    out: OutputFormatter = ctx.obj["out"]
    client = require_client(ctx)

    try:
        for path in paths:
            client.create_directory(path)
            out.success(f"Directory created: {path}")
    except (FileBrowserError, ValueError) as e:
        out.error(str(e))
        ctx.exit(1)


@main.command()
@click.argument("paths", nargs=-1, required=True)
@ignore_option
@click.pass_context
def rm(ctx: Any, paths: tuple[str, ...], ignore: Optional[str]) -> None:
    """Delete one or more files or directories.

    PATHS: Remote paths to delete

    With --ignore, a directory is emptied entry by entry and anything
    matching the pattern (and every directory holding such an entry) is
    kept.
    """
    out: OutputFormatter = ctx.obj["out"]
    ignore_filter = _compile_ignore(ctx, ignore)
    client = require_client(ctx)

    results = []
    try:
        for path in paths:
            stats = delete_path(client, out, path, ignore_filter)
            results.append({"path": path, **stats})
    except (FileBrowserError, ValueError) as e:
        out.error(str(e))
        ctx.exit(1)

    if out.json_output:
        out.output_json(results)


@main.command()
@click.argument("old_path")
@click.argument("new_path")
@click.pass_context
def rename(ctx: Any, old_path: str, new_path: str) -> None:
    """Rename or move a file or directory.

    OLD_PATH: Existing remote path
    NEW_PATH: New remote path
    """
    out: OutputFormatter = ctx.obj["out"]
    client = require_client(ctx)

    try:
        client.rename(old_path, new_path)
    except FileBrowserError as e:
        out.error(str(e))
        ctx.exit(1)

    out.success("Rename complete.")


@main.command()
@click.argument("local_path", type=click.Path(path_type=Path))
@click.argument("remote_dir", default="/")
@ignore_option
@click.pass_context
def upload(
    ctx: Any, local_path: Path, remote_dir: str, ignore: Optional[str]
) -> None:
    """Upload a file or directory.

    LOCAL_PATH: Local file or directory
    REMOTE_DIR: Remote destination directory (defaults to /)

    A directory is uploaded as REMOTE_DIR/<name>. Existing remote files
    are overwritten.
    """
    out: OutputFormatter = ctx.obj["out"]
    ignore_filter = _compile_ignore(ctx, ignore)
    client = require_client(ctx)

    try:
        stats = upload_path(client, out, local_path, remote_dir, ignore_filter)
    except KeyboardInterrupt:
        out.warning("\nUpload cancelled by user")
        ctx.exit(130)
    except (FileBrowserError, ValueError) as e:
        out.error(f"Upload failed: {e}")
        ctx.exit(1)

    if out.json_output:
        out.output_json(stats)


@main.command()
@click.argument("remote_path")
@click.argument("local_path", required=False, type=click.Path(path_type=Path))
@ignore_option
@click.pass_context
def download(
    ctx: Any, remote_path: str, local_path: Optional[Path], ignore: Optional[str]
) -> None:
    """Download a file or directory.

    REMOTE_PATH: Remote file or directory
    LOCAL_PATH: Local destination (defaults to the remote name)

    Directories are downloaded recursively. If LOCAL_PATH is an existing
    directory, the download is placed inside it.
    """
    out: OutputFormatter = ctx.obj["out"]
    ignore_filter = _compile_ignore(ctx, ignore)
    client = require_client(ctx)

    try:
        stats = download_path(client, out, remote_path, local_path, ignore_filter)
    except KeyboardInterrupt:
        out.warning("\nDownload cancelled by user")
        ctx.exit(130)
    except FileBrowserError as e:
        out.error(f"Download failed: {e}")
        ctx.exit(1)

    if out.json_output:
        out.output_json(stats)
    if stats["errors"] > 0:
        ctx.exit(1)


def _run_sync(
    ctx: Any,
    direction: SyncDirection,
    source: str,
    destination: str,
    ignore: Optional[str],
    dry_run: bool,
) -> None:
    out: OutputFormatter = ctx.obj["out"]
    ignore_filter = _compile_ignore(ctx, ignore)
    client = require_client(ctx)

    try:
        engine = SyncEngine(client, out)
        stats = engine.sync(direction, source, destination, ignore_filter, dry_run)
    except KeyboardInterrupt:
        out.warning("\nSync cancelled by user")
        ctx.exit(130)
    except FileBrowserError as e:
        out.error(f"Sync failed: {e}")
        ctx.exit(1)

    if out.json_output:
        out.output_json(stats)

    if stats.get("conflicts", 0) > 0 and not out.quiet:
        out.warning(
            f"{stats['conflicts']} conflict(s) were skipped. "
            "Please resolve conflicts manually."
        )
    if stats.get("errors", 0) > 0:
        ctx.exit(1)


@main.command()
@click.argument("local_path")
@click.argument("remote_path")
@ignore_option
@click.option(
    "--dry-run", is_flag=True, help="Show what would be synced without syncing"
)
@click.pass_context
def syncto(
    ctx: Any, local_path: str, remote_path: str, ignore: Optional[str], dry_run: bool
) -> None:
    """Make a remote path mirror a local file or directory.

    LOCAL_PATH: Local source (authoritative)
    REMOTE_PATH: Remote destination

    New and changed files are uploaded, remote entries missing locally are
    deleted. Ignored entries are neither uploaded nor deleted.

    Examples:
        pyfilebrowser syncto ./site /www
        pyfilebrowser syncto -i '^\\.git$' ./project /backup/project
        pyfilebrowser syncto --dry-run ./docs /docs
    """
    _run_sync(ctx, SyncDirection.TO_REMOTE, local_path, remote_path, ignore, dry_run)


@main.command()
@click.argument("remote_path")
@click.argument("local_path")
@ignore_option
@click.option(
    "--dry-run", is_flag=True, help="Show what would be synced without syncing"
)
@click.pass_context
def syncfrom(
    ctx: Any, remote_path: str, local_path: str, ignore: Optional[str], dry_run: bool
) -> None:
    """Make a local path mirror a remote file or directory.

    REMOTE_PATH: Remote source (authoritative)
    LOCAL_PATH: Local destination

    New and changed files are downloaded, local entries missing remotely are
    deleted. Only top-level local entries matching the ignore pattern are
    protected from deletion.
    """
    _run_sync(
        ctx, SyncDirection.FROM_REMOTE, remote_path, local_path, ignore, dry_run
    )


main.add_command(list_cmd, name="dir")
main.add_command(mkdir, name="md")
main.add_command(rm, name="delete")
main.add_command(rename, name="mv")
main.add_command(upload, name="up")
main.add_command(download, name="down")
main.add_command(download, name="dl")
main.add_command(syncto, name="to")
main.add_command(syncfrom, name="from")


if __name__ == "__main__":
    main()
