"""Credential resolution and login for CLI commands."""

import logging
from typing import Any, Optional

import click

from .api import FileBrowserClient
from .config import config
from .exceptions import FileBrowserError
from .output import OutputFormatter

logger = logging.getLogger(__name__)


def resolve_credentials(ctx: Any) -> tuple[str, str, str]:
    """Collect URL, username and password, prompting for missing values.

    Command line options win over environment variables and the config
    file. Prompts are written to stderr so JSON output stays clean.

    Args:
        ctx: Click context holding the global options

    Returns:
        Tuple of (url, username, password)
    """
    url: Optional[str] = ctx.obj.get("url") or config.url
    username: Optional[str] = ctx.obj.get("username") or config.username
    password: Optional[str] = ctx.obj.get("password") or config.password

    if not url:
        url = click.prompt("Enter File Browser URL", err=True)
    if not username:
        username = click.prompt("Enter Username", err=True)
    if password is None:
        password = click.prompt("Enter Password", hide_input=True, err=True)

    ctx.obj["url"] = url.strip().rstrip("/")
    ctx.obj["username"] = username.strip()
    ctx.obj["password"] = password
    return ctx.obj["url"], ctx.obj["username"], password


def require_client(ctx: Any) -> FileBrowserClient:
    """Build a logged-in client or exit with status 1.

    The client is closed when the click context is torn down.
    """
    out: OutputFormatter = ctx.obj["out"]
    url, username, password = resolve_credentials(ctx)

    try:
        client = FileBrowserClient(url=url, username=username, password=password)
        client.login()
    except FileBrowserError as e:
        out.error(f"Login failed: {e}")
        ctx.exit(1)

    logger.debug(f"Logged in to {url} as {username}")
    ctx.call_on_close(client.close)
    return client
