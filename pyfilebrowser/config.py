"""Configuration management for the File Browser client.

Settings are read from environment variables first and fall back to a small
JSON file in the user's config directory. The password is never written to
disk; it comes from ``FILEBROWSER_PASSWORD`` or an interactive prompt.
"""

import json
import logging
import os
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

ENV_URL = "FILEBROWSER_URL"
ENV_USERNAME = "FILEBROWSER_USERNAME"
ENV_PASSWORD = "FILEBROWSER_PASSWORD"


class Config:
    """Resolved client settings."""

    def __init__(self, config_dir: Optional[Path] = None):
        """Initialize configuration.

        Args:
            config_dir: Directory holding ``config.json``. Defaults to
                ~/.config/pyfilebrowser/
        """
        if config_dir is None:
            config_dir = Path.home() / ".config" / "pyfilebrowser"
        self.config_dir = config_dir

    def get_config_path(self) -> Path:
        """Return the path of the JSON config file."""
        return self.config_dir / "config.json"

    def _load_file(self) -> dict:
        path = self.get_config_path()
        if not path.exists():
            return {}
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to read config file {path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    @property
    def url(self) -> Optional[str]:
        """Server base URL without trailing slash."""
        value = os.environ.get(ENV_URL) or self._load_file().get("url")
        return value.rstrip("/") if value else None

    @property
    def username(self) -> Optional[str]:
        return os.environ.get(ENV_USERNAME) or self._load_file().get("username")

    @property
    def password(self) -> Optional[str]:
        return os.environ.get(ENV_PASSWORD) or None

    def is_configured(self) -> bool:
        """Check whether URL and username are known without prompting."""
        return bool(self.url and self.username)

    def save(self, url: str, username: str) -> Path:
        """Persist URL and username to the config file.

        Args:
            url: Server base URL
            username: Login name

        Returns:
            Path of the written config file
        """
        self.config_dir.mkdir(parents=True, exist_ok=True)
        path = self.get_config_path()
        data = {"url": url.rstrip("/"), "username": username}
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        logger.debug(f"Saved configuration to {path}")
        return path


config = Config()
