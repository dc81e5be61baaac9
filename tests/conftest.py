"""Shared fixtures: an in-memory File Browser server."""

import hashlib
import posixpath
import tempfile
from pathlib import Path
from unittest.mock import Mock

import pytest

from pyfilebrowser.exceptions import (
    FileBrowserAPIError,
    FileBrowserInvalidResponseError,
    FileBrowserNotFoundError,
)
from pyfilebrowser.models import FileItem, RemoteDirectory, RemoteFileResource
from pyfilebrowser.output import OutputFormatter
from pyfilebrowser.utils import join_remote, normalize_remote_path, remote_parent


class FakeFileBrowser:
    """Stand-in for FileBrowserClient backed by dictionaries.

    ``calls`` records every mutating request as ``(method, path)``.
    Paths in ``fail_list`` answer listings with HTTP 500; paths in
    ``fail_upload`` reject uploads.
    """

    def __init__(self):
        self.files: dict[str, bytes] = {}
        self.dirs: set[str] = {"/"}
        self.calls: list[tuple[str, str]] = []
        self.fail_list: set[str] = set()
        self.fail_upload: set[str] = set()

    def add_file(self, path: str, content: bytes = b"data") -> None:
        path = normalize_remote_path(path)
        self._add_dir(remote_parent(path))
        self.files[path] = content

    def _add_dir(self, path: str) -> None:
        path = normalize_remote_path(path)
        while path not in self.dirs:
            self.dirs.add(path)
            path = remote_parent(path)

    def _item(self, path: str) -> FileItem:
        name = posixpath.basename(path)
        if path in self.dirs:
            return FileItem(name=name, is_dir=True, modified="2024-01-01T00:00:00Z")
        return FileItem(
            name=name,
            is_dir=False,
            size=len(self.files[path]),
            modified="2024-01-01T00:00:00Z",
        )

    def _children(self, path: str) -> list[str]:
        everything = self.dirs | set(self.files)
        return sorted(p for p in everything if p != "/" and remote_parent(p) == path)

    def get_resource(self, remote_path):
        path = normalize_remote_path(remote_path)
        if path in self.dirs:
            if path in self.fail_list:
                raise FileBrowserAPIError("listing failed", status_code=500)
            items = [self._item(child) for child in self._children(path)]
            return RemoteDirectory(path=path, items=items)
        if path in self.files:
            return RemoteFileResource(path=path, item=self._item(path))
        raise FileBrowserNotFoundError(f"Stat '{path}': not found (404)", 404)

    def list_directory(self, remote_path):
        node = self.get_resource(remote_path)
        if not isinstance(node, RemoteDirectory):
            raise FileBrowserInvalidResponseError("path is a file")
        return node.items

    def is_directory(self, remote_path):
        return self.get_resource(remote_path).is_dir

    def create_directory(self, remote_path):
        path = normalize_remote_path(remote_path)
        if path == "/":
            raise ValueError("Cannot create root directory.")
        self.calls.append(("mkdir", path))
        self._add_dir(path)

    def upload_file(self, file_path, remote_dir, filename=None):
        path = join_remote(remote_dir, filename or Path(file_path).name)
        if path in self.fail_upload:
            raise FileBrowserAPIError("upload rejected", status_code=500)
        self.calls.append(("upload", path))
        self._add_dir(remote_dir)
        self.files[path] = Path(file_path).read_bytes()

    def download_file(self, remote_path, output_path, progress_callback=None):
        path = normalize_remote_path(remote_path)
        if path not in self.files:
            raise FileBrowserNotFoundError("not found (404)", 404)
        self.calls.append(("download", path))
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(self.files[path])
        return output_path

    def delete(self, remote_path):
        path = normalize_remote_path(remote_path)
        if path not in self.dirs and path not in self.files:
            raise FileBrowserNotFoundError("not found (404)", 404)
        self.calls.append(("delete", path))
        prefix = path.rstrip("/") + "/"
        self.files = {
            p: c
            for p, c in self.files.items()
            if p != path and not p.startswith(prefix)
        }
        self.dirs = {d for d in self.dirs if d != path and not d.startswith(prefix)}

    def rename(self, old_path, new_path):
        self.calls.append(("rename", normalize_remote_path(old_path)))

    def get_checksum(self, remote_path, algorithm="sha256"):
        path = normalize_remote_path(remote_path)
        return hashlib.sha256(self.files[path]).hexdigest().upper()

    def calls_of(self, method: str) -> list[str]:
        return [path for m, path in self.calls if m == method]


@pytest.fixture
def fake_remote():
    """Provide an empty in-memory File Browser server."""
    return FakeFileBrowser()


@pytest.fixture
def mock_output():
    """Create a mock output formatter."""
    output = Mock(spec=OutputFormatter)
    output.quiet = True  # Suppress output during tests
    output.json_output = False
    return output


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def write_tree(root: Path, files: dict[str, str]) -> None:
    """Create files (and their parent directories) below ``root``."""
    for relative_path, content in files.items():
        path = root / relative_path
        if relative_path.endswith("/"):
            path.mkdir(parents=True, exist_ok=True)
            continue
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)


@pytest.fixture
def make_tree():
    """Provide a helper that writes a dictionary of files to disk."""
    return write_tree
