"""Unit tests for the pyfilebrowser CLI commands."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from pyfilebrowser import __version__
from pyfilebrowser.cli import main
from pyfilebrowser.exceptions import FileBrowserAuthenticationError

CREDENTIALS = [
    "--url",
    "https://files.example.com",
    "-u",
    "alice",
    "--password",
    "secret",
]


@pytest.fixture
def runner():
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def remote(fake_remote):
    """Route every command to the in-memory server instead of logging in."""
    with patch("pyfilebrowser.cli.require_client", return_value=fake_remote) as mock:
        fake_remote.require_client = mock
        yield fake_remote


class TestMainGroup:
    """Tests for the main CLI group."""

    def test_main_help(self, runner):
        """Test main help shows all commands."""
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "File Browser" in result.output
        for command in ("ls", "upload", "download", "syncto", "syncfrom", "rm"):
            assert command in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_aliases_resolve(self, runner):
        """Aliases share the implementation of their command."""
        for alias in ("dir", "md", "delete", "mv", "up", "down", "dl", "to", "from"):
            result = runner.invoke(main, [alias, "--help"])
            assert result.exit_code == 0, alias


class TestConfigCommands:
    """Tests for show and init."""

    def test_show_json_redacts_password(self, runner):
        result = runner.invoke(main, CREDENTIALS + ["--json", "show"])

        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "version": __version__,
            "url": "https://files.example.com",
            "username": "alice",
            "password": "s****t",
        }

    @patch("pyfilebrowser.cli.config")
    def test_init_saves_config(self, mock_config, runner):
        mock_config.save.return_value = Path("/mock/config.json")

        result = runner.invoke(
            main, ["init"], input="https://files.example.com\nalice\n"
        )

        assert result.exit_code == 0
        assert "Configuration saved successfully" in result.output
        mock_config.save.assert_called_once_with("https://files.example.com", "alice")


class TestLogin:
    """Tests for login handling in commands."""

    @patch("pyfilebrowser.auth.FileBrowserClient")
    def test_login_failure_exits_1(self, mock_client_class, runner):
        mock_client_class.return_value.login.side_effect = (
            FileBrowserAuthenticationError("Login: access denied (403)", 403)
        )

        result = runner.invoke(main, CREDENTIALS + ["ls"])

        assert result.exit_code == 1
        assert "Login failed" in result.output
        mock_client_class.assert_called_once_with(
            url="https://files.example.com", username="alice", password="secret"
        )

    @patch("pyfilebrowser.auth.FileBrowserClient")
    def test_client_is_closed(self, mock_client_class, runner):
        client = mock_client_class.return_value
        client.list_directory.return_value = []

        result = runner.invoke(main, CREDENTIALS + ["ls"])

        assert result.exit_code == 0
        client.login.assert_called_once_with()
        client.close.assert_called_once_with()


class TestListCommands:
    """Tests for ls and list."""

    def test_ls_script_output(self, runner, remote):
        remote.add_file("/a.txt")
        remote.add_file("/sub/b.txt")

        result = runner.invoke(main, ["ls", "-s"])

        assert result.exit_code == 0
        assert result.output.splitlines() == ["a.txt", "sub/"]

    def test_ls_ignore_and_json(self, runner, remote):
        remote.add_file("/a.txt", b"abc")
        remote.add_file("/b.log")

        result = runner.invoke(main, ["--json", "ls", "-i", r"\.log$"])

        assert result.exit_code == 0
        assert json.loads(result.output) == [
            {
                "name": "a.txt",
                "isDir": False,
                "size": 3,
                "modified": "2024-01-01T00:00:00Z",
            }
        ]

    def test_ls_path_with_spaces(self, runner, remote):
        """Unquoted path words are joined back together."""
        remote.add_file("/my docs/a.txt")

        result = runner.invoke(main, ["ls", "-s", "/my", "docs"])

        assert result.exit_code == 0
        assert result.output.strip() == "a.txt"

    def test_list_missing_directory(self, runner, remote):
        result = runner.invoke(main, ["list", "/missing"])
        assert result.exit_code == 1

    def test_invalid_ignore_pattern(self, runner, remote):
        """A bad expression fails before any server traffic."""
        result = runner.invoke(main, ["ls", "-i", "(["])

        assert result.exit_code == 1
        assert "Invalid ignore regex" in result.output
        remote.require_client.assert_not_called()


class TestMutationCommands:
    """Tests for mkdir, rm and rename."""

    def test_mkdir(self, runner, remote):
        result = runner.invoke(main, ["mkdir", "/a", "/b/c"])

        assert result.exit_code == 0
        assert remote.calls_of("mkdir") == ["/a", "/b/c"]

    def test_mkdir_root_fails(self, runner, remote):
        result = runner.invoke(main, ["md", "/"])
        assert result.exit_code == 1

    def test_rm_with_ignore(self, runner, remote):
        remote.add_file("/r/a.txt")
        remote.add_file("/r/keep.log")

        result = runner.invoke(main, ["rm", "-i", r"\.log$", "/r"])

        assert result.exit_code == 0
        assert sorted(remote.files) == ["/r/keep.log"]

    def test_rm_missing_path(self, runner, remote):
        result = runner.invoke(main, ["delete", "/missing"])
        assert result.exit_code == 1

    def test_rename(self, runner, remote):
        result = runner.invoke(main, ["mv", "/a.txt", "/b.txt"])

        assert result.exit_code == 0
        assert "Rename complete." in result.output
        assert remote.calls == [("rename", "/a.txt")]


class TestTransferCommands:
    """Tests for upload and download."""

    def test_upload_file(self, runner, remote, temp_dir, make_tree):
        make_tree(temp_dir, {"a.txt": "hello"})

        result = runner.invoke(main, ["upload", str(temp_dir / "a.txt"), "/docs"])

        assert result.exit_code == 0
        assert remote.files["/docs/a.txt"] == b"hello"

    def test_upload_missing_file(self, runner, remote, temp_dir):
        result = runner.invoke(main, ["up", str(temp_dir / "missing.txt")])

        assert result.exit_code == 1
        assert "Upload failed" in result.output

    def test_download_directory(self, runner, remote, temp_dir):
        remote.add_file("/r/a.txt", b"a")
        remote.add_file("/r/sub/b.txt", b"b")

        result = runner.invoke(main, ["dl", "/r", str(temp_dir)])

        assert result.exit_code == 0
        assert (temp_dir / "r" / "sub" / "b.txt").read_bytes() == b"b"

    def test_download_partial_failure_exits_1(self, runner, remote, temp_dir):
        remote.add_file("/r/a.txt", b"a")
        remote.add_file("/r/bad/b.txt", b"b")
        remote.fail_list.add("/r/bad")

        result = runner.invoke(main, ["download", "/r", str(temp_dir / "out")])

        assert result.exit_code == 1
        assert (temp_dir / "out" / "a.txt").exists()


class TestSyncCommands:
    """Tests for syncto and syncfrom."""

    def test_syncto_dry_run_changes_nothing(self, runner, remote, temp_dir, make_tree):
        make_tree(temp_dir, {"a.txt": "a"})
        remote.add_file("/dst/old.txt")

        result = runner.invoke(main, ["syncto", "--dry-run", str(temp_dir), "/dst"])

        assert result.exit_code == 0
        assert remote.calls == []
        assert "/dst/old.txt" in remote.files

    def test_syncto_json_stats(self, runner, remote, temp_dir, make_tree):
        make_tree(temp_dir, {"a.txt": "a"})
        remote.add_file("/dst/old.txt")

        result = runner.invoke(
            main, ["--json", "-q", "to", str(temp_dir), "/dst"]
        )

        assert result.exit_code == 0
        stats = json.loads(result.output)
        assert stats["uploads"] == 1
        assert stats["deletes_remote"] == 1
        assert sorted(remote.files) == ["/dst/a.txt"]

    def test_syncfrom(self, runner, remote, temp_dir):
        remote.add_file("/src/a.txt", b"remote")
        (temp_dir / "stale.txt").write_text("old")

        result = runner.invoke(main, ["from", "/src", str(temp_dir)])

        assert result.exit_code == 0
        assert (temp_dir / "a.txt").read_bytes() == b"remote"
        assert not (temp_dir / "stale.txt").exists()

    def test_sync_missing_local_source(self, runner, remote, temp_dir):
        result = runner.invoke(main, ["syncto", str(temp_dir / "missing"), "/dst"])

        assert result.exit_code == 1
        assert "Sync failed" in result.output
