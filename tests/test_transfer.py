"""Tests for plain upload, download and delete."""

import pytest

from pyfilebrowser.exceptions import FileBrowserAPIError, FileBrowserLocalIOError
from pyfilebrowser.sync.ignore import compile_ignore_pattern
from pyfilebrowser.transfer import delete_path, download_path, upload_path


class TestUploadPath:
    """Tests for upload_path."""

    def test_upload_single_file(self, fake_remote, mock_output, temp_dir, make_tree):
        make_tree(temp_dir, {"a.txt": "hello"})

        stats = upload_path(fake_remote, mock_output, temp_dir / "a.txt", "/docs")

        assert stats == {"uploaded": 1, "dirs_created": 0, "ignored": 0}
        assert fake_remote.files["/docs/a.txt"] == b"hello"
        mock_output.success.assert_called_once_with("Upload complete.")

    def test_ignored_file_is_not_uploaded(
        self, fake_remote, mock_output, temp_dir, make_tree
    ):
        make_tree(temp_dir, {"a.tmp": "x"})

        stats = upload_path(
            fake_remote,
            mock_output,
            temp_dir / "a.tmp",
            "/",
            compile_ignore_pattern(r"\.tmp$"),
        )

        assert stats["ignored"] == 1
        assert fake_remote.calls == []

    def test_upload_directory_mirrors_pruned_tree(
        self, fake_remote, mock_output, temp_dir, make_tree
    ):
        """A directory lands at REMOTE_DIR/<name> without ignored entries."""
        make_tree(
            temp_dir / "proj",
            {"a.txt": "a", "sub/b.txt": "b", "node_modules/lib.js": "x"},
        )

        stats = upload_path(
            fake_remote,
            mock_output,
            temp_dir / "proj",
            "/dst",
            compile_ignore_pattern("^node_modules$"),
        )

        assert stats == {"uploaded": 2, "dirs_created": 2, "ignored": 0}
        assert fake_remote.calls == [
            ("mkdir", "/dst/proj"),
            ("upload", "/dst/proj/a.txt"),
            ("mkdir", "/dst/proj/sub"),
            ("upload", "/dst/proj/sub/b.txt"),
        ]

    def test_missing_local_path(self, fake_remote, mock_output, temp_dir):
        with pytest.raises(FileBrowserLocalIOError):
            upload_path(fake_remote, mock_output, temp_dir / "missing", "/")

    def test_upload_failure_propagates(
        self, fake_remote, mock_output, temp_dir, make_tree
    ):
        make_tree(temp_dir, {"a.txt": "a"})
        fake_remote.fail_upload.add("/a.txt")

        with pytest.raises(FileBrowserAPIError):
            upload_path(fake_remote, mock_output, temp_dir / "a.txt", "/")


class TestDownloadPath:
    """Tests for download_path."""

    def test_download_file_into_existing_directory(
        self, fake_remote, mock_output, temp_dir
    ):
        fake_remote.add_file("/docs/a.txt", b"remote")

        stats = download_path(fake_remote, mock_output, "/docs/a.txt", temp_dir)

        assert stats["downloaded"] == 1
        assert (temp_dir / "a.txt").read_bytes() == b"remote"

    def test_default_local_path_is_basename(
        self, fake_remote, mock_output, temp_dir, monkeypatch
    ):
        fake_remote.add_file("/docs/a.txt", b"remote")
        monkeypatch.chdir(temp_dir)

        download_path(fake_remote, mock_output, "/docs/a.txt")

        assert (temp_dir / "a.txt").read_bytes() == b"remote"

    def test_download_directory_recursively(self, fake_remote, mock_output, temp_dir):
        """Ignored subtrees are never fetched."""
        fake_remote.add_file("/r/a.txt", b"a")
        fake_remote.add_file("/r/sub/b.txt", b"b")
        fake_remote.add_file("/r/.git/config", b"c")
        target = temp_dir / "out"

        stats = download_path(
            fake_remote, mock_output, "/r", target, compile_ignore_pattern(r"^\.git$")
        )

        assert stats == {"downloaded": 2, "dirs_created": 1, "errors": 0}
        assert (target / "a.txt").read_bytes() == b"a"
        assert (target / "sub" / "b.txt").read_bytes() == b"b"
        assert not (target / ".git").exists()

    def test_unlistable_subdirectory_is_counted(
        self, fake_remote, mock_output, temp_dir
    ):
        fake_remote.add_file("/r/a.txt", b"a")
        fake_remote.add_file("/r/bad/b.txt", b"b")
        fake_remote.fail_list.add("/r/bad")

        stats = download_path(fake_remote, mock_output, "/r", temp_dir / "out")

        assert stats["errors"] == 1
        assert stats["downloaded"] == 1
        mock_output.error.assert_called_once_with(
            "Failed to list remote directory /r/bad"
        )

    def test_ignored_file(self, fake_remote, mock_output, temp_dir):
        fake_remote.add_file("/a.log", b"x")

        stats = download_path(
            fake_remote,
            mock_output,
            "/a.log",
            temp_dir,
            compile_ignore_pattern(r"\.log$"),
        )

        assert stats["downloaded"] == 0
        assert not (temp_dir / "a.log").exists()


class TestDeletePath:
    """Tests for delete_path."""

    def test_delete_without_pattern(self, fake_remote, mock_output):
        fake_remote.add_file("/r/sub/a.txt")

        stats = delete_path(fake_remote, mock_output, "/r")

        assert stats == {"deleted": 1, "ignored": 0}
        assert fake_remote.calls == [("delete", "/r")]
        assert "/r" not in fake_remote.dirs

    def test_ignored_file_is_kept(self, fake_remote, mock_output):
        fake_remote.add_file("/a.log")

        stats = delete_path(
            fake_remote, mock_output, "/a.log", compile_ignore_pattern(r"\.log$")
        )

        assert stats == {"deleted": 0, "ignored": 1}
        assert "/a.log" in fake_remote.files

    def test_directory_with_ignored_entries_is_kept(self, fake_remote, mock_output):
        """Only non-ignored contents go; directories holding kept entries stay."""
        fake_remote.add_file("/r/a.txt")
        fake_remote.add_file("/r/keep.log")
        fake_remote.add_file("/r/sub/x.log")
        fake_remote.add_file("/r/sub/y.txt")
        fake_remote.add_file("/r/sub2/z.txt")

        stats = delete_path(
            fake_remote, mock_output, "/r", compile_ignore_pattern(r"\.log$")
        )

        assert stats == {"deleted": 4, "ignored": 2}
        assert sorted(fake_remote.files) == ["/r/keep.log", "/r/sub/x.log"]
        assert "/r/sub" in fake_remote.dirs
        assert "/r/sub2" not in fake_remote.dirs
        assert "/r" in fake_remote.dirs
