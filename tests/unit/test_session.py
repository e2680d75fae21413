"""Unit tests for vault sessions."""

from pathlib import Path

import pytest

PASSWORD = "correct horse"


class TestSessionLifecycle:
    """Tests for opening and closing sessions."""

    def test_open_and_close(self, vault_dir: Path, vault_manager):
        from cryptvault.vault import VaultSession

        session = VaultSession.open(vault_dir, PASSWORD, manager=vault_manager)
        assert not session.closed

        session.close()
        assert session.closed

    def test_close_releases_handle_once(self, vault_dir: Path, vault_manager, monkeypatch):
        """Closing twice releases the underlying handle exactly once."""
        from cryptvault.vault import VaultSession

        session = VaultSession.open(vault_dir, PASSWORD, manager=vault_manager)
        handle = session.handle
        calls = []
        original_close = handle.close
        monkeypatch.setattr(handle, "close", lambda: (calls.append(1), original_close()))

        session.close()
        session.close()

        assert calls == [1]
        assert handle.closed

    def test_context_manager(self, vault_dir: Path, vault_manager):
        from cryptvault.vault import VaultSession

        with VaultSession.open(vault_dir, PASSWORD, manager=vault_manager) as session:
            assert not session.closed
        assert session.closed

    def test_use_after_close(self, session):
        from cryptvault.vault import SessionClosedError

        session.close()
        with pytest.raises(SessionClosedError):
            session.list("/")


class TestList:
    """Tests for directory listings."""

    def test_empty_root(self, session):
        assert session.list("/") == []

    def test_directories_first(self, populated_session):
        entries = populated_session.list("/")

        assert [(e.name, e.is_directory) for e in entries] == [
            ("docs", True),
            ("empty", True),
            ("notes.txt", False),
        ]

    def test_entry_attributes(self, populated_session, local_file: Path):
        entry = next(e for e in populated_session.list("/docs") if e.name == "notes.txt")

        assert entry.path == "/docs/notes.txt"
        assert entry.size_bytes == local_file.stat().st_size
        assert entry.modified_at is not None

    def test_unnormalized_path(self, populated_session):
        """Paths are normalized before use."""
        names = [e.name for e in populated_session.list("docs/archive/../")]
        assert names == ["archive", "notes.txt"]

    def test_missing_directory(self, session):
        from cryptvault.vault import PathNotFoundError

        with pytest.raises(PathNotFoundError):
            session.list("/nope")

    def test_list_file(self, populated_session):
        from cryptvault.vault import NotDirectoryError

        with pytest.raises(NotDirectoryError):
            populated_session.list("/notes.txt")


class TestStat:
    """Tests for single-entry lookups."""

    def test_exists(self, populated_session):
        assert populated_session.exists("/docs/notes.txt")
        assert populated_session.exists("/")
        assert not populated_session.exists("/missing")

    def test_is_dir(self, populated_session):
        assert populated_session.is_dir("/docs")
        assert not populated_session.is_dir("/notes.txt")
        assert not populated_session.is_dir("/missing")

    def test_stat_file(self, populated_session):
        entry = populated_session.stat("/notes.txt")

        assert entry.name == "notes.txt"
        assert not entry.is_directory

    def test_stat_missing(self, session):
        from cryptvault.vault import PathNotFoundError

        with pytest.raises(PathNotFoundError):
            session.stat("/missing")


class TestMkdir:
    """Tests for directory creation."""

    def test_creates_parents(self, session):
        assert session.mkdir("/a/b/c") == "/a/b/c"
        assert session.is_dir("/a")
        assert session.is_dir("/a/b")

    def test_idempotent(self, session):
        session.mkdir("/a")
        session.mkdir("/a")
        assert [e.name for e in session.list("/")] == ["a"]

    def test_through_file(self, populated_session):
        from cryptvault.vault import NotDirectoryError

        with pytest.raises(NotDirectoryError):
            populated_session.mkdir("/notes.txt/sub")


class TestUploadDownload:
    """Tests for moving files in and out of the vault."""

    def test_upload_returns_virtual_path(self, session, local_file: Path):
        assert session.upload(local_file, "/docs") == "/docs/notes.txt"
        assert session.is_dir("/docs")

    def test_download(self, populated_session, tmp_path: Path, local_file: Path):
        output = tmp_path / "out.txt"
        populated_session.download("/docs/archive/old/notes.txt", output)

        assert output.read_bytes() == local_file.read_bytes()

    def test_large_file(self, session, tmp_path: Path, rng):
        """Files spanning several chunks come back intact."""
        data = rng.token_bytes(200_000)
        source = tmp_path / "big.bin"
        source.write_bytes(data)

        session.upload(source, "/")
        assert session.stat("/big.bin").size_bytes == len(data)

        output = tmp_path / "big.out"
        session.download("/big.bin", output)
        assert output.read_bytes() == data

    def test_upload_replaces(self, session, tmp_path: Path):
        """Uploading a file of the same name replaces it."""
        source = tmp_path / "a.txt"
        source.write_text("first")
        session.upload(source, "/")
        source.write_text("second")
        session.upload(source, "/")

        assert session.read_text("/a.txt") == "second"
        assert len(session.list("/")) == 1

    def test_download_replaces_local_file(self, populated_session, tmp_path: Path):
        output = tmp_path / "out.txt"
        output.write_text("old contents that are longer")

        populated_session.download("/notes.txt", output)
        assert output.read_text() == "hello vault\n"

    def test_upload_missing_local_file(self, session, tmp_path: Path):
        from cryptvault.vault import LocalFileNotFoundError

        with pytest.raises(LocalFileNotFoundError):
            session.upload(tmp_path / "nope.txt", "/")
        assert session.list("/") == []

    def test_upload_into_file(self, populated_session, local_file: Path):
        from cryptvault.vault import NotDirectoryError

        with pytest.raises(NotDirectoryError):
            populated_session.upload(local_file, "/notes.txt")

    def test_download_missing(self, session, tmp_path: Path):
        from cryptvault.vault import PathNotFoundError

        with pytest.raises(PathNotFoundError):
            session.download("/missing.txt", tmp_path / "out.txt")
        assert not (tmp_path / "out.txt").exists()

    def test_download_to_missing_directory(self, populated_session, tmp_path: Path):
        from cryptvault.vault import LocalFileNotFoundError

        with pytest.raises(LocalFileNotFoundError):
            populated_session.download("/notes.txt", tmp_path / "no" / "such" / "out.txt")

    def test_read_text(self, populated_session):
        assert populated_session.read_text("/docs/notes.txt") == "hello vault\n"

    def test_read_binary_as_text(self, session, tmp_path: Path):
        from cryptvault.vault import StorageProviderError

        source = tmp_path / "bin.dat"
        source.write_bytes(b"\xff\xfe\x00\x80")
        session.upload(source, "/")

        with pytest.raises(StorageProviderError):
            session.read_text("/bin.dat")


class TestDelete:
    """Tests for deletion."""

    def test_delete_file(self, populated_session):
        populated_session.delete("/notes.txt")
        assert not populated_session.exists("/notes.txt")

    def test_delete_empty_directory(self, populated_session):
        populated_session.delete("/empty")
        assert not populated_session.exists("/empty")

    def test_non_recursive_on_populated_directory(self, populated_session):
        """Nothing is removed when a populated directory is deleted without recursion."""
        from cryptvault.vault import DirectoryNotEmptyError

        with pytest.raises(DirectoryNotEmptyError, match="Use recursive delete."):
            populated_session.delete("/docs")
        assert populated_session.exists("/docs/archive/old/notes.txt")

    def test_recursive(self, populated_session):
        """Nothing under a recursively deleted directory stays reachable."""
        from cryptvault.vault import PathNotFoundError

        populated_session.delete("/docs", recursive=True)

        with pytest.raises(PathNotFoundError):
            populated_session.list("/docs")
        assert not populated_session.exists("/docs/archive/old/notes.txt")

        assert not populated_session.exists("/docs")
        assert [e.name for e in populated_session.list("/")] == ["empty", "notes.txt"]

    def test_recursive_deep_tree(self, session, local_file: Path):
        """Deep trees are deleted without recursion limits."""
        deep = "/" + "/".join(f"level{i}" for i in range(40))
        session.upload(local_file, deep)

        session.delete("/level0", recursive=True)
        assert session.list("/") == []

    def test_delete_missing(self, session):
        from cryptvault.vault import PathNotFoundError

        with pytest.raises(PathNotFoundError):
            session.delete("/missing", recursive=True)

    def test_delete_root_refused(self, populated_session):
        from cryptvault.vault import StorageProviderError

        with pytest.raises(StorageProviderError):
            populated_session.delete("/", recursive=True)
        assert len(populated_session.list("/")) == 3

    def test_recursive_partial_failure(self, populated_session, monkeypatch):
        """A failure part way through leaves what was not yet deleted."""
        from cryptvault.vault import StorageProviderError

        handle = populated_session.handle
        original_delete = handle.delete

        def failing_delete(path):
            if path == "/docs/archive":
                raise PermissionError(13, "Permission denied", path)
            original_delete(path)

        monkeypatch.setattr(handle, "delete", failing_delete)

        with pytest.raises(StorageProviderError) as exc_info:
            populated_session.delete("/docs", recursive=True)

        assert exc_info.value.path == "/docs/archive"
        assert not populated_session.exists("/docs/archive/old")
        assert populated_session.exists("/docs/archive")
        assert populated_session.exists("/docs")
