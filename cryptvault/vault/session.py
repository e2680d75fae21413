"""Session management for an unlocked vault.

A VaultSession owns one open file system handle for its whole lifetime and
exposes navigation and mutation operations addressed by virtual paths.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from ..storage import CryptoFileSystem, NodeAttributes, StorageError
from ..utils.logging import get_logger
from . import paths
from .exceptions import (
    DirectoryNotEmptyError,
    LocalFileNotFoundError,
    SessionClosedError,
    StorageProviderError,
)
from .vault_manager import VaultManager, storage_errors

logger = get_logger(__name__)


@dataclass(frozen=True)
class DirectoryEntry:
    """One file or directory inside the vault."""

    path: str
    name: str
    is_directory: bool
    size_bytes: int  # Meaningless for directories
    modified_at: datetime

    @classmethod
    def from_attributes(cls, attrs: NodeAttributes) -> "DirectoryEntry":
        return cls(
            path=attrs.path,
            name=attrs.name,
            is_directory=attrs.is_dir,
            size_bytes=attrs.size,
            modified_at=attrs.modified,
        )


class VaultSession:
    """
    Owning wrapper around an open vault handle.

    The handle is released exactly once, by close() or on leaving the
    with-block, whichever comes first.

    Usage:
        with VaultSession.open(vault_dir, password) as session:
            for entry in session.list("/"):
                print(entry.name)
    """

    def __init__(self, handle: CryptoFileSystem, vault_path: Optional[Path] = None):
        """
        Take ownership of an open handle.

        Args:
            handle: Open file system handle
            vault_path: Vault directory, for display
        """
        self._handle: Optional[CryptoFileSystem] = handle
        self.vault_path = Path(vault_path) if vault_path else handle.vault_dir

    @classmethod
    def open(cls, vault_path: Path, password: str, manager: Optional[VaultManager] = None) -> "VaultSession":
        """Unlock a vault and wrap the resulting handle."""
        manager = manager or VaultManager()
        handle = manager.open_vault(vault_path, password)
        return cls(handle, vault_path)

    @property
    def closed(self) -> bool:
        return self._handle is None

    def close(self) -> None:
        """Release the handle. Later calls do nothing."""
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        handle.close()
        logger.debug(f"Closed session on {self.vault_path}")

    def __enter__(self) -> "VaultSession":
        return self

    def __exit__(self, *_) -> None:
        self.close()

    @property
    def handle(self) -> CryptoFileSystem:
        if self._handle is None:
            raise SessionClosedError()
        return self._handle

    def exists(self, path: str) -> bool:
        path = paths.normalize(path)
        with storage_errors(path):
            return self.handle.exists(path)

    def is_dir(self, path: str) -> bool:
        path = paths.normalize(path)
        with storage_errors(path):
            return self.handle.is_dir(path)

    def stat(self, path: str) -> DirectoryEntry:
        """
        Read a single entry.

        Raises:
            PathNotFoundError: If the path does not exist
        """
        path = paths.normalize(path)
        with storage_errors(path):
            return DirectoryEntry.from_attributes(self.handle.stat(path))

    def list(self, path: str = paths.ROOT) -> list[DirectoryEntry]:
        """
        List a directory, directories first, then by name.

        Raises:
            PathNotFoundError: If the path does not exist
            NotDirectoryError: If the path is a file
        """
        path = paths.normalize(path)
        with storage_errors(path):
            entries = [DirectoryEntry.from_attributes(attrs) for attrs in self.handle.list_dir(path)]
        entries.sort(key=lambda e: (not e.is_directory, e.name))
        return entries

    def mkdir(self, path: str) -> str:
        """
        Create a directory and any missing parents. Idempotent.

        Raises:
            NotDirectoryError: If a file occupies any segment of the path
        """
        path = paths.normalize(path)
        with storage_errors(path):
            self.handle.makedirs(path)
        logger.debug(f"Created directory {path}")
        return path

    def upload(self, local_file: Path, dest_dir: str = paths.ROOT) -> str:
        """
        Encrypt a local file into dest_dir, creating missing directories.

        An existing file of the same name is replaced.

        Returns:
            Virtual path of the uploaded file

        Raises:
            LocalFileNotFoundError: If local_file does not exist
            NotDirectoryError: If dest_dir or one of its parents is a file
        """
        local_file = Path(local_file)
        if not local_file.is_file():
            raise LocalFileNotFoundError(str(local_file))

        dest_dir = paths.normalize(dest_dir)
        target = paths.join(dest_dir, local_file.name)
        self.mkdir(dest_dir)
        with storage_errors(target):
            size = self.handle.copy_in(local_file, target)
        logger.debug(f"Uploaded {local_file} -> {target} ({size} bytes)")
        return target

    def download(self, vault_path: str, local_output: Path) -> Path:
        """
        Decrypt a vault file to a local path, replacing it if present.

        Raises:
            PathNotFoundError: If vault_path does not exist
        """
        vault_path = paths.normalize(vault_path)
        local_output = Path(local_output)
        if not local_output.absolute().parent.is_dir():
            raise LocalFileNotFoundError(str(local_output.absolute().parent))
        with storage_errors(vault_path):
            size = self.handle.copy_out(vault_path, local_output)
        logger.debug(f"Downloaded {vault_path} -> {local_output} ({size} bytes)")
        return local_output

    def read_text(self, path: str) -> str:
        """Decrypt a file and decode it as UTF-8."""
        path = paths.normalize(path)
        with storage_errors(path):
            return self.handle.read_text(path)

    def delete(self, path: str, recursive: bool = False) -> None:
        """
        Delete a file or directory.

        Recursive deletes run post-order over an explicit stack. A failure
        part way through propagates and leaves the remaining subtree as is.

        Raises:
            PathNotFoundError: If the path does not exist
            DirectoryNotEmptyError: If a non-empty directory is deleted without recursive
        """
        path = paths.normalize(path)
        if paths.is_root(path):
            raise StorageProviderError(path, StorageError("Cannot delete the root directory"))
        entry = self.stat(path)
        if not entry.is_directory:
            with storage_errors(path):
                self.handle.delete(path)
            logger.debug(f"Deleted {path}")
            return

        if not recursive:
            if self.list(path):
                raise DirectoryNotEmptyError(path, "Use recursive delete.")
            with storage_errors(path):
                self.handle.delete(path)
            logger.debug(f"Deleted {path}")
            return

        count = 0
        # (path, children_pushed) pairs; a directory is deleted on its second visit
        stack: list[tuple[str, bool]] = [(path, False)]
        while stack:
            current, expanded = stack.pop()
            if not expanded and self.is_dir(current):
                stack.append((current, True))
                for child in self.list(current):
                    stack.append((child.path, False))
                continue
            with storage_errors(current):
                self.handle.delete(current)
            count += 1
        logger.debug(f"Deleted {path} recursively ({count} entries)")

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"VaultSession({self.vault_path}, {state})"

