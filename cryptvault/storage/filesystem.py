"""Encrypted hierarchical file system over a vault's data directory.

Every virtual path segment maps to one encrypted on-disk name. Directories
are stored as real directories and files as encrypted content files, so
the on-disk tree mirrors the virtual tree without exposing any names.
"""

import errno
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, BinaryIO, Iterator

from ..utils.logging import get_logger
from .crypto import ContentEncryption, Masterkey, NameEncryption, RandomSource, SystemRandom, cleartext_size
from .exceptions import DecryptionError, HandleClosedError, InvalidVaultFormat, StorageError

logger = get_logger(__name__)

DATA_DIR_NAME = "d"
ENCRYPTED_SUFFIX = ".c9r"


@dataclass(frozen=True)
class NodeAttributes:
    """Attributes of one node in the decrypted namespace."""

    path: str
    name: str
    is_dir: bool
    size: int
    modified: datetime


def _split(path: str) -> list[str]:
    return [segment for segment in path.split("/") if segment]


def _child(parent: str, name: str) -> str:
    return f"{parent.rstrip('/')}/{name}"


def _not_found(path: str) -> FileNotFoundError:
    return FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)


def _not_a_directory(path: str) -> NotADirectoryError:
    return NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), path)


def _is_a_directory(path: str) -> IsADirectoryError:
    return IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), path)


def _write_via_temp(target: Path, writer: Callable[[BinaryIO], int]) -> int:
    """Write target through a sibling temp file, replacing it on success."""
    fd, tmp_name = tempfile.mkstemp(prefix=".", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "wb") as outfile:
            written = writer(outfile)
        os.replace(tmp_name, target)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
    return written


class CryptoFileSystem:
    """
    Open handle onto a vault's decrypted namespace.

    Holds its own copy of the masterkey, which is destroyed on close().
    All paths are absolute virtual paths such as "/docs/report.txt".

    Usage:
        with CryptoFileSystem(vault_dir, masterkey) as fs:
            for attrs in fs.list_dir("/"):
                print(attrs.name)
    """

    def __init__(self, vault_dir: Path, masterkey: Masterkey, rng: RandomSource | None = None):
        """
        Open the data directory of a vault.

        Args:
            vault_dir: Vault root directory
            masterkey: Unlocked key material (copied, caller keeps ownership)
            rng: Random source for content nonces and keys
        """
        self.vault_dir = Path(vault_dir)
        self._data_root = self.vault_dir / DATA_DIR_NAME
        if not self._data_root.is_dir():
            raise InvalidVaultFormat(f"Vault data directory missing: {self._data_root}")
        self._masterkey = masterkey.copy()
        self._names = NameEncryption(self._masterkey)
        self._contents = ContentEncryption(self._masterkey, rng or SystemRandom())
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the handle and destroy its key material."""
        if self._closed:
            return
        self._closed = True
        self._masterkey.destroy()
        self._names = None
        self._contents = None

    def __enter__(self) -> "CryptoFileSystem":
        return self

    def __exit__(self, *_) -> None:
        self.close()

    def _check_open(self) -> None:
        if self._closed:
            raise HandleClosedError()

    def _physical(self, path: str) -> Path:
        """Map a virtual path to its ciphertext location."""
        self._check_open()
        physical = self._data_root
        parent = "/"
        for segment in _split(path):
            physical = physical / (self._names.encrypt(segment, parent) + ENCRYPTED_SUFFIX)
            parent = _child(parent, segment)
        return physical

    def _lookup(self, path: str) -> os.stat_result:
        try:
            return os.stat(self._physical(path))
        except (FileNotFoundError, NotADirectoryError):
            raise _not_found(path)

    def _attributes(self, path: str, name: str, st: os.stat_result, is_dir: bool) -> NodeAttributes:
        return NodeAttributes(
            path=path,
            name=name,
            is_dir=is_dir,
            size=0 if is_dir else cleartext_size(st.st_size),
            modified=datetime.fromtimestamp(st.st_mtime),
        )

    def exists(self, path: str) -> bool:
        try:
            self._lookup(path)
            return True
        except FileNotFoundError:
            return False

    def is_dir(self, path: str) -> bool:
        return self._physical(path).is_dir()

    def stat(self, path: str) -> NodeAttributes:
        """
        Read attributes of a single node.

        Raises:
            FileNotFoundError: If the path does not exist
        """
        st = self._lookup(path)
        segments = _split(path)
        name = segments[-1] if segments else ""
        is_dir = self._physical(path).is_dir()
        return self._attributes("/" + "/".join(segments), name, st, is_dir)

    def list_dir(self, path: str) -> Iterator[NodeAttributes]:
        """
        Iterate over the direct children of a directory.

        Raises:
            FileNotFoundError: If the path does not exist
            NotADirectoryError: If the path is a file
        """
        physical = self._physical(path)
        if not physical.exists():
            raise _not_found(path)
        if not physical.is_dir():
            raise _not_a_directory(path)

        parent = "/" + "/".join(_split(path))
        with os.scandir(physical) as entries:
            for entry in entries:
                if not entry.name.endswith(ENCRYPTED_SUFFIX):
                    continue
                try:
                    name = self._names.decrypt(entry.name[: -len(ENCRYPTED_SUFFIX)], parent)
                except DecryptionError:
                    logger.warning(f"Skipping undecryptable entry {entry.name} in {parent}")
                    continue
                is_dir = entry.is_dir()
                yield self._attributes(_child(parent, name), name, entry.stat(), is_dir)

    def makedirs(self, path: str) -> None:
        """
        Create a directory and any missing parents. Existing directories are kept.

        Raises:
            NotADirectoryError: If a file occupies any segment of the path
        """
        current = "/"
        for segment in _split(path):
            current = _child(current, segment)
            physical = self._physical(current)
            if physical.is_dir():
                continue
            if physical.exists():
                raise _not_a_directory(current)
            physical.mkdir()

    def _check_parent(self, path: str) -> Path:
        segments = _split(path)
        if not segments:
            raise _is_a_directory(path)
        parent = "/" + "/".join(segments[:-1])
        parent_physical = self._physical(parent)
        if not parent_physical.exists():
            raise _not_found(parent)
        if not parent_physical.is_dir():
            raise _not_a_directory(parent)
        return parent_physical

    def copy_in(self, local_file: Path, path: str) -> int:
        """
        Encrypt a local file into the vault, replacing any existing file.

        Returns:
            Number of cleartext bytes written
        """
        self._check_parent(path)
        target = self._physical(path)
        if target.is_dir():
            raise _is_a_directory(path)
        with open(local_file, "rb") as infile:
            return _write_via_temp(target, lambda outfile: self._contents.encrypt_stream(infile, outfile))

    def copy_out(self, path: str, local_file: Path) -> int:
        """
        Decrypt a vault file to a local path, replacing any existing file.

        Returns:
            Number of cleartext bytes written
        """
        self._lookup(path)
        source = self._physical(path)
        if source.is_dir():
            raise _is_a_directory(path)
        local_file = Path(local_file).absolute()
        with open(source, "rb") as infile:
            return _write_via_temp(local_file, lambda outfile: self._contents.decrypt_stream(infile, outfile))

    def read_bytes(self, path: str) -> bytes:
        self._lookup(path)
        source = self._physical(path)
        if source.is_dir():
            raise _is_a_directory(path)
        with open(source, "rb") as infile:
            return b"".join(self._contents.decrypt_chunks(infile))

    def read_text(self, path: str, encoding: str = "utf-8") -> str:
        return self.read_bytes(path).decode(encoding)

    def delete(self, path: str) -> None:
        """
        Delete a file or an empty directory.

        Raises:
            FileNotFoundError: If the path does not exist
            OSError: ENOTEMPTY if the directory still has children
        """
        if not _split(path):
            raise StorageError("Cannot delete the root directory")
        self._lookup(path)
        physical = self._physical(path)
        if physical.is_dir():
            physical.rmdir()
        else:
            physical.unlink()
