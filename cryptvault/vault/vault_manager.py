"""Vault manager for one-shot lifecycle operations.

Handles vault creation, unlocking, inspection and password changes. Every
operation either completes or leaves the vault as it was, and key
material is destroyed on every exit path.
"""

import errno
import shutil
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Iterator, Optional

from .. import storage
from ..storage import CryptoFileSystem, RandomSource, SystemRandom
from ..utils.logging import get_logger
from .config import VaultConfig, get_vault_config
from .exceptions import (
    DirectoryNotEmptyError,
    InvalidVaultError,
    NotDirectoryError,
    PasswordMismatchError,
    PathNotFoundError,
    StorageProviderError,
    WeakPasswordError,
    WrongPasswordError,
)

logger = get_logger(__name__)


@contextmanager
def storage_errors(path: Any) -> Iterator[None]:
    """
    Translate storage provider failures into the vault error taxonomy.

    Args:
        path: Virtual path or vault directory the failing call addressed
    """
    try:
        yield
    except storage.InvalidPassphrase as e:
        raise WrongPasswordError() from e
    except storage.InvalidVaultFormat as e:
        raise InvalidVaultError(str(path), str(e)) from e
    except FileNotFoundError as e:
        raise PathNotFoundError(str(path)) from e
    except NotADirectoryError as e:
        raise NotDirectoryError(str(path)) from e
    except OSError as e:
        if e.errno == errno.ENOTEMPTY:
            raise DirectoryNotEmptyError(str(path)) from e
        logger.warning(f"Storage failure at {path}: {e}")
        raise StorageProviderError(str(path), e) from e
    except (storage.StorageError, UnicodeDecodeError) as e:
        logger.warning(f"Storage failure at {path}: {e}")
        raise StorageProviderError(str(path), e) from e


@dataclass
class VaultMetadata:
    """
    Read-only facts about a vault, gathered without a password.

    Fields that are absent or unreadable are None and render as "unknown".
    """

    path: Path
    is_valid: bool
    format: Optional[int] = None
    cipher_combo: Optional[str] = None
    vault_id: Optional[str] = None
    kdf_cost: Optional[int] = None
    created_at: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["path"] = str(self.path)
        return data


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    return None


def _as_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


class VaultManager:
    """
    Stateless orchestration of vault lifecycle operations.

    Usage:
        vm = VaultManager()
        vm.create_vault(vault_dir, password, confirmation)
        fs = vm.open_vault(vault_dir, password)
        info = vm.inspect_vault(vault_dir)
        vm.change_password(vault_dir, old, new, confirmation)
    """

    def __init__(self, config: Optional[VaultConfig] = None, rng: Optional[RandomSource] = None):
        """
        Args:
            config: Vault configuration (uses global if not provided)
            rng: Random source for key generation and key-file salts
        """
        self.config = config or get_vault_config()
        self.rng = rng or SystemRandom()

    def validate_new_password(self, password: str, confirmation: Optional[str] = None) -> None:
        """
        Check a new password before any key material is generated.

        Raises:
            PasswordMismatchError: If confirmation is given and differs
            WeakPasswordError: If the password is too short
        """
        if confirmation is not None and password != confirmation:
            raise PasswordMismatchError()
        if len(password) < self.config.min_password_length:
            raise WeakPasswordError(self.config.min_password_length)

    def is_vault(self, path: Path) -> bool:
        """Check if a directory holds a key file."""
        return storage.masterkey_path(Path(path)).is_file()

    def create_vault(self, path: Path, password: str, confirmation: Optional[str] = None) -> Path:
        """
        Create a new vault in an empty or missing directory.

        The key file is written last; until it exists the directory is not
        a valid vault. On failure everything this call created is removed.

        Args:
            path: Target directory
            password: Password for the new vault
            confirmation: Repeated password, checked when given

        Returns:
            Absolute vault directory

        Raises:
            PasswordMismatchError, WeakPasswordError: Before anything is touched
            DirectoryNotEmptyError: If the target exists and is not an empty directory
        """
        self.validate_new_password(password, confirmation)

        vault_dir = Path(path).absolute()
        if vault_dir.exists() and (not vault_dir.is_dir() or any(vault_dir.iterdir())):
            raise DirectoryNotEmptyError(str(vault_dir))

        # Topmost directory this call creates, removed again on failure
        created_root = None
        if not vault_dir.exists():
            created_root = vault_dir
            while not created_root.parent.exists():
                created_root = created_root.parent

        with storage_errors(vault_dir):
            vault_dir.mkdir(parents=True, exist_ok=True)
            masterkey = storage.generate_key(self.rng)
            try:
                storage.initialize_vault_layout(vault_dir, masterkey)
                storage.persist_key(masterkey, vault_dir, password, self.config.scrypt_cost_param, self.rng)
            except Exception:
                self._rollback(vault_dir, created_root)
                raise
            finally:
                masterkey.destroy()

        logger.info(f"Created vault at {vault_dir}")
        return vault_dir

    def _rollback(self, vault_dir: Path, created_root: Optional[Path]) -> None:
        logger.warning(f"Vault creation failed, removing partial artifacts in {vault_dir}")
        if created_root is not None:
            shutil.rmtree(created_root, ignore_errors=True)
            return
        for child in vault_dir.iterdir():
            if child.is_dir() and not child.is_symlink():
                shutil.rmtree(child, ignore_errors=True)
            else:
                child.unlink(missing_ok=True)

    def open_vault(self, path: Path, password: str) -> CryptoFileSystem:
        """
        Unlock a vault and open a file system handle on it.

        The caller owns the returned handle and must close it.

        Raises:
            InvalidVaultError: If there is no key file or the vault is malformed
            WrongPasswordError: If the password does not unlock the key file
        """
        vault_dir = Path(path).absolute()
        if not self.is_vault(vault_dir):
            raise InvalidVaultError(str(vault_dir), f"{storage.MASTERKEY_FILENAME} not found")

        with storage_errors(vault_dir):
            masterkey = storage.load_key(vault_dir, password)
        with masterkey, storage_errors(vault_dir):
            handle = storage.open_session(vault_dir, masterkey, self.rng)

        logger.info(f"Unlocked vault at {vault_dir}")
        return handle

    def inspect_vault(self, path: Path) -> VaultMetadata:
        """
        Report vault metadata without a password.

        Never fails because a field is missing; a directory without a key
        file is reported as invalid rather than raising.
        """
        vault_dir = Path(path).absolute()
        metadata = VaultMetadata(path=vault_dir, is_valid=self.is_vault(vault_dir))
        if not metadata.is_valid:
            return metadata

        try:
            claims = storage.read_vault_claims(vault_dir)
        except storage.InvalidVaultFormat as e:
            logger.warning(f"Cannot read vault config: {e}")
            claims = {}
        metadata.format = _as_int(claims.get("format"))
        metadata.cipher_combo = _as_str(claims.get("cipherCombo"))
        metadata.vault_id = _as_str(claims.get("jti"))
        metadata.created_at = _as_str(claims.get("createdAt"))

        try:
            key_header = storage.read_key_file_header(vault_dir)
        except storage.InvalidVaultFormat as e:
            logger.warning(f"Cannot read key file header: {e}")
            key_header = {}
        metadata.kdf_cost = _as_int(key_header.get("scryptCostParam"))

        return metadata

    def change_password(
        self,
        path: Path,
        old_password: str,
        new_password: str,
        confirmation: Optional[str] = None,
    ) -> None:
        """
        Re-protect the vault's key under a new password.

        The key file is replaced atomically; if writing fails the old file
        stays intact and the old password keeps working.

        Raises:
            PasswordMismatchError, WeakPasswordError: Before the key file is read
            InvalidVaultError: If there is no key file
            WrongPasswordError: If old_password is wrong
        """
        self.validate_new_password(new_password, confirmation)

        vault_dir = Path(path).absolute()
        if not self.is_vault(vault_dir):
            raise InvalidVaultError(str(vault_dir), f"{storage.MASTERKEY_FILENAME} not found")

        with storage_errors(vault_dir):
            masterkey = storage.load_key(vault_dir, old_password)
        with masterkey, storage_errors(vault_dir):
            storage.persist_key(masterkey, vault_dir, new_password, self.config.scrypt_cost_param, self.rng)

        logger.info(f"Changed password of vault at {vault_dir}")


def get_vault_manager() -> VaultManager:
    """Get a vault manager using the global configuration."""
    return VaultManager()


def is_vault(path: Path) -> bool:
    """Check if a directory holds a vault key file."""
    return get_vault_manager().is_vault(path)


def create_vault(path: Path, password: str, confirmation: Optional[str] = None) -> Path:
    """Create a new vault."""
    return get_vault_manager().create_vault(path, password, confirmation)


def open_vault(path: Path, password: str) -> CryptoFileSystem:
    """Unlock a vault and return an open handle."""
    return get_vault_manager().open_vault(path, password)


def inspect_vault(path: Path) -> VaultMetadata:
    """Read vault metadata without a password."""
    return get_vault_manager().inspect_vault(path)


def change_password(path: Path, old_password: str, new_password: str, confirmation: Optional[str] = None) -> None:
    """Change a vault's password."""
    get_vault_manager().change_password(path, old_password, new_password, confirmation)
