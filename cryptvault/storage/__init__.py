"""Encrypted storage provider.

Owns everything that touches ciphertext: key generation, the
password-protected key file, the signed vault config and the encrypted
data tree. The rest of cryptvault only uses the functions below and the
CryptoFileSystem handle they return.

Usage:
    from cryptvault import storage

    masterkey = storage.load_key(vault_dir, password)
    try:
        fs = storage.open_session(vault_dir, masterkey)
    finally:
        masterkey.destroy()
"""

from pathlib import Path

from . import masterkey_file, vault_config
from .crypto import Masterkey, RandomSource, SystemRandom
from .exceptions import (
    DecryptionError,
    HandleClosedError,
    InvalidPassphrase,
    InvalidVaultFormat,
    StorageError,
)
from .filesystem import DATA_DIR_NAME, CryptoFileSystem, NodeAttributes

MASTERKEY_FILENAME = "masterkey.json"
VAULT_CONFIG_FILENAME = "vault.config"


def masterkey_path(vault_dir: Path) -> Path:
    return Path(vault_dir) / MASTERKEY_FILENAME


def vault_config_path(vault_dir: Path) -> Path:
    return Path(vault_dir) / VAULT_CONFIG_FILENAME


def generate_key(rng: RandomSource) -> Masterkey:
    """Generate fresh key material."""
    return Masterkey.generate(rng)


def persist_key(
    masterkey: Masterkey,
    vault_dir: Path,
    password: str,
    cost_param: int,
    rng: RandomSource,
) -> None:
    """Write the password-protected key file, replacing any previous one atomically."""
    masterkey_file.persist(masterkey, masterkey_path(vault_dir), password, cost_param, rng)


def load_key(vault_dir: Path, password: str) -> Masterkey:
    """
    Unlock the vault's key file.

    Raises:
        InvalidVaultFormat: Missing or malformed key file
        InvalidPassphrase: Wrong password
    """
    return masterkey_file.load(masterkey_path(vault_dir), password)


def initialize_vault_layout(vault_dir: Path, masterkey: Masterkey) -> None:
    """Write the signed vault config and create the data root."""
    vault_config.create(vault_config_path(vault_dir), masterkey, MASTERKEY_FILENAME)
    (Path(vault_dir) / DATA_DIR_NAME).mkdir(exist_ok=True)


def read_vault_claims(vault_dir: Path) -> dict:
    """Payload of the vault config, read without verifying its signature."""
    _, payload = vault_config.read_unverified(vault_config_path(vault_dir))
    return payload


def read_key_file_header(vault_dir: Path) -> dict:
    """Plaintext fields of the key file (KDF parameters, version), no unlock."""
    document = masterkey_file.read_masterkey_json(masterkey_path(vault_dir))
    return {key: value for key, value in document.items() if key.startswith("scrypt") or key == "version"}


def open_session(vault_dir: Path, masterkey: Masterkey, rng: RandomSource | None = None) -> CryptoFileSystem:
    """Verify the vault config and open a file system handle."""
    vault_config.load(vault_config_path(vault_dir), masterkey)
    return CryptoFileSystem(vault_dir, masterkey, rng)


__all__ = [
    # Exceptions
    "StorageError",
    "InvalidVaultFormat",
    "InvalidPassphrase",
    "DecryptionError",
    "HandleClosedError",
    # Key material
    "Masterkey",
    "RandomSource",
    "SystemRandom",
    # Handle
    "CryptoFileSystem",
    "NodeAttributes",
    # Provider operations
    "MASTERKEY_FILENAME",
    "VAULT_CONFIG_FILENAME",
    "masterkey_path",
    "vault_config_path",
    "generate_key",
    "persist_key",
    "load_key",
    "initialize_vault_layout",
    "read_vault_claims",
    "read_key_file_header",
    "open_session",
]
