"""Vault lifecycle, sessions and virtual paths for cryptvault.

Usage:
    # Create a vault
    from cryptvault.vault import create_vault
    create_vault(vault_dir, password, confirmation)

    # Work inside an unlocked vault
    from cryptvault.vault import VaultSession
    with VaultSession.open(vault_dir, password) as session:
        session.upload(local_file, "/docs")
        for entry in session.list("/docs"):
            print(entry.name)

    # Inspect without a password
    from cryptvault.vault import inspect_vault
    info = inspect_vault(vault_dir)
"""

# Exceptions
from .exceptions import (
    DirectoryNotEmptyError,
    InvalidVaultError,
    LocalFileNotFoundError,
    NotDirectoryError,
    PasswordMismatchError,
    PathNotFoundError,
    SessionClosedError,
    StorageProviderError,
    VaultError,
    WeakPasswordError,
    WrongPasswordError,
)

# Configuration
from .config import (
    VaultConfig,
    get_vault_config,
    set_vault_config,
)

# Virtual paths
from .paths import normalize, resolve

# Vault lifecycle
from .vault_manager import (
    VaultManager,
    VaultMetadata,
    change_password,
    create_vault,
    get_vault_manager,
    inspect_vault,
    is_vault,
    open_vault,
)

# Session
from .session import (
    DirectoryEntry,
    VaultSession,
)

__all__ = [
    # Exceptions
    "VaultError",
    "InvalidVaultError",
    "WrongPasswordError",
    "DirectoryNotEmptyError",
    "PathNotFoundError",
    "NotDirectoryError",
    "LocalFileNotFoundError",
    "PasswordMismatchError",
    "WeakPasswordError",
    "StorageProviderError",
    "SessionClosedError",
    # Configuration
    "VaultConfig",
    "get_vault_config",
    "set_vault_config",
    # Paths
    "normalize",
    "resolve",
    # Vault manager
    "VaultManager",
    "VaultMetadata",
    "get_vault_manager",
    "is_vault",
    "create_vault",
    "open_vault",
    "inspect_vault",
    "change_password",
    # Session
    "DirectoryEntry",
    "VaultSession",
]
