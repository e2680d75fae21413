"""cryptvault - Encrypted vault manager with an interactive shell."""

__version__ = "0.1.0"

from .vault import (
    VaultError,
    VaultSession,
    change_password,
    create_vault,
    inspect_vault,
    open_vault,
)

__all__ = [
    "__version__",
    "VaultError",
    "VaultSession",
    "create_vault",
    "open_vault",
    "inspect_vault",
    "change_password",
]
