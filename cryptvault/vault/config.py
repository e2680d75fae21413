"""Vault configuration for cryptvault."""

import os
from dataclasses import dataclass


@dataclass
class VaultConfig:
    """Configuration for vault lifecycle operations."""

    # Key derivation (scrypt N for new key files)
    scrypt_cost_param: int = 32_768

    # Password policy
    min_password_length: int = 8

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """
        Load configuration from environment variables.

        Environment variables:
            CRYPTVAULT_SCRYPT_COST: scrypt cost parameter for new key files (default: 32768)
        """
        config = cls()

        if cost := os.getenv("CRYPTVAULT_SCRYPT_COST"):
            config.scrypt_cost_param = int(cost)

        return config


# Global configuration instance
_config: VaultConfig | None = None


def get_vault_config() -> VaultConfig:
    """Get the global vault configuration."""
    global _config
    if _config is None:
        _config = VaultConfig.from_env()
    return _config


def set_vault_config(config: VaultConfig) -> None:
    """Set the global vault configuration."""
    global _config
    _config = config
