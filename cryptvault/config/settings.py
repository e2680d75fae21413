"""Configuration settings for cryptvault."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass
class Settings:
    """Main settings container."""

    # Logging
    log_level: str = "WARNING"
    log_file: Optional[Path] = None

    # Interactive shell
    prompt_prefix: str = "vault"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Create settings from environment variables.

        Environment variables:
            LOG_LEVEL: Console log level (default: WARNING)
            CRYPTVAULT_LOG_FILE: Write DEBUG logs to this file
            CRYPTVAULT_PROMPT: Prompt prefix of the interactive shell (default: vault)
        """
        settings = cls()

        if log_level := os.getenv("LOG_LEVEL"):
            settings.log_level = log_level

        if log_file := os.getenv("CRYPTVAULT_LOG_FILE"):
            settings.log_file = Path(log_file)

        if prompt := os.getenv("CRYPTVAULT_PROMPT"):
            settings.prompt_prefix = prompt

        return settings


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def configure(settings: Settings) -> None:
    """Set the global settings instance."""
    global _settings
    _settings = settings
