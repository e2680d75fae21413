"""Unit tests for configuration and formatting helpers."""

from datetime import datetime
from pathlib import Path


class TestSettings:
    """Tests for application settings."""

    def test_defaults(self, monkeypatch):
        from cryptvault.config.settings import Settings

        for name in ("LOG_LEVEL", "CRYPTVAULT_LOG_FILE", "CRYPTVAULT_PROMPT"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings.from_env()
        assert settings.log_level == "WARNING"
        assert settings.log_file is None
        assert settings.prompt_prefix == "vault"

    def test_from_env(self, monkeypatch, tmp_path: Path):
        from cryptvault.config.settings import Settings

        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("CRYPTVAULT_LOG_FILE", str(tmp_path / "cv.log"))
        monkeypatch.setenv("CRYPTVAULT_PROMPT", "secure")

        settings = Settings.from_env()
        assert settings.log_level == "DEBUG"
        assert settings.log_file == tmp_path / "cv.log"
        assert settings.prompt_prefix == "secure"


class TestVaultConfig:
    """Tests for vault configuration."""

    def test_defaults(self):
        from cryptvault.vault import VaultConfig

        config = VaultConfig()
        assert config.scrypt_cost_param == 32768
        assert config.min_password_length == 8

    def test_cost_from_env(self, monkeypatch):
        from cryptvault.vault import VaultConfig

        monkeypatch.setenv("CRYPTVAULT_SCRYPT_COST", "16384")
        assert VaultConfig.from_env().scrypt_cost_param == 16384

    def test_global_config(self):
        from cryptvault.vault import VaultConfig, get_vault_config, set_vault_config

        config = VaultConfig(min_password_length=12)
        set_vault_config(config)
        assert get_vault_config() is config


class TestLogging:
    """Tests for logging setup."""

    def test_file_logging(self, tmp_path: Path):
        from cryptvault.utils.logging import get_logger, setup_logging

        log_file = tmp_path / "logs" / "cryptvault.log"
        setup_logging(level="WARNING", log_file=log_file)

        get_logger("cryptvault.test").debug("written to file only")
        for handler in get_logger("cryptvault").handlers:
            handler.flush()

        assert "written to file only" in log_file.read_text()
        setup_logging()

    def test_records_go_to_stderr(self, capsys):
        """Log records never reach stdout, which carries command output."""
        from cryptvault.utils.logging import get_logger, setup_logging

        setup_logging(level="INFO", rich_output=False)
        get_logger("cryptvault.vault.session").info("unlocked")

        captured = capsys.readouterr()
        assert "unlocked" in captured.err
        assert captured.out == ""
        setup_logging()

    def test_unknown_level_falls_back_to_warning(self):
        import logging

        from cryptvault.utils.logging import setup_logging

        logger = setup_logging(level="chatty")
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
        setup_logging()


class TestFormatting:
    """Tests for display helpers."""

    def test_format_size(self):
        from cryptvault.utils.formatting import format_size

        assert format_size(12) == "12 B"
        assert format_size(2048) == "2.0 KB"
        assert format_size(5 * 1024 * 1024) == "5.0 MB"
        assert format_size(3 * 1024**3) == "3.0 GB"

    def test_format_timestamp(self):
        from cryptvault.utils.formatting import format_timestamp

        assert format_timestamp(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02 03:04:05"

    def test_or_unknown(self):
        from cryptvault.utils.formatting import or_unknown

        assert or_unknown(None) == "unknown"
        assert or_unknown(0) == "0"
