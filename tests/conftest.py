"""Shared pytest fixtures for cryptvault tests."""

import random
from pathlib import Path
from typing import Generator

import pytest

PASSWORD = "correct horse"
OTHER_PASSWORD = "battery staple"


class SeededRandom:
    """Deterministic random source so test runs are reproducible."""

    def __init__(self, seed: int = 1234):
        self._random = random.Random(seed)

    def token_bytes(self, n: int) -> bytes:
        return self._random.randbytes(n)


@pytest.fixture(autouse=True)
def fast_vault_config() -> Generator[None, None, None]:
    """Use a cheap scrypt cost so key files unlock quickly in tests."""
    from cryptvault.config.settings import Settings, configure
    from cryptvault.vault.config import VaultConfig, set_vault_config

    set_vault_config(VaultConfig(scrypt_cost_param=2**10))
    configure(Settings())
    yield
    set_vault_config(VaultConfig())
    configure(Settings())


@pytest.fixture
def rng() -> SeededRandom:
    """Provide a seeded random source."""
    return SeededRandom()


@pytest.fixture
def vault_manager(rng: SeededRandom):
    """Create a VaultManager with the test configuration."""
    from cryptvault.vault import VaultManager

    return VaultManager(rng=rng)


@pytest.fixture
def vault_dir(tmp_path: Path, vault_manager) -> Path:
    """Create an empty vault protected by PASSWORD."""
    return vault_manager.create_vault(tmp_path / "vault", PASSWORD, PASSWORD)


@pytest.fixture
def session(vault_dir: Path, vault_manager):
    """Open a session on the test vault, closed after the test."""
    from cryptvault.vault import VaultSession

    session = VaultSession.open(vault_dir, PASSWORD, manager=vault_manager)
    yield session
    session.close()


@pytest.fixture
def local_file(tmp_path: Path) -> Path:
    """Create a small local file to upload."""
    path = tmp_path / "notes.txt"
    path.write_text("hello vault\n")
    return path


@pytest.fixture
def populated_session(session, local_file: Path):
    """
    Session on a vault with this tree:

        /docs/notes.txt
        /docs/archive/old/notes.txt
        /empty/
        /notes.txt
    """
    session.upload(local_file, "/")
    session.upload(local_file, "/docs")
    session.upload(local_file, "/docs/archive/old")
    session.mkdir("/empty")
    return session
