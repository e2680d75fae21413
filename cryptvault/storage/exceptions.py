"""Exceptions raised by the encrypted storage provider."""


class StorageError(Exception):
    """Base exception for storage provider failures."""

    pass


class InvalidVaultFormat(StorageError):
    """Raised when vault artifacts are missing or cannot be parsed."""

    def __init__(self, message: str = "Not a valid vault."):
        super().__init__(message)


class InvalidPassphrase(StorageError):
    """Raised when the key file cannot be unwrapped with the given passphrase."""

    def __init__(self, message: str = "Invalid passphrase."):
        super().__init__(message)


class DecryptionError(StorageError):
    """Raised when ciphertext fails authentication."""

    def __init__(self, message: str = "Failed to decrypt data."):
        super().__init__(message)


class HandleClosedError(StorageError):
    """Raised when a closed file system handle is used."""

    def __init__(self, message: str = "File system handle is closed."):
        super().__init__(message)
