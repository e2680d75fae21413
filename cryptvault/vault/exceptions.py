"""Vault exceptions for cryptvault."""


class VaultError(Exception):
    """Base exception for vault operations."""

    pass


class InvalidVaultError(VaultError):
    """Raised when a directory has no key file or its artifacts are malformed."""

    def __init__(self, path: str = "", reason: str = ""):
        message = f"Not a valid vault: {path}" if path else "Not a valid vault."
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class WrongPasswordError(VaultError):
    """Raised when the key file cannot be unlocked with the given password."""

    def __init__(self, message: str = "Wrong password."):
        super().__init__(message)


class DirectoryNotEmptyError(VaultError):
    """Raised when a directory must be empty but is not."""

    def __init__(self, path: str = "", hint: str = ""):
        message = f"Directory is not empty: {path}" if path else "Directory is not empty."
        if hint:
            message = f"{message} {hint}"
        super().__init__(message)


class PathNotFoundError(VaultError):
    """Raised when a virtual path does not exist inside the vault."""

    def __init__(self, path: str = ""):
        self.path = path
        message = f"Path does not exist: {path}" if path else "Path does not exist."
        super().__init__(message)


class NotDirectoryError(VaultError):
    """Raised when a virtual path is a file where a directory is required."""

    def __init__(self, path: str = ""):
        self.path = path
        message = f"Not a directory: {path}" if path else "Not a directory."
        super().__init__(message)


class LocalFileNotFoundError(VaultError):
    """Raised when a local source file does not exist."""

    def __init__(self, path: str = ""):
        message = f"Local file does not exist: {path}" if path else "Local file does not exist."
        super().__init__(message)


class PasswordMismatchError(VaultError):
    """Raised when a password and its confirmation differ."""

    def __init__(self, message: str = "Passwords do not match!"):
        super().__init__(message)


class WeakPasswordError(VaultError):
    """Raised when a new password is shorter than the minimum length."""

    def __init__(self, min_length: int = 8):
        super().__init__(f"Password must be at least {min_length} characters!")


class StorageProviderError(VaultError):
    """Raised when the storage provider fails; wraps the provider error."""

    def __init__(self, path: str, cause: BaseException):
        self.path = path
        self.cause = cause
        super().__init__(f"{path}: {cause}")


class SessionClosedError(VaultError):
    """Raised when a closed vault session is used."""

    def __init__(self, message: str = "Vault session is closed."):
        super().__init__(message)
