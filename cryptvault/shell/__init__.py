"""Interactive shell for unlocked vaults."""

from .repl import CommandResult, Ok, ShellError, ShellState, VaultShell

__all__ = [
    "CommandResult",
    "Ok",
    "ShellError",
    "ShellState",
    "VaultShell",
]
