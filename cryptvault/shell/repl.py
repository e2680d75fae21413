"""Interactive shell over an unlocked vault.

A single-threaded read-eval-print loop holding a VaultSession and a
current directory. Each command handler returns a CommandResult; errors
raised by a handler become ShellError results that are printed, and the
loop goes on.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

from rich.console import Console, RenderableType
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from ..config.settings import get_settings
from ..utils.formatting import format_size, format_timestamp
from ..utils.logging import console as default_console
from ..utils.logging import get_logger
from ..vault import paths
from ..vault.exceptions import VaultError
from ..vault.session import VaultSession

logger = get_logger(__name__)

HELP_TEXT = """
Commands:
  ls, dir              - List files in current directory
  cd <path>            - Change directory
  pwd                  - Print current directory
  mkdir <name>         - Create directory
  rm <path>            - Delete file or directory (recursive)
  cat <file>           - Show file contents
  upload <local-file>  - Upload file to current directory
  download <file> <out>- Download file from vault
  help                 - Show this help
  exit, quit           - Exit interactive mode
"""


class ShellState(Enum):
    """Lifecycle of the shell loop."""

    RUNNING = "running"
    TERMINATED = "terminated"


@dataclass(frozen=True)
class Ok:
    """Successful command, with optional output to print."""

    output: Optional[RenderableType] = None


@dataclass(frozen=True)
class ShellError:
    """Failed command; the message is shown and the shell keeps running."""

    message: str


CommandResult = Union[Ok, ShellError]


class VaultShell:
    """
    Read-eval-print loop over a vault session.

    Usage:
        with VaultSession.open(vault_dir, password) as session:
            VaultShell(session).run()
    """

    def __init__(
        self,
        session: VaultSession,
        console: Optional[Console] = None,
        read_line: Optional[Callable[[str], str]] = None,
        prompt_prefix: Optional[str] = None,
    ):
        """
        Args:
            session: Open vault session; closed when the shell terminates
            console: Rich console for output
            read_line: Reads one line given a prompt (default: console.input)
            prompt_prefix: Prompt prefix (default: from settings)
        """
        self.session = session
        self.console = console or default_console
        self._read_line = read_line or self.console.input
        self.prompt_prefix = prompt_prefix or get_settings().prompt_prefix
        self.current_path = paths.ROOT
        self.state = ShellState.RUNNING

        self._commands: dict[str, Callable[[str], CommandResult]] = {
            "help": self._help,
            "ls": self._ls,
            "dir": self._ls,
            "cd": self._cd,
            "pwd": self._pwd,
            "mkdir": self._mkdir,
            "rm": self._rm,
            "cat": self._cat,
            "upload": self._upload,
            "download": self._download,
            "exit": self._exit,
            "quit": self._exit,
        }

    @property
    def prompt(self) -> str:
        return f"{self.prompt_prefix}:{self.current_path}> "

    def run(self) -> None:
        """Loop until exit/quit or end of input, then close the session."""
        self.console.print("\n[bold]=== Interactive Mode ===[/bold]")
        self.console.print("Type 'help' for commands, 'exit' to quit\n")
        try:
            while self.state is ShellState.RUNNING:
                try:
                    line = self._read_line(escape(self.prompt))
                except EOFError:
                    self.console.print()
                    self.execute("exit")
                    break
                except KeyboardInterrupt:
                    self.console.print()
                    continue
                self.execute(line)
        finally:
            self.state = ShellState.TERMINATED
            self.session.close()

    def execute(self, line: str) -> Optional[CommandResult]:
        """
        Run one input line and print its result.

        Returns:
            The command result, or None for a blank line
        """
        line = line.strip()
        if not line:
            return None

        parts = line.split(None, 1)
        command = parts[0].lower()
        arg = parts[1].strip() if len(parts) > 1 else ""

        handler = self._commands.get(command)
        if handler is None:
            result: CommandResult = ShellError(f"Unknown command: {command}. Type 'help' for commands.")
        else:
            try:
                result = handler(arg)
            except VaultError as e:
                logger.debug(f"Command '{command}' failed: {e}")
                result = ShellError(str(e))
            except Exception as e:
                logger.exception(f"Unexpected error in command '{command}'")
                result = ShellError(str(e) or type(e).__name__)

        self._report(result)
        return result

    def _report(self, result: CommandResult) -> None:
        if isinstance(result, ShellError):
            self.console.print(f"[red]Error: {escape(result.message)}[/red]")
        elif result.output is not None:
            self.console.print(result.output, markup=False, highlight=False)

    def _resolve(self, arg: str) -> str:
        return paths.resolve(self.current_path, arg)

    def _help(self, arg: str) -> CommandResult:
        return Ok(HELP_TEXT)

    def _exit(self, arg: str) -> CommandResult:
        self.state = ShellState.TERMINATED
        return Ok("Goodbye!")

    def _pwd(self, arg: str) -> CommandResult:
        return Ok(self.current_path)

    def _ls(self, arg: str) -> CommandResult:
        entries = self.session.list(self.current_path)
        if not entries:
            return Ok("(empty)")

        table = Table(box=None, show_header=True, header_style="bold")
        table.add_column("", style="cyan")
        table.add_column("Name")
        table.add_column("Size", justify="right")
        table.add_column("Modified")
        for entry in entries:
            table.add_row(
                Text("[DIR]" if entry.is_directory else ""),
                Text(entry.name),
                "-" if entry.is_directory else format_size(entry.size_bytes),
                format_timestamp(entry.modified_at),
            )
        return Ok(table)

    def _cd(self, arg: str) -> CommandResult:
        if not arg:
            self.current_path = paths.ROOT
            return Ok()

        target = self._resolve(arg)
        if not self.session.exists(target):
            return ShellError(f"Directory not found: {target}")
        if not self.session.is_dir(target):
            return ShellError(f"Not a directory: {target}")
        self.current_path = target
        return Ok()

    def _mkdir(self, arg: str) -> CommandResult:
        if not arg:
            return ShellError("Usage: mkdir <dirname>")
        created = self.session.mkdir(self._resolve(arg))
        return Ok(f"Created: {created}")

    def _rm(self, arg: str) -> CommandResult:
        if not arg:
            return ShellError("Usage: rm <path>")
        target = self._resolve(arg)
        self.session.delete(target, recursive=True)
        return Ok(f"Deleted: {target}")

    def _cat(self, arg: str) -> CommandResult:
        if not arg:
            return ShellError("Usage: cat <file>")
        return Ok(self.session.read_text(self._resolve(arg)))

    def _upload(self, arg: str) -> CommandResult:
        if not arg:
            return ShellError("Usage: upload <local-file>")
        target = self.session.upload(Path(arg).expanduser(), self.current_path)
        return Ok(f"Uploaded: {target}")

    def _download(self, arg: str) -> CommandResult:
        args = arg.split(None, 1)
        if len(args) < 2:
            return ShellError("Usage: download <vault-file> <local-path>")
        source = self._resolve(args[0])
        destination = Path(args[1]).expanduser()
        self.session.download(source, destination)
        return Ok(f"Downloaded to: {destination}")
