"""cryptvault CLI - Encrypted vault manager."""

from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape
from rich.table import Table

from ..utils.formatting import format_size, format_timestamp, or_unknown
from ..utils.logging import console
from ..vault.exceptions import VaultError

app = typer.Typer(
    name="cryptvault",
    help="Command-line tool for encrypted vaults.",
    no_args_is_help=True,
)


def read_password(prompt: str) -> str:
    """Prompt for a password without echoing it."""
    return typer.prompt(prompt, hide_input=True, prompt_suffix=" ")


def fail(error: Exception) -> None:
    """Report an error and exit with status 1."""
    console.print(f"[red]Error: {escape(str(error))}[/red]")
    raise typer.Exit(1)


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Write debug logs to this file",
    ),
):
    """Command-line tool for encrypted vaults."""
    from ..config.settings import get_settings
    from ..utils.logging import setup_logging

    settings = get_settings()
    if log_level:
        settings.log_level = log_level
    if log_file:
        settings.log_file = log_file
    setup_logging(level=settings.log_level, log_file=settings.log_file)


@app.command()
def create(
    vault_path: Path = typer.Argument(..., help="Path where to create the vault"),
):
    """
    Create a new vault.

    The directory must be empty or not exist yet.
    """
    from ..vault import create_vault

    try:
        password = read_password("Enter password for new vault:")
        confirm = read_password("Confirm password:")
        vault_dir = create_vault(vault_path, password, confirm)
    except VaultError as e:
        fail(e)

    console.print(f"[green]Vault created successfully at:[/green] {vault_dir}")


def _list(vault_path: Path, inner_path: str) -> None:
    from ..vault import VaultSession, normalize

    inner_path = normalize(inner_path)
    try:
        password = read_password("Enter vault password:")
        with VaultSession.open(vault_path, password) as session:
            entries = session.list(inner_path)
    except VaultError as e:
        fail(e)

    table = Table(title=f"Contents of {inner_path}")
    table.add_column("Name", style="cyan")
    table.add_column("Size", justify="right")
    table.add_column("Modified")

    for entry in entries:
        name = escape(f"{entry.name}/" if entry.is_directory else entry.name)
        size = "-" if entry.is_directory else format_size(entry.size_bytes)
        table.add_row(name, size, format_timestamp(entry.modified_at))

    console.print(table)


@app.command("list")
def list_files(
    vault_path: Path = typer.Argument(..., help="Path to the vault"),
    inner_path: str = typer.Option("/", "--path", "-p", help="Path inside vault"),
):
    """List files in a vault."""
    _list(vault_path, inner_path)


@app.command("ls", hidden=True)
def ls_alias(
    vault_path: Path = typer.Argument(..., help="Path to the vault"),
    inner_path: str = typer.Option("/", "--path", "-p", help="Path inside vault"),
):
    """Alias for list."""
    _list(vault_path, inner_path)


@app.command()
def unlock(
    vault_path: Path = typer.Argument(..., help="Path to the vault"),
):
    """Unlock a vault and enter the interactive shell."""
    from ..shell import VaultShell
    from ..vault import VaultSession

    try:
        password = read_password("Enter vault password:")
        session = VaultSession.open(vault_path, password)
    except VaultError as e:
        fail(e)

    with session:
        VaultShell(session).run()


def _upload(vault_path: Path, local_file: Path, dest_path: str) -> None:
    from ..vault import VaultSession

    try:
        password = read_password("Enter vault password:")
        with VaultSession.open(vault_path, password) as session:
            target = session.upload(local_file, dest_path)
    except VaultError as e:
        fail(e)

    console.print(f"Uploaded: {local_file} -> {target}")
    console.print("[green]File uploaded successfully![/green]")


@app.command()
def upload(
    vault_path: Path = typer.Argument(..., help="Path to the vault"),
    local_file: Path = typer.Argument(..., help="Local file to upload"),
    dest_path: str = typer.Option("/", "--dest", "-d", help="Destination directory in vault"),
):
    """Upload a file to the vault."""
    _upload(vault_path, local_file, dest_path)


@app.command("put", hidden=True)
def put_alias(
    vault_path: Path = typer.Argument(..., help="Path to the vault"),
    local_file: Path = typer.Argument(..., help="Local file to upload"),
    dest_path: str = typer.Option("/", "--dest", "-d", help="Destination directory in vault"),
):
    """Alias for upload."""
    _upload(vault_path, local_file, dest_path)


def _download(vault_path: Path, vault_file: str, output: Path) -> None:
    from ..vault import VaultSession

    try:
        password = read_password("Enter vault password:")
        with VaultSession.open(vault_path, password) as session:
            session.download(vault_file, output)
    except VaultError as e:
        fail(e)

    console.print(f"[green]File downloaded to:[/green] {output}")


@app.command()
def download(
    vault_path: Path = typer.Argument(..., help="Path to the vault"),
    vault_file: str = typer.Argument(..., help="File path inside vault"),
    output: Path = typer.Option(..., "--output", "-o", help="Output file path"),
):
    """Download a file from the vault."""
    _download(vault_path, vault_file, output)


@app.command("get", hidden=True)
def get_alias(
    vault_path: Path = typer.Argument(..., help="Path to the vault"),
    vault_file: str = typer.Argument(..., help="File path inside vault"),
    output: Path = typer.Option(..., "--output", "-o", help="Output file path"),
):
    """Alias for download."""
    _download(vault_path, vault_file, output)


@app.command()
def mkdir(
    vault_path: Path = typer.Argument(..., help="Path to the vault"),
    dir_path: str = typer.Argument(..., help="Directory path to create inside vault"),
):
    """Create a directory in the vault."""
    from ..vault import VaultSession

    try:
        password = read_password("Enter vault password:")
        with VaultSession.open(vault_path, password) as session:
            created = session.mkdir(dir_path)
    except VaultError as e:
        fail(e)

    console.print(f"Directory created: {created}")


def _delete(vault_path: Path, target_path: str, recursive: bool) -> None:
    from ..vault import VaultSession

    try:
        password = read_password("Enter vault password:")
        with VaultSession.open(vault_path, password) as session:
            session.delete(target_path, recursive=recursive)
    except VaultError as e:
        fail(e)

    console.print(f"Deleted: {target_path}")


@app.command()
def delete(
    vault_path: Path = typer.Argument(..., help="Path to the vault"),
    target_path: str = typer.Argument(..., help="Path to delete inside vault"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Delete directories recursively"),
):
    """Delete a file or directory from the vault."""
    _delete(vault_path, target_path, recursive)


@app.command("rm", hidden=True)
def rm_alias(
    vault_path: Path = typer.Argument(..., help="Path to the vault"),
    target_path: str = typer.Argument(..., help="Path to delete inside vault"),
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Delete directories recursively"),
):
    """Alias for delete."""
    _delete(vault_path, target_path, recursive)


@app.command()
def info(
    vault_path: Path = typer.Argument(..., help="Path to the vault"),
):
    """
    Show vault information.

    Does not need the password.
    """
    from ..vault import inspect_vault

    metadata = inspect_vault(vault_path)

    console.print("\n[bold]=== Vault Information ===[/bold]\n")
    console.print(f"Path: {metadata.path}")

    if not metadata.is_valid:
        console.print("Status: [red]INVALID[/red] (key file not found)")
        return

    console.print("Status: [green]VALID[/green]")
    console.print(f"Format: {or_unknown(metadata.format)}")
    console.print(f"Cipher: {or_unknown(metadata.cipher_combo)}")
    console.print(f"Vault ID: {or_unknown(metadata.vault_id)}")
    console.print(f"Created: {or_unknown(metadata.created_at)}")
    console.print(f"Scrypt Cost: {or_unknown(metadata.kdf_cost)}")


@app.command("change-password")
def change_password(
    vault_path: Path = typer.Argument(..., help="Path to the vault"),
):
    """Change the vault password."""
    from ..vault import change_password as change_vault_password

    try:
        old_password = read_password("Enter current password:")
        new_password = read_password("Enter new password:")
        confirm = read_password("Confirm new password:")
        change_vault_password(vault_path, old_password, new_password, confirm)
    except VaultError as e:
        fail(e)

    console.print("[green]Password changed successfully![/green]")


@app.command()
def version():
    """Show version information."""
    from .. import __version__

    console.print(f"cryptvault v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
