"""``scancache digest FILE``: print the SHA-256 of a file."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from scancache.core.checksum import sha256_file

console = Console()


def digest_cmd(
    file: Path = typer.Argument(..., help="File to hash."),
) -> None:
    """Print the lowercase hex SHA-256 digest of FILE."""
    if not file.is_file():
        console.print(f"[bold red]File not found:[/bold red] {file}")
        raise typer.Exit(code=1)
    try:
        digest = sha256_file(file)
    except OSError as exc:
        console.print(f"[bold red]Cannot read file:[/bold red] {exc}")
        raise typer.Exit(code=1)
    console.print(f"{digest}  {file.name}", highlight=False, soft_wrap=True)
