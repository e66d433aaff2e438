"""``scancache unpack ARCHIVE DEST``: safe extraction of a zip or tar.gz."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from scancache.cli.logging_setup import configure_logging
from scancache.platform_info import default_file_permissions
from scancache.unpacking.base import ExtractionError, PathTraversalError
from scancache.unpacking.factory import UnpackerFactory

console = Console()


def unpack_cmd(
    archive: Path = typer.Argument(..., help="Archive to extract (.zip, .tar.gz, .tgz)."),
    destination: Path = typer.Argument(..., help="Directory to extract into."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug traces."),
) -> None:
    """Extract ARCHIVE into DEST, rejecting entries that escape DEST."""
    configure_logging("DEBUG" if verbose else "WARNING")

    if not archive.is_file():
        console.print(f"[bold red]Archive not found:[/bold red] {archive}")
        raise typer.Exit(code=1)

    unpacker = UnpackerFactory(default_file_permissions()).create(archive.name)
    if unpacker is None:
        console.print(
            f"[bold red]Unsupported archive format:[/bold red] {archive.name} "
            "[dim](expected .zip, .tar.gz or .tgz)[/dim]"
        )
        raise typer.Exit(code=1)

    try:
        with open(archive, "rb") as stream:
            unpacker.unpack(stream, destination)
    except PathTraversalError as exc:
        console.print(f"[bold red]Unsafe archive:[/bold red] {exc}")
        raise typer.Exit(code=1)
    except (ExtractionError, OSError) as exc:
        console.print(f"[bold red]Extraction failed:[/bold red] {exc}")
        raise typer.Exit(code=1)

    console.print(f"[green]Extracted[/green] {archive.name} -> {destination}")
