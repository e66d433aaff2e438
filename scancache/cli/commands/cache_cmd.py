"""``scancache cache list|verify``: inspect the shared file cache.

There is no eviction command.  ``verify --delete-invalid`` only removes
files whose content no longer matches the hash directory they live in.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from scancache.config import CacheSettings
from scancache.core.checksum import digests_match, sha256_file
from scancache.core.file_cache import FileCache

console = Console()

cache_app = typer.Typer(
    help="Inspect the shared artifact cache.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _file_cache(user_home: Path | None) -> FileCache:
    return FileCache(user_home or CacheSettings().user_home)


@cache_app.command(name="list", help="List cached artifacts.")
def list_cmd(
    user_home: Path = typer.Option(None, "--user-home", help="Override the cache base directory."),
) -> None:
    """Show every published file with its hash and size."""
    cache = _file_cache(user_home)
    entries = cache.entries()
    if not entries:
        console.print(f"[dim]No cached artifacts in {cache.cache_root}.[/dim]")
        return

    table = Table(title="Cached Artifacts")
    table.add_column("SHA-256", style="cyan", no_wrap=True)
    table.add_column("File", style="green")
    table.add_column("Size", justify="right")
    table.add_column("Extracted", justify="center")

    for descriptor, path in entries:
        extracted = "[green]Yes[/green]" if cache.extracted_location(descriptor).is_dir() else "[dim]No[/dim]"
        table.add_row(descriptor.sha256[:16], descriptor.filename, f"{path.stat().st_size:,}", extracted)

    console.print(table)


@cache_app.command(name="verify", help="Re-hash cached artifacts against their hash directory.")
def verify_cmd(
    user_home: Path = typer.Option(None, "--user-home", help="Override the cache base directory."),
    delete_invalid: bool = typer.Option(
        False, "--delete-invalid", help="Delete files whose content does not match."
    ),
) -> None:
    """Report (and optionally remove) cache entries that fail validation."""
    cache = _file_cache(user_home)
    entries = cache.entries()
    invalid = 0

    for descriptor, path in entries:
        try:
            ok = digests_match(sha256_file(path), descriptor.sha256)
        except OSError as exc:
            console.print(f"[red]Unreadable[/red] {path}: {exc}")
            ok = False
        if ok:
            continue
        invalid += 1
        if delete_invalid:
            path.unlink(missing_ok=True)
            console.print(f"[yellow]Deleted corrupted[/yellow] {descriptor.filename} ({descriptor.sha256[:16]})")
        else:
            console.print(f"[red]Corrupted[/red] {descriptor.filename} ({descriptor.sha256[:16]})")

    console.print(f"Checked {len(entries)} file(s), {invalid} invalid.")
    if invalid and not delete_invalid:
        raise typer.Exit(code=1)
