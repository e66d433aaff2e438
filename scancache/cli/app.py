"""Main Typer application: imports and registers all CLI commands.

Entry point: ``scancache`` (configured via pyproject.toml console scripts).
"""

from __future__ import annotations

import typer

from scancache.cli.commands.cache_cmd import cache_app
from scancache.cli.commands.digest import digest_cmd
from scancache.cli.commands.resolve import resolve_cmd
from scancache.cli.commands.unpack import unpack_cmd

app = typer.Typer(
    name="scancache",
    help="scancache: verified, content-addressed artifact cache for scanner provisioning.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="resolve", help="Provision the JRE or the scanner engine.")(resolve_cmd)
app.command(name="unpack", help="Safely extract a zip or tar.gz archive.")(unpack_cmd)
app.command(name="digest", help="Print the SHA-256 of a file.")(digest_cmd)
app.add_typer(cache_app, name="cache")


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
