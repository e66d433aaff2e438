"""``scancache resolve jre|engine``: provision an artifact into the cache.

Prints the resolved path on success.  Failures print one classified line;
soft failures (provisioning disabled or unsupported by the server) exit 0
with ``--allow-fallback`` so a caller can fall back to a local install.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import typer
from rich.console import Console

from scancache.bridge.server import ArtifactServer, HttpArtifactServer
from scancache.cli.logging_setup import configure_logging
from scancache.config import CacheSettings
from scancache.core.cached_downloader import CachedDownloader
from scancache.core.file_cache import FileCache
from scancache.core.resolver import ArtifactResolver
from scancache.models.results import ResolutionError, ResolutionSuccess, unreachable
from scancache.platform_info import default_file_permissions
from scancache.resolvers.engine import EngineResolver
from scancache.resolvers.jre import JreResolver
from scancache.telemetry import Telemetry
from scancache.unpacking.factory import UnpackerFactory

console = Console()


class Target(str, Enum):
    JRE = "jre"
    ENGINE = "engine"


def build_resolver(
    target: Target,
    settings: CacheSettings,
    server: ArtifactServer,
    telemetry: Telemetry | None = None,
) -> ArtifactResolver:
    """Wire a resolver for *target* against the cache configured in *settings*."""
    downloader = CachedDownloader(FileCache(settings.user_home))
    unpackers = UnpackerFactory(default_file_permissions())
    if target is Target.JRE:
        return JreResolver(settings, server, downloader, unpackers, telemetry=telemetry)
    return EngineResolver(settings, server, downloader, unpackers, telemetry=telemetry)


def resolve_cmd(
    target: Target = typer.Argument(..., help="Artifact to provision."),
    allow_fallback: bool = typer.Option(
        False,
        "--allow-fallback",
        help="Exit 0 when provisioning is disabled or unsupported by the server.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug traces."),
    user_home: Path = typer.Option(
        None, "--user-home", help="Override the cache base directory."
    ),
    telemetry_out: Path = typer.Option(
        None, "--telemetry-out", help="Write provisioning telemetry as JSON to this file."
    ),
) -> None:
    """Resolve the JRE or the scanner engine to a local path."""
    settings = CacheSettings()
    if user_home is not None:
        settings = settings.model_copy(update={"user_home": user_home})
    configure_logging("DEBUG" if verbose or settings.debug else settings.log_level)

    if not settings.server_url:
        console.print("[bold red]No server configured.[/bold red] Set SCANCACHE_SERVER_URL.")
        raise typer.Exit(code=1)

    telemetry = Telemetry()
    with HttpArtifactServer(
        settings.server_url,
        token=settings.token,
        server_version=settings.server_version,
        timeout_seconds=settings.http_timeout_seconds,
    ) as server:
        result = build_resolver(target, settings, server, telemetry).resolve()

    if telemetry_out is not None:
        telemetry.write(telemetry_out)

    if isinstance(result, ResolutionSuccess):
        console.print(str(result.path), highlight=False, soft_wrap=True)
        return
    if not isinstance(result, ResolutionError):
        unreachable(result)

    if result.is_soft and allow_fallback:
        console.print(f"[yellow]Skipped:[/yellow] {result.message} [dim](falling back)[/dim]")
        return
    console.print(f"[bold red]{result.error_kind.value}:[/bold red] {result.message}")
    raise typer.Exit(code=1)
