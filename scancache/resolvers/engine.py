"""Scanner engine resolver: provisions the analysis engine jar."""

from __future__ import annotations

import logging
from typing import ClassVar

from scancache.bridge.server import ArtifactServer, ServerError
from scancache.config import CacheSettings
from scancache.core.cached_downloader import CachedDownloader
from scancache.core.resolver import ArtifactResolver, ResolvableArtifact
from scancache.models.results import ErrorKind, ResolutionError
from scancache.telemetry import ArtifactDownload, Telemetry, TelemetryKey
from scancache.unpacking.factory import UnpackerFactory

logger = logging.getLogger(__name__)


class EngineResolver(ArtifactResolver):
    """Resolves the path of the scanner engine jar.

    The engine is a plain jar and is returned as downloaded, never unpacked.
    """

    resolver_name: ClassVar[str] = "EngineResolver"
    subject: ClassVar[str] = "scanner engine"
    download_key: ClassVar[TelemetryKey | None] = TelemetryKey.ENGINE_DOWNLOAD

    def __init__(
        self,
        settings: CacheSettings,
        server: ArtifactServer,
        downloader: CachedDownloader,
        unpackers: UnpackerFactory,
        *,
        telemetry: Telemetry | None = None,
    ) -> None:
        super().__init__(
            downloader,
            unpackers,
            attempts=settings.resolve_attempts,
            telemetry=telemetry,
        )
        self._settings = settings
        self._server = server

    def check_preconditions(self) -> ResolutionError | None:
        if self._settings.engine_jar_path is not None:
            self._record(ArtifactDownload.USER_SUPPLIED)
            return ResolutionError(
                message=(
                    "Scanner engine provisioning is skipped because the engine jar "
                    f"'{self._settings.engine_jar_path}' is configured."
                ),
                error_kind=ErrorKind.DISABLED,
            )
        if self._settings.skip_engine_provisioning:
            return ResolutionError(
                message="Scanner engine provisioning is disabled.",
                error_kind=ErrorKind.DISABLED,
            )
        if not self._server.supports_engine_provisioning:
            return ResolutionError(
                message="The server does not support scanner engine provisioning.",
                error_kind=ErrorKind.UNSUPPORTED_SERVER,
            )
        return None

    def fetch_artifact(self) -> ResolvableArtifact | None:
        try:
            metadata = self._server.download_engine_metadata()
        except ServerError as exc:
            logger.debug("EngineResolver: %s", exc)
            return None
        if metadata is None:
            return None
        server = self._server
        return ResolvableArtifact(
            descriptor=metadata.to_descriptor(),
            download=lambda: server.download_engine(metadata),
        )
