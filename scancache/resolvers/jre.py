"""JRE resolver: provisions the Java runtime the scanner engine runs on."""

from __future__ import annotations

import logging
from typing import ClassVar

from scancache.bridge.server import ArtifactServer, ServerError
from scancache.config import CacheSettings
from scancache.core.cached_downloader import CachedDownloader
from scancache.core.resolver import ArtifactResolver, ResolvableArtifact
from scancache.models.results import ErrorKind, ResolutionError
from scancache.platform_info import detect_arch, detect_os
from scancache.telemetry import ArtifactDownload, JreBootstrapping, Telemetry, TelemetryKey
from scancache.unpacking.factory import UnpackerFactory

logger = logging.getLogger(__name__)


class JreResolver(ArtifactResolver):
    """Resolves the path of a provisioned ``java`` executable.

    Provisioning is skipped, in this order, when an explicit java path is
    configured, when provisioning is switched off, when the server does
    not support it, or when the host OS or architecture is unknown.
    """

    resolver_name: ClassVar[str] = "JreResolver"
    subject: ClassVar[str] = "JRE"
    download_key: ClassVar[TelemetryKey | None] = TelemetryKey.JRE_DOWNLOAD

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
        self._os = settings.os_name or detect_os()
        self._arch = settings.architecture or detect_arch()

    def check_preconditions(self) -> ResolutionError | None:
        if self._settings.java_exe_path is not None:
            self._bootstrapping(JreBootstrapping.DISABLED)
            self._record(ArtifactDownload.USER_SUPPLIED)
            return ResolutionError(
                message=(
                    "JRE provisioning is skipped because the java executable "
                    f"'{self._settings.java_exe_path}' is configured."
                ),
                error_kind=ErrorKind.DISABLED,
            )
        if self._settings.skip_jre_provisioning:
            self._bootstrapping(JreBootstrapping.DISABLED)
            return ResolutionError(
                message="JRE provisioning is disabled.",
                error_kind=ErrorKind.DISABLED,
            )
        if not self._server.supports_jre_provisioning:
            self._bootstrapping(JreBootstrapping.UNSUPPORTED_BY_SERVER)
            return ResolutionError(
                message="The server does not support JRE provisioning.",
                error_kind=ErrorKind.UNSUPPORTED_SERVER,
            )
        if not self._os:
            self._bootstrapping(JreBootstrapping.UNSUPPORTED_NO_OS)
            return ResolutionError(
                message="JRE provisioning is skipped because the operating system is unknown.",
                error_kind=ErrorKind.DISABLED,
            )
        if not self._arch:
            self._bootstrapping(JreBootstrapping.UNSUPPORTED_NO_ARCH)
            return ResolutionError(
                message="JRE provisioning is skipped because the architecture is unknown.",
                error_kind=ErrorKind.DISABLED,
            )
        self._bootstrapping(JreBootstrapping.ENABLED)
        return None

    def fetch_artifact(self) -> ResolvableArtifact | None:
        try:
            metadata = self._server.download_jre_metadata(self._os, self._arch)
        except ServerError as exc:
            logger.debug("JreResolver: %s", exc)
            return None
        if metadata is None:
            return None
        server = self._server
        return ResolvableArtifact(
            descriptor=metadata.to_descriptor(),
            entry_point=metadata.java_path,
            download=lambda: server.download_jre(metadata),
        )

    def _bootstrapping(self, value: JreBootstrapping) -> None:
        if self._telemetry is not None:
            self._telemetry.record(TelemetryKey.JRE_BOOTSTRAPPING, value)
