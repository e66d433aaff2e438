"""Abstract artifact resolver with an enforced resolution lifecycle.

Every concrete resolver supplies only its preconditions and how to fetch
the artifact metadata.  The ``resolve()`` wrapper is **not overridable**;
it always runs:

    check_preconditions -> fetch_artifact -> cache lookup
        -> download -> (unpack) -> result

and retries once when the first attempt fails for a retryable reason.
"""

from __future__ import annotations

import abc
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Callable, ClassVar, final

from pydantic import BaseModel, ConfigDict

from scancache.core.cached_downloader import CachedDownloader
from scancache.models.descriptors import FileDescriptor
from scancache.models.results import (
    CacheHit,
    DownloadError,
    DownloadSuccess,
    ErrorKind,
    Resolution,
    ResolutionError,
    ResolutionSuccess,
    unreachable,
)
from scancache.telemetry import ArtifactDownload, Telemetry, TelemetryKey
from scancache.unpacking.base import (
    ExtractionError,
    PathTraversalError,
    Unpacker,
    resolve_entry_path,
)
from scancache.unpacking.factory import UnpackerFactory

logger = logging.getLogger(__name__)


class ResolvableArtifact(BaseModel):
    """Everything needed to materialize one artifact locally.

    ``entry_point`` is the path of the wanted file inside the unpacked
    archive; ``None`` means the downloaded file itself is the result.
    """

    model_config = ConfigDict(frozen=True)

    descriptor: FileDescriptor
    download: Callable[[], Any]
    entry_point: str | None = None


class ArtifactResolver(abc.ABC):
    """Base for resolvers that turn server metadata into a local path.

    Subclasses **must** implement:
        * ``check_preconditions()`` returning a soft ``ResolutionError``
          when provisioning should not be attempted at all.
        * ``fetch_artifact()`` returning the artifact, or ``None`` when
          the server metadata is unavailable.

    Subclasses set ``resolver_name``, ``subject`` and ``download_key``.

    Parameters
    ----------
    downloader:
        Cached downloader bound to the shared file cache.
    unpackers:
        Selector used to recognize archives.
    attempts:
        Total attempts per resolution (first try included).
    telemetry:
        Optional record of provisioning outcomes.
    """

    resolver_name: ClassVar[str] = "ArtifactResolver"
    subject: ClassVar[str] = "artifact"
    download_key: ClassVar[TelemetryKey | None] = None

    def __init__(
        self,
        downloader: CachedDownloader,
        unpackers: UnpackerFactory,
        *,
        attempts: int = 2,
        telemetry: Telemetry | None = None,
    ) -> None:
        self._downloader = downloader
        self._cache = downloader.file_cache
        self._unpackers = unpackers
        self._attempts = max(1, attempts)
        self._telemetry = telemetry

    # ------------------------------------------------------------------
    # Abstract interface
    # ------------------------------------------------------------------

    @abc.abstractmethod
    def check_preconditions(self) -> ResolutionError | None:
        ...

    @abc.abstractmethod
    def fetch_artifact(self) -> ResolvableArtifact | None:
        ...

    # ------------------------------------------------------------------
    # Lifecycle (not overridable)
    # ------------------------------------------------------------------

    @final
    def resolve(self) -> Resolution:
        """Resolve the artifact to a local path.  **Do not override.**"""
        skipped = self.check_preconditions()
        if skipped is not None:
            logger.debug("%s: %s", self.resolver_name, skipped.message)
            return skipped

        result = self._attempt()
        for _ in range(self._attempts - 1):
            if isinstance(result, ResolutionSuccess) or not result.retryable:
                break
            logger.debug("%s: Resolving %s path. Retrying...", self.resolver_name, self.subject)
            result = self._attempt()

        if isinstance(result, ResolutionError):
            logger.debug("%s: %s", self.resolver_name, result.message)
        return result

    def _attempt(self) -> Resolution:
        artifact = self.fetch_artifact()
        if artifact is None:
            return ResolutionError(
                message="Metadata could not be retrieved.",
                error_kind=ErrorKind.METADATA,
            )
        return self.resolve_artifact(artifact)

    def resolve_artifact(self, artifact: ResolvableArtifact) -> Resolution:
        """Materialize *artifact*: cache hit, download, and unpack as needed."""
        descriptor = artifact.descriptor
        unpacker: Unpacker | None = None
        entry_path: Path | None = None
        if artifact.entry_point is not None:
            unpacker = self._unpackers.create(descriptor.filename)
            if unpacker is None:
                self._record(ArtifactDownload.FAILED)
                return ResolutionError(
                    message=f"The archive format of '{descriptor.filename}' is not supported.",
                    error_kind=ErrorKind.UNSUPPORTED_ARCHIVE,
                )
            try:
                entry_path = _entry_path(
                    self._cache.extracted_location(descriptor), artifact.entry_point
                )
            except PathTraversalError as exc:
                self._record(ArtifactDownload.FAILED)
                return ResolutionError(message=str(exc), error_kind=ErrorKind.EXTRACTION)
            cached = self._extracted_entry(descriptor, entry_path, artifact.entry_point)
            if cached is not None:
                return cached

        was_cached = isinstance(self._cache.is_file_cached(descriptor), CacheHit)
        downloaded = self._downloader.download_file(descriptor, artifact.download)
        if isinstance(downloaded, DownloadError):
            self._record(ArtifactDownload.FAILED)
            return ResolutionError(message=downloaded.message, error_kind=downloaded.error_kind)
        if not isinstance(downloaded, DownloadSuccess):
            unreachable(downloaded)

        if unpacker is None or entry_path is None:
            self._record(ArtifactDownload.CACHE_HIT if was_cached else ArtifactDownload.DOWNLOADED)
            logger.debug("%s: Resolved '%s'.", self.resolver_name, downloaded.path)
            return ResolutionSuccess(path=downloaded.path)

        result = self._extract(descriptor, downloaded.path, unpacker, entry_path)
        if isinstance(result, ResolutionSuccess):
            self._record(ArtifactDownload.CACHE_HIT if was_cached else ArtifactDownload.DOWNLOADED)
        else:
            self._record(ArtifactDownload.FAILED)
        return result

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def _extracted_entry(
        self, descriptor: FileDescriptor, target: Path, entry_point: str
    ) -> Resolution | None:
        if not self._cache.extracted_location(descriptor).exists():
            return None
        if target.exists():
            logger.debug("%s: Cache hit '%s'.", self.resolver_name, target)
            self._record(ArtifactDownload.CACHE_HIT)
            return ResolutionSuccess(path=target)
        self._record(ArtifactDownload.FAILED)
        return ResolutionError(
            message=f"The file '{entry_point}' was not found at expected location '{target}'.",
            error_kind=ErrorKind.EXTRACTION,
        )

    def _extract(
        self,
        descriptor: FileDescriptor,
        archive: Path,
        unpacker: Unpacker,
        entry_path: Path,
    ) -> Resolution:
        final_dir = self._cache.extracted_location(descriptor)
        relative = entry_path.relative_to(final_dir)
        temp_dir: Path | None = None
        try:
            temp_dir = Path(tempfile.mkdtemp(prefix=".tmp-", dir=final_dir.parent))
            # mkdtemp creates 0o700; published extractions are shared.
            temp_dir.chmod(0o755)
            logger.debug(
                "Starting to extract files from archive '%s' to folder '%s'.", archive, temp_dir
            )
            with open(archive, "rb") as stream:
                unpacker.unpack(stream, temp_dir)
            if not (temp_dir / relative).exists():
                raise ExtractionError(
                    f"The file '{relative.as_posix()}' was not found in the archive '{archive.name}'."
                )
            logger.debug("Moving extracted files from '%s' to '%s'.", temp_dir, final_dir)
            os.rename(temp_dir, final_dir)
        except Exception as exc:  # noqa: BLE001
            logger.debug("The extraction of '%s' failed: %s", archive, exc)
            if temp_dir is not None:
                _remove_tree(temp_dir)
            if entry_path.exists():
                logger.debug("Another process already published '%s'.", final_dir)
                return ResolutionSuccess(path=entry_path)
            return ResolutionError(message=str(exc), error_kind=ErrorKind.EXTRACTION)

        logger.debug("The archive was successfully extracted to '%s'.", final_dir)
        return ResolutionSuccess(path=entry_path)

    def _record(self, value: ArtifactDownload) -> None:
        if self._telemetry is not None and self.download_key is not None:
            self._telemetry.record(self.download_key, value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(cache={self._cache!r}, attempts={self._attempts})"


def _entry_path(extracted: Path, entry_point: str) -> Path:
    """Locate *entry_point* under *extracted*, refusing paths that leave it."""
    resolve_entry_path(extracted.resolve(), entry_point, is_directory=False)
    return extracted / entry_point.replace("\\", "/").lstrip("/")


def _remove_tree(path: Path) -> None:
    try:
        shutil.rmtree(path)
    except OSError as exc:
        logger.debug("Failed to delete directory '%s': %s", path, exc)
