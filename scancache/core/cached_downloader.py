"""Download-once, verify-always retrieval into the shared file cache.

Concurrent processes may download the same descriptor at the same time.
Each writes into its own temp file beside the canonical location and
publishes with an atomic rename, so readers only ever see either no file
or a complete one.  Redundant transfers are acceptable; a corrupted
shared file is not.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO, Callable

from scancache.core.checksum import Checksum, ChecksumSha256, digests_match, sha256_file
from scancache.core.file_cache import FileCache
from scancache.models.descriptors import FileDescriptor
from scancache.models.results import DownloadError, DownloadResult, DownloadSuccess, ErrorKind

logger = logging.getLogger(__name__)

Transport = Callable[[], "BinaryIO | None"]

TEMP_PREFIX = ".tmp-"


class TransferError(RuntimeError):
    """Raised internally when the transport yields no usable stream."""


class CachedDownloader:
    """Fetches a descriptor's file into the cache unless already present.

    Parameters
    ----------
    file_cache:
        Layout and directory helpers for the shared cache.
    checksum:
        Digest implementation; SHA-256 by default.
    """

    def __init__(self, file_cache: FileCache, checksum: Checksum | None = None) -> None:
        self._cache = file_cache
        self._checksum = checksum or ChecksumSha256()

    @property
    def file_cache(self) -> FileCache:
        return self._cache

    def download_file(self, descriptor: FileDescriptor, download: Transport) -> DownloadResult:
        """Return the cached path of *descriptor*, downloading it on a miss.

        Parameters
        ----------
        descriptor:
            Name and expected SHA-256 of the artifact.
        download:
            Transport callable opening a fresh byte stream, or returning
            ``None`` when the server produced no content.  Invoked at most
            once, and never when the file is already cached and valid.

        Returns
        -------
        DownloadResult
            ``DownloadSuccess`` with the canonical path, or a classified
            ``DownloadError``.
        """
        cache_root = self._cache.ensure_cache_root()
        file_root = self._cache.ensure_directory(self._cache.file_root_path(descriptor))
        if cache_root is None or file_root is None:
            message = (
                f"The file cache directory in '{self._cache.file_root_path(descriptor)}' "
                "could not be created."
            )
            logger.debug(message)
            return DownloadError(message=message, error_kind=ErrorKind.DIRECTORY)

        location = self._cache.cache_location(descriptor)
        if location.exists():
            if self._validate(location, descriptor.sha256):
                logger.debug(
                    "The file was already downloaded from the server and stored at '%s'.",
                    location,
                )
                return DownloadSuccess(path=location)
            self._try_delete(location)

        logger.debug("Cache miss. Could not find '%s'.", location)
        return self._download_and_publish(descriptor, location, download)

    # ------------------------------------------------------------------
    # Transfer
    # ------------------------------------------------------------------

    def _download_and_publish(
        self,
        descriptor: FileDescriptor,
        location: Path,
        download: Transport,
    ) -> DownloadResult:
        temp_path: Path | None = None
        try:
            fd, temp_name = tempfile.mkstemp(prefix=TEMP_PREFIX, dir=location.parent)
            temp_path = Path(temp_name)
            logger.debug("Starting the file download.")
            with os.fdopen(fd, "wb") as sink:
                stream = download()
                if stream is None:
                    raise TransferError(
                        "The download stream is null. "
                        "The server likely returned an error status code."
                    )
                with stream:
                    shutil.copyfileobj(stream, sink)

            if not self._validate(temp_path, descriptor.sha256):
                self._try_delete(temp_path)
                return DownloadError(
                    message="The checksum of the downloaded file does not match the expected checksum.",
                    error_kind=ErrorKind.CHECKSUM_MISMATCH,
                )

            os.replace(temp_path, location)
            logger.debug("The file was downloaded and stored at '%s'.", location)
            return DownloadSuccess(path=location)
        except Exception as exc:  # noqa: BLE001
            logger.debug(
                "The download of the file from the server failed with the exception '%s'.",
                exc,
            )
            if temp_path is not None:
                self._try_delete(temp_path)
            return self._recheck_after_failure(descriptor, location, str(exc))

    def _recheck_after_failure(
        self,
        descriptor: FileDescriptor,
        location: Path,
        failure: str,
    ) -> DownloadResult:
        """A concurrent process may have published the file meanwhile."""
        if not location.exists():
            return DownloadError(
                message=f"The download failed: {failure}", error_kind=ErrorKind.TRANSFER
            )

        logger.debug(
            "The file was found after the download failed. "
            "Another scanner downloaded the file in parallel."
        )
        if self._validate(location, descriptor.sha256):
            return DownloadSuccess(path=location)
        self._try_delete(location)
        return DownloadError(
            message="The checksum of the downloaded file does not match the expected checksum.",
            error_kind=ErrorKind.CHECKSUM_MISMATCH,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _validate(self, path: Path, expected: str) -> bool:
        try:
            actual = sha256_file(path, self._checksum)
        except OSError as exc:
            logger.debug(
                "The calculation of the checksum of the file '%s' failed with message '%s'.",
                path,
                exc,
            )
            return False
        logger.debug(
            "The checksum of the downloaded file is '%s' and the expected checksum is '%s'.",
            actual,
            expected,
        )
        return digests_match(actual, expected)

    @staticmethod
    def _try_delete(path: Path) -> None:
        logger.debug("Deleting file '%s'.", path)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.debug("Failed to delete file '%s': %s", path, exc)

    def __repr__(self) -> str:
        return f"CachedDownloader(cache={self._cache!r}, checksum={self._checksum!r})"
