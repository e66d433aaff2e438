"""Selects an unpacker from an artifact's file name."""

from __future__ import annotations

import logging

from scancache.unpacking.base import Unpacker
from scancache.unpacking.permissions import FilePermissions
from scancache.unpacking.targz_unpacker import TarGzUnpacker
from scancache.unpacking.zip_unpacker import ZipUnpacker

logger = logging.getLogger(__name__)

ZIP_SUFFIXES = (".zip",)
TARGZ_SUFFIXES = (".tar.gz", ".tgz")


class UnpackerFactory:
    """Maps file extensions onto unpackers, case-insensitively.

    Anything that is not a zip or a gzip-compressed tar (a bare ``.tar``
    or ``.gz`` included) yields ``None``: the file is used as-is.

    Parameters
    ----------
    permissions:
        Capability handed to the tar.gz unpacker for restoring file modes.
    """

    def __init__(self, permissions: FilePermissions | None = None) -> None:
        self._permissions = permissions

    def create(self, filename: str) -> Unpacker | None:
        lowered = filename.lower()
        if lowered.endswith(ZIP_SUFFIXES):
            return ZipUnpacker()
        if lowered.endswith(TARGZ_SUFFIXES):
            return TarGzUnpacker(self._permissions)
        logger.debug("No unpacker for '%s'.", filename)
        return None
