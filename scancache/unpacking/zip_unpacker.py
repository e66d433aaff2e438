"""PKZIP unpacker."""

from __future__ import annotations

import logging
import shutil
import tempfile
import zipfile
import zlib
from pathlib import Path
from typing import BinaryIO

from scancache.unpacking.base import (
    ArchiveFormatError,
    ExtractionError,
    prepare_destination,
    resolve_entry_path,
)

logger = logging.getLogger(__name__)

# Non-seekable sources are spooled to memory up to this size, then to disk.
_SPOOL_LIMIT = 16 * 1024 * 1024

# zipfile raises RuntimeError for encrypted entries and NotImplementedError
# for unsupported compression methods.
_FORMAT_ERRORS = (zipfile.BadZipFile, zlib.error, EOFError, RuntimeError, NotImplementedError)


class ZipUnpacker:
    """Extracts zip archives, refusing entries outside the destination.

    The zip central directory lives at the end of the file, so a
    non-seekable stream is first spooled into a temporary file.
    """

    def unpack(self, archive: BinaryIO, destination: Path) -> None:
        if _is_seekable(archive):
            self._unpack_seekable(archive, destination)
            return
        with tempfile.SpooledTemporaryFile(max_size=_SPOOL_LIMIT) as spool:
            shutil.copyfileobj(archive, spool)
            spool.seek(0)
            self._unpack_seekable(spool, destination)

    def _unpack_seekable(self, archive: BinaryIO, destination: Path) -> None:
        try:
            zf = zipfile.ZipFile(archive)
        except zipfile.BadZipFile as exc:
            raise ArchiveFormatError(f"Invalid zip archive: {exc}") from exc

        with zf:
            root = prepare_destination(destination)
            try:
                for info in zf.infolist():
                    target = resolve_entry_path(root, info.filename, is_directory=info.is_dir())
                    if info.is_dir():
                        target.mkdir(parents=True, exist_ok=True)
                        continue
                    target.parent.mkdir(parents=True, exist_ok=True)
                    with zf.open(info) as src, open(target, "wb") as dst:
                        shutil.copyfileobj(src, dst)
            except ExtractionError:
                raise
            except _FORMAT_ERRORS as exc:
                raise ArchiveFormatError(f"Corrupt zip entry: {exc}") from exc

        logger.debug("Extracted %d zip entries into '%s'.", len(zf.infolist()), root)

    def __repr__(self) -> str:
        return "ZipUnpacker()"


def _is_seekable(stream: BinaryIO) -> bool:
    seekable = getattr(stream, "seekable", None)
    return bool(seekable and seekable())
