"""Gzip-compressed tar unpacker."""

from __future__ import annotations

import logging
import shutil
import tarfile
import zlib
from pathlib import Path
from typing import BinaryIO

from scancache.unpacking.base import (
    ArchiveFormatError,
    prepare_destination,
    resolve_entry_path,
)
from scancache.unpacking.permissions import FilePermissions, NullFilePermissions

logger = logging.getLogger(__name__)

_FORMAT_ERRORS = (tarfile.TarError, zlib.error, EOFError)


class TarGzUnpacker:
    """Streams a ``.tar.gz`` archive into a destination directory.

    Regular files and directories are extracted.  Hard links and symbolic
    links are skipped, as are device and FIFO entries.  Permission bits
    from the tar header are applied through *permissions* on a best-effort
    basis: a failure is logged at DEBUG and extraction carries on.  File
    modes are applied as each file is written; directory modes are applied
    once every entry is extracted, deepest first, so a read-only directory
    never blocks its own children.

    Parameters
    ----------
    permissions:
        Capability used to restore file modes.  Defaults to a no-op.
    """

    def __init__(self, permissions: FilePermissions | None = None) -> None:
        self._permissions = permissions or NullFilePermissions()

    def unpack(self, archive: BinaryIO, destination: Path) -> None:
        try:
            tar = tarfile.open(fileobj=archive, mode="r|gz")
        except _FORMAT_ERRORS as exc:
            raise ArchiveFormatError(f"Invalid tar.gz archive: {exc}") from exc

        with tar:
            root = prepare_destination(destination)
            directories: list[tuple[Path, int]] = []
            try:
                for member in tar:
                    directory = self._extract_member(tar, member, root)
                    if directory is not None:
                        directories.append((directory, member.mode))
            except _FORMAT_ERRORS as exc:
                raise ArchiveFormatError(f"Corrupt tar.gz archive: {exc}") from exc

        for directory, mode in sorted(directories, key=lambda item: len(item[0].parts), reverse=True):
            self._apply_mode(directory, mode)

    def _extract_member(
        self, tar: tarfile.TarFile, member: tarfile.TarInfo, root: Path
    ) -> Path | None:
        """Write one entry; return the path when it is a directory."""
        if member.issym() or member.islnk():
            logger.debug("Skipping link entry '%s'.", member.name)
            return None
        if not (member.isdir() or member.isfile()):
            logger.debug("Skipping special entry '%s' (type %r).", member.name, member.type)
            return None

        target = resolve_entry_path(root, member.name, is_directory=member.isdir())
        if member.isdir():
            target.mkdir(parents=True, exist_ok=True)
            return target

        target.parent.mkdir(parents=True, exist_ok=True)
        src = tar.extractfile(member)
        if src is None:
            raise ArchiveFormatError(f"No data for entry '{member.name}'")
        with src, open(target, "wb") as dst:
            shutil.copyfileobj(src, dst)
        self._apply_mode(target, member.mode)
        return None

    def _apply_mode(self, target: Path, mode: int) -> None:
        try:
            self._permissions.set_permissions(target, mode)
        except Exception as exc:  # noqa: BLE001
            logger.debug(
                "There was an error when trying to set permissions for '%s'. %s",
                target,
                exc,
            )

    def __repr__(self) -> str:
        return f"TarGzUnpacker(permissions={type(self._permissions).__name__})"
