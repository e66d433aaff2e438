"""Shared contract and path-safety rules for archive unpackers.

Every archive entry name is untrusted.  Before anything is written for an
entry, its name is mapped onto the destination root and the canonical
result must be the root itself or one of its descendants.  Entries that
escape (``../../evil.txt``, ``C:\\evil.txt``, symlinked parents) abort the
whole unpack with :class:`PathTraversalError`.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import BinaryIO, Protocol, runtime_checkable

logger = logging.getLogger(__name__)

_DRIVE_PREFIX = re.compile(r"^[A-Za-z]:")


class ExtractionError(RuntimeError):
    """Raised when an archive cannot be unpacked safely."""


class PathTraversalError(ExtractionError):
    """Raised when an entry would land outside the destination root."""

    def __init__(self, entry_name: str, destination: Path) -> None:
        self.entry_name = entry_name
        self.destination = destination
        super().__init__(
            f"Entry '{entry_name}' is trying to leave the target dir: '{destination}'"
        )


class ArchiveFormatError(ExtractionError):
    """Raised when the archive structure is corrupt or of the wrong format."""


@runtime_checkable
class Unpacker(Protocol):
    """Extracts an archive stream into a destination directory.

    Implementations raise :class:`ExtractionError` subclasses and never
    clean up partial output; the caller owns the destination.
    """

    def unpack(self, archive: BinaryIO, destination: Path) -> None: ...


def resolve_entry_path(root: Path, entry_name: str, *, is_directory: bool) -> Path:
    """Map an archive entry name onto *root*, refusing anything outside it.

    Parameters
    ----------
    root:
        Canonical (already resolved) destination directory.
    entry_name:
        Raw name from the archive header.  Both ``/`` and ``\\`` count as
        separators; leading separators are dropped so absolute-looking
        names stay relative to *root*.
    is_directory:
        Directory entries may resolve to *root* itself; file entries may not.

    Returns
    -------
    Path
        Canonical target path.

    Raises
    ------
    PathTraversalError
        If the canonical target is not *root* or a descendant of it.
    """
    normalized = entry_name.replace("\\", "/")
    if _DRIVE_PREFIX.match(normalized):
        raise PathTraversalError(entry_name, root)

    relative = normalized.lstrip("/")
    candidate = (root / relative).resolve()

    if candidate == root:
        if is_directory:
            return candidate
        raise PathTraversalError(entry_name, root)
    if root not in candidate.parents:
        raise PathTraversalError(entry_name, root)
    return candidate


def prepare_destination(destination: Path) -> Path:
    """Create *destination* and return its canonical form."""
    destination.mkdir(parents=True, exist_ok=True)
    return destination.resolve()
