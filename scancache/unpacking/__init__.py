"""Safe archive extraction.

Modules
-------
base
    Unpacker contract, extraction errors, and entry path validation.
zip_unpacker
    PKZIP archives via :mod:`zipfile`.
targz_unpacker
    Gzip-compressed tar archives via :mod:`tarfile`, streamed.
permissions
    Optional capability for restoring file modes from tar headers.
factory
    Extension-based unpacker selection.
"""

from scancache.unpacking.base import (
    ArchiveFormatError,
    ExtractionError,
    PathTraversalError,
    Unpacker,
)
from scancache.unpacking.factory import UnpackerFactory
from scancache.unpacking.permissions import (
    FilePermissions,
    NullFilePermissions,
    PosixFilePermissions,
)
from scancache.unpacking.targz_unpacker import TarGzUnpacker
from scancache.unpacking.zip_unpacker import ZipUnpacker

__all__ = [
    "ArchiveFormatError",
    "ExtractionError",
    "PathTraversalError",
    "Unpacker",
    "UnpackerFactory",
    "FilePermissions",
    "NullFilePermissions",
    "PosixFilePermissions",
    "TarGzUnpacker",
    "ZipUnpacker",
]
