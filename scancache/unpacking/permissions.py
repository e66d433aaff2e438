"""Optional capability for restoring Unix permission bits after extraction."""

from __future__ import annotations

import os
import stat
from pathlib import Path
from typing import Protocol


class FilePermissions(Protocol):
    def set_permissions(self, path: Path, mode: int) -> None: ...


class PosixFilePermissions:
    """Applies the permission bits of a tar header with :func:`os.chmod`.

    Only the ``rwx`` bits for user, group, and other plus the sticky,
    setuid and setgid bits are honoured; file-type bits are discarded.
    """

    def set_permissions(self, path: Path, mode: int) -> None:
        os.chmod(path, stat.S_IMODE(mode))


class NullFilePermissions:
    """Leaves permissions untouched (hosts without POSIX modes)."""

    def set_permissions(self, path: Path, mode: int) -> None:
        return None
