"""Host platform detection for selecting provisioned runtimes."""

from __future__ import annotations

import logging
import os
import platform
import sys
from pathlib import Path

from scancache.unpacking.permissions import (
    FilePermissions,
    NullFilePermissions,
    PosixFilePermissions,
)

logger = logging.getLogger(__name__)

_ARCH_ALIASES = {
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
    "armv8": "aarch64",
    "i386": "x86",
    "i686": "x86",
    "x86": "x86",
}

_ALPINE_RELEASE = Path("/etc/alpine-release")


def detect_os(platform_name: str | None = None) -> str:
    """Return the server-side OS name: ``linux``, ``alpine``, ``windows``, ``macos``.

    Returns ``""`` when the platform is not one the server provisions for.
    """
    name = (platform_name or sys.platform).lower()
    if name.startswith("win"):
        return "windows"
    if name == "darwin":
        return "macos"
    if name.startswith("linux"):
        return "alpine" if _ALPINE_RELEASE.exists() else "linux"
    logger.debug("Unsupported operating system '%s'.", name)
    return ""


def detect_arch(machine: str | None = None) -> str:
    """Return the normalized CPU architecture, or ``""`` when unknown."""
    raw = (machine if machine is not None else platform.machine()).lower()
    arch = _ARCH_ALIASES.get(raw, "")
    if not arch:
        logger.debug("Unsupported architecture '%s'.", raw)
    return arch


def default_file_permissions() -> FilePermissions:
    """Permission capability suited to the host filesystem."""
    if os.name == "posix":
        return PosixFilePermissions()
    return NullFilePermissions()
