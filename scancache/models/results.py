"""Closed result types for cache lookups, downloads, and resolutions.

Every operation at a component boundary returns one of these frozen models
instead of raising.  Each family is a closed union discriminated by the
``kind`` field; consumers match with ``isinstance`` and finish with
``unreachable()`` so a new variant cannot be silently ignored.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Literal, NoReturn, Union

from pydantic import BaseModel, ConfigDict


class ErrorKind(str, Enum):
    """Classification of a failed download or resolution."""

    DIRECTORY = "directory"
    CHECKSUM_MISMATCH = "checksum_mismatch"
    TRANSFER = "transfer"
    EXTRACTION = "extraction"
    UNSUPPORTED_ARCHIVE = "unsupported_archive"
    METADATA = "metadata"
    UNSUPPORTED_SERVER = "unsupported_server"
    DISABLED = "disabled"


# Failures that cannot improve by trying again within the same run.
NON_RETRYABLE_KINDS: frozenset[ErrorKind] = frozenset({
    ErrorKind.DIRECTORY,
    ErrorKind.UNSUPPORTED_ARCHIVE,
    ErrorKind.UNSUPPORTED_SERVER,
    ErrorKind.DISABLED,
})


# ---------------------------------------------------------------------------
# Cache lookups
# ---------------------------------------------------------------------------

class CacheHit(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["hit"] = "hit"
    path: Path


class CacheMiss(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["miss"] = "miss"


class CacheError(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["error"] = "error"
    message: str


CacheResult = Union[CacheHit, CacheMiss, CacheError]


# ---------------------------------------------------------------------------
# Downloads
# ---------------------------------------------------------------------------

class DownloadSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    path: Path


class DownloadError(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["error"] = "error"
    message: str
    error_kind: ErrorKind = ErrorKind.TRANSFER


DownloadResult = Union[DownloadSuccess, DownloadError]


# ---------------------------------------------------------------------------
# Resolutions
# ---------------------------------------------------------------------------

class ResolutionSuccess(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["success"] = "success"
    path: Path


class ResolutionError(BaseModel):
    """A classified resolution failure.

    The caller decides whether a run can continue in a degraded mode (for
    example with a preinstalled runtime) or must abort.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["error"] = "error"
    message: str
    error_kind: ErrorKind

    @property
    def retryable(self) -> bool:
        return self.error_kind not in NON_RETRYABLE_KINDS

    @property
    def is_soft(self) -> bool:
        """Whether the failure only means provisioning was not attempted."""
        return self.error_kind in (ErrorKind.DISABLED, ErrorKind.UNSUPPORTED_SERVER)


Resolution = Union[ResolutionSuccess, ResolutionError]


def unreachable(value: object) -> NoReturn:
    """Fail loudly on a result variant no branch handled."""
    raise AssertionError(f"Unhandled result variant: {value!r}")
