"""scancache data models: all Pydantic v2, all frozen (immutable)."""

from scancache.models.descriptors import EngineMetadata, FileDescriptor, JreMetadata
from scancache.models.results import (
    CacheError,
    CacheHit,
    CacheMiss,
    CacheResult,
    DownloadError,
    DownloadResult,
    DownloadSuccess,
    ErrorKind,
    Resolution,
    ResolutionError,
    ResolutionSuccess,
    unreachable,
)

__all__ = [
    # descriptors
    "FileDescriptor",
    "JreMetadata",
    "EngineMetadata",
    # results
    "ErrorKind",
    "CacheHit",
    "CacheMiss",
    "CacheError",
    "CacheResult",
    "DownloadSuccess",
    "DownloadError",
    "DownloadResult",
    "ResolutionSuccess",
    "ResolutionError",
    "Resolution",
    "unreachable",
]
