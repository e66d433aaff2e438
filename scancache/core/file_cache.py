"""Content-addressed file cache layout and lookups.

Storage layout: {user_home}/cache/{sha256}/{filename}
Extracted archives live beside the file in {filename}_extracted/.
There is no eviction: entries are immutable once published and only removed
when they fail checksum validation.
"""

from __future__ import annotations

import logging
from pathlib import Path

from scancache.models.descriptors import FileDescriptor
from scancache.models.results import CacheError, CacheHit, CacheMiss, CacheResult

logger = logging.getLogger(__name__)


class FileCache:
    """Maps descriptors onto paths beneath a shared cache root.

    Many processes may share the same root; nothing here takes a lock.
    Lookups test existence only and never re-hash a published file.

    Parameters
    ----------
    user_home:
        Base directory of the tool; the cache lives in its ``cache`` child.
    """

    def __init__(self, user_home: Path) -> None:
        self._user_home = Path(user_home)
        self._cache_root = self._user_home / "cache"

    @property
    def cache_root(self) -> Path:
        return self._cache_root

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def file_root_path(self, descriptor: FileDescriptor) -> Path:
        """Directory that holds every file with this content hash."""
        return self._cache_root / descriptor.sha256

    def cache_location(self, descriptor: FileDescriptor) -> Path:
        """Canonical location of the descriptor's file."""
        return self.file_root_path(descriptor) / descriptor.filename

    def extracted_location(self, descriptor: FileDescriptor) -> Path:
        """Directory an archive descriptor is unpacked into."""
        return self.file_root_path(descriptor) / f"{descriptor.filename}_extracted"

    # ------------------------------------------------------------------
    # Directories
    # ------------------------------------------------------------------

    def ensure_cache_root(self) -> Path | None:
        """Create the cache root if needed; ``None`` when that fails."""
        return self.ensure_directory(self._cache_root)

    def ensure_directory(self, directory: Path) -> Path | None:
        """Create *directory* and its parents; ``None`` when that fails.

        Failures are logged at DEBUG and never raised, so callers can turn
        them into a classified result.
        """
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            logger.debug("Failed to create directory '%s': %s", directory, exc)
            return None
        return directory

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def is_file_cached(self, descriptor: FileDescriptor) -> CacheResult:
        """Report whether the descriptor's file is already published."""
        if self.ensure_cache_root() is None:
            return CacheError(
                message=f"The file cache directory in '{self._cache_root}' could not be created."
            )
        location = self.cache_location(descriptor)
        if location.is_file():
            logger.debug("Cache hit '%s'.", location)
            return CacheHit(path=location)
        logger.debug("Cache miss. Could not find '%s'.", location)
        return CacheMiss()

    def entries(self) -> list[tuple[FileDescriptor, Path]]:
        """Every published file, sorted by hash then name.

        Temp artifacts (``.tmp-*``) and extraction directories are skipped.
        """
        found: list[tuple[FileDescriptor, Path]] = []
        if not self._cache_root.is_dir():
            return found
        for hash_dir in sorted(p for p in self._cache_root.iterdir() if p.is_dir()):
            for item in sorted(hash_dir.iterdir()):
                if not item.is_file() or item.name.startswith(".tmp-"):
                    continue
                found.append((FileDescriptor(filename=item.name, sha256=hash_dir.name), item))
        return found

    def __repr__(self) -> str:
        return f"FileCache(cache_root={str(self._cache_root)!r})"
