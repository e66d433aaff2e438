"""scancache: verified, content-addressed artifact cache for scanner provisioning.

Obtains, verifies, caches and unpacks large auxiliary artifacts (the JRE,
the scanner engine jar) on machines where many concurrent scanner runs
share one cache directory:
  - Content-addressed layout ``<user_home>/cache/<sha256>/<filename>``
  - Atomic publish by write-then-rename; no locks
  - SHA-256 validation on every hit and every download
  - Zip and tar.gz extraction with directory traversal ("zip slip") defence
  - JRE and engine resolvers with closed result types and one retry
"""

__version__ = "0.1.0"
__description__ = "Verified, content-addressed artifact cache for scanner provisioning"

from scancache.core.cached_downloader import CachedDownloader
from scancache.core.checksum import ChecksumSha256
from scancache.core.file_cache import FileCache
from scancache.unpacking.factory import UnpackerFactory

__all__ = [
    "CachedDownloader",
    "ChecksumSha256",
    "FileCache",
    "UnpackerFactory",
    "__version__",
]
