"""SHA-256 helpers for content addressing and download verification."""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import BinaryIO, Protocol

CHUNK_SIZE = 1024 * 1024


class Checksum(Protocol):
    """Anything that can digest a byte stream into a hex string."""

    def compute_hash(self, stream: BinaryIO) -> str: ...


class ChecksumSha256:
    """Streaming SHA-256 over a readable binary stream.

    The stream is read in 1 MiB chunks until EOF; read faults propagate
    to the caller unchanged.
    """

    def compute_hash(self, stream: BinaryIO) -> str:
        digest = hashlib.sha256()
        for chunk in iter(lambda: stream.read(CHUNK_SIZE), b""):
            digest.update(chunk)
        return digest.hexdigest()

    def __repr__(self) -> str:
        return "ChecksumSha256()"


def sha256_file(path: Path, checksum: Checksum | None = None) -> str:
    """Return the hex digest of the file at *path*."""
    hasher = checksum or ChecksumSha256()
    with open(path, "rb") as stream:
        return hasher.compute_hash(stream)


def digests_match(actual: str, expected: str) -> bool:
    """Compare two hex digests, ignoring case and surrounding whitespace."""
    return actual.strip().lower() == expected.strip().lower()
