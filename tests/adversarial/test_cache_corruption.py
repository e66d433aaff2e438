"""Adversarial tests: tampered or truncated cache contents.

A corrupted canonical file must never be served; it is replaced by a
fresh, validated download.
"""

from __future__ import annotations

import gzip
import io
import struct

import pytest

from scancache.core.cached_downloader import CachedDownloader
from scancache.core.file_cache import FileCache
from scancache.models.results import DownloadError, DownloadSuccess, ErrorKind, ResolutionError
from scancache.resolvers.jre import JreResolver
from scancache.unpacking.base import ArchiveFormatError
from scancache.unpacking.targz_unpacker import TarGzUnpacker
from scancache.unpacking.zip_unpacker import ZipUnpacker

PAYLOAD = b"the genuine artifact bytes"

# Offsets into a zip central-directory file header.
_CENTRAL_FLAGS = 8
_CENTRAL_METHOD = 10


def _patch_central(archive: bytes, offset: int, value: int) -> bytes:
    """Overwrite a 16-bit field of the first central-directory header."""
    patched = bytearray(archive)
    central = patched.find(b"PK\x01\x02")
    struct.pack_into("<H", patched, central + offset, value)
    return bytes(patched)


class TestCorruptionSelfHeal:
    def test_corrupt_canonical_file_is_replaced(
        self, downloader, file_cache, make_descriptor, counting_transport
    ):
        descriptor = make_descriptor(PAYLOAD, "engine.jar")
        location = file_cache.cache_location(descriptor)
        location.parent.mkdir(parents=True)
        location.write_bytes(b"bit-rotted content")
        transport = counting_transport(PAYLOAD)

        result = downloader.download_file(descriptor, transport)

        assert isinstance(result, DownloadSuccess)
        assert result.path.read_bytes() == PAYLOAD
        assert transport.calls == 1

    def test_truncated_canonical_file_is_replaced(
        self, downloader, file_cache, make_descriptor, counting_transport
    ):
        descriptor = make_descriptor(PAYLOAD, "engine.jar")
        location = file_cache.cache_location(descriptor)
        location.parent.mkdir(parents=True)
        location.write_bytes(PAYLOAD[:5])

        result = downloader.download_file(descriptor, counting_transport(PAYLOAD))

        assert isinstance(result, DownloadSuccess)
        assert location.read_bytes() == PAYLOAD

    def test_corrupt_file_and_bad_server_leaves_nothing(
        self, downloader, file_cache, make_descriptor, counting_transport
    ):
        descriptor = make_descriptor(PAYLOAD, "engine.jar")
        location = file_cache.cache_location(descriptor)
        location.parent.mkdir(parents=True)
        location.write_bytes(b"bit-rotted content")

        result = downloader.download_file(descriptor, counting_transport(b"also wrong"))

        assert isinstance(result, DownloadError)
        assert result.error_kind is ErrorKind.CHECKSUM_MISMATCH
        assert not location.exists()

    def test_stray_temp_files_are_ignored(
        self, downloader, file_cache, make_descriptor, counting_transport
    ):
        descriptor = make_descriptor(PAYLOAD, "engine.jar")
        root = file_cache.file_root_path(descriptor)
        root.mkdir(parents=True)
        (root / ".tmp-crashed").write_bytes(b"half a download")

        result = downloader.download_file(descriptor, counting_transport(PAYLOAD))

        assert isinstance(result, DownloadSuccess)
        assert (root / ".tmp-crashed").exists()
        assert result.path.name == "engine.jar"


class TestCorruptArchives:
    def test_truncated_targz(self, make_targz, tmp_dir):
        archive = make_targz({"a.bin": b"a" * 50_000, "b.bin": b"b" * 50_000})
        with pytest.raises(ArchiveFormatError):
            TarGzUnpacker().unpack(io.BytesIO(archive[: len(archive) // 3]), tmp_dir / "out")

    def test_gzip_of_garbage(self, tmp_dir):
        archive = gzip.compress(b"\xff" * 1024)
        with pytest.raises(ArchiveFormatError):
            TarGzUnpacker().unpack(io.BytesIO(archive), tmp_dir / "out")
        assert not (tmp_dir / "out").exists()

    def test_zip_with_damaged_central_directory(self, make_zip, tmp_dir):
        archive = bytearray(make_zip({"a.txt": b"content"}))
        eocd = archive.rfind(b"PK\x05\x06")
        archive[eocd:eocd + 4] = b"XXXX"
        with pytest.raises(ArchiveFormatError):
            ZipUnpacker().unpack(io.BytesIO(bytes(archive)), tmp_dir / "out")
        assert not (tmp_dir / "out").exists()

    def test_zip_entry_crc_mismatch(self, make_zip, tmp_dir):
        archive = bytearray(make_zip({"a.txt": b"A" * 4096}))
        # Flip the CRC-32 recorded in the central directory.
        central = archive.find(b"PK\x01\x02")
        archive[central + 16] ^= 0xFF
        with pytest.raises(ArchiveFormatError):
            ZipUnpacker().unpack(io.BytesIO(bytes(archive)), tmp_dir / "out")

    def test_encrypted_zip_entry(self, make_zip, tmp_dir):
        archive = _patch_central(make_zip({"a.txt": b"secret"}), _CENTRAL_FLAGS, 0x1)
        with pytest.raises(ArchiveFormatError, match="encrypted"):
            ZipUnpacker().unpack(io.BytesIO(archive), tmp_dir / "out")

    def test_unsupported_zip_compression_method(self, make_zip, tmp_dir):
        archive = _patch_central(make_zip({"a.txt": b"content"}), _CENTRAL_METHOD, 99)
        with pytest.raises(ArchiveFormatError):
            ZipUnpacker().unpack(io.BytesIO(archive), tmp_dir / "out")


class TestUnreadableArchiveResolution:
    def _resolve(self, settings, server, unpackers):
        downloader = CachedDownloader(FileCache(settings.user_home))
        return JreResolver(settings, server, downloader, unpackers).resolve()

    def _leftovers(self, settings, server) -> list[str]:
        entry_dir = FileCache(settings.user_home).file_root_path(server.jre_metadata.to_descriptor())
        return [p.name for p in entry_dir.iterdir() if p.name.startswith(".tmp-")]

    def test_encrypted_jre_is_an_extraction_error(self, settings, fake_server, make_zip, unpackers):
        archive = _patch_central(make_zip({"jre/bin/java": b"#!/bin/sh"}), _CENTRAL_FLAGS, 0x1)
        server = fake_server(jre_archive=archive, jre_filename="jre.zip")

        result = self._resolve(settings, server, unpackers)

        assert isinstance(result, ResolutionError)
        assert result.error_kind is ErrorKind.EXTRACTION
        assert self._leftovers(settings, server) == []
        assert not FileCache(settings.user_home).extracted_location(
            server.jre_metadata.to_descriptor()
        ).exists()

    def test_unexpected_unpacker_fault_is_contained(self, settings, fake_server, jre_archive):
        class _FaultyUnpacker:
            def unpack(self, stream, destination):
                (destination / "partial").write_bytes(b"half")
                raise ValueError("unexpected header")

        class _Factory:
            def create(self, filename):
                return _FaultyUnpacker()

        server = fake_server(jre_archive=jre_archive)

        result = self._resolve(settings, server, _Factory())

        assert isinstance(result, ResolutionError)
        assert result.error_kind is ErrorKind.EXTRACTION
        assert "unexpected header" in result.message
        assert self._leftovers(settings, server) == []
