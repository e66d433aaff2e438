"""Shared test fixtures for scancache."""

from __future__ import annotations

import hashlib
import io
import tarfile
import zipfile
from collections.abc import Callable
from pathlib import Path
from typing import BinaryIO

import pytest

from scancache.config import CacheSettings
from scancache.core.cached_downloader import CachedDownloader
from scancache.core.file_cache import FileCache
from scancache.models.descriptors import EngineMetadata, FileDescriptor, JreMetadata
from scancache.unpacking.factory import UnpackerFactory
from scancache.unpacking.permissions import PosixFilePermissions


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def user_home(tmp_dir: Path) -> Path:
    """Base directory whose ``cache`` child is the shared cache root."""
    return tmp_dir / "home"


@pytest.fixture
def file_cache(user_home: Path) -> FileCache:
    return FileCache(user_home)


@pytest.fixture
def downloader(file_cache: FileCache) -> CachedDownloader:
    return CachedDownloader(file_cache)


@pytest.fixture
def unpackers() -> UnpackerFactory:
    return UnpackerFactory(PosixFilePermissions())


@pytest.fixture
def settings(user_home: Path) -> CacheSettings:
    """Settings isolated from the environment and any .env file."""
    return CacheSettings(
        _env_file=None,
        user_home=user_home,
        server_url="https://analysis.example.com",
        server_version="10.6.0.92116",
        os_name="linux",
        architecture="x64",
    )


# ---------------------------------------------------------------------------
# Artifact factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_descriptor() -> Callable[..., FileDescriptor]:
    """Factory fixture: descriptor whose hash matches *data*."""

    def _factory(data: bytes, filename: str = "artifact.bin") -> FileDescriptor:
        return FileDescriptor(filename=filename, sha256=hashlib.sha256(data).hexdigest())

    return _factory


@pytest.fixture
def make_zip() -> Callable[..., bytes]:
    """Factory fixture: zip bytes from ``{name: content}``; ``None`` content is a directory."""

    def _factory(entries: dict[str, bytes | None]) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as zf:
            for name, content in entries.items():
                if content is None:
                    zf.writestr(zipfile.ZipInfo(name.rstrip("/") + "/"), b"")
                else:
                    zf.writestr(zipfile.ZipInfo(name), content)
        return buffer.getvalue()

    return _factory


@pytest.fixture
def make_targz() -> Callable[..., bytes]:
    """Factory fixture: tar.gz bytes from ``{name: content}``.

    ``None`` content is a directory.  ``modes`` maps names to permission bits.
    """

    def _factory(
        entries: dict[str, bytes | None],
        modes: dict[str, int] | None = None,
        symlinks: dict[str, str] | None = None,
    ) -> bytes:
        modes = modes or {}
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w:gz") as tar:
            for name, content in entries.items():
                info = tarfile.TarInfo(name)
                if content is None:
                    info.type = tarfile.DIRTYPE
                    info.mode = modes.get(name, 0o755)
                    tar.addfile(info)
                else:
                    info.size = len(content)
                    info.mode = modes.get(name, 0o644)
                    tar.addfile(info, io.BytesIO(content))
            for name, target in (symlinks or {}).items():
                info = tarfile.TarInfo(name)
                info.type = tarfile.SYMTYPE
                info.linkname = target
                tar.addfile(info)
        return buffer.getvalue()

    return _factory


# ---------------------------------------------------------------------------
# Transports and servers
# ---------------------------------------------------------------------------


class CountingTransport:
    """Transport callable serving fixed bytes and counting invocations."""

    def __init__(self, payload: bytes | None) -> None:
        self.payload = payload
        self.calls = 0

    def __call__(self) -> BinaryIO | None:
        self.calls += 1
        if self.payload is None:
            return None
        return io.BytesIO(self.payload)


@pytest.fixture
def counting_transport() -> Callable[[bytes | None], CountingTransport]:
    """Factory fixture: a transport serving *payload* that counts its calls."""
    return CountingTransport


class FakeServer:
    """In-memory artifact server.

    ``metadata_failures`` makes the first N metadata requests return None.
    """

    def __init__(
        self,
        *,
        jre_archive: bytes = b"",
        jre_filename: str = "jre.tar.gz",
        java_path: str = "jre/bin/java",
        jre_sha256: str | None = None,
        engine_jar: bytes = b"engine-jar-bytes",
        engine_filename: str = "scanner-engine.jar",
        supports: bool = True,
        metadata_failures: int = 0,
    ) -> None:
        self.jre_archive = jre_archive
        self.jre_metadata = JreMetadata(
            id="jre-17-linux-x64",
            filename=jre_filename,
            sha256=jre_sha256 or hashlib.sha256(jre_archive).hexdigest(),
            java_path=java_path,
            os="linux",
            arch="x64",
        )
        self.engine_jar = engine_jar
        self.engine_metadata = EngineMetadata(
            filename=engine_filename,
            sha256=hashlib.sha256(engine_jar).hexdigest(),
        )
        self.supports = supports
        self.metadata_failures = metadata_failures
        self.metadata_requests = 0
        self.jre_downloads = 0
        self.engine_downloads = 0

    @property
    def supports_jre_provisioning(self) -> bool:
        return self.supports

    @property
    def supports_engine_provisioning(self) -> bool:
        return self.supports

    def _metadata_available(self) -> bool:
        self.metadata_requests += 1
        return self.metadata_requests > self.metadata_failures

    def download_jre_metadata(self, os_name: str, arch: str) -> JreMetadata | None:
        return self.jre_metadata if self._metadata_available() else None

    def download_jre(self, metadata: JreMetadata) -> BinaryIO | None:
        self.jre_downloads += 1
        return io.BytesIO(self.jre_archive)

    def download_engine_metadata(self) -> EngineMetadata | None:
        return self.engine_metadata if self._metadata_available() else None

    def download_engine(self, metadata: EngineMetadata) -> BinaryIO | None:
        self.engine_downloads += 1
        return io.BytesIO(self.engine_jar)


@pytest.fixture
def fake_server() -> Callable[..., FakeServer]:
    """Factory fixture: an in-memory artifact server."""
    return FakeServer


@pytest.fixture
def jre_archive(make_targz: Callable[..., bytes]) -> bytes:
    """A small JRE-shaped tar.gz with an executable java launcher."""
    return make_targz(
        {
            "jre": None,
            "jre/bin": None,
            "jre/bin/java": b"#!/bin/sh\necho java\n",
            "jre/lib/modules": b"modules",
        },
        modes={"jre/bin/java": 0o755},
    )
