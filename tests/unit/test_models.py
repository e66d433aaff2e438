"""Tests for descriptors and result models: validation, immutability, matching."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from scancache.models.descriptors import EngineMetadata, FileDescriptor, JreMetadata
from scancache.models.results import (
    CacheHit,
    CacheMiss,
    DownloadError,
    ErrorKind,
    ResolutionError,
    ResolutionSuccess,
    unreachable,
)


class TestFileDescriptor:
    def test_valid(self):
        descriptor = FileDescriptor(filename="jre.tar.gz", sha256="abc")
        assert descriptor.filename == "jre.tar.gz"

    @pytest.mark.parametrize("filename", ["", ".", "..", "a/b", "a\\b", "../x"])
    def test_rejects_non_bare_names(self, filename: str):
        with pytest.raises(ValidationError):
            FileDescriptor(filename=filename, sha256="abc")

    def test_rejects_empty_digest(self):
        with pytest.raises(ValidationError):
            FileDescriptor(filename="x", sha256="  ")

    def test_frozen(self):
        descriptor = FileDescriptor(filename="x", sha256="abc")
        with pytest.raises(ValidationError):
            descriptor.sha256 = "def"

    def test_equal_by_value(self):
        assert FileDescriptor(filename="x", sha256="a") == FileDescriptor(filename="x", sha256="a")


class TestMetadata:
    def test_jre_from_server_json(self):
        metadata = JreMetadata.model_validate(
            {"id": "1", "filename": "jre.zip", "sha256": "abc", "javaPath": "bin/java.exe", "downloadUrl": None}
        )
        assert metadata.java_path == "bin/java.exe"
        assert metadata.to_descriptor() == FileDescriptor(filename="jre.zip", sha256="abc")

    def test_engine_descriptor(self):
        metadata = EngineMetadata(filename="engine.jar", sha256="abc")
        assert metadata.to_descriptor().filename == "engine.jar"


class TestResults:
    def test_kinds(self):
        assert CacheHit(path=Path("x")).kind == "hit"
        assert CacheMiss().kind == "miss"
        assert ResolutionSuccess(path=Path("x")).kind == "success"

    def test_download_error_defaults_to_transfer(self):
        assert DownloadError(message="boom").error_kind is ErrorKind.TRANSFER

    @pytest.mark.parametrize(
        "kind, retryable",
        [
            (ErrorKind.DIRECTORY, False),
            (ErrorKind.UNSUPPORTED_ARCHIVE, False),
            (ErrorKind.UNSUPPORTED_SERVER, False),
            (ErrorKind.DISABLED, False),
            (ErrorKind.CHECKSUM_MISMATCH, True),
            (ErrorKind.TRANSFER, True),
            (ErrorKind.EXTRACTION, True),
            (ErrorKind.METADATA, True),
        ],
    )
    def test_retryable(self, kind: ErrorKind, retryable: bool):
        assert ResolutionError(message="m", error_kind=kind).retryable is retryable

    def test_soft_failures(self):
        assert ResolutionError(message="m", error_kind=ErrorKind.DISABLED).is_soft
        assert not ResolutionError(message="m", error_kind=ErrorKind.TRANSFER).is_soft

    def test_unreachable_raises(self):
        with pytest.raises(AssertionError):
            unreachable(object())
