"""Artifact identity models: what the server advertises and what the cache keys on."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class FileDescriptor(BaseModel):
    """Identifies exactly one artifact version in the cache.

    The ``sha256`` digest is the cache partition key; two descriptors with
    the same digest always refer to byte-identical content.
    """

    model_config = ConfigDict(frozen=True)

    filename: str
    sha256: str

    @field_validator("filename")
    @classmethod
    def _bare_name(cls, value: str) -> str:
        if not value or value in (".", "..") or "/" in value or "\\" in value:
            raise ValueError(f"filename must be a bare file name, got {value!r}")
        return value

    @field_validator("sha256")
    @classmethod
    def _non_empty_digest(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("sha256 must not be empty")
        return value.strip()


class JreMetadata(BaseModel):
    """JRE package advertised by the server for one OS/architecture pair.

    ``java_path`` is the location of the java executable relative to the
    root of the extracted archive.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    filename: str
    sha256: str
    java_path: str = Field(alias="javaPath")
    download_url: str | None = Field(default=None, alias="downloadUrl")
    os: str = ""
    arch: str = ""

    def to_descriptor(self) -> FileDescriptor:
        return FileDescriptor(filename=self.filename, sha256=self.sha256)


class EngineMetadata(BaseModel):
    """Scanner engine jar advertised by the server."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    filename: str
    sha256: str
    download_url: str | None = Field(default=None, alias="downloadUrl")

    def to_descriptor(self) -> FileDescriptor:
        return FileDescriptor(filename=self.filename, sha256=self.sha256)
