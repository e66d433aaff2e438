"""Provisioning telemetry: a flat key/value record of what each resolver did.

Values are fixed enumerations so downstream consumers can aggregate them.
The record serializes to canonical JSON (sorted keys, compact separators)
so two runs with identical outcomes produce identical bytes.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)


class TelemetryKey(str, Enum):
    JRE_BOOTSTRAPPING = "JreBootstrapping"
    JRE_DOWNLOAD = "JreDownload"
    ENGINE_DOWNLOAD = "EngineDownload"


class JreBootstrapping(str, Enum):
    """Whether JRE provisioning was attempted, and if not, why."""

    ENABLED = "Enabled"
    DISABLED = "Disabled"
    UNSUPPORTED_BY_SERVER = "UnsupportedByServer"
    UNSUPPORTED_NO_OS = "UnsupportedNoOS"
    UNSUPPORTED_NO_ARCH = "UnsupportedNoArch"


class ArtifactDownload(str, Enum):
    """How a provisioned artifact was obtained."""

    CACHE_HIT = "CacheHit"
    DOWNLOADED = "Downloaded"
    FAILED = "Failed"
    USER_SUPPLIED = "UserSupplied"


class Telemetry:
    """In-memory telemetry record.  Later writes to a key replace earlier ones."""

    def __init__(self) -> None:
        self._values: dict[str, str] = {}

    def record(self, key: TelemetryKey, value: Enum) -> None:
        logger.debug("Telemetry %s=%s", key.value, value.value)
        self._values[key.value] = value.value

    def get(self, key: TelemetryKey) -> str | None:
        return self._values.get(key.value)

    def as_dict(self) -> dict[str, str]:
        return dict(self._values)

    def to_json(self) -> bytes:
        """Canonical JSON bytes: sorted keys, no whitespace, ASCII only."""
        return json.dumps(
            self._values, sort_keys=True, separators=(",", ":"), ensure_ascii=True
        ).encode("utf-8")

    def write(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.to_json())

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Telemetry({self._values!r})"
