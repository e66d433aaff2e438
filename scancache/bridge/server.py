"""Server bridge: artifact metadata and binaries from the analysis server.

Bridge boundary
---------------
Resolvers depend only on the :class:`ArtifactServer` protocol.  The
production implementation, :class:`HttpArtifactServer`, talks to the
server's v2 analysis API over ``httpx``:

* ``GET /api/v2/analysis/jres?os=<os>&arch=<arch>``: JRE metadata list
* ``GET /api/v2/analysis/jres/<id>``: JRE archive
  (``Accept: application/octet-stream``)
* ``GET /api/v2/analysis/engine``: engine metadata (JSON) or, with
  ``Accept: application/octet-stream``, the engine jar itself

Servers older than 10.6 do not offer these endpoints and report
provisioning as unsupported.

Metadata failures raise :class:`ServerError`.  Binary downloads return
``None`` on a non-success status so the cached downloader can classify it
as a transfer error; transport faults raise :class:`ServerError`.
"""

from __future__ import annotations

import io
import logging
from typing import Any, BinaryIO, Iterator, Protocol

import httpx
from pydantic import ValidationError

from scancache.models.descriptors import EngineMetadata, JreMetadata

logger = logging.getLogger(__name__)

PROVISIONING_MIN_VERSION: tuple[int, int] = (10, 6)

OCTET_STREAM = "application/octet-stream"


class ServerError(RuntimeError):
    """Raised when the server cannot be reached or answers with garbage."""


class ArtifactServer(Protocol):
    """What resolvers need from the analysis server."""

    @property
    def supports_jre_provisioning(self) -> bool: ...

    @property
    def supports_engine_provisioning(self) -> bool: ...

    def download_jre_metadata(self, os_name: str, arch: str) -> JreMetadata | None: ...

    def download_jre(self, metadata: JreMetadata) -> BinaryIO | None: ...

    def download_engine_metadata(self) -> EngineMetadata | None: ...

    def download_engine(self, metadata: EngineMetadata) -> BinaryIO | None: ...


def parse_version(text: str) -> tuple[int, ...]:
    """Parse ``"10.6.0.92116"`` into ``(10, 6, 0, 92116)``.

    Non-numeric components end the parse; ``""`` yields ``()``.
    """
    parts: list[int] = []
    for piece in text.strip().split("."):
        if not piece.isdigit():
            break
        parts.append(int(piece))
    return tuple(parts)


# ---------------------------------------------------------------------------
# Streaming adapter
# ---------------------------------------------------------------------------

class ResponseStream(io.RawIOBase):
    """Readable file-like view over a streaming ``httpx.Response``.

    Closing the stream closes the response and releases the connection.
    """

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self._chunks: Iterator[bytes] = response.iter_bytes()
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: Any) -> int:
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0
            except httpx.HTTPError as exc:
                raise ServerError(f"Download interrupted: {exc}") from exc
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size

    def close(self) -> None:
        if not self.closed:
            self._response.close()
        super().close()


# ---------------------------------------------------------------------------
# HTTP implementation
# ---------------------------------------------------------------------------

class HttpArtifactServer:
    """:class:`ArtifactServer` over the server's HTTP API.

    Parameters
    ----------
    base_url:
        Server root, e.g. ``"https://analysis.example.com"``.
    token:
        Bearer token; omitted from requests when empty.
    server_version:
        Known server version.  When empty, it is fetched once from
        ``/api/server/version`` on first use.
    timeout_seconds:
        Connect and read timeout for every request.
    transport:
        Optional ``httpx`` transport, e.g. ``httpx.MockTransport`` in tests.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: str = "",
        server_version: str = "",
        timeout_seconds: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.Client(
            base_url=base_url,
            headers=headers,
            timeout=timeout_seconds,
            transport=transport,
            follow_redirects=True,
        )
        self._version_text = server_version
        self._version: tuple[int, ...] | None = (
            parse_version(server_version) if server_version else None
        )

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    @property
    def version(self) -> tuple[int, ...]:
        if self._version is None:
            self._version = self._fetch_version()
        return self._version

    @property
    def supports_jre_provisioning(self) -> bool:
        return self.version >= PROVISIONING_MIN_VERSION

    @property
    def supports_engine_provisioning(self) -> bool:
        return self.version >= PROVISIONING_MIN_VERSION

    def _fetch_version(self) -> tuple[int, ...]:
        try:
            response = self._client.get("/api/server/version")
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.debug("Server version could not be retrieved: %s", exc)
            return ()
        self._version_text = response.text.strip()
        logger.debug("Server version is '%s'.", self._version_text)
        return parse_version(self._version_text)

    # ------------------------------------------------------------------
    # JRE
    # ------------------------------------------------------------------

    def download_jre_metadata(self, os_name: str, arch: str) -> JreMetadata | None:
        payload = self._get_json("/api/v2/analysis/jres", params={"os": os_name, "arch": arch})
        if not isinstance(payload, list) or not payload:
            logger.debug("No JRE is available for os '%s' and arch '%s'.", os_name, arch)
            return None
        try:
            return JreMetadata.model_validate(payload[0])
        except ValidationError as exc:
            raise ServerError(f"Malformed JRE metadata: {exc}") from exc

    def download_jre(self, metadata: JreMetadata) -> BinaryIO | None:
        return self._get_stream(f"/api/v2/analysis/jres/{metadata.id}")

    # ------------------------------------------------------------------
    # Scanner engine
    # ------------------------------------------------------------------

    def download_engine_metadata(self) -> EngineMetadata | None:
        payload = self._get_json("/api/v2/analysis/engine")
        if not isinstance(payload, dict):
            return None
        try:
            return EngineMetadata.model_validate(payload)
        except ValidationError as exc:
            raise ServerError(f"Malformed engine metadata: {exc}") from exc

    def download_engine(self, metadata: EngineMetadata) -> BinaryIO | None:
        return self._get_stream("/api/v2/analysis/engine")

    # ------------------------------------------------------------------
    # HTTP helpers
    # ------------------------------------------------------------------

    def _get_json(self, url: str, params: dict[str, str] | None = None) -> Any:
        try:
            response = self._client.get(url, params=params, headers={"Accept": "application/json"})
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as exc:
            raise ServerError(f"Request to '{url}' failed: {exc}") from exc
        except ValueError as exc:
            raise ServerError(f"Response from '{url}' is not valid JSON: {exc}") from exc

    def _get_stream(self, url: str) -> BinaryIO | None:
        request = self._client.build_request("GET", url, headers={"Accept": OCTET_STREAM})
        try:
            response = self._client.send(request, stream=True)
        except httpx.HTTPError as exc:
            raise ServerError(f"Request to '{url}' failed: {exc}") from exc
        if response.is_error:
            logger.debug("Download from '%s' returned status %d.", url, response.status_code)
            response.close()
            return None
        return io.BufferedReader(ResponseStream(response))  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpArtifactServer:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"HttpArtifactServer(base_url={str(self._client.base_url)!r})"
