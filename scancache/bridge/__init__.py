"""Bridge layer between scancache and the analysis server.

Modules
-------
server
    ``ArtifactServer`` protocol consumed by resolvers, and the ``httpx``
    backed ``HttpArtifactServer`` that serves JRE and engine metadata and
    binaries.

Resolvers never import ``httpx`` directly; tests substitute an in-memory
server or an ``httpx.MockTransport``.
"""
