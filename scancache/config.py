"""Runtime configuration, env-driven.

Centralized settings using pydantic-settings. Reads from a .env file and
SCANCACHE_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseSettings):
    """Cache and provisioning settings with environment variable overrides.

    All settings can be overridden via SCANCACHE_* environment variables
    or a .env file in the working directory.

    Examples
    --------
    Override via environment::

        export SCANCACHE_USER_HOME=/var/cache/scanner
        export SCANCACHE_LOG_LEVEL=DEBUG
        export SCANCACHE_SKIP_JRE_PROVISIONING=true

    Or via .env file::

        SCANCACHE_SERVER_URL=https://analysis.example.com
        SCANCACHE_TOKEN=squ_0123456789
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SCANCACHE_",
        env_file_encoding="utf-8",
    )

    # Runtime
    log_level: str = "INFO"
    debug: bool = False

    # Storage
    user_home: Path = Path.home() / ".scancache"

    # Server connection
    server_url: str = ""
    server_version: str = ""
    token: str = ""
    http_timeout_seconds: float = 60.0

    # Platform (auto-detected when empty)
    os_name: str = ""
    architecture: str = ""

    # JRE provisioning
    java_exe_path: Path | None = None
    skip_jre_provisioning: bool = False

    # Scanner engine provisioning
    engine_jar_path: Path | None = None
    skip_engine_provisioning: bool = False

    # Total attempts per resolution (first try plus retries)
    resolve_attempts: int = 2

    @property
    def cache_root(self) -> Path:
        """Directory holding one sub-directory per content hash."""
        return self.user_home / "cache"

