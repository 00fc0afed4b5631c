"""Application settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. Environment variables (INDEXSYNC_ prefix)
  2. YAML config file (if specified)
  3. Default values
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

# Set by the CLI so the app factory in the server process loads the same file
CONFIG_ENV_VAR = "INDEXSYNC_CONFIG_FILE"
DEFAULT_CONFIG_FILE = "indexsync-config.yaml"


class ServerSettings(BaseModel):
    """HTTP server configuration."""

    host: str = Field(default="0.0.0.0", description="Server bind address")
    port: int = Field(default=8080, description="Server port")
    workers: int = Field(default=1, description="Number of worker processes")
    cors_origins: list[str] = Field(default=["*"], description="Allowed CORS origins")
    client_app_name: str = Field(default="indexsyncApp", description="Prefix used in alert response headers")


class IndexSettings(BaseModel):
    """Search index (derived store) configuration."""

    adapter: str = Field(default="memory", description="Index adapter name: memory, opensearch")
    hosts: list[str] = Field(default_factory=list, description="Search engine node URLs")
    index_name: str = Field(default="products", description="Name of the index holding product documents")
    username: str | None = Field(default=None, description="Authentication username")
    password: str | None = Field(default=None, description="Authentication password")
    verify_certs: bool = Field(default=True, description="Verify TLS certificates")
    refresh: str = Field(
        default="false",
        description="Refresh policy for index writes: 'true', 'false' or 'wait_for'",
    )
    extra: dict[str, Any] = Field(default_factory=dict, description="Adapter-specific options")

    @field_validator("hosts", mode="before")
    @classmethod
    def _parse_hosts(cls, v: Any) -> list[str]:
        """Parse hosts from JSON string (env var) or list."""
        if isinstance(v, str):
            import json

            try:
                parsed = json.loads(v)
                if isinstance(parsed, list):
                    return [str(h) for h in parsed]
            except (json.JSONDecodeError, TypeError):
                pass
            # Single host as plain string
            return [v] if v else []
        return list(v)


class SyncSettings(BaseModel):
    """Index mirroring behaviour."""

    max_attempts: int = Field(default=3, ge=1, le=20, description="Attempts per index mutation before giving up")
    initial_backoff: float = Field(default=0.2, ge=0, description="Delay before the first retry in seconds")
    max_backoff: float = Field(default=5.0, ge=0, description="Upper bound on the retry delay in seconds")
    queue_size: int = Field(default=100, ge=1, description="Pending mutations allowed per record id")
    failure_history: int = Field(default=100, ge=0, description="Number of recent sync failures kept for inspection")


class CacheSettings(BaseModel):
    """Record cache configuration."""

    enabled: bool = Field(default=True, description="Cache single-record lookups")
    backend: str = Field(default="memory", description="Cache backend: memory, redis")
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    ttl: int = Field(default=3600, description="Entry time-to-live in seconds")


class BuildSettings(BaseModel):
    """Build metadata used to namespace cache keys."""

    git_commit: str | None = Field(default=None, description="Short source-control revision")
    build_time: str | None = Field(default=None, description="ISO-8601 build timestamp")
    version: str | None = Field(default=None, description="Build version")


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class Settings(BaseSettings):
    """Root application settings.

    Configuration is loaded from environment variables with the INDEXSYNC_ prefix.
    Nested settings use double underscores: INDEXSYNC_SERVER__PORT=9090

    Example:
        INDEXSYNC_INDEX__ADAPTER=opensearch
        INDEXSYNC_INDEX__HOSTS='["https://localhost:9200"]'
        INDEXSYNC_SYNC__MAX_ATTEMPTS=5
    """

    model_config = {
        "env_prefix": "INDEXSYNC_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    # Application metadata
    app_name: str = Field(default="indexsync", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    # Component settings
    server: ServerSettings = Field(default_factory=ServerSettings)
    index: IndexSettings = Field(default_factory=IndexSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    build: BuildSettings = Field(default_factory=BuildSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Values from the YAML file are used as defaults; environment variables
        still take precedence.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated Settings instance.
        """
        import yaml  # type: ignore[import-untyped]

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)
