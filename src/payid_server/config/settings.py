"""Application settings.

Sources, highest priority first:

1. Environment variables: ``PAYID_`` prefix, ``__`` between nested keys
   (``PAYID_DB__DSN``, ``PAYID_API__PRIVATE_API_VERSION``).
2. A YAML file named by ``PAYID_CONFIG_PATH`` or passed to
   :meth:`AppConfig.from_yaml`. Nested mappings are merged key by key.
3. The defaults below.
"""

from __future__ import annotations

import enum
from datetime import date
from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseEngine(enum.StrEnum):
    SQLITE = "sqlite"
    POSTGRESQL = "postgresql"


class LogLevel(enum.StrEnum):
    """Log levels accepted by uvicorn."""

    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    DEBUG = "debug"


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


class ServerConfig(BaseModel):
    """Where the private API listens."""

    host: str = "0.0.0.0"  # noqa: S104
    port: int = Field(default=8081, ge=1, le=65535)


class DatabaseConfig(BaseModel):
    """Record store backend and its limits."""

    engine: DatabaseEngine = DatabaseEngine.SQLITE
    dsn: str = Field(
        default="sqlite+aiosqlite:///./payid.db",
        description="SQLAlchemy async URL",
    )
    max_idle_connections: int = Field(default=5, ge=1)
    max_open_connections: int = Field(default=10, ge=1)
    pool_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds to wait for a pooled connection",
    )
    lock_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Seconds a write waits for the store's write lock",
    )
    debug_sql: bool = False

    @model_validator(mode="after")
    def _check_pool(self) -> Self:
        if self.max_open_connections < self.max_idle_connections:
            msg = "max_open_connections must be >= max_idle_connections"
            raise ValueError(msg)
        return self


class APIConfig(BaseModel):
    """Private API contract settings."""

    private_api_version: str = "2020-05-28"
    require_version_header: bool = True

    @field_validator("private_api_version")
    @classmethod
    def _check_version(cls, value: str) -> str:
        date.fromisoformat(value)
        return value


class MetricsConfig(BaseModel):
    enabled: bool = True


# ---------------------------------------------------------------------------
# Top level
# ---------------------------------------------------------------------------


def _load_yaml(path: str | Path) -> dict[str, Any]:
    """Read a YAML mapping; a missing, empty or non-mapping file yields ``{}``."""
    p = Path(path)
    if not p.is_file():
        return {}
    data = yaml.safe_load(p.read_text(encoding="utf-8"))
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        elif value is not None:
            merged[key] = value
    return merged


class AppConfig(BaseSettings):
    """Top-level configuration for the PayID server."""

    model_config = SettingsConfigDict(
        env_prefix="PAYID_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    debug: bool = False
    log_level: LogLevel = LogLevel.INFO
    config_path: str = ""

    server: ServerConfig = Field(default_factory=ServerConfig)
    db: DatabaseConfig = Field(default_factory=DatabaseConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)

    @model_validator(mode="before")
    @classmethod
    def _merge_yaml(cls, values: dict[str, Any]) -> dict[str, Any]:
        config_path = values.get("config_path")
        if not config_path:
            return values
        return _deep_merge(_load_yaml(config_path), values)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Self:
        """Load *path* underneath the environment; env vars still win."""
        return cls(config_path=str(path))
