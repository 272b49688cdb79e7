"""Configuration system for CQL Explorer.

Loads configuration from:
1. JSON file specified by CQL_EXPLORER_CONFIG env var
2. Environment variable overrides with CQL_EXPLORER_ prefix
   - Nested keys use double underscore: CQL_EXPLORER_CATALOG__PORT
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CatalogConfig(BaseSettings):
    """Configuration for the catalog connection."""

    model_config = SettingsConfigDict(
        env_prefix="CQL_EXPLORER_CATALOG__",
        env_nested_delimiter="__",
    )

    contact_points: list[str] = Field(
        default_factory=lambda: ["127.0.0.1"], description="Cluster contact points"
    )
    port: int = Field(default=9042, ge=1, le=65535, description="Native protocol port")
    username: str | None = Field(default=None, description="Username for password authentication")
    password: str | None = Field(default=None, description="Password for password authentication")
    local_datacenter: str | None = Field(
        default=None, description="Local datacenter for DC-aware load balancing"
    )
    connect_timeout: float = Field(
        default=5.0, gt=0, le=120, description="Connection timeout in seconds"
    )
    request_timeout: float = Field(
        default=10.0, gt=0, le=600, description="Timeout of catalog queries in seconds"
    )
    snapshot_path: str | None = Field(
        default=None,
        description="JSON catalog snapshot to serve instead of a live cluster",
    )


class FilterConfig(BaseSettings):
    """Default filters applied when loading the schema for the API."""

    model_config = SettingsConfigDict(
        env_prefix="CQL_EXPLORER_FILTERS__",
        env_nested_delimiter="__",
    )

    keyspace: str | None = Field(default=None, description="Load only this keyspace")
    table: str | None = Field(
        default=None, description="Load only this table (requires keyspace)"
    )


class ServerConfig(BaseSettings):
    """Configuration for the HTTP server."""

    model_config = SettingsConfigDict(
        env_prefix="CQL_EXPLORER_SERVER__",
        env_nested_delimiter="__",
    )

    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, ge=1, le=65535, description="Server port")


class OTelConfig(BaseSettings):
    """Configuration for OpenTelemetry."""

    model_config = SettingsConfigDict(
        env_prefix="CQL_EXPLORER_OTEL__",
        env_nested_delimiter="__",
    )

    enabled: bool = Field(default=False, description="Enable OpenTelemetry instrumentation")
    endpoint: str = Field(
        default="http://localhost:4317", description="OTLP exporter endpoint"
    )
    insecure: bool = Field(default=True, description="Use an insecure OTLP channel")
    service_name: str = Field(default="cql-explorer", description="Service name for traces")


class Settings(BaseSettings):
    """Root configuration for CQL Explorer."""

    model_config = SettingsConfigDict(
        env_prefix="CQL_EXPLORER_",
        env_nested_delimiter="__",
        env_file=None,
        extra="ignore",
    )

    catalog: CatalogConfig = Field(default_factory=CatalogConfig)
    filters: FilterConfig = Field(default_factory=FilterConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    otel: OTelConfig = Field(default_factory=OTelConfig)

    @model_validator(mode="before")
    @classmethod
    def load_from_json_file(cls, data: dict[str, Any]) -> dict[str, Any]:
        """Load configuration from JSON file if CQL_EXPLORER_CONFIG is set."""
        import os

        config_path = os.environ.get("CQL_EXPLORER_CONFIG")
        if config_path:
            path = Path(config_path)
            if not path.exists():
                raise ValueError(f"Config file not found: {config_path}")
            with path.open() as f:
                file_config = json.load(f)
            for key, value in file_config.items():
                if key not in data:
                    data[key] = value
                elif isinstance(value, dict) and isinstance(data.get(key), dict):
                    data[key] = {**value, **data[key]}
        return data


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get the application settings (cached)."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings, optionally from a specific config file.

    Args:
        config_path: Path to JSON config file. If None, uses CQL_EXPLORER_CONFIG env var.

    Returns:
        Loaded Settings instance.
    """
    import os

    if config_path is not None:
        os.environ["CQL_EXPLORER_CONFIG"] = str(config_path)

    global _settings
    _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset cached settings (useful for testing)."""
    global _settings
    _settings = None
