"""Configuration loading.

Settings come from environment variables (and an optional ``.env`` file).
The DSN follows the exporter convention of ``DATA_SOURCE_NAME`` and also
supports the Docker Secrets pattern (``DATA_SOURCE_NAME_FILE``).
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from oracledb_exporter.exceptions import ConfigurationError

RESERVED_PATHS = ("/", "/health")


class Settings(BaseSettings):
    """Runtime configuration derived from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ORACLEDB_EXPORTER_",
        env_file=".env",
        extra="ignore",
    )

    data_source_name: str = Field(
        "",
        description="Oracle connection string, e.g. user/password@host:1521/service",
        validation_alias=AliasChoices("DATA_SOURCE_NAME", "ORACLEDB_EXPORTER_DATA_SOURCE_NAME"),
    )
    listen_address: str = Field(":9161", description="Address to listen on for web interface and telemetry")
    metrics_path: str = Field("/metrics", description="Path under which to expose metrics")
    log_level: str = Field("INFO", description="Application log level")
    log_format: Literal["json", "console"] = Field("json", description="Log output format")
    describe_on_start: bool = Field(
        True,
        description="Run one collection pass at startup to register metric descriptors",
    )

    @field_validator("metrics_path")
    @classmethod
    def check_metrics_path(cls, value: str) -> str:
        if not value.startswith("/"):
            raise ValueError("metrics path must start with '/'")
        if value in RESERVED_PATHS:
            raise ValueError(f"metrics path cannot be one of {RESERVED_PATHS}")
        return value

    @model_validator(mode="after")
    def read_dsn_file(self) -> Settings:
        # DATA_SOURCE_NAME_FILE only applies when no DSN was given directly
        dsn_file = os.getenv("DATA_SOURCE_NAME_FILE")
        if dsn_file and not self.data_source_name:
            path = Path(dsn_file)
            if path.exists():
                self.data_source_name = path.read_text().strip()
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()


def split_listen_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` into its parts; an empty host means all interfaces.

    Raises:
        ConfigurationError: if the port is missing or not a valid port number
    """
    host, sep, port_str = address.rpartition(":")
    if not sep:
        raise ConfigurationError(f"listen address {address!r} must be of the form [host]:port")
    try:
        port = int(port_str)
    except ValueError as e:
        raise ConfigurationError(f"invalid port in listen address {address!r}") from e
    if not 0 < port <= 65535:
        raise ConfigurationError(f"port out of range in listen address {address!r}")
    return host.strip("[]") or "0.0.0.0", port
