"""Configuration file schema for timeline-sync.

Pydantic models for the YAML config file, with one section per concern
(remote API, local files, logging).  ``yaml_fallbacks()`` flattens a
validated file into the plain dict that ``config.load_config()`` uses as
its lowest-precedence source.

Usage:
    from timeline_sync.config_loader import load_hierarchical_config
    from timeline_sync.config_schema import build_config, yaml_fallbacks

    unified = build_config(load_hierarchical_config())
    config = load_config(yaml_fallbacks=yaml_fallbacks(unified))
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class RemoteConfig(BaseModel):
    """Production API settings.

    All fields are optional so that env vars and CLI args can supply them
    at runtime instead.
    """

    api_url: str | None = Field(
        default=None, description="Base URL of the project API"
    )
    insecure: bool = Field(
        default=False,
        description="Disable SSL verification (development only)",
    )
    request_delay: float = Field(
        default=0.1,
        ge=0,
        le=10,
        description="Seconds to wait after each remote write (0-10)",
    )
    connect_timeout: float = Field(default=10.0, gt=0)
    read_timeout: float = Field(default=60.0, gt=0)

    model_config = {"frozen": True}


class LocalConfig(BaseModel):
    """Local database and snapshot file locations."""

    local_db: str | None = Field(
        default=None, description="SQLite database of the local app"
    )
    local_data_file: str | None = None
    download_file: str | None = None
    backup_dir: str | None = None

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
        format: ``text`` or ``json``.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")
    format: str = Field(default="text", pattern="^(text|json)$")
    debug: bool = False

    model_config = {"frozen": True}


class UnifiedConfig(BaseModel):
    """Top-level config file model.

    Every section has defaults, so ``UnifiedConfig()`` (zero-config) is
    always valid.
    """

    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    local: LocalConfig = Field(default_factory=LocalConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the merged YAML dict.

    Missing sections get defaults; an empty dict yields zero-config.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


def yaml_fallbacks(unified: UnifiedConfig) -> dict[str, Any]:
    """Flatten the remote and local sections into ``load_config`` fallbacks.

    ``None`` values are dropped so they never shadow a built-in default.
    """
    merged = {
        **unified.remote.model_dump(),
        **unified.local.model_dump(),
        "debug": unified.logging.debug,
    }
    return {key: value for key, value in merged.items() if value is not None}
