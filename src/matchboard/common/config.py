"""Application configuration loading and models."""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class StorageConfig(BaseModel):
    """Durable store configuration."""

    path: str = "data/presentation.db"
    matches_key: str = "presentation.matches"
    updated_key: str = "presentation.matches.updated"
    index_key: str = "presentation.current_index"


class PresentationApiConfig(BaseModel):
    """Remote presentation feed configuration."""

    base_url: str = ""  # Empty disables remote sync
    matches_path: str = "/api/presentation/matches"
    timeout_seconds: float = 15.0
    timezone: str = "Europe/Kyiv"  # Civil zone for the date parameter

    @property
    def is_configured(self) -> bool:
        """Check if a remote base address is set."""
        return bool(self.base_url.strip())


class SyncConfig(BaseModel):
    """Viewing context / sync loop configuration."""

    context_name: str = "kiosk"
    poll_interval_seconds: float = 1.0
    refresh_interval_seconds: float = 300.0
    change_retention_seconds: float = 86400.0  # Age after which change records are pruned


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "json"  # "json" or "console"
    log_file: str | None = None


class AppConfig(BaseModel):
    """Root application configuration."""

    environment: str = Field(default="dev", description="Environment name (dev/prod)")
    storage: StorageConfig = Field(default_factory=StorageConfig)
    presentation_api: PresentationApiConfig = Field(default_factory=PresentationApiConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: str | Path) -> AppConfig:
    """Load configuration from a YAML file with environment variable substitution.

    Environment variables can override config values. The following env vars are checked:
    - PRESENTATION_API_BASE: Base address of the remote presentation feed
    - PRESENTATION_DB_PATH: Path to the shared store file
    - LOG_LEVEL: Logging level

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Parsed AppConfig instance.

    Raises:
        FileNotFoundError: If the config file doesn't exist.
        ValueError: If the config file is invalid.
    """
    load_dotenv()

    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with open(path) as f:
        raw_config: dict[str, Any] = yaml.safe_load(f) or {}

    if not isinstance(raw_config, dict):
        raise ValueError(f"Configuration root must be a mapping: {path}")

    _apply_env_overrides(raw_config)

    return AppConfig(**raw_config)


def _apply_env_overrides(config: dict[str, Any]) -> None:
    """Apply environment variable overrides to config dict.

    Args:
        config: Configuration dictionary to modify in place.
    """
    for section in ("presentation_api", "storage", "logging"):
        if not isinstance(config.get(section), dict):
            config[section] = {}

    if api_base := os.environ.get("PRESENTATION_API_BASE"):
        config["presentation_api"]["base_url"] = api_base

    if db_path := os.environ.get("PRESENTATION_DB_PATH"):
        config["storage"]["path"] = db_path

    if log_level := os.environ.get("LOG_LEVEL"):
        config["logging"]["level"] = log_level
