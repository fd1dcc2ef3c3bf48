"""
Configuration and parameter loading using Pydantic.

This module provides centralized configuration management for the tracker.
Parameters are loaded from YAML and validated using Pydantic models.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from keto_tracker.utils.exceptions import ConfigurationError


class TrackerConfig(BaseModel):
    """Domain defaults."""

    timezone: str = "UTC"
    default_target_ratio: float = 80.0


class LocalStoreConfig(BaseModel):
    """Local key/value store configuration."""

    path: str = "data/local_store"
    max_bytes: int | None = Field(None, gt=0, description="Total size quota for stored values")


class OAuth2Config(BaseModel):
    """OAuth2 authentication configuration."""

    credentials_path: str
    token_path: str
    scopes: list[str] = Field(default_factory=lambda: ["https://www.googleapis.com/auth/drive.file"])


class ServiceAccountConfig(BaseModel):
    """Service account authentication configuration."""

    credentials_path: str
    scopes: list[str] = Field(default_factory=lambda: ["https://www.googleapis.com/auth/drive"])


class DriveConfig(BaseModel):
    """Google Drive remote store configuration."""

    auth_method: str = Field(pattern="^(oauth2|service_account)$")
    oauth2: OAuth2Config | None = None
    service_account: ServiceAccountConfig | None = None
    root_folder_name: str = "keto-tracker"
    root_folder_id: str | None = None


class RemoteConfig(BaseModel):
    """Remote document store configuration."""

    backend: str = Field("memory", pattern="^(memory|drive)$")
    timeout_seconds: float = Field(10.0, gt=0)
    drive: DriveConfig | None = None


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: str | None = None
    console: bool = True


class AppConfig(BaseSettings):
    """Main application configuration."""

    tracker: TrackerConfig = Field(default_factory=TrackerConfig)
    local_store: LocalStoreConfig = Field(default_factory=LocalStoreConfig)
    remote: RemoteConfig = Field(default_factory=RemoteConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_prefix="KETO_", env_nested_delimiter="__", case_sensitive=False
    )


class ParameterLoader:
    """
    Centralized parameter loader for the application.

    Loads and validates configuration from YAML files using Pydantic models.
    """

    def __init__(self, config_path: str = "config/config.yaml") -> None:
        """
        Initialize parameter loader.

        Args:
            config_path: Path to the YAML configuration file.

        Raises:
            ConfigurationError: If configuration file cannot be loaded or is invalid.
        """
        self.config_path = Path(config_path)
        self.config: AppConfig
        self._load_config()

    def _load_config(self) -> None:
        if not self.config_path.exists():
            raise ConfigurationError(f"Configuration file not found: {self.config_path}")

        try:
            with open(self.config_path, encoding="utf-8") as f:
                config_dict = yaml.safe_load(f) or {}

            self.config = AppConfig(**config_dict)

        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse YAML configuration: {e}") from e
        except Exception as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        if self.config.remote.backend == "drive" and self.config.remote.drive is None:
            raise ConfigurationError("remote.backend is 'drive' but no remote.drive section given")

    def get_tracker_config(self) -> TrackerConfig:
        """Get domain defaults."""
        return self.config.tracker

    def get_local_store_config(self) -> LocalStoreConfig:
        """Get local store configuration."""
        return self.config.local_store

    def get_remote_config(self) -> RemoteConfig:
        """Get remote store configuration."""
        return self.config.remote

    def get_logging_config(self) -> LoggingConfig:
        """Get logging configuration."""
        return self.config.logging

    def get_raw_config(self) -> dict[str, Any]:
        """Get raw configuration dictionary."""
        return self.config.model_dump()
