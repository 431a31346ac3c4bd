"""Pydantic settings for configuration management."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import yaml


class GerritConfig(BaseSettings):
    """Gerrit server configuration."""

    model_config = SettingsConfigDict(env_prefix="GERRIT_")

    url: str = Field(default="", description="URL of the Gerrit host")
    auth_file: Path | None = Field(
        default=None,
        description="File containing user:password for the Gerrit REST API",
    )
    user_agent: str = Field(default="JarvisConnector", description="User-Agent header")
    timeout: float = Field(default=30.0, description="HTTP request timeout in seconds")
    debug: bool = Field(default=False, description="Ask Gerrit to trace every request")

    @field_validator("url")
    @classmethod
    def normalize_url(cls, v: str) -> str:
        """Strip surrounding whitespace so an empty value stays empty."""
        return v.strip()


class PipelineConfig(BaseSettings):
    """Pipeline trigger (Tekton EventListener) configuration."""

    model_config = SettingsConfigDict(env_prefix="PIPELINE_")

    event_listener_url: str = Field(default="", description="URL of the Tekton EventListener")
    timeout: float = Field(default=30.0, description="HTTP request timeout in seconds")


class ConnectorConfig(BaseSettings):
    """Dispatch engine configuration."""

    model_config = SettingsConfigDict(env_prefix="CONNECTOR_")

    scheme: str = Field(default="jarvis", description="Checker scheme owned by this connector")
    poll_interval: float = Field(default=10.0, description="Seconds between polls")
    check_queue_size: int = Field(default=5, description="Capacity of the pending check queue")
    submit_queue_size: int = Field(default=5, description="Capacity of the pending submission queue")
    lock_mode: Literal["label", "hashtag"] = Field(
        default="label",
        description="Mark claimed changes with a label vote or a hashtag",
    )
    lock_label: str = Field(default="Jarvis-Lock", description="Label voted +1 to lock a change")
    merge_hashtag: str = Field(default="jarvis-merge", description="Hashtag used to lock a change")
    running_message: str = Field(
        default="Jarvis about to submit job to tekton",
        description="Message posted with the RUNNING check state",
    )

    @field_validator("poll_interval")
    @classmethod
    def validate_poll_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("poll_interval must be positive")
        return v

    @field_validator("check_queue_size", "submit_queue_size")
    @classmethod
    def validate_queue_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError("queue size must be at least 1")
        return v

    @field_validator("scheme")
    @classmethod
    def validate_scheme(cls, v: str) -> str:
        if not v or ":" in v:
            raise ValueError("scheme must be non-empty and must not contain ':'")
        return v


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Log level")
    format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )
    file: Path | None = Field(
        default=None,
        description="Log file path (None for stdout only)",
    )
    rotate_size_mb: int = Field(
        default=10,
        description="Log file rotation size in MB",
    )
    retain_count: int = Field(
        default=5,
        description="Number of rotated log files to retain",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {v!r}")
        return level


class Settings(BaseSettings):
    """Main settings class combining all configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    gerrit: GerritConfig = Field(default_factory=GerritConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    connector: ConnectorConfig = Field(default_factory=ConnectorConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from YAML file.

        Args:
            path: Path to YAML configuration file

        Returns:
            Settings instance
        """
        path = Path(path)
        if not path.exists():
            return cls()

        with open(path) as f:
            config_dict = yaml.safe_load(f) or {}

        return cls(**config_dict)

    def to_yaml(self, path: str | Path) -> None:
        """Save settings to YAML file.

        Args:
            path: Path to save configuration
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        config_dict = self.model_dump(mode="json")

        with open(path, "w") as f:
            yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings instance
    """
    # Try to load from config file first
    config_path = Path("config/connector.yaml")
    if config_path.exists():
        return Settings.from_yaml(config_path)

    return Settings()
