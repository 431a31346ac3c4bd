"""Configuration module for jarvis-connector.

Provides centralized configuration management using:
- Environment variables for deployment settings
- YAML files for file-based configuration
- Pydantic for validation
"""

from config.settings import (
    Settings,
    get_settings,
    GerritConfig,
    PipelineConfig,
    ConnectorConfig,
    LoggingConfig,
)

__all__ = [
    "Settings",
    "get_settings",
    "GerritConfig",
    "PipelineConfig",
    "ConnectorConfig",
    "LoggingConfig",
]
