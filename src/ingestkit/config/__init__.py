"""
Configuration management with typed Pydantic models.

Provides ingestion defaults and environment-aware configuration loading.
"""

from ingestkit.config.loader import load_config
from ingestkit.config.settings import EngineConfig, LoggingConfig, TextDefaults

__all__ = [
    "EngineConfig",
    "LoggingConfig",
    "TextDefaults",
    "load_config",
]
