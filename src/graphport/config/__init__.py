"""Application configuration helpers."""

from __future__ import annotations

from .codec import CodecConfig, get_codec_config
from .errors import ConfigurationError
from .logging import configure_logging
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "CodecConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "StorageConfig",
    "configure_logging",
    "get_codec_config",
    "get_database_config",
    "get_storage_config",
]
