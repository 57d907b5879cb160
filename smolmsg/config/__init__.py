"""Configuration management"""

from .app_config import AppConfig, ListConfig, ScanConfig, StorageConfig
from .config_loader import ConfigError, ConfigLoader

__all__ = [
    "AppConfig",
    "ListConfig",
    "ScanConfig",
    "StorageConfig",
    "ConfigError",
    "ConfigLoader",
]
