"""Configuration loader for application settings."""

import json
import os
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .app_config import AppConfig

MSGDIR_ENV = "SMSG_MSGDIR"


class ConfigError(Exception):
    """Raised when a configuration file cannot be loaded."""

    pass


class ConfigLoader:
    """Load and validate application configuration."""

    DEFAULT_CONFIG_PATHS = [
        Path("~/.smolmsg/config.json"),
        Path("config/app_config.json"),
    ]

    def __init__(self, config_path: Optional[Path] = None, msgdir: Optional[str] = None):
        """
        Initialize configuration loader.

        Args:
            config_path: Optional custom config file path
            msgdir: Message directory override (takes precedence over the
                SMSG_MSGDIR environment variable and the config file)
        """
        self.config_path = config_path
        self.msgdir = msgdir
        self._config: Optional[AppConfig] = None

    def load_app_config(self) -> AppConfig:
        """
        Load application configuration from file.

        Returns:
            AppConfig instance

        Raises:
            ConfigError: If a config file exists but is invalid
        """
        if self._config is not None:
            return self._config

        config = self._load_file()

        msgdir = self.msgdir or os.environ.get(MSGDIR_ENV)
        if msgdir:
            config.storage.msgdir = msgdir

        self._config = config
        return self._config

    def _load_file(self) -> AppConfig:
        config_paths = [self.config_path] if self.config_path else self.DEFAULT_CONFIG_PATHS

        for config_path in config_paths:
            if config_path and config_path.expanduser().exists():
                try:
                    with open(config_path.expanduser(), "r", encoding="utf-8") as f:
                        config_data = json.load(f)
                    return AppConfig(**config_data)
                except (json.JSONDecodeError, ValidationError, TypeError) as e:
                    raise ConfigError(f"Invalid config in {config_path}: {e}") from e

        if self.config_path:
            raise ConfigError(f"Config file not found: {self.config_path}")

        # Return default config if no file found
        return AppConfig()

    def reload(self) -> AppConfig:
        """Reload configuration from file."""
        self._config = None
        return self.load_app_config()
