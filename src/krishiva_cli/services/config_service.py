"""Configuration service for managing Krishiva CLI configuration.

ConfigService is the single source of truth for configuration. It handles:

- Loading and saving config.json
- Dotted-key reads and writes (``krishiva config set sync.interval 600``)
- Resolving the local database, session and sync-state file locations
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir, user_data_dir

from krishiva_cli.models.config_models import AppConfig

APP_NAME = "krishiva_cli"

logger = logging.getLogger(__name__)


class ConfigService:
    """Service for managing application configuration."""

    def __init__(self):
        """Initialize the config service."""

        self.config_dir = Path(user_config_dir(APP_NAME))
        self.config_path = self.config_dir / "config.json"
        self.data_dir = Path(user_data_dir(APP_NAME))

        # Ensure directories exist
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

        self._config: AppConfig | None = None

    @property
    def config(self) -> AppConfig:
        """Get or load the current configuration."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def load_config(self) -> AppConfig:
        """Load configuration from storage."""
        if self._config is not None:
            return self._config

        try:
            with open(self.config_path, encoding="utf-8") as f:
                self._config = AppConfig.model_validate_json(f.read())
        except FileNotFoundError:
            # First run
            logger.info("no config at %s, writing defaults", self.config_path)
            self._config = AppConfig()
            self.save_config()
        except Exception as e:
            raise RuntimeError(f"Failed to load config: {e}") from e

        return self._config

    def save_config(self) -> None:
        """Save the current configuration to storage."""
        if self._config is None:
            raise RuntimeError("No configuration to save")

        try:
            self.config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_path, "w", encoding="utf-8") as f:
                f.write(self._config.model_dump_json(indent=4))

            self.config_path.chmod(0o600)
        except Exception as e:
            raise RuntimeError(f"Failed to save config: {e}") from e

    def reset_config(self) -> AppConfig:
        """Reset configuration to defaults."""
        if self.config_path.exists():
            self.config_path.unlink()
        self._config = AppConfig()
        self.save_config()
        return self._config

    def get(self, key: str) -> Any:
        """Get a config value by dotted key."""
        return self.config.get_value(key)

    def set(self, key: str, value: Any) -> Any:
        """Set a config value by dotted key and persist it.

        Returns:
            The stored (validated) value
        """
        self._config = self.config.with_value(key, value)
        self.save_config()
        logger.info("config updated: %s", key)
        return self._config.get_value(key)

    @property
    def db_path(self) -> Path:
        """Path of the local SQLite vault."""
        configured = self.config.storage.db_path
        return Path(configured) if configured else self.data_dir / "krishiva.db"

    @property
    def session_path(self) -> Path:
        """Path of the key-value file holding the session snapshot."""
        configured = self.config.storage.session_file
        return Path(configured) if configured else self.data_dir / "storage.json"


@lru_cache(maxsize=1)
def get_config_service() -> ConfigService:
    """Get a cached ConfigService instance."""
    config_service = ConfigService()
    config_service.load_config()
    return config_service
