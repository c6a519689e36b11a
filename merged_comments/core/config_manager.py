"""Thread-safe singleton configuration manager for Merged Recent Comments."""

import logging
import threading
from pathlib import Path
from typing import Any

import yaml

from merged_comments.core.exceptions import ConfigError

logger = logging.getLogger("merged_comments")


SUPPORTED_LOCALES = ["en_US", "pl_PL"]

# Default configuration template
DEFAULT_CONFIG = {
    "app": {
        "locale": "en_US",
        "log_level": "INFO",
        "version": "1.0.0",
    },
    "host": {
        "backend": "sqlite",
        "db_path": "db/site.db",
        "rest": {
            "base_url": "http://localhost:8080",
            "timeout": 30,
            "options": {
                "permalink_structure": "/%year%/%monthnum%/%postname%/",
            },
        },
    },
    "language": {
        "provider": "auto",
        "current": "en",
        "wpml_compat": True,
    },
    "widget": {
        "title": "",
        "number": 5,
        "active": True,
        "args": {
            "before_widget": '<section class="widget widget_recent_comments">',
            "after_widget": "</section>",
            "before_title": '<h2 class="widget-title">',
            "after_title": "</h2>",
        },
    },
    "security": {
        "mask_logs": True,
    },
}


class ConfigManager:
    """Thread-safe singleton configuration manager.

    Manages plugin configuration with:
    - Singleton pattern ensuring only one instance exists
    - Thread-safe operations using RLock
    - Automatic settings.yaml creation if missing
    - Dot-notation key access (e.g., "host.backend")
    - Validation rules for critical settings
    """

    _instance = None
    _lock = threading.RLock()

    def __new__(cls):
        """Ensure singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize configuration manager."""
        # Prevent re-initialization
        if hasattr(self, '_initialized'):
            return

        with self._lock:
            if hasattr(self, '_initialized'):
                return

            # Path resolution
            self.PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
            self.CONFIG_PATH = self.PROJECT_ROOT / "config" / "settings.yaml"

            # Internal state
            self._config = {}
            self._instance_lock = threading.RLock()

            self._load_or_create_config()

            self._initialized = True

    def _load_or_create_config(self):
        """Load settings.yaml or create it from defaults."""
        if self.CONFIG_PATH.exists():
            try:
                with open(self.CONFIG_PATH, 'r', encoding='utf-8') as f:
                    self._config = yaml.safe_load(f) or {}
                logger.info(f"Loaded configuration from {self.CONFIG_PATH}")
            except yaml.YAMLError as e:
                logger.error(f"Failed to parse YAML at {self.CONFIG_PATH}: {e}")
                logger.warning("Using DEFAULT_CONFIG due to parse error")
                self._config = self._deep_copy(DEFAULT_CONFIG)
            except Exception as e:
                logger.error(f"Unexpected error loading config: {e}")
                logger.warning("Using DEFAULT_CONFIG")
                self._config = self._deep_copy(DEFAULT_CONFIG)
        else:
            logger.info(f"Config file not found at {self.CONFIG_PATH}")
            self.CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
            self._config = self._deep_copy(DEFAULT_CONFIG)
            self.save()
            logger.info(f"Created default configuration at {self.CONFIG_PATH}")

    def get(self, key: str, default=None) -> Any:
        """Get configuration value using dot-notation key.

        Args:
            key: Dot-separated key path (e.g., "host.backend")
            default: Value to return if key not found

        Returns:
            Configuration value or default

        Example:
            >>> config.get("host.backend")
            'sqlite'
            >>> config.get("widget.args.before_title")
            '<h2 class="widget-title">'
        """
        with self._instance_lock:
            parts = key.split('.')
            value = self._config

            for part in parts:
                if isinstance(value, dict) and part in value:
                    value = value[part]
                else:
                    return default

            return value

    def set(self, key: str, value: Any) -> None:
        """Set configuration value using dot-notation key.

        Note: This does NOT save to disk. Use save() to persist changes.
        """
        with self._instance_lock:
            parts = key.split('.')
            target = self._config

            for part in parts[:-1]:
                if part not in target:
                    target[part] = {}
                target = target[part]

            target[parts[-1]] = value

    def update(self, changes: dict) -> None:
        """Batch update configuration from flat dict of dot-notation keys.

        Applies validation rules and saves to disk once after all updates.

        Validation Rules:
            - app.locale: must be one of SUPPORTED_LOCALES
            - host.backend: "sqlite" or "rest"
            - language.provider: "auto", "polylang" or "wpml"
            - widget.number: integer, minimum 1
            - host.rest.timeout: minimum 5
        """
        with self._instance_lock:
            validated_changes = {}

            for key, value in changes.items():
                validated_value = self._validate_key_value(key, value)
                if validated_value is not None:
                    validated_changes[key] = validated_value

            for key, value in validated_changes.items():
                self.set(key, value)

            self.save()

    def _validate_key_value(self, key: str, value: Any) -> Any:
        """Apply validation rules to key-value pair.

        Returns:
            Validated value or None if invalid (will be ignored)
        """
        if key == "app.locale":
            if value not in SUPPORTED_LOCALES:
                logger.warning(f"Invalid locale '{value}'. Must be one of {SUPPORTED_LOCALES}. Ignoring.")
                return None
            return value

        if key == "host.backend":
            if value not in ("sqlite", "rest"):
                logger.warning(f"Invalid host backend '{value}'. Must be 'sqlite' or 'rest'. Ignoring.")
                return None
            return value

        if key == "language.provider":
            if value not in ("auto", "polylang", "wpml"):
                logger.warning(f"Invalid language provider '{value}'. Ignoring.")
                return None
            return value

        if key == "widget.number":
            try:
                number = int(value)
                if number < 1:
                    logger.warning(f"widget.number {number} < 1. Forcing to 5.")
                    return 5
                return number
            except (TypeError, ValueError):
                logger.warning(f"Invalid widget.number '{value}'. Must be int. Ignoring.")
                return None

        if key == "host.rest.timeout":
            try:
                timeout = int(value)
                if timeout < 5:
                    logger.warning(f"REST timeout {timeout} < 5. Forcing to 5.")
                    return 5
                return timeout
            except (TypeError, ValueError):
                logger.warning(f"Invalid timeout '{value}'. Must be int. Ignoring.")
                return None

        return value

    def save(self) -> None:
        """Write current configuration to settings.yaml."""
        with self._instance_lock:
            try:
                self.CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
                with open(self.CONFIG_PATH, 'w', encoding='utf-8') as f:
                    yaml.safe_dump(self._config, f, default_flow_style=False, sort_keys=False)
                logger.debug(f"Saved configuration to {self.CONFIG_PATH}")
            except Exception as e:
                logger.error(f"Failed to save configuration: {e}")
                raise ConfigError(f"Failed to save configuration: {e}")

    def get_db_path(self) -> Path:
        """Get absolute path of the SQLite host database (PROJECT_ROOT / host.db_path)."""
        with self._instance_lock:
            relative_db_path = self.get("host.db_path", "db/site.db")
            return self.PROJECT_ROOT / relative_db_path

    @classmethod
    def reset(cls) -> None:
        """Reset singleton instance (for testing)."""
        with cls._lock:
            cls._instance = None

    @staticmethod
    def _deep_copy(obj):
        """Create a deep copy of nested dict/list structures."""
        if isinstance(obj, dict):
            return {k: ConfigManager._deep_copy(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [ConfigManager._deep_copy(item) for item in obj]
        else:
            return obj
