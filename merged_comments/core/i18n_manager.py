"""Thread-safe singleton I18nManager for the plugin's text domain catalogues."""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict

PACKAGE_ROOT = Path(__file__).resolve().parent.parent
LOCALE_DIR = PACKAGE_ROOT / "resources" / "locales"

logger = logging.getLogger("merged_comments")


class I18nManager:
    """Thread-safe singleton manager for internationalization.

    Loads locale JSON files and provides thread-safe access to translated strings.
    Uses dot-notation keys (e.g., "widget.default_title") and supports
    placeholder substitution so translators can reorder arguments.
    """

    _instance = None
    _lock = threading.RLock()

    def __new__(cls):
        """Ensure only one instance exists (singleton pattern)."""
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._initialized = False
            return cls._instance

    def __init__(self):
        if self._initialized:
            return
        self._data: Dict[str, Any] = {}
        self._locale: str = "en_US"
        self._initialized = True

    def load_locale(self, locale: str) -> bool:
        """Load a locale JSON file.

        Args:
            locale: Locale identifier (e.g., "pl_PL") that maps to LOCALE_DIR/{locale}.json

        Returns:
            True if the catalogue was loaded.

        Thread-safe. If file not found or JSON parse error, logs warning and keeps current data.
        """
        with self._lock:
            locale_file = LOCALE_DIR / f"{locale}.json"

            if not locale_file.exists():
                logger.warning(f"Locale file not found: {locale_file}")
                return False

            try:
                with open(locale_file, "r", encoding="utf-8") as f:
                    self._data = json.load(f)
                    self._locale = locale
                logger.info(f"Loaded locale: {locale}")
                return True
            except json.JSONDecodeError as e:
                logger.warning(f"Failed to parse locale file {locale_file}: {e}")
            except Exception as e:
                logger.warning(f"Failed to load locale file {locale_file}: {e}")
            return False

    def get(self, key: str, **kwargs) -> str:
        """Get translated string by dot-notation key.

        Args:
            key: Dot-separated key path (e.g., "widget.default_title")
            **kwargs: Placeholder values for {placeholder} substitution

        Returns:
            Translated string with placeholders substituted, or the key itself if not found.

        Thread-safe. Never raises exceptions.

        Examples:
            get("widget.default_title") -> "Ostatnie komentarze"
            get("widget.comment_on_post", author="Ann", post="<a>...</a>") -> "Ann o <a>...</a>"
        """
        with self._lock:
            template = self._resolve(key)

            if not kwargs:
                return template

            try:
                return template.format_map(kwargs)
            except (KeyError, ValueError) as e:
                logger.warning(f"Failed to format i18n string for key '{key}': {e}")
                return template

    def has(self, key: str) -> bool:
        """Whether the loaded catalogue provides a string for key."""
        with self._lock:
            return self._resolve(key) != key

    @property
    def locale(self) -> str:
        with self._lock:
            return self._locale

    @classmethod
    def reset(cls) -> None:
        """Reset singleton instance (for testing)."""
        with cls._lock:
            cls._instance = None

    def _resolve(self, key: str) -> str:
        """Walk nested dict by dot-separated key.

        Internal helper method. Not thread-safe (caller must hold lock).
        """
        parts = key.split(".")
        node = self._data

        for part in parts:
            if isinstance(node, dict) and part in node:
                node = node[part]
            else:
                return key

        return node if isinstance(node, str) else key
