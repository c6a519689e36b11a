"""Tests for ConfigManager."""

import threading
from pathlib import Path

import yaml
import pytest

from merged_comments.core.config_manager import ConfigManager, DEFAULT_CONFIG
from merged_comments.core.exceptions import ConfigError


def make_unloaded(tmp_dir):
    ConfigManager.reset()
    cm = ConfigManager.__new__(ConfigManager)
    cm.PROJECT_ROOT = tmp_dir
    cm.CONFIG_PATH = tmp_dir / "config" / "settings.yaml"
    cm._config = {}
    cm._instance_lock = threading.RLock()
    return cm


def make_loaded(tmp_dir):
    cm = make_unloaded(tmp_dir)
    cm.CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
    cm._config = ConfigManager._deep_copy(DEFAULT_CONFIG)
    cm._initialized = True
    ConfigManager._instance = cm
    return cm


class TestConfigManagerInit:
    """Test configuration loading and creation."""

    def test_creates_default_config_when_missing(self, tmp_dir):
        cm = make_unloaded(tmp_dir)
        cm._load_or_create_config()

        assert cm.CONFIG_PATH.exists()
        with open(cm.CONFIG_PATH, 'r') as f:
            saved = yaml.safe_load(f)
        assert saved["host"]["backend"] == "sqlite"
        assert saved["widget"]["number"] == 5

    def test_loads_existing_config(self, config_file, tmp_dir):
        with open(config_file, 'w') as f:
            yaml.safe_dump({"host": {"backend": "rest", "rest": {"base_url": "https://site.example"}}}, f)

        cm = make_unloaded(tmp_dir)
        cm._load_or_create_config()

        assert cm.get("host.backend") == "rest"
        assert cm.get("host.rest.base_url") == "https://site.example"

    def test_uses_defaults_on_invalid_yaml(self, tmp_dir):
        cm = make_unloaded(tmp_dir)
        cm.CONFIG_PATH.parent.mkdir(parents=True)
        cm.CONFIG_PATH.write_text("{{invalid yaml: [")

        cm._load_or_create_config()

        assert cm.get("app.locale") == "en_US"

    def test_singleton(self, tmp_dir):
        cm = make_loaded(tmp_dir)
        assert ConfigManager() is cm


class TestConfigManagerGetSet:
    def test_get_nested_key(self, tmp_dir):
        cm = make_loaded(tmp_dir)
        assert cm.get("widget.args.before_title") == '<h2 class="widget-title">'

    def test_get_missing_key_returns_default(self, tmp_dir):
        cm = make_loaded(tmp_dir)
        assert cm.get("nonexistent.key") is None
        assert cm.get("nonexistent.key", "fallback") == "fallback"

    def test_set_creates_nested_path(self, tmp_dir):
        cm = make_loaded(tmp_dir)
        cm.set("widget.args.extra", "x")
        assert cm.get("widget.args.extra") == "x"

    def test_deep_copy_isolated_from_defaults(self, tmp_dir):
        cm = make_loaded(tmp_dir)
        cm.set("widget.args.before_title", "<h4>")
        assert DEFAULT_CONFIG["widget"]["args"]["before_title"] == '<h2 class="widget-title">'


class TestConfigManagerValidation:
    def test_invalid_locale_ignored(self, tmp_dir):
        cm = make_loaded(tmp_dir)
        cm.update({"app.locale": "fr_FR"})
        assert cm.get("app.locale") == "en_US"

    def test_valid_locale_accepted_and_saved(self, tmp_dir):
        cm = make_loaded(tmp_dir)
        cm.update({"app.locale": "pl_PL"})
        assert cm.get("app.locale") == "pl_PL"
        with open(cm.CONFIG_PATH) as f:
            assert yaml.safe_load(f)["app"]["locale"] == "pl_PL"

    def test_invalid_backend_ignored(self, tmp_dir):
        cm = make_loaded(tmp_dir)
        cm.update({"host.backend": "mysql"})
        assert cm.get("host.backend") == "sqlite"

    def test_invalid_provider_ignored(self, tmp_dir):
        cm = make_loaded(tmp_dir)
        cm.update({"language.provider": "weglot"})
        assert cm.get("language.provider") == "auto"

    @pytest.mark.parametrize("value, expected", [(0, 5), (-4, 5), ("8", 8), (3, 3)])
    def test_widget_number(self, tmp_dir, value, expected):
        cm = make_loaded(tmp_dir)
        cm.update({"widget.number": value})
        assert cm.get("widget.number") == expected

    def test_widget_number_not_int_ignored(self, tmp_dir):
        cm = make_loaded(tmp_dir)
        cm.update({"widget.number": "many"})
        assert cm.get("widget.number") == 5

    def test_timeout_below_min_forced_to_5(self, tmp_dir):
        cm = make_loaded(tmp_dir)
        cm.update({"host.rest.timeout": 1})
        assert cm.get("host.rest.timeout") == 5

    def test_save_failure_raises_config_error(self, tmp_dir):
        cm = make_loaded(tmp_dir)
        blocker = tmp_dir / "blocker"
        blocker.write_text("")
        cm.CONFIG_PATH = blocker / "settings.yaml"
        with pytest.raises(ConfigError):
            cm.save()


class TestConfigManagerDbPath:
    def test_get_db_path_resolves_absolute(self):
        ConfigManager.reset()
        cm = ConfigManager.__new__(ConfigManager)
        cm._initialized = True
        cm._config = {"host": {"db_path": "db/site.db"}}
        cm._instance_lock = threading.RLock()
        cm.PROJECT_ROOT = Path("/fake/project")
        cm.CONFIG_PATH = Path("/fake/project/config/settings.yaml")
        ConfigManager._instance = cm

        assert cm.get_db_path() == Path("/fake/project/db/site.db")
