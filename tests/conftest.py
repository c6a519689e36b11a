"""Shared test fixtures for Merged Recent Comments tests."""

import json
import shutil
import tempfile
from pathlib import Path

import pytest
import yaml

from merged_comments.adapters.sqlite_host import SqliteHost
from merged_comments.core.config_manager import ConfigManager, DEFAULT_CONFIG
from merged_comments.core.hooks import HookRegistry
from merged_comments.core.i18n_manager import I18nManager
from merged_comments.core.types import CommentDTO, PostDTO


THEME_ARGS = {
    "before_widget": '<div class="widget">',
    "after_widget": "</div>",
    "before_title": "<h3>",
    "after_title": "</h3>",
}


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset all singletons before each test."""
    yield
    ConfigManager.reset()
    I18nManager.reset()


@pytest.fixture
def tmp_dir():
    """Provide a temporary directory that is cleaned up after test."""
    d = tempfile.mkdtemp()
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)


@pytest.fixture
def config_file(tmp_dir):
    """Create a temporary settings.yaml and return its path."""
    config_dir = tmp_dir / "config"
    config_dir.mkdir(parents=True)
    config_path = config_dir / "settings.yaml"

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(dict(DEFAULT_CONFIG), f, default_flow_style=False, sort_keys=False)

    return config_path


@pytest.fixture
def tmp_db_path(tmp_dir):
    """Provide a temporary database path."""
    return tmp_dir / "site.db"


@pytest.fixture
def hooks():
    return HookRegistry()


@pytest.fixture
def site(tmp_db_path, hooks):
    """SQLite host with an English/French post pair, an English page and four comments.

    Posts:  10 "Hello" (en) <-> 11 "Bonjour" (fr), 20 "About" page (en), 30 draft (en)
    Comments (newest first): 104 on 20, 103 on 11, 102 on 10, 101 on 10 (unapproved: 105)
    """
    host = SqliteHost(tmp_db_path, hooks=hooks)
    host.save_post(PostDTO(10, "post", "Hello", "https://example.com/hello/"))
    host.save_post(PostDTO(11, "post", "Bonjour", "https://example.com/fr/bonjour/"))
    host.save_post(PostDTO(20, "page", "About", "https://example.com/about/"))
    host.save_post(PostDTO(30, "post", "Draft", "https://example.com/?p=30", status="draft"))
    host.set_translation(10, 10, "en")
    host.set_translation(11, 10, "fr")
    host.set_translation(20, 20, "en")
    host.set_translation(30, 30, "en")

    host.save_comment(CommentDTO(101, 10, "Ann", date="2024-01-01T10:00:00"))
    host.save_comment(CommentDTO(102, 10, "Bob", "https://bob.example", date="2024-01-02T10:00:00"))
    host.save_comment(CommentDTO(103, 11, "Chloé", date="2024-01-03T10:00:00"))
    host.save_comment(CommentDTO(104, 20, "Dan", date="2024-01-04T10:00:00"))
    host.save_comment(CommentDTO(105, 10, "Spam", approved=False, date="2024-01-05T10:00:00"))
    host.save_comment(CommentDTO(106, 30, "Eve", date="2024-01-06T10:00:00"))
    yield host
    host.close()


@pytest.fixture
def locale_dir(tmp_dir):
    """Create temporary locale directory with test JSON files."""
    loc_dir = tmp_dir / "locales"
    loc_dir.mkdir(parents=True)

    en_data = {
        "plugin": {"name": "Merged Recent Comments"},
        "widget": {"default_title": "Recent Comments", "comment_on_post": "{author} on {post}"},
        "form": {"title": "Title:", "number": "Number of comments to show:"},
    }
    pl_data = {
        "plugin": {"name": "Połączone ostatnie komentarze"},
        "widget": {"default_title": "Ostatnie komentarze", "comment_on_post": "{post}: {author}"},
        "form": {"title": "Tytuł:"},
    }

    with open(loc_dir / "en_US.json", "w", encoding="utf-8") as f:
        json.dump(en_data, f, ensure_ascii=False)
    with open(loc_dir / "pl_PL.json", "w", encoding="utf-8") as f:
        json.dump(pl_data, f, ensure_ascii=False)

    return loc_dir
