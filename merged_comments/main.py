"""Merged Recent Comments entry point: render the widget for a configured site."""

import argparse
import logging
import sys
from typing import Any, Optional

from merged_comments.adapters.host_adapter import HostAdapter
from merged_comments.adapters.language_adapter import WpmlCompat, detect_language_adapter
from merged_comments.adapters.rest_host import RestHost, RestPolylang
from merged_comments.adapters.sqlite_host import SqliteHost, SqlitePolylang, SqliteSitepress
from merged_comments.core.config_manager import DEFAULT_CONFIG, ConfigManager
from merged_comments.core.exceptions import MergedCommentsError
from merged_comments.core.hooks import HookRegistry
from merged_comments.core.i18n_manager import I18nManager
from merged_comments.core.logger import setup_logger
from merged_comments.plugin import MergedRecentCommentsPlugin, WidgetRegistry
from merged_comments.widgets.recent_comments import MergedRecentCommentsWidget

logger = logging.getLogger("merged_comments")


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="merged-recent-comments",
        description="Render the Merged Recent Comments widget as HTML.",
    )
    parser.add_argument("--title", help="Widget title (overrides widget.title)")
    parser.add_argument("--number", help="Number of comments (overrides widget.number)")
    parser.add_argument("--locale", help="Text domain locale (overrides app.locale)")
    parser.add_argument("--form", action="store_true", help="Print the settings form instead")
    return parser.parse_args(argv)


def build_host(config: ConfigManager, hooks: HookRegistry) -> HostAdapter:
    """Create the host adapter selected by host.backend."""
    if config.get("host.backend", "sqlite") == "rest":
        return RestHost(
            base_url=config.get("host.rest.base_url", "http://localhost:8080"),
            timeout=config.get("host.rest.timeout", 30),
            options=config.get("host.rest.options", {}),
            active_widgets=[MergedRecentCommentsWidget.id_base] if config.get("widget.active", True) else [],
        )

    host = SqliteHost(config.get_db_path(), hooks=hooks)
    if config.get("widget.active", True):
        host.activate_widget(MergedRecentCommentsWidget.id_base)
    return host


def build_language_apis(config: ConfigManager, host: HostAdapter) -> tuple[Optional[Any], Optional[Any]]:
    """Create the (polylang, sitepress) plugin APIs selected by language.provider.

    Either may be None; at most the WPML side is a compatibility layer over Polylang.
    """
    provider = config.get("language.provider", "auto")
    current = config.get("language.current", "en")
    is_rest = isinstance(host, RestHost)

    if provider == "auto":
        provider = "polylang" if is_rest else "wpml"

    if provider == "wpml":
        if is_rest:
            logger.warning("WPML is not available over the REST host")
            return None, None
        return None, SqliteSitepress(host, current)

    polylang = RestPolylang(host, current) if is_rest else SqlitePolylang(host, current)
    sitepress = WpmlCompat(polylang) if config.get("language.wpml_compat", True) else None
    return polylang, sitepress


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point.

    Startup sequence:
    1. ConfigManager init (loads or creates settings.yaml)
    2. Logger init (reads log_level from config)
    3. I18nManager creation (catalogue is loaded on plugins_loaded)
    4. Host adapter and multilingual plugin APIs
    5. Language adapter detection (once)
    6. Plugin install + boot (text domain, widget registration, filter removal)
    7. Widget render
    """
    args = parse_args(argv)

    # 1. ConfigManager
    config = ConfigManager()

    # 2. Logger
    logger = setup_logger(
        log_level=config.get("app.log_level", "INFO"),
        mask_logs=config.get("security.mask_logs", True),
    )
    logger.info("Merged Recent Comments starting...")

    # 3. I18nManager
    i18n = I18nManager()
    locale = args.locale or config.get("app.locale", "en_US")

    hooks = HookRegistry()
    host = None
    try:
        # 4. Host + plugin APIs; the plugins filter comment queries by language
        host = build_host(config, hooks)
        polylang, sitepress = build_language_apis(config, host)
        for api in (polylang, sitepress):
            if hasattr(api, "comments_clauses"):
                hooks.add_filter("comments_clauses", api.comments_clauses)

        # 5. Language adapter
        language = detect_language_adapter(polylang=polylang, sitepress=sitepress)

        # 6. Plugin lifecycle
        registry = WidgetRegistry()
        plugin = MergedRecentCommentsPlugin(
            hooks, registry, i18n, locale,
            factory=lambda: MergedRecentCommentsWidget(host, language, hooks, i18n),
            sitepress=sitepress, polylang=polylang,
        )
        plugin.install()
        plugin.boot()

        factory = registry.get(MergedRecentCommentsWidget.id_base)
        if factory is None:
            logger.error("Widget is not registered; nothing to render")
            return 1

        # 7. Render
        widget = factory()
        instance = {
            "title": args.title if args.title is not None else config.get("widget.title", ""),
            "number": args.number if args.number is not None else config.get("widget.number", 5),
        }
        if args.form:
            print(widget.form(instance))
        else:
            head = "".join(hooks.do_action("wp_head"))
            if head:
                print(head)
            print(widget.widget(config.get("widget.args", DEFAULT_CONFIG["widget"]["args"]), instance))
        return 0

    except MergedCommentsError as e:
        logger.error(f"Merged Recent Comments failed: {e.message}")
        return 1

    finally:
        if isinstance(host, SqliteHost):
            host.close()
        logger.info("Merged Recent Comments shutting down")


if __name__ == "__main__":
    sys.exit(main())
