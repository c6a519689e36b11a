"""Plugin bootstrap: text domain, comment filter removal and widget registration."""

import logging
from typing import Any, Callable, Optional

from merged_comments.core.hooks import HookRegistry
from merged_comments.core.i18n_manager import I18nManager
from merged_comments.widgets.recent_comments import MergedRecentCommentsWidget

logger = logging.getLogger("merged_comments")

WidgetFactory = Callable[[], MergedRecentCommentsWidget]


class WidgetRegistry:
    """Widgets the host can place in sidebars, keyed by id_base."""

    def __init__(self):
        self._factories: dict[str, WidgetFactory] = {}

    def register(self, id_base: str, factory: WidgetFactory) -> None:
        self._factories[id_base] = factory
        logger.info(f"Registered widget '{id_base}'")

    def get(self, id_base: str) -> Optional[WidgetFactory]:
        return self._factories.get(id_base)

    def registered(self) -> list[str]:
        return list(self._factories)


def load_textdomain(i18n: I18nManager, locale: str) -> bool:
    """Load the plugin's catalogue for locale, keeping English strings when it is missing."""
    loaded = i18n.load_locale(locale)
    if not loaded:
        logger.info(f"No '{locale}' catalogue for the text domain; using English strings")
    return loaded


def remove_comments_filter(hooks: HookRegistry, polylang: Optional[Any] = None,
                           sitepress: Optional[Any] = None) -> None:
    """Stop the multilingual plugins from limiting comment queries to the current language.

    Without this, recent comments would only list comments on posts in the
    visitor's language.
    """
    for api in (polylang, sitepress):
        callback = getattr(api, "comments_clauses", None)
        if callback is not None and hooks.remove_filter("comments_clauses", callback):
            logger.debug(f"Removed comments_clauses filter of {type(api).__name__}")


def register_merged_comments_widget(registry: WidgetRegistry, factory: WidgetFactory,
                                    sitepress: Optional[Any] = None,
                                    polylang: Optional[Any] = None) -> bool:
    """Register the widget when the WPML API is available.

    Only the WPML object-id API gates registration, although rendering also
    supports Polylang. A Polylang-only site therefore gets no widget; this
    is logged rather than silently worked around.

    Returns:
        True if the widget was registered.
    """
    if sitepress is None:
        if polylang is not None:
            logger.warning(
                "Polylang is active but the WPML compatibility API is not; "
                f"'{MergedRecentCommentsWidget.id_base}' is not registered"
            )
        else:
            logger.info("WPML API not available; widget not registered")
        return False

    registry.register(MergedRecentCommentsWidget.id_base, factory)
    return True


class MergedRecentCommentsPlugin:
    """Hooks the plugin into the host lifecycle.

    Usage:
        plugin = MergedRecentCommentsPlugin(hooks, registry, i18n, "pl_PL", factory,
                                            sitepress=sitepress)
        plugin.install()
        plugin.boot()      # plugins_loaded -> widgets_init -> wp
    """

    def __init__(
        self,
        hooks: HookRegistry,
        registry: WidgetRegistry,
        i18n: I18nManager,
        locale: str,
        factory: WidgetFactory,
        sitepress: Optional[Any] = None,
        polylang: Optional[Any] = None,
    ):
        self._hooks = hooks
        self._registry = registry
        self._i18n = i18n
        self._locale = locale
        self._factory = factory
        self._sitepress = sitepress
        self._polylang = polylang

    def install(self) -> None:
        self._hooks.add_action("plugins_loaded", self.on_plugins_loaded)
        self._hooks.add_action("widgets_init", self.on_widgets_init)
        self._hooks.add_action("wp", self.on_wp)

    def boot(self) -> None:
        for action in ("plugins_loaded", "widgets_init", "wp"):
            self._hooks.do_action(action)

    def on_plugins_loaded(self) -> bool:
        return load_textdomain(self._i18n, self._locale)

    def on_widgets_init(self) -> bool:
        return register_merged_comments_widget(
            self._registry, self._factory, sitepress=self._sitepress, polylang=self._polylang
        )

    def on_wp(self) -> None:
        remove_comments_filter(self._hooks, polylang=self._polylang, sitepress=self._sitepress)
