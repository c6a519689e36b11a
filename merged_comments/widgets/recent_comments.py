"""Recent comments widget merged across languages."""

import html
import logging
import warnings
from typing import Any, Mapping, Optional

from merged_comments.adapters.host_adapter import HostAdapter
from merged_comments.adapters.language_adapter import LanguageAdapter
from merged_comments.core.exceptions import HostError
from merged_comments.core.hooks import HookRegistry
from merged_comments.core.i18n_manager import I18nManager
from merged_comments.core.sanitize import sanitize_text_field, to_non_negative_int
from merged_comments.core.types import CommentDTO, TranslationResolution, WidgetSettings

logger = logging.getLogger("merged_comments")

DEFAULT_NUMBER = 5

RECENT_COMMENTS_STYLE = (
    '<style type="text/css">.recentcomments a{display:inline !important;'
    'padding:0 !important;margin:0 !important;}</style>'
)

# English source strings, used when no catalogue provides a key
_FALLBACK_STRINGS = {
    "plugin.name": "Merged Recent Comments",
    "plugin.description": "Merged Comments wrapped in current language.",
    "widget.default_title": "Recent Comments",
    "widget.comment_on_post": "{author} on {post}",
    "form.title": "Title:",
    "form.number": "Number of comments to show:",
}


def effective_number(value: Any) -> int:
    """Number of comments to query: the configured count, or 5 when unset or not positive."""
    number = to_non_negative_int(value) if value else DEFAULT_NUMBER
    return number or DEFAULT_NUMBER


class MergedRecentCommentsWidget:
    """Lists the most recent approved comments of every language.

    Each entry links to the post in the visitor's language (via the active
    multilingual plugin) and is tagged with the language the comment was
    actually written under.

    Lifecycle mirrors the host's widget contract:
    - widget(args, instance): render the front-end HTML
    - update(new_instance, old_instance): sanitize settings before the host saves them
    - form(instance): render the settings form
    """

    id_base = "merged-recent-comments"
    alt_option_name = "widget_recent_comments"

    def __init__(
        self,
        host: HostAdapter,
        language: LanguageAdapter,
        hooks: Optional[HookRegistry] = None,
        i18n: Optional[I18nManager] = None,
        number: int = 1,
    ):
        """Set up a widget instance.

        Args:
            host: Host CMS data layer
            language: Adapter of the active multilingual plugin
            hooks: Filter/action registry; a private one is created when omitted
            i18n: Text domain catalogue; English strings when omitted
            number: Instance number the host assigned to this widget
        """
        self._host = host
        self._language = language
        self._hooks = hooks if hooks is not None else HookRegistry()
        self._i18n = i18n
        self.number = number
        self.id = f"{self.id_base}-{number}"
        self.name = self._translate("plugin.name")
        self.widget_options = {
            "classname": "Widget_Merged_Recent_Comments",
            "description": self._translate("plugin.description"),
        }

        if self._host.is_active_widget(self.id_base) and not self._hooks.has_action(
                "wp_head", self.recent_comments_style):
            self._hooks.add_action("wp_head", self.recent_comments_style)

    def recent_comments_style(self) -> str:
        """Inline stylesheet keeping comment links on one line.

        Returns "" when the theme does not declare widget support or the
        "show_recent_comments_widget_style" filter turns it off.
        """
        if not self._host.current_theme_supports("widgets") or not self._hooks.apply_filters(
                "show_recent_comments_widget_style", True, self.id_base):
            return ""
        return RECENT_COMMENTS_STYLE

    def widget(self, args: Mapping[str, str], instance: Mapping[str, Any]) -> str:
        """Render the widget.

        Args:
            args: Theme markup: before_widget, after_widget, before_title,
                  after_title, and optionally widget_id
            instance: Saved settings ({"title": ..., "number": ...})

        Returns:
            The complete widget HTML
        """
        args = dict(args)
        args.setdefault("widget_id", self.id)

        settings = WidgetSettings.from_instance(instance)
        title = settings.title or self._translate("widget.default_title")
        title = self._hooks.apply_filters("widget_title", title, instance, self.id_base)

        number = effective_number(settings.number)

        comment_args = self._hooks.apply_filters("widget_comments_args", {
            "number": number,
            "status": "approve",
            "post_status": "publish",
        })
        comments = self._query_comments(comment_args)

        output = args["before_widget"]
        if title:
            output += args["before_title"] + title + args["after_title"]

        output += '<ul id="recentcomments">'
        if comments:
            self._prime_post_caches(comments)

            for comment in comments:
                output += '<li class="recentcomments">'
                output += self._translate(
                    "widget.comment_on_post",
                    author='<span class="comment-author-link">'
                           + self._host.get_comment_author_link(comment) + '</span>',
                    post=self.comment_url_and_title(comment),
                )
                output += '</li>'
        output += '</ul>'

        output += args["after_widget"]
        return output

    def resolve_translation(self, comment: CommentDTO) -> TranslationResolution:
        """Find where the comment's post lives in the current language."""
        post_type = "page" if self._host.is_page(comment.post_id) else "post"
        canonical_id = self._language.canonical_post_id(comment.post_id, post_type)
        return TranslationResolution(
            canonical_post_id=canonical_id,
            permalink=self._host.get_permalink(canonical_id),
            title=self._host.get_the_title(canonical_id),
            language_code=self._language.post_language(comment.post_id, post_type),
        )

    def comment_url_and_title(self, comment: CommentDTO) -> str:
        """Link to the comment on the translated post, followed by the original post's language."""
        resolved = self.resolve_translation(comment)
        href = html.escape(f"{resolved.permalink}#comment-{comment.comment_id}", quote=True)
        return f'<a href="{href}">{resolved.title}</a> <span>[{resolved.language_code}]</span>'

    def update(self, new_instance: Mapping[str, Any], old_instance: Mapping[str, Any]) -> dict:
        """Sanitize settings submitted through form().

        Only title and number are rewritten; other keys of old_instance are
        kept. Defaults are not applied here, only at render time.
        """
        settings = WidgetSettings(
            title=sanitize_text_field(new_instance.get("title")),
            number=to_non_negative_int(new_instance.get("number")),
        )
        instance = dict(old_instance)
        instance.update(settings.to_instance())
        return instance

    def form(self, instance: Mapping[str, Any]) -> str:
        """Render the settings form for this instance."""
        title = instance.get("title") or ""
        number = effective_number(instance.get("number"))

        title_id = self.get_field_id("title")
        number_id = self.get_field_id("number")
        return (
            f'<p><label for="{title_id}">{html.escape(self._translate("form.title"))}</label>\n'
            f'<input class="widefat" id="{title_id}" name="{self.get_field_name("title")}" '
            f'type="text" value="{html.escape(str(title), quote=True)}" /></p>\n'
            f'<p><label for="{number_id}">{html.escape(self._translate("form.number"))}</label>\n'
            f'<input class="tiny-text" id="{number_id}" name="{self.get_field_name("number")}" '
            f'type="number" step="1" min="1" value="{number}" size="3" /></p>\n'
        )

    def flush_widget_cache(self) -> None:
        """Deprecated since 4.4: fragment caching was removed in favour of split queries."""
        message = f"{type(self).__name__}.flush_widget_cache is deprecated since version 4.4 with no alternative available."
        logger.warning(message)
        warnings.warn(message, DeprecationWarning, stacklevel=2)

    def get_field_id(self, field_name: str) -> str:
        return f"widget-{self.id_base}-{self.number}-{field_name}"

    def get_field_name(self, field_name: str) -> str:
        return f"widget-{self.id_base}[{self.number}][{field_name}]"

    def _query_comments(self, comment_args: dict) -> list[CommentDTO]:
        try:
            return list(self._host.get_comments(comment_args))
        except HostError as e:
            logger.error(f"Recent comments query failed: {e.message}")
            return []

    def _prime_post_caches(self, comments: list[CommentDTO]) -> None:
        post_ids = list(dict.fromkeys(comment.post_id for comment in comments))
        try:
            permalink_structure = self._host.get_option("permalink_structure") or ""
            self._host.prime_post_caches(post_ids, "%category%" in permalink_structure)
        except Exception as e:
            logger.warning(f"Failed to prime post cache for {len(post_ids)} post(s): {e}")

    def _translate(self, key: str, **kwargs) -> str:
        if self._i18n is not None and self._i18n.has(key):
            return self._i18n.get(key, **kwargs)
        template = _FALLBACK_STRINGS.get(key, key)
        return template.format_map(kwargs) if kwargs else template
