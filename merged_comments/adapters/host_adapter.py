"""Abstract base class for the host CMS data layer."""

import html
from abc import ABC, abstractmethod
from typing import Any, Iterable

from merged_comments.core.types import CommentDTO


class HostAdapter(ABC):
    """Abstract interface for the CMS the widget is rendered in."""

    @abstractmethod
    def get_comments(self, args: dict) -> list[CommentDTO]:
        """Fetch comments matching the query args.

        Args:
            args: Query arguments. Recognised keys: "number" (limit),
                  "status" ("approve"), "post_status" ("publish"); any other
                  keys are host-specific constraints.

        Returns:
            List of CommentDTO in host order (newest first)

        Raises:
            CommentQueryError: Query failed
        """
        ...

    @abstractmethod
    def prime_post_caches(self, post_ids: Iterable[int], update_term_cache: bool = False) -> None:
        """Load the given posts in bulk so later per-post lookups are cache hits.

        Args:
            post_ids: Distinct post ids
            update_term_cache: Also load taxonomy terms (needed when permalinks contain %category%)

        Raises:
            HostError: Bulk load failed
        """
        ...

    @abstractmethod
    def is_page(self, post_id: int) -> bool:
        ...

    @abstractmethod
    def get_permalink(self, post_id: int) -> str:
        ...

    @abstractmethod
    def get_the_title(self, post_id: int) -> str:
        """Rendered post title (may contain markup)."""
        ...

    @abstractmethod
    def get_option(self, name: str, default: Any = None) -> Any:
        ...

    def get_comment_author_link(self, comment: CommentDTO) -> str:
        """Comment author name, linked to the author's site when one is set."""
        author = html.escape(comment.author or "Anonymous")
        if not comment.author_url or comment.author_url == "http://":
            return author
        url = html.escape(comment.author_url, quote=True)
        return f"<a href=\"{url}\" rel=\"external nofollow ugc\" class=\"url\">{author}</a>"

    def current_theme_supports(self, feature: str) -> bool:
        return True

    def is_active_widget(self, id_base: str) -> bool:
        return False
