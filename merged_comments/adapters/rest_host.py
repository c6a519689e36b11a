"""WordPress REST API host adapter."""

import logging
from typing import Any, Iterable, Optional

import requests

from merged_comments.adapters.host_adapter import HostAdapter
from merged_comments.core.exceptions import CommentQueryError, HostError, PostNotFoundError
from merged_comments.core.types import CommentDTO, PostDTO

logger = logging.getLogger("merged_comments")

_APP_VERSION = "1.0.0"

# REST collections cap per_page at 100
_MAX_PER_PAGE = 100

# Query args the REST comments endpoint spells differently
_COMMENT_ARG_NAMES = {
    "number": "per_page",
    "post_id": "post",
}

# The REST API only exposes comments on published posts to anonymous clients
_IMPLICIT_COMMENT_ARGS = {"post_status"}


class RestHost(HostAdapter):
    """Reads comments and posts from a site's /wp-json/wp/v2 endpoints.

    Posts are memoized per instance; prime_post_caches() fills the memo with
    one request per post type instead of one request per post.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30,
        options: Optional[dict] = None,
        active_widgets: Iterable[str] = (),
        theme_features: Iterable[str] = ("widgets",),
        session: Optional[requests.Session] = None,
    ):
        self._api_root = base_url.rstrip("/") + "/wp-json/wp/v2"
        self._timeout = timeout
        self._options = dict(options or {})
        self._active_widgets = set(active_widgets)
        self._theme_features = set(theme_features)
        self._posts: dict[int, PostDTO] = {}
        self._session = session or requests.Session()
        self._session.headers.update({
            "User-Agent": f"merged-recent-comments/{_APP_VERSION}",
            "Accept": "application/json",
        })

    def get_comments(self, args: dict) -> list[CommentDTO]:
        params = {}
        for key, value in args.items():
            if key in _IMPLICIT_COMMENT_ARGS:
                continue
            params[_COMMENT_ARG_NAMES.get(key, key)] = value
        if "per_page" in params:
            params["per_page"] = min(int(params["per_page"]), _MAX_PER_PAGE)

        try:
            data = self._fetch_json("/comments", params)
        except HostError as e:
            raise CommentQueryError(f"Failed to query comments: {e.message}")

        if not isinstance(data, list):
            raise CommentQueryError("Unexpected comments response format")
        return [self._parse_comment(item) for item in data]

    def prime_post_caches(self, post_ids: Iterable[int], update_term_cache: bool = False) -> None:
        missing = [pid for pid in post_ids if pid not in self._posts]
        if not missing:
            return

        include = ",".join(str(pid) for pid in missing)
        params = {"include": include, "per_page": min(len(missing), _MAX_PER_PAGE)}
        if update_term_cache:
            params["_embed"] = "wp:term"

        for collection in ("/posts", "/pages"):
            data = self._fetch_json(collection, params)
            for item in data if isinstance(data, list) else []:
                post = self._parse_post(item)
                self._posts[post.post_id] = post
        logger.debug(f"Primed post cache for {len(missing)} post(s)")

    def get_post(self, post_id: int) -> PostDTO:
        """Fetch one post or page, from the memo when primed.

        Raises:
            PostNotFoundError: Neither a post nor a page has this id
            HostError: Request failed
        """
        cached = self._posts.get(post_id)
        if cached is not None:
            return cached

        for collection in ("/posts", "/pages"):
            try:
                item = self._fetch_json(f"{collection}/{post_id}", {})
            except PostNotFoundError:
                continue
            post = self._parse_post(item)
            self._posts[post_id] = post
            return post
        raise PostNotFoundError(f"Post not found: {post_id}")

    def is_page(self, post_id: int) -> bool:
        post = self.find_post(post_id)
        return post is not None and post.post_type == "page"

    def get_permalink(self, post_id: int) -> str:
        post = self.find_post(post_id)
        return post.permalink if post is not None else ""

    def get_the_title(self, post_id: int) -> str:
        post = self.find_post(post_id)
        return post.title if post is not None else ""

    def get_option(self, name: str, default: Any = None) -> Any:
        return self._options.get(name, default)

    def current_theme_supports(self, feature: str) -> bool:
        return feature in self._theme_features

    def is_active_widget(self, id_base: str) -> bool:
        return id_base in self._active_widgets

    def find_post(self, post_id: int) -> Optional[PostDTO]:
        """get_post() that logs failures and returns None instead of raising."""
        try:
            return self.get_post(post_id)
        except HostError as e:
            logger.warning(f"Post {post_id} unavailable: {e.message}")
            return None

    def _fetch_json(self, path: str, params: dict) -> dict | list:
        """GET a REST route and decode its JSON body.

        Raises:
            PostNotFoundError: HTTP 404
            HostError: Any other HTTP or network failure, or a non-JSON body
        """
        url = self._api_root + path
        try:
            response = self._session.get(url, params=params, timeout=self._timeout)
        except requests.RequestException as e:
            raise HostError(f"Request to {url} failed: {e}")

        if response.status_code == 404:
            raise PostNotFoundError(f"Not found: {url}")
        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            raise HostError(f"HTTP error from {url}: {e}")

        content_type = response.headers.get("Content-Type", "")
        if "json" not in content_type:
            raise HostError(f"Expected JSON from {url}, got '{content_type}'")
        try:
            return response.json()
        except ValueError as e:
            raise HostError(f"Invalid JSON from {url}: {e}")

    @staticmethod
    def _parse_comment(item: dict) -> CommentDTO:
        return CommentDTO(
            comment_id=item["id"],
            post_id=item.get("post", 0),
            author=item.get("author_name", ""),
            author_url=item.get("author_url", ""),
            content=item.get("content", {}).get("rendered", ""),
            approved=item.get("status", "approved") == "approved",
            date=item.get("date", ""),
        )

    @staticmethod
    def _parse_post(item: dict) -> PostDTO:
        return PostDTO(
            post_id=item["id"],
            post_type=item.get("type", "post"),
            title=item.get("title", {}).get("rendered", ""),
            permalink=item.get("link", ""),
            status=item.get("status", "publish"),
            language=item.get("lang") or "",
            translations=dict(item.get("translations") or {}),
        )


class RestPolylang:
    """Polylang-style API over the "lang"/"translations" fields Polylang adds to REST posts."""

    def __init__(self, host: RestHost, current_language: str):
        self._host = host
        self.current_language = current_language

    def get_post_language(self, post_id: int) -> Optional[str]:
        post = self._host.find_post(post_id)
        return post.language if post is not None and post.language else None

    def get_post(self, post_id: int) -> Optional[int]:
        post = self._host.find_post(post_id)
        if post is None:
            return None
        return post.translations.get(self.current_language)
