"""Multilingual plugin adapters (Polylang, WPML) behind one interface."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from merged_comments.core.exceptions import LanguageAdapterError

logger = logging.getLogger("merged_comments")


class LanguageAdapter(ABC):
    """Abstract interface for resolving a post's translation and language."""

    name: str = ""

    @abstractmethod
    def canonical_post_id(self, post_id: int, post_type: str) -> int:
        """Resolve the post id the site shows for post_id in the current language.

        Args:
            post_id: Id of any language variant of the post
            post_type: "post" or "page"

        Returns:
            Id of the variant to link to; post_id itself when no translation exists
        """
        ...

    @abstractmethod
    def post_language(self, post_id: int, post_type: str) -> str:
        """Language code (e.g. "en", "fr") of post_id itself.

        Returns:
            The code, or "" when the plugin does not know the post
        """
        ...


class PolylangAdapter(LanguageAdapter):
    """Adapter over a Polylang-style API.

    The api object provides:
        get_post_language(post_id) -> language code or None
        get_post(post_id) -> id of the translation in the current language, or a falsy value
    """

    name = "polylang"

    def __init__(self, api: Any):
        self._api = api

    def canonical_post_id(self, post_id: int, post_type: str) -> int:
        translated = self._api.get_post(post_id)
        return translated or post_id

    def post_language(self, post_id: int, post_type: str) -> str:
        return self._api.get_post_language(post_id) or ""


class WpmlAdapter(LanguageAdapter):
    """Adapter over a WPML-style ``sitepress`` object.

    The sitepress object provides:
        get_object_id(element_id, element_type, return_original_if_missing) -> id
        get_language_for_element(element_id, element_type) -> language code or None

    WPML keys element languages by "post_<type>" while translations are
    looked up by the bare post type.
    """

    name = "wpml"

    def __init__(self, sitepress: Any):
        self._sitepress = sitepress

    def canonical_post_id(self, post_id: int, post_type: str) -> int:
        return self._sitepress.get_object_id(post_id, post_type, True) or post_id

    def post_language(self, post_id: int, post_type: str) -> str:
        return self._sitepress.get_language_for_element(post_id, f"post_{post_type}") or ""


class WpmlCompat:
    """The WPML object-id API implemented on top of a Polylang-style API.

    Polylang ships such a layer so that WPML-only plugins keep working.
    """

    def __init__(self, polylang: Any):
        self._polylang = polylang

    def get_object_id(self, element_id: int, element_type: str = "post",
                      return_original_if_missing: bool = False) -> Optional[int]:
        translated = self._polylang.get_post(element_id)
        if translated:
            return translated
        return element_id if return_original_if_missing else None

    def get_language_for_element(self, element_id: int, element_type: str) -> Optional[str]:
        return self._polylang.get_post_language(element_id)


def detect_language_adapter(polylang: Optional[Any] = None,
                            sitepress: Optional[Any] = None) -> LanguageAdapter:
    """Pick the adapter for whichever multilingual plugin is active.

    Polylang is probed first; WPML is only used when Polylang is absent.

    Raises:
        LanguageAdapterError: Neither plugin API is available
    """
    if polylang is not None:
        logger.info("Language adapter: Polylang")
        return PolylangAdapter(polylang)
    if sitepress is not None:
        logger.info("Language adapter: WPML")
        return WpmlAdapter(sitepress)
    raise LanguageAdapterError()
