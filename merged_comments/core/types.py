"""Data Transfer Objects for Merged Recent Comments."""

from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass
class WidgetSettings:
    """Per-instance widget configuration, persisted by the host as a plain map."""

    title: str = ""
    number: int = 0                  # 0 means "use the default" at render time

    @classmethod
    def from_instance(cls, instance: Mapping[str, Any]) -> 'WidgetSettings':
        return cls(
            title=instance.get("title") or "",
            number=instance.get("number") or 0,
        )

    def to_instance(self) -> dict:
        return {"title": self.title, "number": self.number}


@dataclass
class CommentDTO:
    """Approved comment fetched from the host comment store."""

    comment_id: int
    post_id: int                     # origin post (any language variant)
    author: str = ""
    author_url: str = ""
    content: str = ""
    approved: bool = True
    date: str = ""                   # ISO 8601, host timezone


@dataclass
class PostDTO:
    """Post or page as seen by the host store."""

    post_id: int
    post_type: str = "post"          # 'post' | 'page'
    title: str = ""                  # host-rendered, may contain markup
    permalink: str = ""
    status: str = "publish"
    language: str = ""
    translations: dict = field(default_factory=dict)   # language code -> post id


@dataclass
class TranslationResolution:
    """Per-comment link data in the language the canonical post maps to."""

    canonical_post_id: int
    permalink: str
    title: str
    language_code: str
