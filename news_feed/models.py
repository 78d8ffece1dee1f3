from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any

log = logging.getLogger(__name__)


def _text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def _number(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


@dataclass
class NormalizedArticle:
    title: str = ""
    description: str = ""
    image: str = ""
    source: str = ""
    published_at: str = ""
    fetched_from: str = ""
    subreddit: str | None = None
    id: str | None = None

    def to_dict(self) -> dict[str, str]:
        payload = {
            "title": self.title,
            "description": self.description,
            "image": self.image,
            "source": self.source,
            "publishedAt": self.published_at,
            "fetchedFrom": self.fetched_from,
        }
        if self.subreddit is not None:
            payload["subreddit"] = self.subreddit
        if self.id is not None:
            payload["id"] = self.id
        return payload


@dataclass
class AggregationResult:
    source: str
    articles: list[NormalizedArticle]
    backend_info: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "articles": [article.to_dict() for article in self.articles],
            "backendInfo": dict(self.backend_info),
        }


@dataclass
class NewsApiArticle:
    title: str = ""
    description: str = ""
    url_to_image: str = ""
    source_name: str = ""
    published_at: str = ""

    @classmethod
    def from_payload(cls, payload: Any) -> NewsApiArticle:
        data = _mapping(payload)
        return cls(
            title=_text(data.get("title")),
            description=_text(data.get("description")),
            url_to_image=_text(data.get("urlToImage")),
            source_name=_text(_mapping(data.get("source")).get("name")),
            published_at=_text(data.get("publishedAt")),
        )


@dataclass
class NewsApiResponse:
    total_results: int | None = None
    articles: list[NewsApiArticle] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> NewsApiResponse:
        data = _mapping(payload)
        rows = data.get("articles")
        total = _number(data.get("totalResults"))
        return cls(
            total_results=int(total) if total is not None and math.isfinite(total) else None,
            articles=[NewsApiArticle.from_payload(row) for row in rows] if isinstance(rows, list) else [],
        )


def _first_preview_url(data: dict) -> str | None:
    """Return ``None`` when the post has no first preview image.

    Once a first image exists the preview is authoritative: a malformed entry
    or a missing/empty URL yields ``""`` rather than ``None``.
    """
    preview = data.get("preview")
    if not isinstance(preview, dict):
        return None
    images = preview.get("images")
    if not images:
        return None
    if isinstance(images, list) and not images[0]:
        return None
    try:
        url = images[0]["source"]["url"]
    except (KeyError, IndexError, TypeError) as exc:
        log.debug("Ignoring malformed preview for post %s: %s", data.get("id"), exc)
        return ""
    return url if isinstance(url, str) else ""


@dataclass
class RedditPost:
    """One ``children[].data`` entry of a Reddit listing.

    ``preview_image_url`` is the raw (still HTML-escaped) URL of the first preview
    image: ``None`` when there is no preview image, ``""`` when the first image
    is malformed or has no URL.
    """

    id: str = ""
    url: str = ""
    permalink: str = ""
    title: str = ""
    selftext: str = ""
    thumbnail: str = ""
    preview_image_url: str | None = None
    subreddit: str = ""
    subreddit_name_prefixed: str = ""
    author: str = ""
    created_utc: float | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> RedditPost:
        data = _mapping(payload)
        return cls(
            id=_text(data.get("id")),
            url=_text(data.get("url")),
            permalink=_text(data.get("permalink")),
            title=_text(data.get("title")),
            selftext=_text(data.get("selftext")),
            thumbnail=_text(data.get("thumbnail")),
            preview_image_url=_first_preview_url(data),
            subreddit=_text(data.get("subreddit")),
            subreddit_name_prefixed=_text(data.get("subreddit_name_prefixed")),
            author=_text(data.get("author")),
            created_utc=_number(data.get("created_utc")),
        )


@dataclass
class RedditListing:
    posts: list[RedditPost] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Any) -> RedditListing:
        children = _mapping(_mapping(payload).get("data")).get("children")
        if not isinstance(children, list):
            return cls()
        return cls(posts=[RedditPost.from_payload(_mapping(child).get("data")) for child in children])
