from __future__ import annotations

from datetime import datetime, timezone

from .models import NormalizedArticle
from .utils import parse_iso


OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def drop_missing_ids(articles: list[NormalizedArticle]) -> list[NormalizedArticle]:
    return [article for article in articles if article.id]


def dedupe_articles(articles: list[NormalizedArticle]) -> list[NormalizedArticle]:
    unique: dict[str, NormalizedArticle] = {}
    for article in articles:
        key = article.id or ""
        if key not in unique:
            unique[key] = article
    return list(unique.values())


def _published_key(article: NormalizedArticle) -> datetime:
    return parse_iso(article.published_at) or OLDEST


def sort_by_published(articles: list[NormalizedArticle]) -> list[NormalizedArticle]:
    # sorted() stays stable with reverse=True, so ties keep pooled order.
    return sorted(articles, key=_published_key, reverse=True)


def curate_feed(articles: list[NormalizedArticle]) -> list[NormalizedArticle]:
    return sort_by_published(dedupe_articles(drop_missing_ids(articles)))
