from __future__ import annotations

from datetime import datetime, timezone
from urllib.parse import urlencode, urlparse

from dateutil import parser as date_parser


REDACTED_PARAMS = ("apikey", "api_key", "token")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    stamp = value.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    return stamp.replace("+00:00", "Z")


def utc_now_iso() -> str:
    return to_iso(utc_now())


def iso_from_unix(seconds: float | None) -> str:
    if not seconds:
        return ""
    try:
        return to_iso(datetime.fromtimestamp(seconds, tz=timezone.utc))
    except (OverflowError, OSError, ValueError):
        return ""


def parse_iso(value: str) -> datetime | None:
    if not value:
        return None
    try:
        parsed = date_parser.isoparse(value)
    except (ValueError, TypeError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def unescape_amp(url: str) -> str:
    return url.replace("&amp;", "&")


def is_absolute_url(value: str) -> bool:
    parsed = urlparse(value or "")
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def build_url(base: str, params: dict[str, str | int]) -> str:
    if not params:
        return base
    return f"{base}?{urlencode(params)}"


def redact_url(base: str, params: dict[str, str | int]) -> str:
    masked = {
        key: ("***" if key.lower() in REDACTED_PARAMS and value else value)
        for key, value in params.items()
    }
    return build_url(base, masked)


def matches_query(query: str, *fields: str) -> bool:
    if not query:
        return True
    haystack = " ".join(fields).casefold()
    return query.casefold() in haystack
