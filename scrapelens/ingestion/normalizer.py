"""Raw scraped item -> canonical record draft.

Dataset items carry no fixed schema: key names vary between scrapers and
runs, timestamps come in mixed formats and some items embed a base64 image.
Every logical field is therefore resolved through a prioritized key chain,
and items that yield no text at all are rejected.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional
from urllib.parse import urlparse

from scrapelens.core.logging import get_logger
from scrapelens.schemas.records import MAX_CONTENT_CHARS, RecordDraft

log = get_logger("ingestion.normalizer")

TITLE_KEYS = ("Title", "title", "headline")
DESCRIPTION_KEYS = ("Description", "description")
SOURCE_NAME_KEYS = ("Source Name", "source_name", "source")
PUBLISHED_KEYS = ("Published_time", "published_time")
URL_KEYS = ("Link", "link", "url", "URL")
DATE_KEYS = ("Date", "date", "published_at")
ID_KEYS = ("Id", "id", "_id")
IMAGE_KEYS = frozenset({"Image", "image", "thumbnail"})

FALLBACK_MAX_FIELD_CHARS = 2_000
FALLBACK_MAX_FIELDS = 5

_TAG_RE = re.compile(r"<[^>]*>")
_WS_RE = re.compile(r"\s+")
_BASE64_RE = re.compile(r"^[A-Za-z0-9+/=\s]{200,}$")


class RawItem:
    """Typed optional-field lookup over an untyped dataset item."""

    def __init__(self, data: Mapping[str, Any]):
        self.data = data

    def get(self, key: str) -> Any:
        return self.data.get(key)

    def text(self, *keys: str) -> Optional[str]:
        """First value under ``keys`` that is a non-blank string."""
        for key in keys:
            value = self.data.get(key)
            if isinstance(value, str) and value.strip():
                return value
        return None

    def first(self, *keys: str) -> Any:
        """First value under ``keys`` that is not None."""
        for key in keys:
            value = self.data.get(key)
            if value is not None:
                return value
        return None

    def strings(self, exclude: Iterable[str] = ()) -> Iterable[tuple[str, str]]:
        skip = set(exclude)
        for key, value in self.data.items():
            if key in skip:
                continue
            if isinstance(value, str) and value.strip():
                yield key, value


def strip_html(text: str) -> str:
    return _WS_RE.sub(" ", _TAG_RE.sub(" ", text)).strip()


def _is_embedded_payload(value: str) -> bool:
    return value.startswith("data:") or bool(_BASE64_RE.match(value))


def pick_content(item: RawItem) -> str:
    parts: list[str] = []

    title = item.text(*TITLE_KEYS)
    description = item.text(*DESCRIPTION_KEYS)
    if title:
        parts.append(title)
    if description:
        parts.append(description)

    context: list[str] = []
    source_name = item.text(*SOURCE_NAME_KEYS)
    published = item.text(*PUBLISHED_KEYS)
    if source_name:
        context.append(f"Source: {source_name}")
    if published:
        context.append(f"Published: {published}")
    if context:
        parts.append(" · ".join(context))

    # Last resort: any other short text field, never an image payload
    if not " ".join(parts).strip():
        for key, value in item.strings(exclude=IMAGE_KEYS):
            if len(value) > FALLBACK_MAX_FIELD_CHARS or _is_embedded_payload(value):
                continue
            parts.append(value)
            if len(parts) >= FALLBACK_MAX_FIELDS:
                break

    return strip_html(" ".join(parts))[:MAX_CONTENT_CHARS]


def pick_url(item: RawItem) -> Optional[str]:
    for key in URL_KEYS:
        value = item.get(key)
        if isinstance(value, str) and value.strip().startswith("http"):
            return value.strip()
    return None


def pick_source(item: RawItem, url: Optional[str] = None) -> str:
    name = item.text(*SOURCE_NAME_KEYS)
    if name:
        return name.strip()

    url = url if url is not None else pick_url(item)
    if url:
        host = urlparse(url).hostname
        if host:
            return host
    return "unknown"


def parse_source_date(value: Any) -> Optional[datetime]:
    """Parse ``YYYY-MM-DD HH:mm:ss`` or ISO-8601; naive values are taken as UTC."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        candidate = value.strip().replace(" ", "T", 1)
        if candidate[-1:] in ("Z", "z"):
            candidate = candidate[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def pick_created_at(item: RawItem, now: Optional[datetime] = None) -> datetime:
    # Relative "Published_time" values ("3 days ago") are not parsed
    parsed = parse_source_date(item.first(*DATE_KEYS))
    if parsed:
        return parsed
    return now or datetime.now(timezone.utc)


def pick_external_id(item: RawItem) -> Optional[str]:
    for key in ID_KEYS:
        value = item.get(key)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def normalize_item(raw: Mapping[str, Any], now: Optional[datetime] = None) -> Optional[RecordDraft]:
    """Map one raw item to a draft, or None when no text can be extracted."""
    item = RawItem(raw)
    content = pick_content(item)
    if not content:
        return None

    url = pick_url(item)
    return RecordDraft(
        external_item_id=pick_external_id(item),
        source=pick_source(item, url),
        url=url,
        content=content,
        created_at=pick_created_at(item, now),
    )


def normalize_items(items: Iterable[Mapping[str, Any]], now: Optional[datetime] = None) -> list[RecordDraft]:
    now = now or datetime.now(timezone.utc)
    drafts = []
    for raw in items:
        draft = normalize_item(raw, now)
        if draft is not None:
            drafts.append(draft)
    log.debug(f"Normalized {len(drafts)} drafts from raw items")
    return drafts
