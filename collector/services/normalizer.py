"""Raw item → ContentRecord normalization (markup stripping, excerpt cap, license guard)."""

from __future__ import annotations

import re
import warnings
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Iterable, Optional

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

from collector.models.domain import (
    EXCERPT_MAX_CHARS,
    TITLE_MAX_CHARS,
    ContentRecord,
    ContentType,
    License,
    RawItem,
)

from .deduplicator import derive_id

_WS = re.compile(r"\s+")
_DECODED_TAG = re.compile(
    r"<\s*/?\s*(?:a|b|blockquote|br|code|div|em|figure|h[1-6]|hr|i|img|li|ol|p|pre|span|strong|u|ul)\b[^<>]*>",
    re.IGNORECASE,
)


def strip_html(markup: Optional[str]) -> str:
    """Drop every tag, decode entities and collapse whitespace."""
    if not markup:
        return ""
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
        text = BeautifulSoup(str(markup), "html.parser").get_text(" ")
    # Entity-escaped markup (&lt;p&gt;) only becomes tags after the first decode.
    if _DECODED_TAG.search(text):
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
            text = BeautifulSoup(text, "html.parser").get_text(" ")
    return _WS.sub(" ", text.replace("\xa0", " ")).strip()


def parse_published(value: Any, *, now: Optional[datetime] = None) -> datetime:
    """Parse ISO-8601 or RFC-822 dates into UTC; anything else falls back to ``now``."""
    fallback = now or datetime.now(timezone.utc)
    if value is None or value == "":
        return fallback
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc) if value.tzinfo else value.replace(tzinfo=timezone.utc)
    text = str(value).strip()
    if not text:
        return fallback
    parsed: Optional[datetime] = None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        try:
            parsed = parsedate_to_datetime(text)
        except (TypeError, ValueError, IndexError):
            parsed = None
    if parsed is None:
        return fallback
    return parsed.astimezone(timezone.utc) if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def normalize_item(
    item: RawItem,
    *,
    source: str,
    tags: Iterable[str],
    license: License,
    content_type: ContentType = ContentType.ARTICLE,
    now: Optional[datetime] = None,
) -> ContentRecord:
    """Build the canonical record for one fetched item.

    Only public-domain content keeps the full stripped description; every other
    license stores the capped excerpt as its full text.
    """
    if not item.link:
        raise ValueError("item without link cannot be identified")
    title = strip_html(item.title or "Untitled")[:TITLE_MAX_CHARS] or "Untitled"
    description = strip_html(item.description)
    excerpt = description[:EXCERPT_MAX_CHARS]
    full_text = description if license is License.PUBLIC_DOMAIN else excerpt
    link = item.link.strip()
    return ContentRecord(
        id=derive_id(link),
        title=title,
        excerpt=excerpt,
        full_text=full_text,
        tags=[t.strip().lower() for t in tags if t and t.strip()],
        published_at=parse_published(item.published, now=now),
        source_url=source,
        article_url=link,
        license=license,
        content_type=content_type,
    )
