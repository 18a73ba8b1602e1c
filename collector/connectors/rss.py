"""Syndication feed source (RSS/Atom)."""

from __future__ import annotations

from typing import Any, List, Sequence

import feedparser

from collector.models.domain import ContentType, FetchResult, License, RawItem

from .base import Source
from .errors import ConnectorError, PermanentError
from .http import SourceHttp


def entries_to_raw_items(entries: Sequence[Any]) -> List[RawItem]:
    items: List[RawItem] = []
    for entry in entries:
        items.append(
            RawItem(
                title=entry.get("title"),
                description=entry.get("summary") or entry.get("description"),
                link=entry.get("link"),
                published=entry.get("published") or entry.get("updated"),
            )
        )
    return items


class FeedSource(Source):
    """Fetches one feed URL and maps each entry with a link to a record."""

    def __init__(
        self,
        http: SourceHttp,
        url: str,
        tags: Sequence[str],
        *,
        license: License = License.RSS,
        content_type: ContentType = ContentType.ARTICLE,
    ) -> None:
        self._http = http
        self.name = url
        self.url = url
        self.tags = tuple(tags)
        self.license = license
        self.content_type = content_type

    async def fetch(self) -> FetchResult:
        try:
            resp = await self._http.get(self.url)
            parsed = feedparser.parse(resp.content)
            if parsed.get("bozo") and not parsed.entries:
                raise PermanentError(f"malformed feed: {parsed.get('bozo_exception')}")
        except ConnectorError as exc:
            return self._failure(exc)
        records = self._to_records(entries_to_raw_items(parsed.entries))
        return FetchResult(success=True, source=self.name, items=records)
