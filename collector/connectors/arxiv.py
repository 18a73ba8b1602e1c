"""arXiv query API source (Atom payload)."""

from __future__ import annotations

from typing import Optional

import feedparser

from collector.models.domain import FetchResult, License, RawItem
from collector.services.retry import SleepFn, retry_with_backoff

from .base import Source
from .errors import ConnectorError
from .http import SourceHttp

ARXIV_ENDPOINT = "https://export.arxiv.org/api/query"


class ArxivSource(Source):
    """Latest submissions matching a query; stored excerpt-only."""

    name = "arXiv"
    tags = ("science", "research", "academic", "ai")
    license = License.RESTRICTED

    def __init__(
        self,
        http: SourceHttp,
        *,
        query: str = "all:AI",
        max_results: int = 50,
        endpoint: str = ARXIV_ENDPOINT,
        max_attempts: int = 3,
        sleep: Optional[SleepFn] = None,
    ) -> None:
        self._http = http
        self._query = query
        self._max_results = max_results
        self._endpoint = endpoint
        self._max_attempts = max_attempts
        self._sleep = sleep

    async def _query_text(self) -> str:
        return await self._http.get_text(
            self._endpoint,
            params={
                "search_query": self._query,
                "max_results": self._max_results,
                "sortBy": "submittedDate",
                "sortOrder": "descending",
            },
        )

    async def fetch(self) -> FetchResult:
        try:
            payload = await retry_with_backoff(
                self._query_text, max_attempts=self._max_attempts, sleep=self._sleep, label="arxiv"
            )
        except ConnectorError as exc:
            return self._failure(exc)

        parsed = feedparser.parse(payload)
        raw = [
            RawItem(
                title=entry.get("title"),
                description=entry.get("summary"),
                link=entry.get("id") or entry.get("link"),
                published=entry.get("published"),
            )
            for entry in parsed.entries
            if entry.get("title")
        ]
        return FetchResult(success=True, source=self.name, items=self._to_records(raw))
