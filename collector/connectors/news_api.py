"""NewsAPI.org topic search source."""

from __future__ import annotations

import functools
from typing import Any, Dict, List, Optional, Sequence

from collector.models.domain import ContentRecord, FetchResult, License, RawItem
from collector.services.retry import SleepFn, retry_with_backoff
from collector.utils.logging import get_logger

from .base import Source
from .errors import ConnectorError, NotConfiguredError
from .http import SourceHttp

logger = get_logger(__name__)

NEWSAPI_ENDPOINT = "https://newsapi.org/v2/everything"


class NewsAPISource(Source):
    """One request per topic, each wrapped in retry-with-backoff.

    Topic failures are logged and the remaining topics still run.
    """

    name = "NewsAPI"
    license = License.API

    def __init__(
        self,
        http: SourceHttp,
        api_key: Optional[str],
        *,
        topics: Sequence[str] = ("science", "technology"),
        page_size: int = 50,
        endpoint: str = NEWSAPI_ENDPOINT,
        max_attempts: int = 3,
        sleep: Optional[SleepFn] = None,
    ) -> None:
        self._http = http
        self._api_key = api_key
        self._topics = tuple(topics)
        self._page_size = page_size
        self._endpoint = endpoint
        self._max_attempts = max_attempts
        self._sleep = sleep

    async def _search(self, api_key: str, topic: str) -> Dict[str, Any]:
        return await self._http.get_json(
            self._endpoint,
            params={"q": topic, "sortBy": "publishedAt", "pageSize": self._page_size},
            headers={"X-Api-Key": api_key},
        )

    async def fetch(self) -> FetchResult:
        api_key = self._api_key
        if not api_key:
            return self._failure(NotConfiguredError("API key not configured"))

        records: List[ContentRecord] = []
        errors: List[str] = []
        for topic in self._topics:
            try:
                data = await retry_with_backoff(
                    functools.partial(self._search, api_key, topic),
                    max_attempts=self._max_attempts,
                    sleep=self._sleep,
                    label=f"newsapi:{topic}",
                )
            except ConnectorError as exc:
                logger.warning("collect.newsapi_topic_failed", extra={"topic": topic, "error": str(exc)})
                errors.append(f"{topic}: {exc}")
                continue
            raw = [
                RawItem(
                    title=a.get("title"),
                    description=a.get("description"),
                    link=a.get("url"),
                    published=a.get("publishedAt"),
                )
                for a in (data.get("articles") or [])
                if isinstance(a, dict)
            ]
            records.extend(self._to_records(raw, tags=["news", topic]))

        return FetchResult(
            success=bool(records) or not errors,
            source=self.name,
            items=records,
            error="; ".join(errors) or None,
        )
