"""Guardian Open Platform content search source."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from collector.models.domain import ContentRecord, FetchResult, License, RawItem
from collector.services.retry import SleepFn, retry_with_backoff

from .base import Source
from .errors import ConnectorError, NotConfiguredError
from .http import SourceHttp

GUARDIAN_ENDPOINT = "https://content.guardianapis.com/search"


class GuardianSource(Source):
    name = "Guardian"
    license = License.API

    def __init__(
        self,
        http: SourceHttp,
        api_key: Optional[str],
        *,
        sections: str = "science|technology",
        page_size: int = 50,
        endpoint: str = GUARDIAN_ENDPOINT,
        max_attempts: int = 3,
        sleep: Optional[SleepFn] = None,
    ) -> None:
        self._http = http
        self._api_key = api_key
        self._sections = sections
        self._page_size = page_size
        self._endpoint = endpoint
        self._max_attempts = max_attempts
        self._sleep = sleep

    async def _search(self) -> Dict[str, Any]:
        return await self._http.get_json(
            self._endpoint,
            params={
                "section": self._sections,
                "page-size": self._page_size,
                "show-fields": "trailText",
                "api-key": self._api_key,
            },
        )

    async def fetch(self) -> FetchResult:
        if not self._api_key:
            return self._failure(NotConfiguredError("API key not configured"))
        try:
            data = await retry_with_backoff(
                self._search, max_attempts=self._max_attempts, sleep=self._sleep, label="guardian"
            )
        except ConnectorError as exc:
            return self._failure(exc)

        records: List[ContentRecord] = []
        for article in ((data.get("response") or {}).get("results") or []):
            if not isinstance(article, dict) or not article.get("webUrl"):
                continue
            section = (article.get("sectionName") or "").strip().lower() or "general"
            raw = RawItem(
                title=article.get("webTitle"),
                description=(article.get("fields") or {}).get("trailText") or "",
                link=article["webUrl"],
                published=article.get("webPublicationDate"),
            )
            records.extend(self._to_records([raw], tags=["news", section]))
        return FetchResult(success=True, source=self.name, items=records)
