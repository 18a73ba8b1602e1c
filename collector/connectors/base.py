"""Source abstraction and group runner."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Sequence

from collector.models.domain import ContentRecord, ContentType, FetchResult, License, RawItem
from collector.services.normalizer import normalize_item
from collector.utils.logging import get_logger

logger = get_logger(__name__)


class Source(ABC):
    """One feed or API endpoint with a fixed tag set, license and content type."""

    name: str
    tags: Sequence[str] = ()
    license: License = License.RSS
    content_type: ContentType = ContentType.ARTICLE

    @abstractmethod
    async def fetch(self) -> FetchResult:
        """Retrieve and normalize items. Expected failures come back as ``success=False``."""

    def _to_records(
        self,
        items: Iterable[RawItem],
        *,
        tags: Sequence[str] | None = None,
    ) -> List[ContentRecord]:
        now = datetime.now(timezone.utc)
        records: List[ContentRecord] = []
        for item in items:
            if not item.link:
                continue
            records.append(
                normalize_item(
                    item,
                    source=self.name,
                    tags=self.tags if tags is None else tags,
                    license=self.license,
                    content_type=self.content_type,
                    now=now,
                )
            )
        return records

    def _failure(self, error: object) -> FetchResult:
        return FetchResult(success=False, source=self.name, error=str(error) or type(error).__name__)


@dataclass
class SourceGroup:
    """Named set of sources fetched one after another; the unit of orchestrator concurrency."""

    name: str
    sources: List[Source] = field(default_factory=list)

    async def run(self) -> List[FetchResult]:
        results: List[FetchResult] = []
        for source in self.sources:
            try:
                result = await source.fetch()
            except Exception as exc:  # isolate unexpected source bugs to that source
                logger.exception("collect.source_crashed", extra={"group": self.name, "source": source.name})
                result = FetchResult(success=False, source=source.name, error=f"{type(exc).__name__}: {exc}")
            logger.info(
                "collect.source_done",
                extra={
                    "group": self.name,
                    "source": result.source,
                    "success": result.success,
                    "items": len(result.items),
                    "error": result.error,
                },
            )
            results.append(result)
        return results
