"""Collection run: bounded concurrent fetch, dedupe-by-id persistence, ranker push, metrics."""

from __future__ import annotations

import asyncio
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from collector.connectors.base import Source, SourceGroup
from collector.connectors.errors import CollectionError, StorageError
from collector.connectors.registry import select_groups
from collector.models.domain import CollectionMetrics, ContentRecord, FetchResult, SourceError
from collector.repositories.store import DocumentStore
from collector.utils.logging import get_logger

from .sync_bridge import SyncBridge

logger = get_logger(__name__)


class RunState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PERSISTING = "persisting"
    SYNCING = "syncing"
    DONE = "done"
    PARTIAL_FAILURE = "partial-failure"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CollectionReport(_CamelModel):
    status: str
    feeds_attempted: int = 0
    feeds_succeeded: int = 0
    items_found: int = 0
    new_items_added: int = 0
    existing_items: int = 0
    write_failures: int = 0
    total_items: Optional[int] = None
    synced_count: int = 0
    sync_error: Optional[str] = None
    duration_seconds: float = 0.0
    errors: List[SourceError] = Field(default_factory=list)
    items: List[ContentRecord] = Field(default_factory=list, description="dry-run 미리보기 전용")


class SourceTestReport(_CamelModel):
    success: bool
    source: Optional[str] = None
    item_count: int = 0
    titles: List[str] = Field(default_factory=list)
    error: Optional[str] = None


class CollectionOrchestrator:
    """Runs source groups under a semaphore and persists whatever succeeded.

    A group is the unit of concurrency: its sources run one after another,
    and at most ``concurrency`` groups are awaiting I/O at any moment.
    """

    def __init__(
        self,
        groups: Sequence[SourceGroup],
        store: DocumentStore,
        bridge: Optional[SyncBridge] = None,
        *,
        max_new_items: int = 2000,
        concurrency: int = 5,
        test_source_factory: Optional[Callable[[str], Optional[Source]]] = None,
        test_source_names: Sequence[str] = (),
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._groups = list(groups)
        self._store = store
        self._bridge = bridge
        self._max_new_items = max_new_items
        self._concurrency = concurrency
        self._test_source_factory = test_source_factory
        self._test_source_names = list(test_source_names)
        self.state = RunState.IDLE

    @property
    def group_names(self) -> List[str]:
        return [g.name for g in self._groups]

    def _transition(self, state: RunState) -> None:
        logger.debug("collect.state", extra={"from": self.state.value, "to": state.value})
        self.state = state

    async def _fetch(self, groups: Sequence[SourceGroup]) -> List[FetchResult]:
        semaphore = asyncio.Semaphore(self._concurrency)

        async def run_group(group: SourceGroup) -> List[FetchResult]:
            async with semaphore:
                try:
                    return await group.run()
                except Exception as exc:
                    logger.exception("collect.group_crashed", extra={"group": group.name})
                    return [FetchResult(success=False, source=group.name, error=f"{type(exc).__name__}: {exc}")]

        batches = await asyncio.gather(*(run_group(g) for g in groups))
        return [result for batch in batches for result in batch]

    async def collect_all(self, sources: Optional[Sequence[str]] = None, *, dry_run: bool = False) -> CollectionReport:
        started = time.monotonic()
        groups = select_groups(self._groups, sources)
        logger.info(
            "collect.start",
            extra={
                "mode": "dry-run" if dry_run else "live",
                "groups": [g.name for g in groups],
                "max_new_items": self._max_new_items,
                "concurrency": self._concurrency,
            },
        )

        self._transition(RunState.FETCHING)
        results = await self._fetch(groups)

        items: List[ContentRecord] = []
        errors: List[SourceError] = []
        succeeded = 0
        for result in results:
            if result.success:
                succeeded += 1
                items.extend(result.items)
            else:
                errors.append(SourceError(source=result.source, error=result.error or "Unknown error"))
        logger.info(
            "collect.fetched",
            extra={"attempted": len(results), "succeeded": succeeded, "items": len(items), "failed": len(errors)},
        )

        if dry_run:
            self._transition(RunState.DONE)
            return CollectionReport(
                status="dry-run",
                feeds_attempted=len(results),
                feeds_succeeded=succeeded,
                items_found=len(items),
                duration_seconds=round(time.monotonic() - started, 3),
                errors=errors,
                items=items,
            )

        self._transition(RunState.PERSISTING)
        added: List[ContentRecord] = []
        existing = 0
        write_failures = 0
        for item in items:
            if len(added) >= self._max_new_items:
                logger.warning("collect.cap_reached", extra={"cap": self._max_new_items})
                break
            try:
                if await self._store.exists(item.id):
                    existing += 1
                    continue
                added.append(await self._store.insert(item))
            except StorageError as exc:
                write_failures += 1
                logger.error("collect.write_failed", extra={"content_id": item.id, "error": str(exc)})
                continue
            if len(added) % 100 == 0:
                logger.info("collect.progress", extra={"added": len(added)})
        logger.info("collect.persisted", extra={"added": len(added), "existing": existing, "failed": write_failures})

        synced, sync_error = 0, None
        if added and self._bridge is not None:
            self._transition(RunState.SYNCING)
            synced, sync_error = await self._bridge.push_items(added)

        partial = bool(errors or sync_error or write_failures)
        try:
            total = await self._store.count()
            metrics = CollectionMetrics(
                timestamp=datetime.now(timezone.utc),
                status=RunState.PARTIAL_FAILURE.value if partial else "complete",
                feeds_attempted=len(results),
                feeds_succeeded=succeeded,
                items_found=len(items),
                new_items_added=len(added),
                existing_items=existing,
                write_failures=write_failures,
                total_items=total,
                synced_count=synced,
                sync_error=sync_error,
                duration_seconds=round(time.monotonic() - started, 3),
                errors=errors,
            )
            await self._store.save_metrics(metrics)
        except StorageError as exc:
            self._transition(RunState.PARTIAL_FAILURE)
            logger.error("collect.metrics_failed", extra={"error": str(exc)})
            raise CollectionError(f"failed to record run metrics: {exc}") from exc

        self._transition(RunState.PARTIAL_FAILURE if partial else RunState.DONE)
        logger.info(
            "collect.complete",
            extra={
                "status": metrics.status,
                "new_items": len(added),
                "total_items": total,
                "synced": synced,
                "duration": metrics.duration_seconds,
            },
        )
        return CollectionReport(
            status=metrics.status,
            feeds_attempted=metrics.feeds_attempted,
            feeds_succeeded=succeeded,
            items_found=len(items),
            new_items_added=len(added),
            existing_items=existing,
            write_failures=write_failures,
            total_items=total,
            synced_count=synced,
            sync_error=sync_error,
            duration_seconds=metrics.duration_seconds,
            errors=errors,
        )

    async def test_source(self, name: str) -> SourceTestReport:
        """Fetch one source without persisting; used to check a single feed's health."""
        source = self._test_source_factory(name) if self._test_source_factory else None
        if source is None:
            error = f"Unknown source: {name}"
            if self._test_source_names:
                error += f". Available: {', '.join(self._test_source_names)} or any http(s) feed URL"
            return SourceTestReport(success=False, error=error)
        try:
            result = await source.fetch()
        except Exception as exc:
            logger.exception("collect.test_source_crashed", extra={"source": name})
            result = FetchResult(success=False, source=source.name, error=f"{type(exc).__name__}: {exc}")
        return SourceTestReport(
            success=result.success,
            source=result.source,
            item_count=len(result.items),
            titles=[r.title for r in result.items[:10]],
            error=result.error,
        )


__all__ = ["CollectionOrchestrator", "CollectionReport", "RunState", "SourceTestReport"]
