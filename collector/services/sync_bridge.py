"""Pushes stored content, profiles and feedback to the external ranker.

Every public method swallows ranker/storage failures after logging them; the
caller only learns how many records went through (and, for the per-run push,
the error text for the run metrics).
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from collector.connectors.errors import RankerError, StorageError
from collector.models.domain import ContentRecord, FeedbackEvent, UserProfile
from collector.repositories.store import DocumentStore
from collector.utils.logging import get_logger

from .ranker_client import Ranker, RankerFeedback, RankerItem, RankerUser

logger = get_logger(__name__)


def to_ranker_item(record: ContentRecord) -> RankerItem:
    return RankerItem(
        id=record.id,
        hidden=False,
        categories=list(record.tags),
        timestamp=record.published_at,
        labels=["important"] if record.important else [],
        comment=record.title,
    )


def to_ranker_user(profile: UserProfile) -> RankerUser:
    return RankerUser(id=profile.id, labels=list(profile.interests), comment=profile.display_name)


def to_ranker_feedback(event: FeedbackEvent) -> RankerFeedback:
    return RankerFeedback(type=event.type, user_id=event.user_id, item_id=event.item_id, timestamp=event.timestamp)


class SyncBridge:
    def __init__(
        self,
        ranker: Ranker,
        store: DocumentStore,
        *,
        page_size: int = 500,
        interaction_lookback_days: int = 90,
    ) -> None:
        self._ranker = ranker
        self._store = store
        self._page_size = page_size
        self._lookback_days = interaction_lookback_days

    # -- per-run / immediate pushes -------------------------------------------------
    async def push_items(self, records: Sequence[ContentRecord]) -> Tuple[int, Optional[str]]:
        """Submit a batch in one call. Returns (synced_count, error)."""
        if not records:
            return 0, None
        try:
            await self._ranker.insert_items([to_ranker_item(r) for r in records])
        except RankerError as exc:
            logger.error("sync.items_failed", extra={"count": len(records), "error": str(exc)})
            return 0, str(exc)
        logger.info("sync.items_pushed", extra={"count": len(records)})
        return len(records), None

    async def push_users(self, profiles: Sequence[UserProfile]) -> int:
        if not profiles:
            return 0
        try:
            await self._ranker.insert_users([to_ranker_user(p) for p in profiles])
        except RankerError as exc:
            logger.error("sync.users_failed", extra={"count": len(profiles), "error": str(exc)})
            return 0
        return len(profiles)

    async def push_feedback(self, events: Sequence[FeedbackEvent]) -> int:
        if not events:
            return 0
        try:
            await self._ranker.insert_feedback([to_ranker_feedback(e) for e in events])
        except RankerError as exc:
            logger.error("sync.feedback_failed", extra={"count": len(events), "error": str(exc)})
            return 0
        return len(events)

    async def push_feedback_now(self, event: FeedbackEvent) -> bool:
        return await self.push_feedback([event]) == 1

    async def sync_user(self, user_id: str) -> bool:
        """Re-send one profile, e.g. right after its interests changed."""
        try:
            profile = await self._store.get_user(user_id)
        except StorageError as exc:
            logger.error("sync.user_lookup_failed", extra={"user_id": user_id, "error": str(exc)})
            return False
        if profile is None:
            logger.warning("sync.user_missing", extra={"user_id": user_id})
            return False
        return await self.push_users([profile]) == 1

    # -- paged backfills --------------------------------------------------------------
    async def _paged(
        self,
        kind: str,
        load_page: Callable[[int, int], Awaitable[List[Any]]],
        submit: Callable[[List[Any]], Awaitable[None]],
    ) -> Dict[str, Any]:
        total = 0
        offset = 0
        try:
            while True:
                page = await load_page(offset, self._page_size)
                if not page:
                    break
                await submit(page)
                total += len(page)
                offset += len(page)
                logger.info("sync.page", extra={"kind": kind, "synced": total})
                if len(page) < self._page_size:
                    break
            await self._store.record_sync(kind, total)
        except (RankerError, StorageError) as exc:
            logger.error("sync.full_failed", extra={"kind": kind, "synced": total, "error": str(exc)})
            return {"success": False, "error": str(exc), "totalSynced": total}
        logger.info("sync.full_done", extra={"kind": kind, "total": total})
        return {"success": True, "totalSynced": total}

    async def sync_all_items(self) -> Dict[str, Any]:
        async def submit(page: List[ContentRecord]) -> None:
            await self._ranker.insert_items([to_ranker_item(r) for r in page])

        return await self._paged("items", self._store.content_page, submit)

    async def sync_all_users(self) -> Dict[str, Any]:
        async def submit(page: List[UserProfile]) -> None:
            await self._ranker.insert_users([to_ranker_user(p) for p in page])

        return await self._paged("users", self._store.users_page, submit)

    async def sync_recent_interactions(self, days_back: Optional[int] = None) -> Dict[str, Any]:
        since = datetime.now(timezone.utc) - timedelta(days=days_back or self._lookback_days)

        async def load(offset: int, limit: int) -> List[FeedbackEvent]:
            return await self._store.interactions_since(since, offset, limit)

        async def submit(page: List[FeedbackEvent]) -> None:
            await self._ranker.insert_feedback([to_ranker_feedback(e) for e in page])

        return await self._paged("interactions", load, submit)

    async def run_full_sync(self) -> Dict[str, Any]:
        started = datetime.now(timezone.utc)
        results = {
            "items": await self.sync_all_items(),
            "users": await self.sync_all_users(),
            "interactions": await self.sync_recent_interactions(),
        }
        logger.info(
            "sync.full_complete",
            extra={"duration": round((datetime.now(timezone.utc) - started).total_seconds(), 2)},
        )
        return results
