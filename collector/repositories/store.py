"""Document store contract plus an in-memory implementation for tests/local runs."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol, Sequence

from collector.connectors.errors import StorageError
from collector.models.domain import CollectionMetrics, ContentRecord, FeedbackEvent, UserProfile

METRIC_SLOTS = ("latest", "last_run")


class DocumentStore(Protocol):
    async def exists(self, content_id: str) -> bool: ...  # noqa: D401
    async def get_many(self, content_ids: Sequence[str]) -> List[Optional[ContentRecord]]: ...
    async def insert(self, record: ContentRecord) -> ContentRecord: ...
    async def count(self) -> int: ...
    async def recent_content(self, since: datetime, limit: int) -> List[ContentRecord]: ...
    async def content_page(self, offset: int, limit: int) -> List[ContentRecord]: ...
    async def get_user(self, user_id: str) -> Optional[UserProfile]: ...
    async def users_page(self, offset: int, limit: int) -> List[UserProfile]: ...
    async def interactions_since(self, since: datetime, offset: int, limit: int) -> List[FeedbackEvent]: ...
    async def save_metrics(self, metrics: CollectionMetrics) -> None: ...
    async def record_sync(self, kind: str, total: int) -> None: ...


class InMemoryDocumentStore:
    """Dict-backed store. Insert order doubles as the tie-break for equal publish times."""

    def __init__(self) -> None:
        self.content: Dict[str, ContentRecord] = {}
        self.users: Dict[str, UserProfile] = {}
        self.interactions: List[FeedbackEvent] = []
        self.metrics: Dict[str, CollectionMetrics] = {}
        self.sync_meta: Dict[str, Dict[str, object]] = {}

    # -- seeding helpers (profiles and interactions are written by other services)
    def add_user(self, profile: UserProfile) -> None:
        self.users[profile.id] = profile

    def add_interaction(self, event: FeedbackEvent) -> None:
        self.interactions.append(event)

    def put(self, record: ContentRecord) -> None:
        stamped = record.model_copy(update={"created_at": record.created_at or datetime.now(timezone.utc)})
        self.content[record.id] = stamped

    # -- DocumentStore
    async def exists(self, content_id: str) -> bool:
        return content_id in self.content

    async def get_many(self, content_ids: Sequence[str]) -> List[Optional[ContentRecord]]:
        return [self.content.get(cid) for cid in content_ids]

    async def insert(self, record: ContentRecord) -> ContentRecord:
        if record.id in self.content:
            raise StorageError(f"content {record.id} already exists")
        stored = record.model_copy(update={"created_at": datetime.now(timezone.utc)})
        self.content[record.id] = stored
        return stored

    async def count(self) -> int:
        return len(self.content)

    async def recent_content(self, since: datetime, limit: int) -> List[ContentRecord]:
        fresh = [r for r in self.content.values() if r.published_at >= since]
        fresh.sort(key=lambda r: r.published_at, reverse=True)
        return fresh[:limit]

    async def content_page(self, offset: int, limit: int) -> List[ContentRecord]:
        ordered = sorted(self.content.values(), key=lambda r: r.published_at, reverse=True)
        return ordered[offset : offset + limit]

    async def get_user(self, user_id: str) -> Optional[UserProfile]:
        return self.users.get(user_id)

    async def users_page(self, offset: int, limit: int) -> List[UserProfile]:
        return list(self.users.values())[offset : offset + limit]

    async def interactions_since(self, since: datetime, offset: int, limit: int) -> List[FeedbackEvent]:
        fresh = sorted((e for e in self.interactions if e.timestamp >= since), key=lambda e: e.timestamp, reverse=True)
        return fresh[offset : offset + limit]

    async def save_metrics(self, metrics: CollectionMetrics) -> None:
        for slot in METRIC_SLOTS:
            self.metrics[slot] = metrics

    async def record_sync(self, kind: str, total: int) -> None:
        self.sync_meta[kind] = {"last_synced_at": datetime.now(timezone.utc), "total_synced": total}
