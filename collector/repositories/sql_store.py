"""SQLAlchemy-backed DocumentStore.

Session work is synchronous (as everywhere else in the codebase) and is pushed
off the event loop with ``asyncio.to_thread`` so fetches keep overlapping while
the store is busy.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence, TypeVar

from sqlalchemy import func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from collector.connectors.errors import StorageError
from collector.db.models import CollectionMetricsRow, ContentRow, InteractionRow, SyncMetaRow, UserProfileRow
from collector.db.session import ensure_schema, make_engine, make_sessionmaker, session_scope
from collector.models.domain import CollectionMetrics, ContentRecord, FeedbackEvent, UserProfile

from .store import METRIC_SLOTS

T = TypeVar("T")


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo on the way back.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def to_record(row: ContentRow) -> ContentRecord:
    return ContentRecord(
        id=row.id,
        title=row.title,
        excerpt=row.excerpt,
        full_text=row.full_text,
        tags=list(row.tags or []),
        published_at=_aware(row.published_at),
        source_url=row.source_url,
        article_url=row.article_url,
        license=row.license,
        content_type=row.content_type,
        important=bool(row.important),
        created_at=_aware(row.created_at),
    )


def to_row(record: ContentRecord, created_at: datetime) -> ContentRow:
    return ContentRow(
        id=record.id,
        title=record.title,
        excerpt=record.excerpt,
        full_text=record.full_text,
        tags=list(record.tags),
        published_at=record.published_at,
        source_url=record.source_url,
        article_url=record.article_url,
        license=record.license,
        content_type=record.content_type,
        important=record.important,
        created_at=created_at,
    )


def to_profile(row: UserProfileRow) -> UserProfile:
    return UserProfile(id=row.id, interests=list(row.interests or []), display_name=row.display_name or "")


class SqlDocumentStore:
    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._sessions = make_sessionmaker(engine)

    @classmethod
    def from_dsn(cls, dsn: str, *, create_schema: bool = True) -> "SqlDocumentStore":
        engine = make_engine(dsn)
        if create_schema:
            ensure_schema(engine)
        return cls(engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    async def _run(self, work: Callable[[Session], T]) -> T:
        def _in_session() -> T:
            with session_scope(self._sessions) as session:
                return work(session)

        try:
            return await asyncio.to_thread(_in_session)
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    async def exists(self, content_id: str) -> bool:
        return await self._run(lambda s: s.get(ContentRow, content_id) is not None)

    async def get_many(self, content_ids: Sequence[str]) -> List[Optional[ContentRecord]]:
        ids = list(content_ids)
        if not ids:
            return []

        def work(session: Session) -> List[Optional[ContentRecord]]:
            rows = session.execute(select(ContentRow).where(ContentRow.id.in_(ids))).scalars().all()
            by_id = {row.id: to_record(row) for row in rows}
            return [by_id.get(cid) for cid in ids]

        return await self._run(work)

    async def insert(self, record: ContentRecord) -> ContentRecord:
        created_at = datetime.now(timezone.utc)

        def work(session: Session) -> None:
            session.add(to_row(record, created_at))
            session.flush()

        try:
            await self._run(work)
        except StorageError as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise StorageError(f"content {record.id} already exists") from exc.__cause__
            raise
        return record.model_copy(update={"created_at": created_at})

    async def count(self) -> int:
        return await self._run(lambda s: int(s.execute(select(func.count()).select_from(ContentRow)).scalar_one()))

    async def recent_content(self, since: datetime, limit: int) -> List[ContentRecord]:
        stmt = (
            select(ContentRow)
            .where(ContentRow.published_at >= since)
            .order_by(ContentRow.published_at.desc())
            .limit(limit)
        )
        return await self._run(lambda s: [to_record(r) for r in s.execute(stmt).scalars()])

    async def content_page(self, offset: int, limit: int) -> List[ContentRecord]:
        stmt = select(ContentRow).order_by(ContentRow.published_at.desc(), ContentRow.id).offset(offset).limit(limit)
        return await self._run(lambda s: [to_record(r) for r in s.execute(stmt).scalars()])

    async def get_user(self, user_id: str) -> Optional[UserProfile]:
        def work(session: Session) -> Optional[UserProfile]:
            row = session.get(UserProfileRow, user_id)
            return to_profile(row) if row is not None else None

        return await self._run(work)

    async def users_page(self, offset: int, limit: int) -> List[UserProfile]:
        stmt = select(UserProfileRow).order_by(UserProfileRow.id).offset(offset).limit(limit)
        return await self._run(lambda s: [to_profile(r) for r in s.execute(stmt).scalars()])

    async def interactions_since(self, since: datetime, offset: int, limit: int) -> List[FeedbackEvent]:
        stmt = (
            select(InteractionRow)
            .where(InteractionRow.timestamp >= since)
            .order_by(InteractionRow.timestamp.desc(), InteractionRow.id)
            .offset(offset)
            .limit(limit)
        )

        def work(session: Session) -> List[FeedbackEvent]:
            return [
                FeedbackEvent(type=r.type, user_id=r.user_id, item_id=r.content_id, timestamp=_aware(r.timestamp))
                for r in session.execute(stmt).scalars()
            ]

        return await self._run(work)

    async def save_metrics(self, metrics: CollectionMetrics) -> None:
        payload = metrics.model_dump(mode="json")

        def work(session: Session) -> None:
            for slot in METRIC_SLOTS:
                session.merge(CollectionMetricsRow(slot=slot, payload=payload, recorded_at=metrics.timestamp))

        await self._run(work)

    async def latest_metrics(self) -> Optional[CollectionMetrics]:
        def work(session: Session) -> Optional[CollectionMetrics]:
            row = session.get(CollectionMetricsRow, "latest")
            return CollectionMetrics.model_validate(row.payload) if row is not None else None

        return await self._run(work)

    async def record_sync(self, kind: str, total: int) -> None:
        now = datetime.now(timezone.utc)
        await self._run(lambda s: s.merge(SyncMetaRow(kind=kind, last_synced_at=now, total_synced=total)))
