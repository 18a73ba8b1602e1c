"""SQLAlchemy models for collected content and the records around it."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Enum as SAEnum,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import Uuid

from collector.models.domain import ContentType, License


class Base(DeclarativeBase):
    """Base class for ORM models."""


class TimestampMixin:
    """Adds created_at/updated_at columns."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class ContentRow(Base):
    """One collected item. Written once, never updated by the collector."""

    __tablename__ = "content"
    __table_args__ = (Index("ix_content_published_at", "published_at"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    excerpt: Mapped[str] = mapped_column(String(256), nullable=False, default="")
    full_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    tags: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    published_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    source_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    article_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    license: Mapped[License] = mapped_column(
        SAEnum(License, name="content_license", native_enum=False, length=16, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    content_type: Mapped[ContentType] = mapped_column(
        SAEnum(ContentType, name="content_type", native_enum=False, length=16, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ContentType.ARTICLE,
    )
    important: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )


class UserProfileRow(TimestampMixin, Base):
    """Interest profile, owned by the profile service; read here."""

    __tablename__ = "user_profiles"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    interests: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    display_name: Mapped[str] = mapped_column(String(256), nullable=False, default="")


class InteractionRow(Base):
    """User feedback on an item (view, like, save, dismiss)."""

    __tablename__ = "interactions"
    __table_args__ = (Index("ix_interactions_timestamp", "timestamp"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    content_id: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )


class CollectionMetricsRow(Base):
    """Run metrics; one row per slot (``latest``, ``last_run``)."""

    __tablename__ = "collection_metrics"

    slot: Mapped[str] = mapped_column(String(32), primary_key=True)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    recorded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class SyncMetaRow(Base):
    __tablename__ = "sync_meta"

    kind: Mapped[str] = mapped_column(String(32), primary_key=True)
    last_synced_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    total_synced: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
