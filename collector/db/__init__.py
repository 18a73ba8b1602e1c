"""Database utilities for the content store."""

from .models import (  # noqa: F401
    Base,
    CollectionMetricsRow,
    ContentRow,
    InteractionRow,
    SyncMetaRow,
    UserProfileRow,
)
from .session import ensure_schema, make_engine, make_sessionmaker, session_scope  # noqa: F401

__all__ = [
    "Base",
    "CollectionMetricsRow",
    "ContentRow",
    "InteractionRow",
    "SyncMetaRow",
    "UserProfileRow",
    "ensure_schema",
    "make_engine",
    "make_sessionmaker",
    "session_scope",
]
