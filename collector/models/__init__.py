"""Domain models for the collection pipeline."""

from .domain import (  # noqa: F401
    EXCERPT_MAX_CHARS,
    TITLE_MAX_CHARS,
    CollectionMetrics,
    ContentRecord,
    ContentType,
    FeedbackEvent,
    FetchResult,
    License,
    RawItem,
    SourceError,
    UserProfile,
)

__all__ = [
    "EXCERPT_MAX_CHARS",
    "TITLE_MAX_CHARS",
    "CollectionMetrics",
    "ContentRecord",
    "ContentType",
    "FeedbackEvent",
    "FetchResult",
    "License",
    "RawItem",
    "SourceError",
    "UserProfile",
]
