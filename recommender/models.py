"""Recommendation result models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from collector.models.domain import ContentRecord


class ResultSource(str, Enum):
    RANKER = "ranker"
    FALLBACK = "fallback"


class RecommendationItem(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    content_id: str
    score: float
    title: str
    excerpt: str = ""
    tags: List[str] = Field(default_factory=list)
    published_at: Optional[datetime] = None
    url: str = ""

    @classmethod
    def from_record(cls, record: ContentRecord, score: float) -> "RecommendationItem":
        return cls(
            content_id=record.id,
            score=score,
            title=record.title,
            excerpt=record.excerpt,
            tags=list(record.tags),
            published_at=record.published_at,
            url=record.article_url,
        )


class RecommendationResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    items: List[RecommendationItem] = Field(default_factory=list)
    source: ResultSource
    cached: bool = False
    reason: Optional[str] = Field(None, description="폴백이 비어 있는 이유 (user_not_found, no_interests, no_content)")
