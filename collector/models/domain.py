"""Domain DTOs for the collection pipeline."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, Field, model_validator

EXCERPT_MAX_CHARS = 200
TITLE_MAX_CHARS = 200


class License(str, Enum):
    PUBLIC_DOMAIN = "public-domain"
    RSS = "rss"
    RESTRICTED = "restricted"
    API = "api"


class ContentType(str, Enum):
    ARTICLE = "article"
    POEM = "poem"


class RawItem(BaseModel):
    """Source-agnostic item as handed over by a fetcher, before normalization."""

    title: Optional[str] = None
    description: Optional[str] = None
    link: Optional[str] = None
    published: Optional[Any] = Field(None, description="ISO-8601/RFC-822 문자열 또는 datetime")


class ContentRecord(BaseModel):
    """Canonical stored unit. ``created_at`` stays empty until first persistence."""

    id: str = Field(..., description="URL 기반 고정 길이 식별자")
    title: str
    excerpt: str = Field("", max_length=EXCERPT_MAX_CHARS)
    full_text: str = ""
    tags: List[str] = Field(default_factory=list)
    published_at: datetime
    source_url: str
    article_url: str
    license: License
    content_type: ContentType = ContentType.ARTICLE
    important: bool = False
    created_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _restricted_text_never_exceeds_excerpt(self) -> "ContentRecord":
        if self.license is not License.PUBLIC_DOMAIN and len(self.full_text) > EXCERPT_MAX_CHARS:
            raise ValueError("public-domain 이외의 라이선스는 발췌문 길이를 넘는 본문을 저장할 수 없습니다.")
        return self


class FetchResult(BaseModel):
    """Common output of every source: success flag, identifier, items, optional error."""

    success: bool
    source: str
    items: List[ContentRecord] = Field(default_factory=list)
    error: Optional[str] = None


class SourceError(BaseModel):
    source: str
    error: str


class CollectionMetrics(BaseModel):
    """Observational record written once per (non-dry) run."""

    timestamp: datetime
    status: str
    feeds_attempted: int = 0
    feeds_succeeded: int = 0
    items_found: int = 0
    new_items_added: int = 0
    existing_items: int = 0
    write_failures: int = 0
    total_items: int = 0
    synced_count: int = 0
    sync_error: Optional[str] = None
    duration_seconds: float = 0.0
    errors: List[SourceError] = Field(default_factory=list)


class UserProfile(BaseModel):
    """Read-only view of the externally managed interest profile."""

    id: str
    interests: List[str] = Field(default_factory=list)
    display_name: str = ""

    @property
    def normalized_interests(self) -> List[str]:
        return [i.strip().lower() for i in self.interests if isinstance(i, str) and i.strip()]


class FeedbackEvent(BaseModel):
    type: str = Field(..., description="view, like, save, dismiss 등")
    user_id: str
    item_id: str
    timestamp: datetime
