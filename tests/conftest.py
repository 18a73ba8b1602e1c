from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, List, Optional, Sequence

import pytest

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from collector.connectors.errors import RankerError  # noqa: E402
from collector.models.domain import ContentRecord, ContentType, License  # noqa: E402
from collector.services.deduplicator import derive_id  # noqa: E402
from collector.services.ranker_client import (  # noqa: E402
    RankedCandidate,
    RankerFeedback,
    RankerItem,
    RankerUser,
)

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


class ManualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRanker:
    """In-memory stand-in for the external ranker; records every submission."""

    def __init__(self) -> None:
        self.item_batches: List[List[RankerItem]] = []
        self.user_batches: List[List[RankerUser]] = []
        self.feedback_batches: List[List[RankerFeedback]] = []
        self.recommend_calls: List[tuple] = []
        self.candidates: List[RankedCandidate] = []
        self.fail_inserts = False
        self.fail_recommend = False
        self.healthy = True

    async def insert_items(self, items: Sequence[RankerItem]) -> None:
        if self.fail_inserts:
            raise RankerError("ranker down", status=503)
        self.item_batches.append(list(items))

    async def insert_users(self, users: Sequence[RankerUser]) -> None:
        if self.fail_inserts:
            raise RankerError("ranker down", status=503)
        self.user_batches.append(list(users))

    async def insert_feedback(self, feedback: Sequence[RankerFeedback]) -> None:
        if self.fail_inserts:
            raise RankerError("ranker down", status=503)
        self.feedback_batches.append(list(feedback))

    async def recommend(self, user_id: str, n: int) -> List[RankedCandidate]:
        self.recommend_calls.append((user_id, n))
        if self.fail_recommend:
            raise RankerError("ranker unreachable")
        return list(self.candidates)

    async def health(self) -> bool:
        return self.healthy


def build_record(
    url: str,
    *,
    title: Optional[str] = None,
    tags: Sequence[str] = ("science",),
    published_at: Optional[datetime] = None,
    important: bool = False,
    content_type: ContentType = ContentType.ARTICLE,
) -> ContentRecord:
    return ContentRecord(
        id=derive_id(url),
        title=title or url.rsplit("/", 1)[-1],
        excerpt="excerpt",
        full_text="excerpt",
        tags=list(tags),
        published_at=published_at or NOW - timedelta(days=1),
        source_url="https://feeds.example.com/rss",
        article_url=url,
        license=License.RSS,
        content_type=content_type,
        important=important,
    )


@pytest.fixture()
def make_record() -> Callable[..., ContentRecord]:
    return build_record


@pytest.fixture()
def fake_ranker() -> FakeRanker:
    return FakeRanker()


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def now() -> datetime:
    return NOW
