from __future__ import annotations

from datetime import timedelta

import pytest

from collector.models.domain import ContentType, UserProfile
from collector.repositories.store import InMemoryDocumentStore
from recommender.fallback import FallbackScorer, score_candidates, score_record
from recommender.models import ResultSource


def test_score_formula(make_record, now):
    record = make_record(
        "https://example.com/a",
        tags=["science", "space-exploration"],
        published_at=now - timedelta(days=7),
        important=True,
    )

    score = score_record(record, ["science", "space"], now=now)

    # exact(1)*10 + partial(space-exploration~space, science~science excluded)*5 + (5 - 1) + 3
    assert score == pytest.approx(10 + 5 + 4 + 3)


def test_poems_are_damped_and_old_content_gets_no_recency(make_record, now):
    poem = make_record("https://example.com/p", tags=["poetry"], published_at=now - timedelta(days=60),
                       content_type=ContentType.POEM)

    assert score_record(poem, ["poetry"], now=now) == pytest.approx(10 * 0.8)


def test_unrelated_candidates_are_excluded(make_record, now):
    pool = [make_record("https://example.com/cooking", tags=["cooking"])]
    assert score_candidates(["astronomy"], pool, 10, now=now) == []


def test_two_fresh_exact_matches_beat_one_stale_partial_match(make_record, now):
    fresh = make_record("https://example.com/fresh", tags=["technology", "design"], published_at=now)
    stale = make_record("https://example.com/stale", tags=["tech-news"], published_at=now - timedelta(days=30))
    interests = ["technology", "design"]

    assert score_record(fresh, interests, now=now) > score_record(stale, interests, now=now)
    ranked = score_candidates(interests, [stale, fresh], 2, now=now)
    assert [item.url for item in ranked] == ["https://example.com/fresh", "https://example.com/stale"]


def test_ordering_is_stable_and_truncated(make_record, now):
    same_day = now - timedelta(days=1)
    pool = [
        make_record("https://example.com/1", tags=["science"], published_at=same_day),
        make_record("https://example.com/2", tags=["science", "physics"], published_at=same_day),
        make_record("https://example.com/3", tags=["science"], published_at=same_day),
        make_record("https://example.com/4", tags=["science"], published_at=same_day),
    ]

    ranked = score_candidates(["science", "physics"], pool, 3, now=now)

    assert [item.url for item in ranked] == [
        "https://example.com/2",
        "https://example.com/1",
        "https://example.com/3",
    ]


def _scorer(store, now):
    return FallbackScorer(store, lookback_days=120, pool_size=300, now=lambda: now)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "profile, reason",
    [(None, "user_not_found"), (UserProfile(id="u1", interests=[]), "no_interests"),
     (UserProfile(id="u1", interests=["science"]), "no_content")],
)
async def test_empty_results_carry_reason(profile, reason, now):
    store = InMemoryDocumentStore()
    if profile is not None:
        store.add_user(profile)

    result = await _scorer(store, now).recommend("u1", 5)

    assert result.items == []
    assert result.source is ResultSource.FALLBACK
    assert result.reason == reason


@pytest.mark.asyncio
async def test_pool_respects_lookback_and_exclusions(make_record, now):
    store = InMemoryDocumentStore()
    store.add_user(UserProfile(id="u1", interests=["Science"]))
    fresh = make_record("https://example.com/fresh", published_at=now - timedelta(days=3))
    taken = make_record("https://example.com/taken", published_at=now - timedelta(days=2))
    stale = make_record("https://example.com/stale", published_at=now - timedelta(days=200))
    for record in (fresh, taken, stale):
        store.put(record)

    result = await _scorer(store, now).recommend("u1", 10, exclude={taken.id})

    assert [item.content_id for item in result.items] == [fresh.id]
    assert result.reason is None
