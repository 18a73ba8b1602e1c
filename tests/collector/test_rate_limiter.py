from __future__ import annotations

import asyncio
from typing import List

import pytest

from collector.services.rate_limiter import HostRateLimiter, host_of


def _assert_window_respected(grants: List[float], limit: int, window: float = 1.0) -> None:
    for t in grants:
        in_window = [g for g in grants if t - window < g <= t]
        assert len(in_window) <= limit


@pytest.mark.asyncio
async def test_fifteen_requests_split_across_windows(clock):
    sleeps: List[float] = []

    async def sleep(delay: float) -> None:
        sleeps.append(delay)
        clock.advance(delay)

    limiter = HostRateLimiter(10, clock=clock, sleep=sleep)
    grants: List[float] = []
    for _ in range(15):
        await limiter.throttle("feeds.example.com")
        grants.append(clock())

    assert grants[:10] == [0.0] * 10
    assert all(t >= 1.0 for t in grants[10:])
    assert len(sleeps) == 1
    _assert_window_respected(grants, 10)


@pytest.mark.asyncio
async def test_concurrent_requests_never_exceed_limit(clock):
    async def sleep(delay: float) -> None:
        clock.advance(delay)
        await asyncio.sleep(0)

    limiter = HostRateLimiter(10, clock=clock, sleep=sleep)
    grants: List[float] = []

    async def request() -> None:
        await limiter.throttle("feeds.example.com")
        grants.append(clock())

    await asyncio.gather(*(request() for _ in range(15)))

    assert len(grants) == 15
    assert sorted(grants)[:10] == [0.0] * 10
    assert all(t >= 1.0 for t in sorted(grants)[10:])
    _assert_window_respected(grants, 10)


@pytest.mark.asyncio
async def test_hosts_are_throttled_independently(clock):
    async def sleep(delay: float) -> None:  # pragma: no cover - must not be reached
        raise AssertionError("unexpected wait")

    limiter = HostRateLimiter(10, clock=clock, sleep=sleep)
    for _ in range(10):
        await limiter.throttle("a.example.com")
        await limiter.throttle("b.example.com")

    assert limiter.in_window("a.example.com") == 10
    assert limiter.in_window("b.example.com") == 10


@pytest.mark.asyncio
async def test_old_grants_fall_out_of_the_window(clock):
    limiter = HostRateLimiter(2, clock=clock)
    await limiter.throttle("a.example.com")
    await limiter.throttle("a.example.com")
    clock.advance(1.0)
    await limiter.throttle("a.example.com")
    assert limiter.in_window("a.example.com") == 1


def test_host_of_normalises_case():
    assert host_of("https://Feeds.Example.com/rss") == "feeds.example.com"
    assert host_of("not a url") == "unknown"


def test_limit_must_be_positive():
    with pytest.raises(ValueError):
        HostRateLimiter(0)
