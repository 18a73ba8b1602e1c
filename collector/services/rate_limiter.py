"""Per-host sliding-window request throttle."""

from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import Awaitable, Callable, Deque, Dict, Optional
from urllib.parse import urlparse

from collector.utils.logging import get_logger

logger = get_logger(__name__)

ClockFn = Callable[[], float]
SleepFn = Callable[[float], Awaitable[None]]


def host_of(url: str) -> str:
    try:
        return (urlparse(url).hostname or "unknown").lower()
    except ValueError:
        return "unknown"


class HostRateLimiter:
    """Keeps at most ``max_per_window`` requests per host inside any rolling window.

    Each host owns a deque of grant timestamps. State lives only in this object;
    a fresh process starts with empty windows.
    """

    def __init__(
        self,
        max_per_window: int = 10,
        *,
        window_seconds: float = 1.0,
        margin_seconds: float = 0.01,
        clock: Optional[ClockFn] = None,
        sleep: Optional[SleepFn] = None,
    ) -> None:
        if max_per_window < 1:
            raise ValueError("max_per_window must be >= 1")
        self._max = max_per_window
        self._window = window_seconds
        self._margin = margin_seconds
        self._clock = clock or time.monotonic
        self._sleep = sleep or asyncio.sleep
        self._grants: Dict[str, Deque[float]] = {}

    async def throttle(self, host: str) -> None:
        """Suspend until one more request to ``host`` fits in the window, then claim the slot."""
        grants = self._grants.setdefault(host, deque())
        while True:
            now = self._clock()
            while grants and grants[0] <= now - self._window:
                grants.popleft()
            if len(grants) < self._max:
                grants.append(now)
                return
            delay = self._window - (now - grants[0]) + self._margin
            logger.debug("rate_limit.wait", extra={"host": host, "delay": round(delay, 4)})
            await self._sleep(delay)

    async def throttle_url(self, url: str) -> None:
        await self.throttle(host_of(url))

    def in_window(self, host: str) -> int:
        return len(self._grants.get(host, ()))
