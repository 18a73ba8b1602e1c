"""Process-local result cache and per-user request throttle."""

from __future__ import annotations

import time
from typing import Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

V = TypeVar("V")
Clock = Callable[[], float]


class TTLCache(Generic[V]):
    """Result cache keyed by ``(user_id, discriminator)``.

    Expired entries are dropped on read, and every write sweeps out whatever
    expired since the last sweep (at most once per TTL).
    """

    def __init__(self, ttl_seconds: float, *, clock: Optional[Clock] = None) -> None:
        self.ttl = ttl_seconds
        self._clock = clock or time.monotonic
        self._entries: Dict[Tuple[str, Hashable], Tuple[float, V]] = {}
        self._next_sweep = self._clock() + ttl_seconds

    def get(self, user_id: str, key: Hashable) -> Optional[V]:
        entry = self._entries.get((user_id, key))
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl:
            del self._entries[(user_id, key)]
            return None
        return value

    def set(self, user_id: str, key: Hashable, value: V) -> None:
        now = self._clock()
        if now >= self._next_sweep:
            self._sweep(now)
        self._entries[(user_id, key)] = (now, value)

    def _sweep(self, now: float) -> None:
        expired = [k for k, (stored_at, _) in self._entries.items() if now - stored_at >= self.ttl]
        for k in expired:
            del self._entries[k]
        self._next_sweep = now + self.ttl

    def clear(self, user_id: str) -> int:
        """Remove every entry of one user; returns how many were dropped."""
        doomed = [k for k in self._entries if k[0] == user_id]
        for k in doomed:
            del self._entries[k]
        return len(doomed)

    def __len__(self) -> int:
        return len(self._entries)


class UserThrottle:
    """At most one accepted request per user per window.

    Users whose window has elapsed are forgotten on the next ``mark`` after a
    window boundary, so the map only holds recently active users.
    """

    def __init__(self, window_seconds: float, *, clock: Optional[Clock] = None) -> None:
        self.window = window_seconds
        self._clock = clock or time.monotonic
        self._last: Dict[str, float] = {}
        self._next_sweep = self._clock() + window_seconds

    def retry_after(self, user_id: str) -> float:
        """Seconds until the next request is accepted; 0 when it is accepted now."""
        last = self._last.get(user_id)
        if last is None:
            return 0.0
        remaining = self.window - (self._clock() - last)
        return remaining if remaining > 0 else 0.0

    def mark(self, user_id: str) -> None:
        now = self._clock()
        if now >= self._next_sweep:
            self._last = {uid: t for uid, t in self._last.items() if now - t < self.window}
            self._next_sweep = now + self.window
        self._last[user_id] = now

    def clear(self, user_id: str) -> None:
        self._last.pop(user_id, None)

    def __len__(self) -> int:
        return len(self._last)
