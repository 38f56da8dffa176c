from __future__ import annotations

from collections import deque


class SlidingWindowLimiter:
    """Per-client request counter over a rolling window of seconds."""

    def __init__(self, limit: int, window_seconds: float):
        self.limit = limit
        self.window_seconds = window_seconds
        self.buckets: dict[str, deque[float]] = {}
        self._last_sweep = 0.0

    def _expire(self, key: str, now: float) -> deque[float] | None:
        bucket = self.buckets.get(key)
        if bucket is None:
            return None
        while bucket and now - bucket[0] > self.window_seconds:
            bucket.popleft()
        if not bucket:
            del self.buckets[key]
            return None
        return bucket

    def sweep(self, now: float) -> None:
        for key in list(self.buckets):
            self._expire(key, now)
        self._last_sweep = now

    def allow(self, key: str, now: float) -> bool:
        if now - self._last_sweep > self.window_seconds:
            self.sweep(now)
        bucket = self._expire(key, now)
        if bucket is None:
            self.buckets[key] = deque([now])
            return True
        if len(bucket) >= self.limit:
            return False
        bucket.append(now)
        return True

    def reset(self) -> None:
        self.buckets.clear()
        self._last_sweep = 0.0
