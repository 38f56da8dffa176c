from collections import deque

from clanpulse.core.rate_limit import SlidingWindowLimiter


def test_limit_applies_per_client_within_window() -> None:
    limiter = SlidingWindowLimiter(limit=2, window_seconds=60)

    assert limiter.allow("10.0.0.1", 100.0)
    assert limiter.allow("10.0.0.1", 110.0)
    assert limiter.allow("10.0.0.1", 120.0) is False
    assert limiter.allow("10.0.0.2", 120.0)
    # The first hit has left the window.
    assert limiter.allow("10.0.0.1", 161.0)


def test_expired_buckets_are_dropped() -> None:
    limiter = SlidingWindowLimiter(limit=5, window_seconds=60)
    limiter.allow("a", 100.0)
    limiter.allow("b", 100.0)
    limiter.buckets["idle"] = deque([10.0])

    limiter.allow("a", 200.0)

    assert set(limiter.buckets) == {"a"}
    assert list(limiter.buckets["a"]) == [200.0]


def test_reset_clears_all_clients() -> None:
    limiter = SlidingWindowLimiter(limit=1, window_seconds=60)
    limiter.allow("a", 1.0)
    limiter.reset()
    assert limiter.buckets == {}
    assert limiter.allow("a", 2.0)
