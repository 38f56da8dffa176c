from __future__ import annotations

from collections.abc import Sequence

from clanpulse.utils.rounding import mean


IMPROVING = "improving"
DECLINING = "declining"
STABLE = "stable"
INSUFFICIENT_DATA = "insufficient_data"


def classify_delta(delta: float, threshold: float) -> str:
    if delta > threshold:
        return IMPROVING
    if delta < -threshold:
        return DECLINING
    return STABLE


def classify_trend(values: Sequence[float], *, threshold: float = 5.0, window: int = 3) -> str:
    """
    Compare the newest ``window`` values against the oldest ``window`` values.

    ``values`` is most-recent-first. Series shorter than ``2 * window`` have
    overlapping windows. The threshold is in the metric's own units.
    """
    if len(values) < 2:
        return INSUFFICIENT_DATA
    size = min(window, len(values))
    recent = mean(list(values[:size]))
    older = mean(list(values[-size:]))
    return classify_delta(recent - older, threshold)


def window_delta(values: Sequence[float], window: int = 3) -> float:
    """Mean of the first ``window`` values minus the mean of the next ``window``."""
    if len(values) < window * 2:
        return 0.0
    return mean(list(values[:window])) - mean(list(values[window : window * 2]))


def classify_momentum(delta: float, threshold: float = 5.0) -> str:
    if delta > threshold:
        return "positive"
    if delta < -threshold:
        return "negative"
    return "neutral"


def overall_trend(rates: Sequence[float], *, threshold: float = 10.0, window: int = 2) -> str:
    """Oldest-first series; last ``window`` entries against the first ``window``."""
    if len(rates) < 2:
        return INSUFFICIENT_DATA
    recent = mean(list(rates[-window:]))
    older = mean(list(rates[:window]))
    return classify_delta(recent - older, threshold)
