from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from clanpulse.core.tuning import DEFAULT_TUNING, AnalyticsTuning
from clanpulse.services.normalizer import ActivitySnapshot, RosterMember
from clanpulse.services.trends import classify_momentum
from clanpulse.utils.rounding import fixed, mean, safe_ratio, whole


@dataclass(frozen=True)
class WinEstimate:
    probability: int
    confidence: int


@dataclass(frozen=True)
class GrowthEstimate:
    potential: int
    timeframe: str
    confidence: int


@dataclass(frozen=True)
class StabilityEstimate:
    score: int
    risk_level: str


@dataclass(frozen=True)
class WarOutlook:
    next_war_win_probability: float
    momentum: str
    form_score: int
    form_rating: str
    recommended_strategy: str
    confidence: int


def win_count(wars: Sequence[ActivitySnapshot]) -> int:
    return sum(1 for war in wars if war.result == "win")


def predict_next_war_win(
    wars: Sequence[ActivitySnapshot],
    tuning: AnalyticsTuning = DEFAULT_TUNING,
) -> WinEstimate:
    window = tuning.war_form_window
    if len(wars) < window:
        return WinEstimate(
            probability=tuning.default_win_probability,
            confidence=tuning.win_confidence_partial,
        )
    rate = win_count(wars[:window]) / window
    return WinEstimate(probability=whole(rate * 100), confidence=tuning.win_confidence_full)


def predict_growth(
    values: Sequence[float],
    tuning: AnalyticsTuning = DEFAULT_TUNING,
) -> GrowthEstimate:
    """Members below ``growth_multiplier`` times the clan average of ``values``."""
    average = mean(list(values))
    ceiling = average * tuning.growth_multiplier
    return GrowthEstimate(
        potential=sum(1 for value in values if value < ceiling),
        timeframe=tuning.growth_timeframe,
        confidence=tuning.growth_confidence,
    )


def predict_membership_stability(
    roster: Sequence[RosterMember],
    tuning: AnalyticsTuning = DEFAULT_TUNING,
) -> StabilityEstimate:
    inactive = sum(1 for member in roster if not member.is_active)
    score = max(0.0, 100 - safe_ratio(inactive, len(roster)) * 100)
    if score > tuning.stability_low_risk:
        risk = "low"
    elif score > tuning.stability_medium_risk:
        risk = "medium"
    else:
        risk = "high"
    return StabilityEstimate(score=whole(score), risk_level=risk)


def _form_rating(score: int) -> str:
    if score >= 80:
        return "excellent"
    if score >= 60:
        return "good"
    if score >= 40:
        return "average"
    return "poor"


def strategy_recommendation(win_rate: float, struggling_count: int) -> str:
    if win_rate > 75:
        return "Maintain current strategy - excellent performance"
    if win_rate > 50:
        return "Focus on attack timing and coordination"
    if struggling_count > 3:
        return "Consider member training and strategic repositioning"
    return "Review attack strategies and base layouts"


def war_outlook(
    wars: Sequence[ActivitySnapshot],
    struggling_count: int = 0,
    tuning: AnalyticsTuning = DEFAULT_TUNING,
) -> WarOutlook | None:
    if len(wars) < tuning.outlook_min_wars:
        return None
    recent = wars[: tuning.recent_wars_window]
    recent_rate = win_count(recent) / len(recent) * 100
    overall_rate = win_count(wars) / len(wars) * 100
    momentum = recent_rate - overall_rate

    form_score = 0
    for war in wars[: tuning.war_form_window]:
        if war.result == "win":
            form_score += 20
        elif war.result == "tie":
            form_score += 10

    probability = max(
        tuning.outlook_probability_floor,
        min(tuning.outlook_probability_ceiling, recent_rate + momentum),
    )
    return WarOutlook(
        next_war_win_probability=fixed(probability, 1),
        momentum=classify_momentum(momentum, tuning.momentum_threshold),
        form_score=form_score,
        form_rating=_form_rating(form_score),
        recommended_strategy=strategy_recommendation(recent_rate, struggling_count),
        confidence=min(len(wars) * tuning.outlook_confidence_per_war, tuning.outlook_confidence_cap),
    )


def live_win_probability(star_difference: int, destruction_difference: float, attacks_remaining: int) -> int:
    probability = 50.0
    probability += star_difference * 10
    probability += destruction_difference * 0.2
    if attacks_remaining > 5:
        probability += 15
    elif attacks_remaining > 2:
        probability += 5
    elif attacks_remaining == 0:
        probability -= 20
    return max(5, min(95, whole(probability)))
