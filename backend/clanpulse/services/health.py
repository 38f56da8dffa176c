from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from clanpulse.core.tuning import DEFAULT_TUNING, AnalyticsTuning, HealthWeights
from clanpulse.services.normalizer import ActivitySnapshot, RosterMember
from clanpulse.utils.rounding import safe_ratio, whole


EXCELLENT = "excellent"
GOOD = "good"
NEEDS_IMPROVEMENT = "needs_improvement"


@dataclass(frozen=True)
class ClanHealthScore:
    roster_size: int
    capacity: int
    active_members: int
    average_donations: float
    activity: float
    donations: float
    war_participation: float
    membership_utilization: float
    overall_score: int


def status_label(value: float, tuning: AnalyticsTuning = DEFAULT_TUNING) -> str:
    if value > tuning.status_excellent:
        return EXCELLENT
    if value > tuning.status_good:
        return GOOD
    return NEEDS_IMPROVEMENT


def period_participants(snapshot: ActivitySnapshot) -> int:
    # War log entries carry no member list; fall back to the lineup size.
    if snapshot.participants:
        return len(snapshot.participants)
    return snapshot.team_size


def overall_score(
    activity: float,
    donations: float,
    war_participation: float,
    membership_utilization: float,
    weights: HealthWeights,
) -> int:
    combined = (
        activity * weights.activity
        + donations * weights.donations
        + war_participation * weights.war_participation
        + membership_utilization * weights.membership_utilization
    )
    return max(0, min(100, whole(combined)))


def score_clan_health(
    roster: Sequence[RosterMember],
    periods: Sequence[ActivitySnapshot],
    tuning: AnalyticsTuning = DEFAULT_TUNING,
    weights: HealthWeights | None = None,
) -> ClanHealthScore:
    weights = weights or tuning.health_weights
    roster_size = len(roster)
    active = sum(1 for member in roster if member.is_active)
    total_donations = sum(member.donations for member in roster)
    average_donations = safe_ratio(total_donations, roster_size)

    activity = safe_ratio(active, roster_size) * 100
    donations = min(100.0, average_donations / tuning.donation_benchmark * 100)
    war_participation = 0.0
    if periods:
        war_participation = min(100.0, safe_ratio(period_participants(periods[0]), roster_size) * 100)
    utilization = min(100.0, roster_size / tuning.roster_capacity * 100)

    return ClanHealthScore(
        roster_size=roster_size,
        capacity=tuning.roster_capacity,
        active_members=active,
        average_donations=average_donations,
        activity=activity,
        donations=donations,
        war_participation=war_participation,
        membership_utilization=utilization,
        overall_score=overall_score(activity, donations, war_participation, utilization, weights),
    )
