from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, replace

from clanpulse.core.tuning import DEFAULT_TUNING, AnalyticsTuning
from clanpulse.services.aggregator import MemberPerformanceRecord
from clanpulse.utils.rounding import fixed, mean, safe_ratio


RankMetric = Callable[[MemberPerformanceRecord], float]


@dataclass(frozen=True)
class TierViews:
    active: list[MemberPerformanceRecord]
    top: list[MemberPerformanceRecord]
    consistent: list[MemberPerformanceRecord]
    casual: list[MemberPerformanceRecord]
    roster_size: int

    @property
    def average_participation_rate(self) -> float:
        return fixed(mean([row.participation_rate for row in self.active]), 1)


@dataclass(frozen=True)
class WarTierViews:
    active: list[MemberPerformanceRecord]
    top: list[MemberPerformanceRecord]
    struggling: list[MemberPerformanceRecord]
    elite: list[MemberPerformanceRecord]
    reliable: list[MemberPerformanceRecord]
    improving: list[MemberPerformanceRecord]


def is_consistent(record: MemberPerformanceRecord, tuning: AnalyticsTuning = DEFAULT_TUNING) -> bool:
    return (
        record.participation_rate >= tuning.consistent_rate
        and record.total_periods >= tuning.consistent_min_periods
    )


def is_casual(record: MemberPerformanceRecord, tuning: AnalyticsTuning = DEFAULT_TUNING) -> bool:
    return record.participation_rate < tuning.casual_rate


def tier_label(record: MemberPerformanceRecord, tuning: AnalyticsTuning = DEFAULT_TUNING) -> str:
    if not record.is_active:
        return "inactive"
    if is_consistent(record, tuning):
        return "consistent"
    if is_casual(record, tuning):
        return "casual"
    return "regular"


def assign_tiers(
    records: Sequence[MemberPerformanceRecord],
    tuning: AnalyticsTuning = DEFAULT_TUNING,
) -> list[MemberPerformanceRecord]:
    return [replace(record, tier=tier_label(record, tuning)) for record in records]


def build_tier_views(
    records: Sequence[MemberPerformanceRecord],
    metric: RankMetric,
    tuning: AnalyticsTuning = DEFAULT_TUNING,
) -> TierViews:
    """
    Rank active members by ``metric`` and derive the overlapping tier views.

    A member can sit in several views at once. Inactive members only count
    toward ``roster_size``.
    """
    tiered = assign_tiers(records, tuning)
    active = sorted((row for row in tiered if row.is_active), key=metric, reverse=True)
    return TierViews(
        active=active,
        top=active[: tuning.top_performers],
        consistent=[row for row in active if is_consistent(row, tuning)],
        casual=[row for row in active if is_casual(row, tuning)],
        roster_size=len(records),
    )


def stars_per_attack(record: MemberPerformanceRecord) -> float:
    return fixed(safe_ratio(record.total_resource, record.total_attacks), 2)


def build_war_tier_views(
    records: Sequence[MemberPerformanceRecord],
    tuning: AnalyticsTuning = DEFAULT_TUNING,
) -> WarTierViews:
    tiered = assign_tiers(records, tuning)
    active = sorted((row for row in tiered if row.is_active), key=stars_per_attack, reverse=True)
    experienced = [row for row in active if row.total_attacks >= tuning.struggling_min_attacks]
    return WarTierViews(
        active=active,
        top=active[: tuning.war_top_performers],
        struggling=experienced[-tuning.struggling_count :] if experienced else [],
        elite=[
            row
            for row in active
            if stars_per_attack(row) >= tuning.elite_stars_per_attack
            and row.total_periods >= tuning.elite_min_wars
        ],
        reliable=[
            row
            for row in active
            if tuning.reliable_stars_per_attack <= stars_per_attack(row) < tuning.elite_stars_per_attack
        ],
        improving=[
            row
            for row in active
            if row.improvement > tuning.improving_delta and row.total_periods >= tuning.improving_min_wars
        ],
    )
