from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass

from clanpulse.core.tuning import DEFAULT_TUNING, AnalyticsTuning
from clanpulse.services.normalizer import ActivitySnapshot, MemberActivity, RosterMember
from clanpulse.services.trends import window_delta
from clanpulse.utils.rounding import fixed, mean, safe_ratio, whole


@dataclass(frozen=True)
class MetricSelector:
    """Which activity fields a report folds into resource, bonus and form."""

    resource: Callable[[MemberActivity], float]
    bonus: Callable[[MemberActivity], float]
    form_value: Callable[[MemberActivity], float]
    variance_scale: Callable[[AnalyticsTuning], float]


CAPITAL_METRICS = MetricSelector(
    resource=lambda row: row.capital_gold_looted,
    bonus=lambda row: row.raid_medals_earned,
    form_value=lambda row: row.attacks_used,
    variance_scale=lambda tuning: tuning.consistency_scale,
)

WAR_METRICS = MetricSelector(
    resource=lambda row: row.stars_earned,
    bonus=lambda row: row.destruction_percentage,
    form_value=lambda row: safe_ratio(row.stars_earned, row.attacks_used),
    variance_scale=lambda tuning: tuning.war_consistency_scale,
)


@dataclass(frozen=True)
class FormEntry:
    period_index: int
    attacks: int
    resource: float
    bonus: float
    value: float


@dataclass(frozen=True)
class MemberPerformanceRecord:
    tag: str
    name: str
    role: str
    town_hall_level: int
    trophies: int
    total_periods: int
    total_attacks: int
    total_resource: float
    total_bonus: float
    average_attacks_per_period: float
    average_resource_per_period: float
    average_resource_per_attack: float
    participation_rate: float
    consistency_score: float
    improvement: float
    recent_form: tuple[FormEntry, ...]
    tier: str = "inactive"

    @property
    def is_active(self) -> bool:
        return self.total_periods > 0


def consistency_score(values: Sequence[float], *, scale: float, min_form: int) -> float:
    if len(values) <= min_form:
        return 0.0
    average = mean(list(values))
    variance = mean([(value - average) ** 2 for value in values])
    return fixed(100 - variance * scale, 1)


def aggregate_members(
    roster: Sequence[RosterMember],
    snapshots: Sequence[ActivitySnapshot],
    *,
    window: int,
    metrics: MetricSelector = CAPITAL_METRICS,
    form_size: int | None = None,
    tuning: AnalyticsTuning = DEFAULT_TUNING,
) -> list[MemberPerformanceRecord]:
    """
    Fold the ``window`` most recent snapshots into one record per roster member.

    Snapshots arrive most-recent-first. Activity by tags outside the roster is
    ignored; roster members without activity still get an all-zero record.
    """
    cap = min(window, tuning.history_window)
    form_limit = form_size if form_size is not None else tuning.form_size
    considered = list(snapshots[:cap])
    denominator = min(len(snapshots), cap)

    totals: dict[str, dict[str, float]] = {
        member.tag: {"periods": 0, "attacks": 0, "resource": 0.0, "bonus": 0.0} for member in roster
    }
    forms: dict[str, list[FormEntry]] = {member.tag: [] for member in roster}

    for index, snapshot in enumerate(considered):
        for activity in snapshot.participants:
            bucket = totals.get(activity.tag)
            if bucket is None or activity.attacks_used <= 0:
                continue
            resource = float(metrics.resource(activity))
            bonus = float(metrics.bonus(activity))
            bucket["periods"] += 1
            bucket["attacks"] += activity.attacks_used
            bucket["resource"] += resource
            bucket["bonus"] += bonus
            form = forms[activity.tag]
            if len(form) < form_limit:
                form.append(
                    FormEntry(
                        period_index=index,
                        attacks=activity.attacks_used,
                        resource=resource,
                        bonus=bonus,
                        value=float(metrics.form_value(activity)),
                    )
                )

    records: list[MemberPerformanceRecord] = []
    for member in roster:
        bucket = totals[member.tag]
        form = forms[member.tag]
        periods = int(bucket["periods"])
        attacks = int(bucket["attacks"])
        form_values = [entry.value for entry in form]
        improvement = 0.0
        if len(form_values) >= tuning.improvement_window * 2:
            improvement = fixed(window_delta(form_values, tuning.improvement_window) * 100, 1)
        records.append(
            MemberPerformanceRecord(
                tag=member.tag,
                name=member.name,
                role=member.role,
                town_hall_level=member.town_hall_level,
                trophies=member.trophies,
                total_periods=periods,
                total_attacks=attacks,
                total_resource=bucket["resource"],
                total_bonus=bucket["bonus"],
                average_attacks_per_period=fixed(safe_ratio(attacks, periods), 1),
                average_resource_per_period=whole(safe_ratio(bucket["resource"], periods)),
                average_resource_per_attack=whole(safe_ratio(bucket["resource"], attacks)),
                participation_rate=fixed(min(100.0, safe_ratio(periods, denominator) * 100), 1),
                consistency_score=consistency_score(
                    form_values,
                    scale=metrics.variance_scale(tuning),
                    min_form=tuning.consistency_min_form,
                ),
                improvement=improvement,
                recent_form=tuple(form),
            )
        )
    return records
