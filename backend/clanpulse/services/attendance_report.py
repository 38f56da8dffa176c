"""War attendance: missed attacks and a per-member risk score over a day window."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from clanpulse.core.tuning import DEFAULT_TUNING, AnalyticsTuning
from clanpulse.services.normalizer import ActivitySnapshot, SnapshotState
from clanpulse.utils.rounding import mean, safe_ratio, whole


@dataclass
class _Attendance:
    tag: str
    name: str
    last_war: datetime
    wars: int = 0
    wars_attacked: int = 0
    expected: int = 0
    used: int = 0
    missed: int = 0
    latest_miss: datetime | None = None


def window_days(days: int | None, tuning: AnalyticsTuning = DEFAULT_TUNING) -> int:
    if not days:
        days = tuning.attendance_window_days
    return max(tuning.attendance_min_days, min(tuning.attendance_max_days, days))


def expected_attacks(war: ActivitySnapshot, tuning: AnalyticsTuning = DEFAULT_TUNING) -> int:
    # League wars allow one attack per member.
    return war.attacks_per_member or tuning.attacks_per_war


def attendance_wars(
    war_log: list[ActivitySnapshot], since: datetime
) -> list[ActivitySnapshot]:
    return [
        war
        for war in war_log
        if war.state == SnapshotState.war_ended
        and war.participants
        and war.period_end is not None
        and war.period_end >= since
    ]


def risk_score(
    miss_rate: float,
    participation_rate: float,
    recent_miss: bool,
    tuning: AnalyticsTuning = DEFAULT_TUNING,
) -> int:
    penalty = tuning.recent_miss_penalty if recent_miss else 0.0
    score = miss_rate * tuning.miss_rate_weight + (100 - participation_rate) * tuning.absence_weight + penalty
    return max(0, min(100, whole(score)))


def generate_attendance(
    war_log: list[ActivitySnapshot],
    current_war: ActivitySnapshot | None = None,
    *,
    days: int | None = None,
    now: datetime | None = None,
    tuning: AnalyticsTuning = DEFAULT_TUNING,
) -> dict[str, Any]:
    generated_at = now or datetime.now(timezone.utc)
    span = window_days(days, tuning)
    history = list(war_log)
    # Skip the current war once the log already holds it.
    if current_war is not None and all(war.period_end != current_war.period_end for war in history):
        history.insert(0, current_war)
    wars = attendance_wars(history, generated_at - timedelta(days=span))
    recent_since = generated_at - timedelta(days=tuning.recent_miss_days)

    players: dict[str, _Attendance] = {}
    for war in wars:
        expected = expected_attacks(war, tuning)
        for member in war.participants:
            row = players.get(member.tag)
            if row is None:
                row = players[member.tag] = _Attendance(tag=member.tag, name=member.name, last_war=war.period_end)
            missed = max(0, expected - member.attacks_used)
            row.wars += 1
            row.wars_attacked += 1 if member.attacks_used > 0 else 0
            row.expected += expected
            row.used += member.attacks_used
            row.missed += missed
            if missed and (row.latest_miss is None or war.period_end > row.latest_miss):
                row.latest_miss = war.period_end
            if war.period_end > row.last_war:
                row.last_war = war.period_end

    results = []
    for row in players.values():
        participation = whole(safe_ratio(row.wars_attacked, row.wars) * 100)
        miss_rate = whole(safe_ratio(row.missed, row.expected) * 100)
        recent_miss = row.latest_miss is not None and row.latest_miss > recent_since
        results.append(
            {
                "tag": row.tag,
                "name": row.name,
                "wars": row.wars,
                "totalWars": len(wars),
                "expected": row.expected,
                "used": row.used,
                "missed": row.missed,
                "participationRate": participation,
                "missRate": miss_rate,
                "lastWar": row.last_war.isoformat(),
                "risk": risk_score(miss_rate, participation, recent_miss, tuning),
            }
        )
    results.sort(key=lambda item: item["risk"], reverse=True)

    return {
        "summary": {
            "windowDays": span,
            "warsAnalyzed": len(wars),
            "membersAnalyzed": len(results),
            "avgMissRate": whole(mean([item["missRate"] for item in results])),
        },
        "results": results,
        "generatedAt": generated_at.isoformat(),
    }
