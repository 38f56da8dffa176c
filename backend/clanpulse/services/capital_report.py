from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from clanpulse.core.tuning import DEFAULT_TUNING, AnalyticsTuning
from clanpulse.services.aggregator import CAPITAL_METRICS, MemberPerformanceRecord, aggregate_members
from clanpulse.services.normalizer import ActivitySnapshot, RosterMember
from clanpulse.services.tiers import build_tier_views
from clanpulse.services.trends import classify_trend
from clanpulse.utils.rounding import fixed, safe_ratio, whole


def _season_totals(season: ActivitySnapshot) -> dict[str, int]:
    return {
        "attacks": sum(member.attacks_used for member in season.participants),
        "gold": sum(member.capital_gold_looted for member in season.participants),
        "medals": sum(member.raid_medals_earned for member in season.participants),
        "participants": season.attacker_count,
    }


def week_number(moment: datetime | None) -> int | None:
    if moment is None:
        return None
    start = datetime(moment.year, 1, 1, tzinfo=moment.tzinfo)
    days = (moment - start).days
    # Sunday-based weekday of January 1st.
    start_weekday = (start.weekday() + 1) % 7
    return -(-(days + start_weekday + 1) // 7)


def _recent_raids(seasons: list[ActivitySnapshot]) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for season in seasons:
        totals = _season_totals(season)
        rows.append(
            {
                "endTime": season.end_time,
                "state": season.state.value,
                "totalAttacks": totals["attacks"],
                "totalCapitalGold": totals["gold"],
                "totalRaidMedals": totals["medals"],
                "participatingMembers": totals["participants"],
                "averageAttacksPerMember": fixed(safe_ratio(totals["attacks"], totals["participants"]), 1),
                "averageGoldPerMember": whole(safe_ratio(totals["gold"], totals["participants"])),
                "efficiency": whole(safe_ratio(totals["gold"], totals["attacks"])),
            }
        )
    return rows


def _raider_row(record: MemberPerformanceRecord) -> dict[str, Any]:
    return {
        "name": record.name,
        "tag": record.tag,
        "role": record.role,
        "tier": record.tier,
        "capitalStats": {
            "totalRaids": record.total_periods,
            "totalAttacks": record.total_attacks,
            "totalCapitalGold": whole(record.total_resource),
            "totalRaidMedals": whole(record.total_bonus),
            "averageAttacksPerRaid": record.average_attacks_per_period,
            "averageGoldPerRaid": record.average_resource_per_period,
            "averageGoldPerAttack": record.average_resource_per_attack,
            "participationRate": record.participation_rate,
            "consistency": record.consistency_score,
            "recentForm": [
                {
                    "seasonIndex": entry.period_index,
                    "attacks": entry.attacks,
                    "capitalGold": whole(entry.resource),
                    "raidMedals": whole(entry.bonus),
                }
                for entry in record.recent_form
            ],
        },
    }


def _member_performance(
    seasons: list[ActivitySnapshot],
    roster: list[RosterMember],
    tuning: AnalyticsTuning,
) -> dict[str, Any]:
    records = aggregate_members(
        roster,
        seasons,
        window=tuning.raid_trend_window,
        metrics=CAPITAL_METRICS,
        tuning=tuning,
    )
    views = build_tier_views(records, lambda row: row.total_resource, tuning)
    return {
        "activeRaiders": [_raider_row(row) for row in views.active],
        "topRaiders": [_raider_row(row) for row in views.top],
        "consistentRaiders": [_raider_row(row) for row in views.consistent],
        "casualRaiders": [_raider_row(row) for row in views.casual],
        "overview": {
            "totalActiveRaiders": len(views.active),
            "averageParticipationRate": views.average_participation_rate,
            "consistentRaidersCount": len(views.consistent),
            "casualRaidersCount": len(views.casual),
            "rosterSize": views.roster_size,
        },
    }


def _weekly_trends(seasons: list[ActivitySnapshot], tuning: AnalyticsTuning) -> dict[str, Any]:
    weekly: list[dict[str, Any]] = []
    for season in seasons:
        totals = _season_totals(season)
        weekly.append(
            {
                "endTime": season.end_time,
                "week": week_number(season.period_end),
                "participationRate": fixed(safe_ratio(totals["participants"], len(season.participants)) * 100, 1),
                "totalAttacks": totals["attacks"],
                "totalGold": totals["gold"],
                "averageGoldPerAttack": whole(safe_ratio(totals["gold"], totals["attacks"])),
                "participatingMembers": totals["participants"],
            }
        )

    def trend(key: str) -> str:
        return classify_trend(
            [row[key] for row in weekly],
            threshold=tuning.trend_threshold,
            window=tuning.trend_window,
        )

    return {
        "weeklyData": weekly,
        "trends": {
            "participationTrend": trend("participationRate"),
            "goldTrend": trend("totalGold"),
            "efficiencyTrend": trend("averageGoldPerAttack"),
        },
    }


def _capital_progression(seasons: list[ActivitySnapshot]) -> dict[str, Any]:
    progression = []
    for season in seasons:
        totals = _season_totals(season)
        progression.append(
            {
                "endTime": season.end_time,
                "totalGoldEarned": totals["gold"],
                "totalRaidMedals": totals["medals"],
            }
        )
    return {
        "progressionData": progression,
        "totalCapitalGoldEarned": sum(row["totalGoldEarned"] for row in progression),
        "totalRaidMedalsEarned": sum(row["totalRaidMedals"] for row in progression),
    }


def efficiency_label(gold_per_attack: float, tuning: AnalyticsTuning = DEFAULT_TUNING) -> str:
    if gold_per_attack > tuning.efficiency_high:
        return "high"
    if gold_per_attack > tuning.efficiency_medium:
        return "medium"
    return "low"


def _attack_efficiency(seasons: list[ActivitySnapshot], tuning: AnalyticsTuning) -> dict[str, Any]:
    rows: list[dict[str, Any]] = []
    for season in seasons:
        totals = _season_totals(season)
        # Every attack by a member is credited with that member's mean loot.
        average = safe_ratio(totals["gold"], totals["attacks"])
        rows.append(
            {
                "endTime": season.end_time,
                "totalAttacks": totals["attacks"],
                "averageGoldPerAttack": whole(average),
                "efficiency": efficiency_label(average, tuning),
            }
        )
    overall = safe_ratio(sum(row["averageGoldPerAttack"] for row in rows), len(rows))
    return {"efficiencyData": rows, "overallEfficiency": whole(overall)}


def _current_week_status(season: ActivitySnapshot | None) -> dict[str, Any] | str:
    if season is None:
        return "No active raid"
    totals = _season_totals(season)
    return {
        "state": season.state.value,
        "endTime": season.end_time,
        "participants": totals["participants"],
        "totalAttacks": totals["attacks"],
    }


def generate_capital_analytics(
    raid_seasons: list[ActivitySnapshot],
    roster: list[RosterMember],
    *,
    now: datetime | None = None,
    tuning: AnalyticsTuning = DEFAULT_TUNING,
) -> dict[str, Any]:
    generated_at = now or datetime.now(timezone.utc)
    seasons = list(raid_seasons)
    all_totals = [_season_totals(season) for season in seasons]
    total_gold = sum(row["gold"] for row in all_totals)
    total_medals = sum(row["medals"] for row in all_totals)
    total_attacks = sum(row["attacks"] for row in all_totals)

    member_performance = _member_performance(seasons, roster, tuning)
    return {
        "summary": {
            "totalRaids": len(seasons),
            "averageRaidMedals": whole(safe_ratio(total_medals, len(seasons))),
            "totalCapitalGold": total_gold,
            "activeRaiders": member_performance["overview"]["totalActiveRaiders"],
            "averageAttacksPerRaid": fixed(safe_ratio(total_attacks, len(seasons)), 1),
            "currentWeekStatus": _current_week_status(seasons[0] if seasons else None),
        },
        "recentRaids": _recent_raids(seasons[: tuning.recent_raids_window]),
        "memberPerformance": member_performance,
        "weeklyTrends": _weekly_trends(seasons[: tuning.raid_trend_window], tuning),
        "capitalProgression": _capital_progression(seasons[: tuning.history_window]),
        "attackEfficiency": _attack_efficiency(seasons[: tuning.recent_raids_window], tuning),
        "lastUpdated": generated_at.isoformat(),
    }
