from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from typing import Any

from clanpulse.core.tuning import DEFAULT_TUNING, AnalyticsTuning
from clanpulse.services.aggregator import WAR_METRICS, MemberPerformanceRecord, aggregate_members
from clanpulse.services.normalizer import ActivitySnapshot, RosterMember
from clanpulse.services.predictions import live_win_probability, war_outlook, win_count
from clanpulse.services.tiers import build_war_tier_views, stars_per_attack
from clanpulse.services.trends import classify_delta, overall_trend
from clanpulse.utils.rounding import fixed, safe_ratio


def is_perfect_attack(stars: int, destruction: float) -> bool:
    return stars == 3 or destruction >= 100


def is_failed_attack(stars: int, destruction: float) -> bool:
    return stars == 0 and destruction < 50


def _attack_outcomes(wars: list[ActivitySnapshot]) -> dict[str, tuple[int, int]]:
    outcomes: dict[str, list[int]] = {}
    for war in wars:
        for member in war.participants:
            counts = outcomes.setdefault(member.tag, [0, 0])
            for attack in member.attacks:
                if is_perfect_attack(attack.stars, attack.destruction_percentage):
                    counts[0] += 1
                if is_failed_attack(attack.stars, attack.destruction_percentage):
                    counts[1] += 1
    return {tag: (counts[0], counts[1]) for tag, counts in outcomes.items()}


def _player_row(
    record: MemberPerformanceRecord,
    outcomes: dict[str, tuple[int, int]],
) -> dict[str, Any]:
    perfect, failed = outcomes.get(record.tag, (0, 0))
    return {
        "name": record.name,
        "tag": record.tag,
        "role": record.role,
        "townHallLevel": record.town_hall_level,
        "trophies": record.trophies,
        "tier": record.tier,
        "warStats": {
            "warsParticipated": record.total_periods,
            "totalAttacks": record.total_attacks,
            "starsEarned": int(record.total_resource),
            "totalDestruction": fixed(record.total_bonus, 1),
            "perfectAttacks": perfect,
            "failedAttacks": failed,
            "avgStarsPerAttack": stars_per_attack(record),
            "avgDestructionPerAttack": fixed(safe_ratio(record.total_bonus, record.total_attacks), 1),
            "successRate": fixed(safe_ratio(perfect, record.total_attacks) * 100, 1),
            "participationRate": record.participation_rate,
            "consistencyScore": record.consistency_score,
            "improvement": record.improvement,
        },
        "recentForm": [
            {
                "warIndex": entry.period_index,
                "attacks": entry.attacks,
                "stars": int(entry.resource),
                "destruction": fixed(entry.bonus, 1),
            }
            for entry in record.recent_form
        ],
    }


def _player_performance(
    wars: list[ActivitySnapshot],
    roster: list[RosterMember],
    tuning: AnalyticsTuning,
) -> tuple[dict[str, Any], int]:
    window = wars[: tuning.war_history_window]
    records = aggregate_members(
        roster,
        window,
        window=tuning.war_history_window,
        metrics=WAR_METRICS,
        form_size=tuning.war_form_size,
        tuning=tuning,
    )
    views = build_war_tier_views(records, tuning)
    outcomes = _attack_outcomes(window)
    participations = sum(row.total_periods for row in records)
    average_participation = safe_ratio(safe_ratio(participations, len(window)), len(roster)) * 100

    def rows(items: list[MemberPerformanceRecord]) -> list[dict[str, Any]]:
        return [_player_row(item, outcomes) for item in items]

    payload = {
        "overview": {
            "totalActiveWarriors": len(views.active),
            "averageParticipationRate": fixed(average_participation, 1),
            "eliteCount": len(views.elite),
            "reliableCount": len(views.reliable),
            "improvingCount": len(views.improving),
        },
        "topPerformers": rows(views.top),
        "strugglingPlayers": rows(views.struggling),
        "performanceTiers": {
            "elite": rows(views.elite),
            "reliable": rows(views.reliable),
            "improving": rows(views.improving),
        },
        "allPlayers": rows(views.active),
    }
    return payload, len(views.struggling)


def _max_stars(war: ActivitySnapshot) -> int:
    return war.team_size * 3


def _is_perfect_war(war: ActivitySnapshot) -> bool:
    return _max_stars(war) > 0 and war.clan.stars == _max_stars(war)


def _war_patterns(wars: list[ActivitySnapshot]) -> dict[str, Any]:
    total = len(wars)
    perfect = sum(1 for war in wars if _is_perfect_war(war))
    close = sum(1 for war in wars if abs(war.clan.stars - war.opponent.stars) <= 3)
    dominant = sum(1 for war in wars if war.result == "win" and war.clan.stars - war.opponent.stars >= 10)
    crushing = sum(1 for war in wars if war.result == "lose" and war.opponent.stars - war.clan.stars >= 10)
    sizes = Counter(war.team_size for war in wars)
    opponent_levels = [war.opponent.level for war in wars if war.opponent.level > 0]
    return {
        "averageStars": fixed(safe_ratio(sum(war.clan.stars for war in wars), total), 1),
        "averageDestruction": fixed(
            safe_ratio(sum(war.clan.destruction_percentage for war in wars), total), 1
        ),
        "perfectWars": perfect,
        "perfectWarRate": fixed(safe_ratio(perfect, total) * 100, 1),
        "closeWars": close,
        "dominantWins": dominant,
        "crushingDefeats": crushing,
        "warSizeDistribution": {str(size): count for size, count in sorted(sizes.items())},
        "avgOpponentLevel": fixed(safe_ratio(sum(opponent_levels), len(opponent_levels)), 1),
        "competitiveness": {
            "closeWarRate": fixed(safe_ratio(close, total) * 100, 1),
            "dominanceRate": fixed(safe_ratio(dominant, total) * 100, 1),
        },
    }


def _attack_analysis(wars: list[ActivitySnapshot]) -> dict[str, Any]:
    total = perfect = good = failed = stars = 0
    by_position: dict[int, dict[str, int]] = {}
    for war in wars:
        for member in war.participants:
            for attack in member.attacks:
                total += 1
                stars += attack.stars
                if attack.stars == 3:
                    perfect += 1
                elif attack.stars >= 2:
                    good += 1
                elif attack.stars == 0:
                    failed += 1
                bucket = by_position.setdefault(member.map_position, {"attempts": 0, "success": 0, "stars": 0})
                bucket["attempts"] += 1
                bucket["stars"] += attack.stars
                if attack.stars >= 2:
                    bucket["success"] += 1

    return {
        "overall": {
            "totalAttacks": total,
            "perfectAttacks": perfect,
            "goodAttacks": good,
            "failedAttacks": failed,
            "successRate": fixed(safe_ratio(perfect, total) * 100, 1),
            "goodAttackRate": fixed(safe_ratio(perfect + good, total) * 100, 1),
            "averageStarsPerAttack": fixed(safe_ratio(stars, total), 2),
        },
        "byPosition": [
            {
                "position": position,
                "attempts": bucket["attempts"],
                "successRate": fixed(safe_ratio(bucket["success"], bucket["attempts"]) * 100, 1),
                "avgStars": fixed(safe_ratio(bucket["stars"], bucket["attempts"]), 2),
            }
            for position, bucket in sorted(by_position.items())
        ],
    }


def _month_keys(now: datetime, months: int) -> list[tuple[int, int]]:
    keys: list[tuple[int, int]] = []
    year, month = now.year, now.month
    for _ in range(months):
        keys.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))


def _historical_trends(
    wars: list[ActivitySnapshot],
    now: datetime,
    tuning: AnalyticsTuning,
) -> dict[str, Any]:
    months: dict[tuple[int, int], dict[str, Any]] = {
        key: {
            "month": datetime(key[0], key[1], 1).strftime("%b %Y"),
            "wars": 0,
            "wins": 0,
            "losses": 0,
            "ties": 0,
            "stars": 0,
            "destruction": 0.0,
            "winRate": 0.0,
            "avgStars": 0.0,
            "avgDestruction": 0.0,
            "trend": "stable",
        }
        for key in _month_keys(now, tuning.history_months)
    }
    for war in wars:
        if war.period_end is None:
            continue
        moment = war.period_end.astimezone(timezone.utc)
        row = months.get((moment.year, moment.month))
        if row is None:
            continue
        row["wars"] += 1
        if war.result == "win":
            row["wins"] += 1
        elif war.result == "lose":
            row["losses"] += 1
        else:
            row["ties"] += 1
        row["stars"] += war.clan.stars
        row["destruction"] += war.clan.destruction_percentage

    ordered = list(months.values())
    previous: dict[str, Any] | None = None
    for row in ordered:
        if row["wars"] > 0:
            row["winRate"] = fixed(row["wins"] / row["wars"] * 100, 1)
            row["avgStars"] = fixed(row["stars"] / row["wars"], 1)
            row["avgDestruction"] = fixed(row["destruction"] / row["wars"], 1)
            if previous is not None and previous["wars"] > 0:
                row["trend"] = classify_delta(row["winRate"] - previous["winRate"], tuning.monthly_trend_threshold)
        row["destruction"] = fixed(row["destruction"], 1)
        previous = row

    active = [row for row in ordered if row["wars"] > 0]
    best = max(active, key=lambda row: row["winRate"]) if active else None
    worst = min(active, key=lambda row: row["winRate"]) if active else None
    return {
        "monthlyPerformance": ordered,
        "trends": {
            "overallTrend": overall_trend(
                [row["winRate"] for row in active],
                threshold=tuning.overall_trend_threshold,
            ),
            "bestMonth": best,
            "worstMonth": worst,
        },
    }


def time_remaining(end: datetime | None, now: datetime) -> str:
    if end is None:
        return "Unknown"
    seconds = int((end - now).total_seconds())
    if seconds <= 0:
        return "Ended"
    return f"{seconds // 3600}h {(seconds % 3600) // 60}m"


def analyze_current_war(current_war: ActivitySnapshot | None, now: datetime) -> dict[str, Any] | None:
    if current_war is None:
        return None
    ours = current_war.clan
    theirs = current_war.opponent
    attacks_remaining = max(0, current_war.team_size * 2 - ours.attacks)
    star_difference = ours.stars - theirs.stars
    destruction_difference = ours.destruction_percentage - theirs.destruction_percentage
    return {
        "state": current_war.state.value,
        "teamSize": current_war.team_size,
        "timeRemaining": time_remaining(current_war.period_end, now),
        "our": {
            "name": ours.name,
            "stars": ours.stars,
            "destruction": fixed(ours.destruction_percentage, 1),
            "attacks": ours.attacks,
            "attacksRemaining": attacks_remaining,
            "starEfficiency": fixed(safe_ratio(ours.stars, ours.attacks), 2),
        },
        "opponent": {
            "name": theirs.name,
            "tag": theirs.tag,
            "level": theirs.level,
            "stars": theirs.stars,
            "destruction": fixed(theirs.destruction_percentage, 1),
            "attacks": theirs.attacks,
        },
        "status": {
            "starDifference": star_difference,
            "destructionDifference": fixed(destruction_difference, 1),
            "isWinning": star_difference > 0 or (star_difference == 0 and destruction_difference > 0),
            "starsNeeded": max(0, theirs.stars + 1 - ours.stars),
            "winProbability": live_win_probability(star_difference, destruction_difference, attacks_remaining),
        },
    }


def _recent_wars(wars: list[ActivitySnapshot]) -> list[dict[str, Any]]:
    rows: list[dict[str, Any]] = []
    for war in wars:
        max_stars = _max_stars(war)
        rows.append(
            {
                "endTime": war.end_time,
                "result": war.result or "unknown",
                "teamSize": war.team_size,
                "opponent": {
                    "name": war.opponent.name or "Unknown Clan",
                    "tag": war.opponent.tag,
                    "level": war.opponent.level,
                },
                "performance": {
                    "stars": war.clan.stars,
                    "maxStars": max_stars,
                    "destruction": fixed(war.clan.destruction_percentage, 1),
                    "attacks": war.clan.attacks,
                    "starEfficiency": fixed(safe_ratio(war.clan.stars, war.clan.attacks), 2),
                    "isPerfect": _is_perfect_war(war),
                },
                "margin": {
                    "stars": war.clan.stars - war.opponent.stars,
                    "destruction": fixed(war.clan.destruction_percentage - war.opponent.destruction_percentage, 1),
                },
            }
        )
    return rows


def generate_war_analytics(
    war_log: list[ActivitySnapshot],
    roster: list[RosterMember],
    current_war: ActivitySnapshot | None = None,
    *,
    now: datetime | None = None,
    tuning: AnalyticsTuning = DEFAULT_TUNING,
) -> dict[str, Any]:
    generated_at = now or datetime.now(timezone.utc)
    wars = list(war_log)
    total = len(wars)
    wins = win_count(wars)
    patterns = _war_patterns(wars)
    player_performance, struggling = _player_performance(wars, roster, tuning)
    outlook = war_outlook(wars, struggling, tuning)

    return {
        "summary": {
            "totalWars": total,
            "wins": wins,
            "losses": sum(1 for war in wars if war.result == "lose"),
            "ties": sum(1 for war in wars if war.result == "tie"),
            "winRate": fixed(safe_ratio(wins, total) * 100, 1),
            "perfectWars": patterns["perfectWars"],
            "perfectWarRate": patterns["perfectWarRate"],
            "averageStars": patterns["averageStars"],
            "averageDestruction": patterns["averageDestruction"],
        },
        "playerPerformance": player_performance,
        "warPatterns": patterns,
        "attackAnalysis": _attack_analysis(wars[: tuning.attack_analysis_window]),
        "historicalTrends": _historical_trends(wars, generated_at, tuning),
        "currentWar": analyze_current_war(current_war, generated_at),
        "predictions": (
            {
                "nextWarWinProbability": outlook.next_war_win_probability,
                "momentum": outlook.momentum,
                "formScore": outlook.form_score,
                "formRating": outlook.form_rating,
                "recommendedStrategy": outlook.recommended_strategy,
                "confidence": outlook.confidence,
            }
            if outlook is not None
            else None
        ),
        "recentWars": _recent_wars(wars[: tuning.recent_wars_window]),
        "lastUpdated": generated_at.isoformat(),
    }
