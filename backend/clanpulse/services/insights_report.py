from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
import math
from typing import Any

from clanpulse.core.tuning import DEFAULT_TUNING, AnalyticsTuning
from clanpulse.services.health import score_clan_health, status_label
from clanpulse.services.normalizer import ActivitySnapshot, RosterMember
from clanpulse.services.predictions import (
    predict_growth,
    predict_membership_stability,
    predict_next_war_win,
    win_count,
)
from clanpulse.services.recommendations import (
    RecommendationContext,
    generate_recommendations,
    promotion_candidates,
)
from clanpulse.utils.rounding import fixed, mean, safe_ratio, whole


def trophy_metric(member: RosterMember) -> float:
    return float(member.trophies)


def _member_insights(ctx: RecommendationContext) -> dict[str, Any]:
    roster = ctx.roster
    active = [member for member in roster if member.is_active]
    given = sum(member.donations for member in roster)
    received = sum(member.donations_received for member in roster)
    trophies = [ctx.metric(member) for member in roster]
    average = mean(trophies)
    deviation = math.sqrt(mean([(value - average) ** 2 for value in trophies]))
    consistency = whole(100 - safe_ratio(deviation, average) * 100) if average else 0

    return {
        "activityRate": whole(safe_ratio(len(active), len(roster)) * 100),
        "donationBalance": fixed(safe_ratio(given, received), 2),
        "trophyConsistency": consistency,
        "highPerformers": sum(1 for value in trophies if value > average + deviation),
        "lowPerformers": sum(1 for value in trophies if value < average - deviation),
        "promotionCandidates": [
            {
                "name": member.name,
                "tag": member.tag,
                "trophies": member.trophies,
                "donations": member.donations,
                "reason": "High activity and trophy count",
            }
            for member in promotion_candidates(ctx)
        ],
        "inactiveMembers": [
            {"name": member.name, "tag": member.tag, "daysInactive": "Unknown", "lastSeen": "Unknown"}
            for member in roster
            if not member.is_active
        ],
    }


def _war_insights(wars: list[ActivitySnapshot], tuning: AnalyticsTuning) -> dict[str, Any] | None:
    if not wars:
        return None
    recent = wars[: tuning.recent_wars_window]
    half = tuning.war_form_window
    recent_rate = win_count(recent[:half]) / half * 100
    earlier_rate = win_count(recent[half : half * 2]) / half * 100
    if recent_rate > earlier_rate:
        trend = "improving"
    elif recent_rate < earlier_rate:
        trend = "declining"
    else:
        trend = "stable"

    sizes = Counter(war.team_size for war in recent)
    performance_by_size = []
    for size, count in sizes.items():
        size_wars = [war for war in recent if war.team_size == size]
        performance_by_size.append(
            {
                "size": size,
                "count": count,
                "winRate": fixed(win_count(size_wars) / len(size_wars) * 100, 1),
            }
        )
    efficiency = mean([safe_ratio(war.clan.stars, war.clan.attacks) for war in recent])

    return {
        "overallWinRate": whole(win_count(recent) / len(recent) * 100),
        "trend": trend,
        "mostCommonWarSize": sizes.most_common(1)[0][0],
        "performanceBySize": performance_by_size,
        "avgStarEfficiency": fixed(efficiency, 2),
        "perfectWars": sum(1 for war in recent if war.team_size > 0 and war.clan.stars == war.team_size * 3),
        "closeWars": sum(1 for war in recent if abs(war.clan.stars - war.opponent.stars) <= 2),
    }


def _health_insights(
    roster: list[RosterMember],
    wars: list[ActivitySnapshot],
    tuning: AnalyticsTuning,
) -> dict[str, Any]:
    score = score_clan_health(roster, wars, tuning)
    return {
        "overallScore": score.overall_score,
        "membership": {
            "current": score.roster_size,
            "capacity": score.capacity,
            "utilizationRate": whole(score.membership_utilization),
        },
        "activity": {
            "activeMembers": score.active_members,
            "activityRate": whole(score.activity),
            "status": status_label(score.activity, tuning),
        },
        "donations": {
            "avgPerMember": whole(score.average_donations),
            "health": whole(score.donations),
            "status": status_label(score.donations, tuning),
        },
        "wars": {
            "participationRate": whole(score.war_participation),
            "status": status_label(score.war_participation, tuning),
        },
    }


def _predictions(ctx: RecommendationContext) -> dict[str, Any]:
    growth = predict_growth([ctx.metric(member) for member in ctx.roster], ctx.tuning)
    win = predict_next_war_win(ctx.wars, ctx.tuning)
    stability = predict_membership_stability(ctx.roster, ctx.tuning)
    return {
        "trophyGrowth": {
            "potential": growth.potential,
            "timeframe": growth.timeframe,
            "confidence": growth.confidence,
        },
        "nextWarWin": {"probability": win.probability, "confidence": win.confidence},
        "membershipStability": {"score": stability.score, "riskLevel": stability.risk_level},
    }


def generate_insights(
    roster: list[RosterMember],
    war_log: list[ActivitySnapshot],
    *,
    now: datetime | None = None,
    tuning: AnalyticsTuning = DEFAULT_TUNING,
) -> dict[str, Any]:
    generated_at = now or datetime.now(timezone.utc)
    wars = list(war_log)[: tuning.war_history_window]
    ctx = RecommendationContext(roster=list(roster), wars=wars, metric=trophy_metric, tuning=tuning)
    return {
        "memberInsights": _member_insights(ctx),
        "warInsights": _war_insights(wars, tuning),
        "healthInsights": _health_insights(list(roster), wars, tuning),
        "predictions": _predictions(ctx),
        "recommendations": [item.as_dict() for item in generate_recommendations(ctx)],
        "generatedAt": generated_at.isoformat(),
    }
