"""Roster-only reports: the clan overview card and per-member analytics."""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
import math
from typing import Any

from clanpulse.core.tuning import DEFAULT_TUNING, AnalyticsTuning
from clanpulse.services.normalizer import ActivitySnapshot, ClanProfile, MemberRole, RosterMember
from clanpulse.services.predictions import win_count
from clanpulse.utils.rounding import fixed, mean, safe_ratio, whole


ROLE_LABELS = {
    MemberRole.leader.value: "Leader",
    MemberRole.co_leader.value: "Co-Leader",
    MemberRole.elder.value: "Elder",
    MemberRole.member.value: "Member",
}

# (label, lower bound inclusive), highest first.
TROPHY_RANGES = (
    ("Legends (5000+)", 5000),
    ("Titans (4600-4999)", 4600),
    ("Champions (3200-4599)", 3200),
    ("Masters (2600-3199)", 2600),
    ("Crystal (2000-2599)", 2000),
    ("Gold (1400-1999)", 1400),
    ("Silver (800-1399)", 800),
    ("Bronze (0-799)", None),
)

# Givers with nothing received rank above any finite ratio.
UNBOUNDED_EFFICIENCY = 999.0


def _current_war_status(current_war: ActivitySnapshot | None) -> dict[str, Any] | None:
    if current_war is None:
        return None
    return {
        "state": current_war.state.value,
        "teamSize": current_war.team_size,
        "ourStars": current_war.clan.stars,
        "ourDestruction": fixed(current_war.clan.destruction_percentage, 1),
        "opponentStars": current_war.opponent.stars,
        "opponentDestruction": fixed(current_war.opponent.destruction_percentage, 1),
        "opponentName": current_war.opponent.name,
        "timeLeft": current_war.end_time,
    }


def generate_overview(
    clan: ClanProfile,
    war_log: list[ActivitySnapshot],
    current_war: ActivitySnapshot | None = None,
    *,
    now: datetime | None = None,
    tuning: AnalyticsTuning = DEFAULT_TUNING,
) -> dict[str, Any]:
    generated_at = now or datetime.now(timezone.utc)
    roster = list(clan.roster)
    total_trophies = sum(member.trophies for member in roster)
    given = sum(member.donations for member in roster)
    received = sum(member.donations_received for member in roster)
    recent = list(war_log)[: tuning.recent_wars_window]
    wins = win_count(recent)

    by_donations = sorted(roster, key=lambda member: member.donations, reverse=True)
    by_trophies = sorted(roster, key=lambda member: member.trophies, reverse=True)
    return {
        "clanInfo": {
            "name": clan.name,
            "tag": clan.tag,
            "level": clan.level,
            "badgeUrl": clan.badge_url,
            "description": clan.description,
            "warLeague": clan.war_league,
            "clanPoints": clan.clan_points,
            "clanVersusPoints": clan.clan_versus_points,
        },
        "overview": {
            "totalMembers": len(roster),
            "totalTrophies": total_trophies,
            "avgTrophies": whole(safe_ratio(total_trophies, len(roster))),
            "totalDonations": given,
            "totalReceived": received,
            "donationRatio": fixed(safe_ratio(given, received), 2),
            "winRate": fixed(safe_ratio(wins, len(recent)) * 100, 1),
            "warWinStreak": clan.war_win_streak,
        },
        "warStats": {
            "totalWars": len(recent),
            "wins": wins,
            "losses": sum(1 for war in recent if war.result == "lose"),
            "ties": sum(1 for war in recent if war.result == "tie"),
        },
        "distributions": {
            "leagues": dict(Counter(member.league for member in roster)),
            "townHalls": dict(Counter(f"TH{member.town_hall_level}" for member in roster)),
            "roles": dict(Counter(ROLE_LABELS.get(member.role, member.role) for member in roster)),
        },
        "topPerformers": {
            "donators": [
                {
                    "name": member.name,
                    "tag": member.tag,
                    "donations": member.donations,
                    "received": member.donations_received,
                }
                for member in by_donations[: tuning.war_top_performers]
            ],
            "trophyEarners": [
                {"name": member.name, "tag": member.tag, "trophies": member.trophies, "league": member.league}
                for member in by_trophies[: tuning.war_top_performers]
            ],
        },
        "currentWar": _current_war_status(current_war),
        "lastUpdated": generated_at.isoformat(),
    }


def donation_efficiency(member: RosterMember) -> float:
    if member.donations_received > 0:
        return fixed(member.donations / member.donations_received, 2)
    return UNBOUNDED_EFFICIENCY if member.donations > 0 else 0.0


def performance_score(member: RosterMember) -> float:
    trophy_score = member.trophies / 100
    donation_score = member.donations / 100
    activity_score = (member.donations + member.donations_received) / 200
    return fixed(trophy_score * 0.4 + donation_score * 0.3 + activity_score * 0.3, 1)


def trophy_range(trophies: int) -> str:
    for label, floor in TROPHY_RANGES:
        if floor is None or trophies >= floor:
            return label
    return TROPHY_RANGES[-1][0]


def _member_row(member: RosterMember) -> dict[str, Any]:
    return {
        "name": member.name,
        "tag": member.tag,
        "role": member.role,
        "townHallLevel": member.town_hall_level,
        "expLevel": member.exp_level,
        "trophies": member.trophies,
        "bestTrophies": member.best_trophies,
        "league": member.league,
        "donations": member.donations,
        "donationsReceived": member.donations_received,
        "clanRank": member.clan_rank,
        "previousClanRank": member.previous_clan_rank,
        "donationEfficiency": donation_efficiency(member),
        "performanceScore": performance_score(member),
        "isActive": member.is_active,
        "rankChange": member.previous_clan_rank - member.clan_rank,
    }


def _tier(rows: list[dict[str, Any]], *, with_members: bool = True) -> dict[str, Any]:
    tier: dict[str, Any] = {
        "count": len(rows),
        "avgScore": fixed(mean([row["performanceScore"] for row in rows]), 1),
    }
    if with_members:
        tier["members"] = rows
    return tier


def _town_hall_analysis(roster: list[RosterMember]) -> dict[str, dict[str, int]]:
    levels: dict[int, list[RosterMember]] = {}
    for member in roster:
        levels.setdefault(member.town_hall_level, []).append(member)
    analysis: dict[str, dict[str, int]] = {}
    for level in sorted(levels):
        members = levels[level]
        trophies = sum(member.trophies for member in members)
        donations = sum(member.donations for member in members)
        analysis[str(level)] = {
            "count": len(members),
            "totalTrophies": trophies,
            "totalDonations": donations,
            "avgTrophies": whole(trophies / len(members)),
            "avgDonations": whole(donations / len(members)),
        }
    return analysis


def generate_member_analytics(
    roster: list[RosterMember],
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    generated_at = now or datetime.now(timezone.utc)
    members = list(roster)
    rows = sorted((_member_row(member) for member in members), key=lambda row: row["performanceScore"], reverse=True)
    top_cut = math.ceil(len(rows) * 0.2)
    low_cut = math.ceil(len(rows) * 0.8)
    active = [row for row in rows if row["isActive"]]

    by_donations = sorted(rows, key=lambda row: row["donations"], reverse=True)
    efficient = sorted(
        (row for row in rows if row["donations"] > 0 and row["donationsReceived"] > 0),
        key=lambda row: row["donationEfficiency"],
        reverse=True,
    )
    ranges = {label: 0 for label, _ in TROPHY_RANGES}
    for member in members:
        ranges[trophy_range(member.trophies)] += 1

    return {
        "memberCount": len(rows),
        "activeCount": len(active),
        "inactiveCount": len(rows) - len(active),
        "members": rows,
        "performanceTiers": {
            "top": _tier(rows[:top_cut]),
            "mid": _tier(rows[top_cut:low_cut], with_members=False),
            "low": _tier(rows[low_cut:]),
        },
        "donationAnalysis": {
            "totalGiven": sum(member.donations for member in members),
            "totalReceived": sum(member.donations_received for member in members),
            "topDonators": by_donations[:10],
            "mostEfficient": efficient[:10],
            "inactive": len(rows) - len(active),
        },
        "trophyRanges": ranges,
        "townHallAnalysis": _town_hall_analysis(members),
        "lastUpdated": generated_at.isoformat(),
    }
