from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
import enum
import re
from typing import Any

from clanpulse.core.tuning import DEFAULT_TUNING, AnalyticsTuning
from clanpulse.services.normalizer import ActivitySnapshot, ClanProfile, MemberRole
from clanpulse.services.predictions import win_count
from clanpulse.utils.rounding import fixed, mean, safe_ratio, whole


class ExportKind(str, enum.Enum):
    overview = "overview"
    members = "members"
    wars = "wars"
    insights = "insights"


# Documents whose list field exports as one row per entry.
_ROW_LISTS = {ExportKind.members.value: "members", ExportKind.wars.value: "wars"}


def _header(kind: ExportKind, clan: ClanProfile, now: datetime) -> dict[str, Any]:
    return {
        "exportType": kind.value,
        "clanName": clan.name,
        "clanTag": clan.tag,
        "exportDate": now.isoformat(),
    }


def _members(clan: ClanProfile, now: datetime) -> dict[str, Any]:
    return {
        **_header(ExportKind.members, clan, now),
        "totalMembers": len(clan.roster),
        "members": [
            {
                "name": member.name,
                "tag": member.tag,
                "role": member.role,
                "expLevel": member.exp_level,
                "trophies": member.trophies,
                "bestTrophies": member.best_trophies,
                "donations": member.donations,
                "donationsReceived": member.donations_received,
                "townHallLevel": member.town_hall_level,
                "clanRank": member.clan_rank,
                "previousClanRank": member.previous_clan_rank,
                "league": member.league,
                "clanCapitalContributions": member.capital_contributions,
            }
            for member in clan.roster
        ],
    }


def _wars(clan: ClanProfile, wars: list[ActivitySnapshot], now: datetime) -> dict[str, Any]:
    wins = win_count(wars)
    return {
        **_header(ExportKind.wars, clan, now),
        "totalWars": len(wars),
        "wars": [
            {
                "result": war.result,
                "endTime": war.end_time,
                "teamSize": war.team_size,
                "clanStars": war.clan.stars,
                "clanDestructionPercentage": fixed(war.clan.destruction_percentage, 1),
                "clanAttacks": war.clan.attacks,
                "opponentStars": war.opponent.stars,
                "opponentDestructionPercentage": fixed(war.opponent.destruction_percentage, 1),
                "opponentAttacks": war.opponent.attacks,
                "opponentName": war.opponent.name,
                "opponentTag": war.opponent.tag,
            }
            for war in wars
        ],
        "summary": {
            "wins": wins,
            "losses": sum(1 for war in wars if war.result == "lose"),
            "winRate": fixed(safe_ratio(wins, len(wars)) * 100, 1),
        },
    }


def _insights(
    clan: ClanProfile,
    wars: list[ActivitySnapshot],
    now: datetime,
    tuning: AnalyticsTuning,
) -> dict[str, Any]:
    roster = list(clan.roster)
    active = [member for member in roster if member.is_active]
    by_trophies = sorted(roster, key=lambda member: member.trophies, reverse=True)
    by_donations = sorted(roster, key=lambda member: member.donations, reverse=True)
    recent = wars[: tuning.recent_wars_window]
    return {
        **_header(ExportKind.insights, clan, now),
        "summary": {
            "totalMembers": len(roster),
            "activeMembers": len(active),
            "activityRate": fixed(safe_ratio(len(active), len(roster)) * 100, 1),
            "averageTrophies": whole(mean([member.trophies for member in roster])),
            "totalDonations": sum(member.donations for member in roster),
            "totalReceived": sum(member.donations_received for member in roster),
        },
        "memberInsights": {
            "topPerformers": [
                {"name": member.name, "trophies": member.trophies, "donations": member.donations}
                for member in by_trophies[: tuning.war_top_performers]
            ],
            "topDonators": [
                {"name": member.name, "donations": member.donations, "trophies": member.trophies}
                for member in by_donations[: tuning.war_top_performers]
            ],
            "inactiveMembers": [
                {"name": member.name, "trophies": member.trophies, "role": member.role}
                for member in roster
                if not member.is_active
            ],
        },
        "warInsights": (
            {
                "recentWars": len(recent),
                "winRate": fixed(win_count(recent) / len(recent) * 100, 1),
                "avgStarsPerWar": fixed(mean([war.clan.stars for war in recent]), 1),
                "perfectWars": sum(
                    1 for war in recent if war.team_size > 0 and war.clan.stars == war.team_size * 3
                ),
            }
            if recent
            else None
        ),
    }


def _overview(clan: ClanProfile, wars: list[ActivitySnapshot], now: datetime) -> dict[str, Any]:
    roster = list(clan.roster)
    wins = win_count(wars)

    def role_count(role: MemberRole) -> int:
        return sum(1 for member in roster if member.role == role.value)

    return {
        **_header(ExportKind.overview, clan, now),
        "clanDescription": clan.description,
        "clanLevel": clan.level,
        "clanPoints": clan.clan_points,
        "clanVersusPoints": clan.clan_versus_points,
        "requiredTrophies": clan.required_trophies,
        "warFrequency": clan.war_frequency,
        "warWinStreak": clan.war_win_streak,
        "warWins": clan.war_wins,
        "warTies": clan.war_ties,
        "warLosses": clan.war_losses,
        "isWarLogPublic": clan.is_war_log_public,
        "chatLanguage": clan.chat_language,
        "memberCount": len(roster),
        "memberSummary": {
            "totalMembers": len(roster),
            "leaders": role_count(MemberRole.leader),
            "coLeaders": role_count(MemberRole.co_leader),
            "elders": role_count(MemberRole.elder),
            "members": role_count(MemberRole.member),
            "totalTrophies": sum(member.trophies for member in roster),
            "totalDonations": sum(member.donations for member in roster),
        },
        "warSummary": (
            {
                "totalWarsAnalyzed": len(wars),
                "wins": wins,
                "losses": sum(1 for war in wars if war.result == "lose"),
                "winRate": fixed(wins / len(wars) * 100, 1),
            }
            if wars
            else None
        ),
    }


def build_export(
    kind: ExportKind | str,
    clan: ClanProfile,
    war_log: list[ActivitySnapshot],
    *,
    now: datetime | None = None,
    tuning: AnalyticsTuning = DEFAULT_TUNING,
) -> dict[str, Any]:
    kind = ExportKind(kind)
    generated_at = now or datetime.now(timezone.utc)
    wars = list(war_log)[: tuning.war_history_window]
    if kind == ExportKind.members:
        return _members(clan, generated_at)
    if kind == ExportKind.wars:
        return _wars(clan, wars, generated_at)
    if kind == ExportKind.insights:
        return _insights(clan, wars, generated_at, tuning)
    return _overview(clan, wars, generated_at)


def flatten(document: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for key, value in document.items():
        name = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flat.update(flatten(value, name))
        elif isinstance(value, (list, tuple)):
            flat[name] = f"[{len(value)} items]"
        else:
            flat[name] = value
    return flat


def export_rows(document: Mapping[str, Any]) -> tuple[list[str], list[dict[str, Any]]]:
    """Headers and rows for tabular output of an export document."""
    list_key = _ROW_LISTS.get(document.get("exportType", ""))
    if list_key is not None:
        entries = list(document.get(list_key) or [])
        if not entries:
            return [], []
        headers = list(entries[0].keys())
        return headers, [dict(entry) for entry in entries]
    row = flatten(document)
    return list(row.keys()), [row]


def export_filename(document: Mapping[str, Any], extension: str) -> str:
    clan = re.sub(r"[^a-zA-Z0-9]", "_", str(document.get("clanName") or "clan"))
    date = str(document.get("exportDate") or "")[:10]
    return f"{clan}_{document.get('exportType', 'export')}_{date}.{extension}"
