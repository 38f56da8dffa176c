"""
Boundary sanitization for game API documents.

Everything downstream of this module works on frozen value objects and can
assume numeric fields are finite numbers. Malformed entries are dropped, never
reported: a missing or broken document degrades to an empty result.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
import enum
import math
from typing import Any


class SnapshotState(str, enum.Enum):
    preparation = "preparation"
    in_war = "inWar"
    war_ended = "warEnded"
    raid_active = "raidActive"
    raid_ended = "raidEnded"
    not_in_war = "notInWar"


class MemberRole(str, enum.Enum):
    leader = "leader"
    co_leader = "coLeader"
    elder = "elder"
    member = "member"


# Raid seasons report "ongoing"/"ended"; older payloads used the war names.
_STATE_ALIASES = {
    "preparation": SnapshotState.preparation,
    "inWar": SnapshotState.in_war,
    "warEnded": SnapshotState.war_ended,
    "notInWar": SnapshotState.not_in_war,
    "ongoing": SnapshotState.raid_active,
    "raidActive": SnapshotState.raid_active,
    "ended": SnapshotState.raid_ended,
    "raidEnded": SnapshotState.raid_ended,
}

# The API's legacy "admin" role is an elder.
_ROLE_ALIASES = {
    "leader": MemberRole.leader,
    "coLeader": MemberRole.co_leader,
    "elder": MemberRole.elder,
    "admin": MemberRole.elder,
    "member": MemberRole.member,
}

_TIMESTAMP_FORMATS = ("%Y%m%dT%H%M%S.%fZ", "%Y%m%dT%H%M%SZ")


@dataclass(frozen=True)
class AttackRecord:
    stars: int = 0
    destruction_percentage: float = 0.0
    defender_tag: str = ""


@dataclass(frozen=True)
class MemberActivity:
    tag: str
    name: str = ""
    role: str = MemberRole.member.value
    town_hall_level: int = 0
    trophies: int = 0
    donations: int = 0
    donations_received: int = 0
    attacks_used: int = 0
    stars_earned: int = 0
    destruction_percentage: float = 0.0
    capital_gold_looted: int = 0
    raid_medals_earned: int = 0
    map_position: int = 0
    attacks: tuple[AttackRecord, ...] = ()


@dataclass(frozen=True)
class WarSide:
    name: str = ""
    tag: str = ""
    level: int = 0
    stars: int = 0
    attacks: int = 0
    destruction_percentage: float = 0.0


@dataclass(frozen=True)
class ActivitySnapshot:
    state: SnapshotState
    period_end: datetime | None = None
    end_time: str | None = None
    team_size: int = 0
    attacks_per_member: int = 0
    result: str | None = None
    clan: WarSide = field(default_factory=WarSide)
    opponent: WarSide = field(default_factory=WarSide)
    participants: tuple[MemberActivity, ...] = ()

    @property
    def attacker_count(self) -> int:
        return sum(1 for member in self.participants if member.attacks_used > 0)


@dataclass(frozen=True)
class RosterMember:
    tag: str
    name: str = ""
    role: str = MemberRole.member.value
    town_hall_level: int = 0
    trophies: int = 0
    best_trophies: int = 0
    donations: int = 0
    donations_received: int = 0
    exp_level: int = 0
    clan_rank: int = 0
    previous_clan_rank: int = 0
    league: str = "Unranked"
    capital_contributions: int = 0

    @property
    def is_active(self) -> bool:
        return self.donations + self.donations_received > 0


@dataclass(frozen=True)
class ClanProfile:
    """Clan-level fields of the clan document, minus the member list."""

    name: str = ""
    tag: str = ""
    level: int = 0
    description: str = ""
    badge_url: str | None = None
    war_league: str = "Unranked"
    clan_points: int = 0
    clan_versus_points: int = 0
    war_win_streak: int = 0
    war_wins: int = 0
    war_losses: int = 0
    war_ties: int = 0
    war_frequency: str | None = None
    required_trophies: int = 0
    is_war_log_public: bool | None = None
    chat_language: str | None = None
    member_count: int = 0
    roster: tuple[RosterMember, ...] = ()


def as_records(value: Any) -> list[Mapping[str, Any]]:
    if isinstance(value, Mapping):
        items = value.get("items")
        if isinstance(items, list):
            value = items
        else:
            return [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [entry for entry in value if isinstance(entry, Mapping)]


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def as_number(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def as_int(value: Any) -> int:
    return int(as_number(value))


def as_text(value: Any, default: str = "") -> str:
    if isinstance(value, str):
        return value
    if value is None or isinstance(value, (Mapping, list, tuple)):
        return default
    return str(value)


def parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    for pattern in _TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, pattern).replace(tzinfo=timezone.utc)
        except ValueError:
            continue
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _state(value: Any, default: SnapshotState) -> SnapshotState:
    if isinstance(value, str):
        return _STATE_ALIASES.get(value, default)
    return default


def _role(value: Any) -> str:
    if isinstance(value, str) and value in _ROLE_ALIASES:
        return _ROLE_ALIASES[value].value
    return MemberRole.member.value


def _war_side(value: Any) -> WarSide:
    side = _mapping(value)
    return WarSide(
        name=as_text(side.get("name")),
        tag=as_text(side.get("tag")),
        level=as_int(side.get("clanLevel")),
        stars=as_int(side.get("stars")),
        attacks=as_int(side.get("attacks")),
        destruction_percentage=as_number(side.get("destructionPercentage")),
    )


def _attack(value: Mapping[str, Any]) -> AttackRecord:
    return AttackRecord(
        stars=as_int(value.get("stars")),
        destruction_percentage=as_number(value.get("destructionPercentage")),
        defender_tag=as_text(value.get("defenderTag")),
    )


def _war_participant(value: Mapping[str, Any]) -> MemberActivity | None:
    tag = as_text(value.get("tag"))
    if not tag:
        return None
    raw_attacks = value.get("attacks")
    attacks = tuple(_attack(item) for item in as_records(raw_attacks)) if isinstance(raw_attacks, list) else ()
    return MemberActivity(
        tag=tag,
        name=as_text(value.get("name")),
        town_hall_level=as_int(value.get("townhallLevel", value.get("townHallLevel"))),
        attacks_used=len(attacks),
        stars_earned=sum(attack.stars for attack in attacks),
        destruction_percentage=sum(attack.destruction_percentage for attack in attacks),
        map_position=as_int(value.get("mapPosition")),
        attacks=attacks,
    )


def _raid_participant(value: Mapping[str, Any]) -> MemberActivity | None:
    tag = as_text(value.get("tag"))
    if not tag:
        return None
    return MemberActivity(
        tag=tag,
        name=as_text(value.get("name")),
        attacks_used=as_int(value.get("attacks")),
        capital_gold_looted=as_int(value.get("capitalResourcesLooted")),
        raid_medals_earned=as_int(value.get("bonusAwardGold")),
    )


def _war_snapshot(entry: Mapping[str, Any], default_state: SnapshotState) -> ActivitySnapshot:
    clan = _mapping(entry.get("clan"))
    participants = [_war_participant(item) for item in as_records(clan.get("members") or [])]
    result = entry.get("result")
    end_time = entry.get("endTime")
    return ActivitySnapshot(
        state=_state(entry.get("state"), default_state),
        period_end=parse_timestamp(end_time),
        end_time=end_time if isinstance(end_time, str) else None,
        team_size=as_int(entry.get("teamSize")),
        attacks_per_member=as_int(entry.get("attacksPerMember")),
        result=result if isinstance(result, str) else None,
        clan=_war_side(clan),
        opponent=_war_side(entry.get("opponent")),
        participants=tuple(item for item in participants if item is not None),
    )


def normalize_war_log(value: Any) -> list[ActivitySnapshot]:
    return [_war_snapshot(entry, SnapshotState.war_ended) for entry in as_records(value)]


def normalize_current_war(value: Any) -> ActivitySnapshot | None:
    if not isinstance(value, Mapping):
        return None
    snapshot = _war_snapshot(value, SnapshotState.not_in_war)
    if snapshot.state == SnapshotState.not_in_war:
        return None
    return snapshot


def normalize_raid_seasons(value: Any) -> list[ActivitySnapshot]:
    rows: list[ActivitySnapshot] = []
    for entry in as_records(value):
        participants = [_raid_participant(item) for item in as_records(entry.get("members") or [])]
        end_time = entry.get("endTime")
        rows.append(
            ActivitySnapshot(
                state=_state(entry.get("state"), SnapshotState.raid_ended),
                period_end=parse_timestamp(end_time),
                end_time=end_time if isinstance(end_time, str) else None,
                participants=tuple(item for item in participants if item is not None),
            )
        )
    return rows


def _roster_member(value: Mapping[str, Any]) -> RosterMember | None:
    tag = as_text(value.get("tag"))
    if not tag:
        return None
    league = _mapping(value.get("league"))
    house = _mapping(value.get("playerHouse"))
    elements = house.get("elements")
    return RosterMember(
        tag=tag,
        name=as_text(value.get("name")),
        role=_role(value.get("role")),
        town_hall_level=as_int(value.get("townHallLevel")),
        trophies=as_int(value.get("trophies")),
        best_trophies=as_int(value.get("bestTrophies")),
        donations=as_int(value.get("donations")),
        donations_received=as_int(value.get("donationsReceived")),
        exp_level=as_int(value.get("expLevel")),
        clan_rank=as_int(value.get("clanRank")),
        previous_clan_rank=as_int(value.get("previousClanRank")),
        league=as_text(league.get("name"), "Unranked") or "Unranked",
        capital_contributions=len(elements) if isinstance(elements, list) else 0,
    )


def normalize_roster(value: Any) -> list[RosterMember]:
    if isinstance(value, Mapping) and "memberList" in value:
        value = value.get("memberList")
    members: list[RosterMember] = []
    seen: set[str] = set()
    for entry in as_records(value):
        member = _roster_member(entry)
        if member is None or member.tag in seen:
            continue
        seen.add(member.tag)
        members.append(member)
    return members


def normalize_clan(value: Any) -> ClanProfile:
    clan = _mapping(value)
    roster = normalize_roster(clan.get("memberList") or [])
    badges = _mapping(clan.get("badgeUrls"))
    war_league = _mapping(clan.get("warLeague"))
    public_log = clan.get("isWarLogPublic")
    frequency = clan.get("warFrequency")
    language = _mapping(clan.get("chatLanguage"))
    return ClanProfile(
        name=as_text(clan.get("name")),
        tag=as_text(clan.get("tag")),
        level=as_int(clan.get("clanLevel")),
        description=as_text(clan.get("description")),
        badge_url=as_text(badges.get("medium")) or None,
        war_league=as_text(war_league.get("name"), "Unranked") or "Unranked",
        clan_points=as_int(clan.get("clanPoints")),
        clan_versus_points=as_int(clan.get("clanVersusPoints", clan.get("clanBuilderBasePoints"))),
        war_win_streak=as_int(clan.get("warWinStreak")),
        war_wins=as_int(clan.get("warWins")),
        war_losses=as_int(clan.get("warLosses")),
        war_ties=as_int(clan.get("warTies")),
        war_frequency=frequency if isinstance(frequency, str) else None,
        required_trophies=as_int(clan.get("requiredTrophies")),
        is_war_log_public=public_log if isinstance(public_log, bool) else None,
        chat_language=as_text(language.get("name")) or None,
        member_count=as_int(clan.get("members")) or len(roster),
        roster=tuple(roster),
    )
