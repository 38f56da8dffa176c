from datetime import datetime, timezone

from clanpulse.services.normalizer import (
    SnapshotState,
    as_number,
    as_records,
    normalize_clan,
    normalize_current_war,
    normalize_raid_seasons,
    normalize_roster,
    normalize_war_log,
    parse_timestamp,
)


def test_as_records_unwraps_items_and_drops_non_mappings() -> None:
    assert as_records({"items": [{"a": 1}, None, 3, "x", {"b": 2}]}) == [{"a": 1}, {"b": 2}]
    assert as_records({"tag": "#A"}) == [{"tag": "#A"}]
    assert as_records(None) == []
    assert as_records("oops") == []


def test_as_number_treats_garbage_as_zero() -> None:
    assert as_number(None) == 0
    assert as_number(True) == 0
    assert as_number(float("nan")) == 0
    assert as_number(float("inf")) == 0
    assert as_number("12.5") == 12.5
    assert as_number("abc") == 0
    assert as_number({"x": 1}) == 0


def test_parse_timestamp_accepts_game_api_format() -> None:
    parsed = parse_timestamp("20260312T081500.000Z")
    assert parsed == datetime(2026, 3, 12, 8, 15, tzinfo=timezone.utc)
    assert parse_timestamp("2026-03-12T08:15:00Z") == parsed
    assert parse_timestamp("not a date") is None
    assert parse_timestamp(None) is None


def test_normalize_roster_drops_tagless_and_duplicate_members() -> None:
    roster = normalize_roster(
        {
            "memberList": [
                {"tag": "#A", "name": "Alpha", "role": "admin", "donations": "40", "league": {"name": "Gold"}},
                {"name": "No Tag"},
                {"tag": "#A", "name": "Alpha Again"},
                {"tag": "#B", "name": "Bravo", "role": "coLeader", "trophies": None},
                "garbage",
            ]
        }
    )
    assert [member.tag for member in roster] == ["#A", "#B"]
    assert roster[0].role == "elder"
    assert roster[0].donations == 40
    assert roster[0].league == "Gold"
    assert roster[1].role == "coLeader"
    assert roster[1].trophies == 0
    assert roster[1].league == "Unranked"


def test_normalize_war_log_sums_member_attacks() -> None:
    wars = normalize_war_log(
        {
            "items": [
                {
                    "result": "win",
                    "endTime": "20260301T120000.000Z",
                    "teamSize": 15,
                    "attacksPerMember": 1,
                    "clan": {
                        "stars": 40,
                        "attacks": 28,
                        "destructionPercentage": 91.2,
                        "members": [
                            {
                                "tag": "#A",
                                "mapPosition": 1,
                                "attacks": [
                                    {"stars": 3, "destructionPercentage": 100},
                                    {"stars": 2, "destructionPercentage": 71.5},
                                ],
                            },
                            {"tag": "#B", "mapPosition": 2},
                        ],
                    },
                    "opponent": {"name": "Rivals", "clanLevel": 12, "stars": 35},
                },
                None,
            ]
        }
    )
    assert len(wars) == 1
    war = wars[0]
    assert war.state == SnapshotState.war_ended
    assert war.result == "win"
    assert war.period_end == datetime(2026, 3, 1, 12, tzinfo=timezone.utc)
    assert war.opponent.level == 12
    assert war.attacks_per_member == 1
    first, second = war.participants
    assert first.tag == "#A"
    assert first.attacks_used == 2
    assert first.stars_earned == 5
    assert first.destruction_percentage == 171.5
    assert second.attacks_used == 0
    assert war.attacker_count == 1


def test_normalize_current_war_ignores_not_in_war() -> None:
    assert normalize_current_war({"state": "notInWar"}) is None
    assert normalize_current_war(None) is None
    live = normalize_current_war({"state": "inWar", "teamSize": 10, "clan": {"stars": 12}})
    assert live is not None
    assert live.state == SnapshotState.in_war
    assert live.clan.stars == 12


def test_normalize_raid_seasons_maps_loot_and_state() -> None:
    seasons = normalize_raid_seasons(
        {
            "items": [
                {
                    "state": "ongoing",
                    "endTime": "20260310T070000.000Z",
                    "members": [
                        {"tag": "#A", "name": "Alpha", "attacks": 6, "capitalResourcesLooted": 21000, "bonusAwardGold": 300},
                        {"name": "missing tag", "attacks": 5},
                    ],
                },
                {"state": "ended"},
            ]
        }
    )
    assert seasons[0].state == SnapshotState.raid_active
    assert seasons[1].state == SnapshotState.raid_ended
    raider = seasons[0].participants[0]
    assert raider.capital_gold_looted == 21000
    assert raider.raid_medals_earned == 300
    assert len(seasons[0].participants) == 1
    assert seasons[1].participants == ()


def test_normalize_clan_defaults_missing_fields() -> None:
    clan = normalize_clan({"name": "Night Owls", "tag": "#CLAN", "memberList": [{"tag": "#A"}]})
    assert clan.name == "Night Owls"
    assert clan.war_league == "Unranked"
    assert clan.badge_url is None
    assert clan.member_count == 1
    assert normalize_clan(None).roster == ()
