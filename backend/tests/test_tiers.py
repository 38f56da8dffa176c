from clanpulse.services.aggregator import MemberPerformanceRecord
from clanpulse.services.tiers import build_tier_views, build_war_tier_views, tier_label


def _record(
    tag: str,
    *,
    periods: int,
    participation: float,
    resource: float = 0.0,
    attacks: int = 0,
    improvement: float = 0.0,
) -> MemberPerformanceRecord:
    return MemberPerformanceRecord(
        tag=tag,
        name=tag,
        role="member",
        town_hall_level=14,
        trophies=3000,
        total_periods=periods,
        total_attacks=attacks,
        total_resource=resource,
        total_bonus=0.0,
        average_attacks_per_period=0.0,
        average_resource_per_period=0,
        average_resource_per_attack=0,
        participation_rate=participation,
        consistency_score=0.0,
        improvement=improvement,
        recent_form=(),
    )


def test_tier_views_rank_active_members_and_overlap() -> None:
    records = [
        _record("#LOW", periods=2, participation=25.0, resource=5000),
        _record("#IDLE", periods=0, participation=0.0),
        _record("#HIGH", periods=8, participation=100.0, resource=90000),
        _record("#MID", periods=5, participation=62.5, resource=40000),
    ]

    views = build_tier_views(records, lambda row: row.total_resource)

    assert [row.tag for row in views.active] == ["#HIGH", "#MID", "#LOW"]
    assert [row.tag for row in views.consistent] == ["#HIGH"]
    assert [row.tag for row in views.casual] == ["#LOW"]
    assert views.roster_size == 4
    assert {row.tag: row.tier for row in views.active} == {"#HIGH": "consistent", "#MID": "regular", "#LOW": "casual"}
    assert views.average_participation_rate == 62.5


def test_consistent_needs_enough_periods() -> None:
    assert tier_label(_record("#A", periods=3, participation=100.0)) == "regular"
    assert tier_label(_record("#A", periods=4, participation=80.0)) == "consistent"
    assert tier_label(_record("#A", periods=0, participation=0.0)) == "inactive"


def test_top_view_is_capped() -> None:
    records = [_record(f"#{index}", periods=4, participation=100.0, resource=index) for index in range(15)]
    views = build_tier_views(records, lambda row: row.total_resource)
    assert len(views.top) == 10
    assert views.top[0].tag == "#14"


def test_war_tiers_split_by_stars_per_attack() -> None:
    records = [
        _record("#ELITE", periods=6, participation=100.0, resource=33, attacks=12),
        _record("#STEADY", periods=4, participation=80.0, resource=18, attacks=8),
        _record("#RISING", periods=3, participation=60.0, resource=6, attacks=6, improvement=50.0),
        _record("#BENCH", periods=0, participation=0.0),
    ]

    views = build_war_tier_views(records)

    assert [row.tag for row in views.elite] == ["#ELITE"]
    assert [row.tag for row in views.reliable] == ["#STEADY"]
    assert [row.tag for row in views.improving] == ["#RISING"]
    assert [row.tag for row in views.top] == ["#ELITE", "#STEADY", "#RISING"]
    assert [row.tag for row in views.struggling] == ["#ELITE", "#STEADY", "#RISING"]
