from clanpulse.services.normalizer import ActivitySnapshot, RosterMember, SnapshotState
from clanpulse.services.recommendations import (
    Priority,
    RecommendationContext,
    generate_recommendations,
    promotion_candidates,
)


def _trophies(member: RosterMember) -> float:
    return float(member.trophies)


def _context(roster: list[RosterMember], results: list[str] | None = None) -> RecommendationContext:
    wars = [ActivitySnapshot(state=SnapshotState.war_ended, result=result) for result in results or []]
    return RecommendationContext(roster=roster, wars=wars, metric=_trophies)


def test_recommendations_are_sorted_by_priority() -> None:
    roster = (
        [RosterMember(tag=f"#A{index}", donations=50, donations_received=200, trophies=3000) for index in range(10)]
        + [RosterMember(tag=f"#I{index}", trophies=2000) for index in range(5)]
        + [RosterMember(tag="#P", role="member", donations=500, donations_received=10, trophies=4000)]
    )

    items = generate_recommendations(_context(roster, ["lose", "lose", "win", "lose", "lose"]))

    assert [item.type for item in items] == [
        "member_management",
        "war_strategy",
        "donations",
        "growth",
        "leadership",
    ]
    assert [item.priority for item in items] == [
        Priority.high,
        Priority.high,
        Priority.medium,
        Priority.medium,
        Priority.low,
    ]
    assert "20%" in items[1].description
    assert items[0].as_dict()["priority"] == "high"


def test_rules_with_unmet_preconditions_are_skipped() -> None:
    assert generate_recommendations(_context([])) == []

    roster = [RosterMember(tag=f"#M{index}", donations=10, trophies=3000) for index in range(46)]
    # No donations received and only two wars: donation and war rules stay silent.
    assert generate_recommendations(_context(roster, ["lose", "lose"])) == []


def test_promotion_candidates_need_member_role_and_donations() -> None:
    roster = [
        RosterMember(tag="#E", role="elder", donations=500, trophies=5000),
        RosterMember(tag="#M", role="member", donations=500, trophies=5000),
        RosterMember(tag="#Q", role="member", donations=50, trophies=5000),
        RosterMember(tag="#L", role="member", donations=500, trophies=1000),
    ]
    assert [member.tag for member in promotion_candidates(_context(roster))] == ["#M"]
