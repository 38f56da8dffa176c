import pytest

from clanpulse.core.tuning import HealthWeights
from clanpulse.services.health import score_clan_health, status_label
from clanpulse.services.normalizer import ActivitySnapshot, MemberActivity, RosterMember, SnapshotState


def _roster(size: int, active: int) -> list[RosterMember]:
    return [
        RosterMember(tag=f"#M{index}", donations=100 if index < active else 0)
        for index in range(size)
    ]


def test_health_sub_scores_for_full_roster() -> None:
    war = ActivitySnapshot(
        state=SnapshotState.war_ended,
        participants=tuple(MemberActivity(tag=f"#M{index}") for index in range(25)),
    )

    score = score_clan_health(_roster(50, 10), [war])

    assert score.activity == 20.0
    assert score.war_participation == 50.0
    assert score.membership_utilization == 100.0
    assert score.donations == 2.0
    assert 0 <= score.overall_score <= 100


def test_war_log_entries_fall_back_to_team_size() -> None:
    war = ActivitySnapshot(state=SnapshotState.war_ended, team_size=15)
    score = score_clan_health(_roster(30, 30), [war])
    assert score.war_participation == 50.0


def test_empty_roster_scores_zero() -> None:
    score = score_clan_health([], [])
    assert score.activity == 0
    assert score.donations == 0
    assert score.war_participation == 0
    assert score.membership_utilization == 0
    assert score.overall_score == 0


def test_status_thresholds_are_exclusive() -> None:
    assert status_label(81) == "excellent"
    assert status_label(80) == "good"
    assert status_label(60) == "needs_improvement"


def test_health_weights_must_sum_to_one() -> None:
    with pytest.raises(ValueError):
        HealthWeights(activity=0.5, donations=0.5, war_participation=0.2, membership_utilization=0.2)
