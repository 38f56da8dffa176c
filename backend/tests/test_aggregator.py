from clanpulse.core.tuning import AnalyticsTuning
from clanpulse.services.aggregator import WAR_METRICS, aggregate_members, consistency_score
from clanpulse.services.normalizer import (
    ActivitySnapshot,
    AttackRecord,
    MemberActivity,
    RosterMember,
    SnapshotState,
)


def _season(*raiders: MemberActivity) -> ActivitySnapshot:
    return ActivitySnapshot(state=SnapshotState.raid_ended, participants=tuple(raiders))


def _raider(tag: str, attacks: int, gold: int, medals: int = 0) -> MemberActivity:
    return MemberActivity(tag=tag, attacks_used=attacks, capital_gold_looted=gold, raid_medals_earned=medals)


def test_identical_attack_counts_score_full_consistency() -> None:
    roster = [RosterMember(tag="#A", name="Alpha")]
    seasons = [_season(_raider("#A", 6, 10000)) for _ in range(8)]

    (record,) = aggregate_members(roster, seasons, window=12)

    assert record.total_periods == 8
    assert record.total_attacks == 48
    assert record.total_resource == 80000
    assert record.average_resource_per_attack == 1667
    assert record.participation_rate == 100.0
    assert record.consistency_score == 100.0
    assert len(record.recent_form) == 8


def test_short_form_scores_zero_consistency() -> None:
    assert consistency_score([6, 6, 6], scale=10, min_form=3) == 0.0
    assert consistency_score([6, 6, 6, 6], scale=10, min_form=3) == 100.0


def test_consistency_score_is_not_clamped() -> None:
    assert consistency_score([1, 9, 1, 9], scale=10, min_form=3) < 0


def test_consistency_scale_follows_tuning() -> None:
    roster = [RosterMember(tag="#A")]
    seasons = [_season(_raider("#A", attacks, 10000)) for attacks in (4, 6, 4, 6)]

    (default,) = aggregate_members(roster, seasons, window=12)
    (relaxed,) = aggregate_members(roster, seasons, window=12, tuning=AnalyticsTuning(consistency_scale=1.0))

    assert default.consistency_score == 90.0
    assert relaxed.consistency_score == 99.0


def test_members_without_activity_get_zero_record() -> None:
    roster = [RosterMember(tag="#A"), RosterMember(tag="#B")]
    seasons = [_season(_raider("#A", 5, 9000), _raider("#B", 0, 0), _raider("#GHOST", 6, 20000))]

    records = {row.tag: row for row in aggregate_members(roster, seasons, window=12)}

    assert set(records) == {"#A", "#B"}
    assert records["#B"].total_periods == 0
    assert records["#B"].participation_rate == 0.0
    assert records["#B"].is_active is False
    assert records["#A"].participation_rate == 100.0


def test_participation_rate_uses_available_history() -> None:
    roster = [RosterMember(tag="#A")]
    seasons = [_season(_raider("#A", 6, 10000)), _season(), _season(_raider("#A", 6, 10000)), _season()]

    (record,) = aggregate_members(roster, seasons, window=12)

    assert record.participation_rate == 50.0
    assert [entry.period_index for entry in record.recent_form] == [0, 2]


def test_empty_history_yields_zero_records() -> None:
    (record,) = aggregate_members([RosterMember(tag="#A")], [], window=12)
    assert record.participation_rate == 0.0
    assert record.average_resource_per_attack == 0
    assert record.consistency_score == 0.0


def test_war_metrics_track_stars_and_improvement() -> None:
    roster = [RosterMember(tag="#A")]

    def war(stars: int) -> ActivitySnapshot:
        attacks = (AttackRecord(stars=stars, destruction_percentage=50.0 + stars * 10),) * 2
        return ActivitySnapshot(
            state=SnapshotState.war_ended,
            participants=(
                MemberActivity(
                    tag="#A",
                    attacks_used=2,
                    stars_earned=stars * 2,
                    destruction_percentage=sum(attack.destruction_percentage for attack in attacks),
                    attacks=attacks,
                ),
            ),
        )

    # Most recent first: three 3-star wars after three 1-star wars.
    wars = [war(3), war(3), war(3), war(1), war(1), war(1)]
    (record,) = aggregate_members(roster, wars, window=20, metrics=WAR_METRICS, form_size=10)

    assert record.total_resource == 24
    assert record.total_attacks == 12
    assert record.improvement == 200.0
