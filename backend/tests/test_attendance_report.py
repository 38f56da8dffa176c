from datetime import datetime, timedelta, timezone

from clanpulse.core.tuning import AnalyticsTuning
from clanpulse.services.attendance_report import generate_attendance, risk_score, window_days
from clanpulse.services.normalizer import ActivitySnapshot, MemberActivity, SnapshotState


NOW = datetime(2026, 3, 20, 12, tzinfo=timezone.utc)


def _war(
    days_ago: int | None,
    attacks: dict[str, int],
    *,
    per_member: int = 2,
    state: SnapshotState = SnapshotState.war_ended,
) -> ActivitySnapshot:
    return ActivitySnapshot(
        state=state,
        period_end=None if days_ago is None else NOW - timedelta(days=days_ago),
        attacks_per_member=per_member,
        participants=tuple(MemberActivity(tag=tag, name=tag, attacks_used=used) for tag, used in attacks.items()),
    )


def test_missed_attacks_drive_risk_order() -> None:
    report = generate_attendance([_war(2, {"#A": 2, "#B": 0}), _war(20, {"#A": 1, "#B": 2})], now=NOW)

    bravo, alpha = report["results"]
    assert bravo["tag"] == "#B"
    assert (bravo["expected"], bravo["used"], bravo["missed"]) == (4, 2, 2)
    assert bravo["missRate"] == 50
    assert bravo["participationRate"] == 50
    # Missed within the last two weeks.
    assert bravo["risk"] == 65
    assert alpha["missRate"] == 25
    assert alpha["participationRate"] == 100
    assert alpha["risk"] == 18
    assert alpha["lastWar"] == (NOW - timedelta(days=2)).isoformat()
    assert alpha["totalWars"] == 2
    assert report["summary"] == {"windowDays": 60, "warsAnalyzed": 2, "membersAnalyzed": 2, "avgMissRate": 38}
    assert report["generatedAt"] == NOW.isoformat()


def test_league_wars_expect_one_attack() -> None:
    report = generate_attendance([_war(1, {"#A": 1, "#B": 0}, per_member=1)], now=NOW)

    rows = {row["tag"]: row for row in report["results"]}
    assert rows["#A"]["missed"] == 0
    assert rows["#A"]["risk"] == 0
    assert rows["#B"]["expected"] == 1
    assert rows["#B"]["missRate"] == 100
    assert rows["#B"]["risk"] == 100


def test_unknown_attack_allowance_defaults_to_two() -> None:
    report = generate_attendance([_war(30, {"#A": 1}, per_member=0)], now=NOW)
    (row,) = report["results"]
    assert row["expected"] == 2
    assert row["missed"] == 1


def test_window_is_clamped_and_filters_wars() -> None:
    assert window_days(None) == 60
    assert window_days(1) == 7
    assert window_days(999) == 180

    wars = [
        _war(5, {"#A": 2}),
        _war(40, {"#A": 0}),
        _war(None, {"#A": 0}),
        _war(1, {"#A": 0}, state=SnapshotState.in_war),
    ]
    report = generate_attendance(wars, days=30, now=NOW)

    assert report["summary"]["windowDays"] == 30
    assert report["summary"]["warsAnalyzed"] == 1
    assert report["results"][0]["missed"] == 0


def test_finished_current_war_counts_once() -> None:
    logged = _war(1, {"#A": 2})
    fresh = _war(0, {"#A": 0})

    assert generate_attendance([logged], logged, now=NOW)["summary"]["warsAnalyzed"] == 1
    report = generate_attendance([logged], fresh, now=NOW)
    assert report["summary"]["warsAnalyzed"] == 2
    assert report["results"][0]["missed"] == 2


def test_risk_weights_follow_tuning() -> None:
    tuning = AnalyticsTuning(recent_miss_penalty=0.0, miss_rate_weight=1.0, absence_weight=0.0)
    assert risk_score(40, 0, True, tuning) == 40
    assert risk_score(100, 0, True) == 100


def test_empty_war_log_yields_zeroed_summary() -> None:
    report = generate_attendance([], now=NOW)
    assert report["results"] == []
    assert report["summary"] == {"windowDays": 60, "warsAnalyzed": 0, "membersAnalyzed": 0, "avgMissRate": 0}
