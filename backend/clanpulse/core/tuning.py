"""
Thresholds, weights and window caps used by the analytics engine.

Report generators take an ``AnalyticsTuning`` so variants can share the
engine with different values. ``DEFAULT_TUNING`` holds the dashboard values.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class HealthWeights:
    """Weights combining the four health sub-scores into the overall score."""

    activity: float = 0.3
    donations: float = 0.3
    war_participation: float = 0.2
    membership_utilization: float = 0.2

    def __post_init__(self) -> None:
        total = self.activity + self.donations + self.war_participation + self.membership_utilization
        if abs(total - 1.0) > 1e-9:
            raise ValueError(f"Health weights must sum to 1.0, got {total}")


@dataclass(frozen=True)
class AnalyticsTuning:
    # Window caps (snapshots are most-recent-first)
    history_window: int = 24
    raid_trend_window: int = 12
    recent_raids_window: int = 8
    war_form_window: int = 5
    war_history_window: int = 20
    recent_wars_window: int = 10
    attack_analysis_window: int = 15
    form_size: int = 8
    war_form_size: int = 10

    # Consistency / improvement
    consistency_min_form: int = 3
    consistency_scale: float = 10.0
    war_consistency_scale: float = 20.0
    improvement_window: int = 3

    # Trend analysis
    trend_window: int = 3
    trend_threshold: float = 5.0
    monthly_trend_threshold: float = 5.0
    overall_trend_threshold: float = 10.0
    momentum_threshold: float = 5.0
    history_months: int = 6

    # Tier classification
    top_performers: int = 10
    consistent_rate: float = 80.0
    consistent_min_periods: int = 4
    casual_rate: float = 50.0
    elite_stars_per_attack: float = 2.5
    elite_min_wars: int = 5
    reliable_stars_per_attack: float = 2.0
    improving_delta: float = 20.0
    improving_min_wars: int = 3
    war_top_performers: int = 5
    struggling_min_attacks: int = 5
    struggling_count: int = 5

    # Clan health
    roster_capacity: int = 50
    donation_benchmark: float = 1000.0
    status_excellent: float = 80.0
    status_good: float = 60.0
    health_weights: HealthWeights = field(default_factory=HealthWeights)

    # Predictions
    default_win_probability: int = 50
    win_confidence_full: int = 80
    win_confidence_partial: int = 60
    growth_multiplier: float = 1.2
    growth_confidence: int = 75
    growth_timeframe: str = "1-2 weeks"
    stability_low_risk: float = 80.0
    stability_medium_risk: float = 60.0
    outlook_min_wars: int = 5
    outlook_probability_floor: float = 10.0
    outlook_probability_ceiling: float = 90.0
    outlook_confidence_per_war: int = 10
    outlook_confidence_cap: int = 90

    # Recommendations
    inactive_share_ceiling: float = 0.2
    donation_ratio_floor: float = 0.8
    win_rate_floor: float = 0.6
    min_war_history: int = 3
    recruit_below: int = 45
    promotion_min_donations: int = 100
    promotion_metric_share: float = 0.9

    # Attack efficiency (gold per attack)
    efficiency_high: float = 1000.0
    efficiency_medium: float = 500.0

    # Attendance
    attendance_window_days: int = 60
    attendance_min_days: int = 7
    attendance_max_days: int = 180
    attacks_per_war: int = 2
    recent_miss_days: int = 14
    recent_miss_penalty: float = 15.0
    miss_rate_weight: float = 0.7
    absence_weight: float = 0.3


DEFAULT_TUNING = AnalyticsTuning()
