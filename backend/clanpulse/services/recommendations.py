from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass
import enum

from clanpulse.core.tuning import DEFAULT_TUNING, AnalyticsTuning
from clanpulse.services.normalizer import ActivitySnapshot, MemberRole, RosterMember
from clanpulse.services.predictions import win_count
from clanpulse.utils.rounding import mean, whole


class Priority(str, enum.Enum):
    high = "high"
    medium = "medium"
    low = "low"


PRIORITY_WEIGHT = {Priority.high: 3, Priority.medium: 2, Priority.low: 1}


@dataclass(frozen=True)
class Recommendation:
    type: str
    priority: Priority
    title: str
    description: str
    action: str

    def as_dict(self) -> dict[str, str]:
        row = asdict(self)
        row["priority"] = self.priority.value
        return row


@dataclass(frozen=True)
class RecommendationContext:
    roster: Sequence[RosterMember]
    wars: Sequence[ActivitySnapshot]
    metric: Callable[[RosterMember], float]
    tuning: AnalyticsTuning = DEFAULT_TUNING


Rule = Callable[[RecommendationContext], Recommendation | None]


def _inactive_members(ctx: RecommendationContext) -> Recommendation | None:
    inactive = sum(1 for member in ctx.roster if not member.is_active)
    if not ctx.roster or inactive <= len(ctx.roster) * ctx.tuning.inactive_share_ceiling:
        return None
    return Recommendation(
        type="member_management",
        priority=Priority.high,
        title="Address Member Inactivity",
        description=(
            f"{inactive} members appear inactive. Consider removing inactive members "
            "and recruiting active players."
        ),
        action="Review inactive members and consider clan cleanup",
    )


def _donation_balance(ctx: RecommendationContext) -> Recommendation | None:
    given = sum(member.donations for member in ctx.roster)
    received = sum(member.donations_received for member in ctx.roster)
    if received <= 0 or given / received >= ctx.tuning.donation_ratio_floor:
        return None
    return Recommendation(
        type="donations",
        priority=Priority.medium,
        title="Improve Donation Balance",
        description="Clan donation ratio is below optimal. Encourage more donations from members.",
        action="Set donation requirements and track member contributions",
    )


def _war_performance(ctx: RecommendationContext) -> Recommendation | None:
    if len(ctx.wars) < ctx.tuning.min_war_history:
        return None
    window = min(ctx.tuning.war_form_window, len(ctx.wars))
    win_rate = win_count(ctx.wars[:window]) / window
    if win_rate >= ctx.tuning.win_rate_floor:
        return None
    return Recommendation(
        type="war_strategy",
        priority=Priority.high,
        title="Improve War Performance",
        description=(
            f"Current win rate is {whole(win_rate * 100)}%. "
            "Focus on attack strategies and coordination."
        ),
        action="Review war attack strategies and provide member guidance",
    )


def _recruitment(ctx: RecommendationContext) -> Recommendation | None:
    size = len(ctx.roster)
    if size == 0 or size >= ctx.tuning.recruit_below:
        return None
    return Recommendation(
        type="growth",
        priority=Priority.medium,
        title="Recruit New Members",
        description=(
            f"Clan has {size}/{ctx.tuning.roster_capacity} members. "
            "Recruiting more active players will strengthen the clan."
        ),
        action="Actively recruit in global chat and through clan search",
    )


def promotion_candidates(ctx: RecommendationContext) -> list[RosterMember]:
    if not ctx.roster:
        return []
    threshold = mean([ctx.metric(member) for member in ctx.roster]) * ctx.tuning.promotion_metric_share
    return [
        member
        for member in ctx.roster
        if member.role == MemberRole.member.value
        and member.donations > ctx.tuning.promotion_min_donations
        and ctx.metric(member) > threshold
    ]


def _promotions(ctx: RecommendationContext) -> Recommendation | None:
    eligible = promotion_candidates(ctx)
    if not eligible:
        return None
    return Recommendation(
        type="leadership",
        priority=Priority.low,
        title="Consider Member Promotions",
        description=(
            f"{len(eligible)} members may be eligible for promotion based on activity and performance."
        ),
        action="Review active members for potential Elder promotions",
    )


RULES: tuple[Rule, ...] = (
    _inactive_members,
    _donation_balance,
    _war_performance,
    _recruitment,
    _promotions,
)


def generate_recommendations(
    ctx: RecommendationContext,
    rules: Sequence[Rule] = RULES,
) -> list[Recommendation]:
    emitted = [item for item in (rule(ctx) for rule in rules) if item is not None]
    # sorted() is stable, so equal priorities keep rule order.
    return sorted(emitted, key=lambda item: PRIORITY_WEIGHT[item.priority], reverse=True)
