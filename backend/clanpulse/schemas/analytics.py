from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DocumentModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Documents stay raw JSON: a bare list, an {"items": [...]} page, a null or a
# malformed value all reach the normalizer, which drops what it cannot read.
class CapitalAnalyticsRequest(DocumentModel):
    raid_seasons: Any = None
    members: Any = None


class WarAnalyticsRequest(DocumentModel):
    war_log: Any = None
    members: Any = None
    current_war: Any = None


class InsightsRequest(DocumentModel):
    members: Any = None
    war_log: Any = None


class OverviewRequest(DocumentModel):
    clan: Any = None
    war_log: Any = None
    current_war: Any = None


class MembersRequest(DocumentModel):
    members: Any = None


class AttendanceRequest(DocumentModel):
    war_log: Any = None
    members: Any = None
    current_war: Any = None
    days: int | None = None


class CapitalAnalyticsResponse(DocumentModel):
    summary: dict[str, Any]
    recent_raids: list[dict[str, Any]]
    member_performance: dict[str, Any]
    weekly_trends: dict[str, Any]
    capital_progression: dict[str, Any]
    attack_efficiency: dict[str, Any]
    last_updated: str


class WarAnalyticsResponse(DocumentModel):
    summary: dict[str, Any]
    player_performance: dict[str, Any]
    war_patterns: dict[str, Any]
    attack_analysis: dict[str, Any]
    historical_trends: dict[str, Any]
    current_war: dict[str, Any] | None = None
    predictions: dict[str, Any] | None = None
    recent_wars: list[dict[str, Any]]
    last_updated: str


class RecommendationOut(BaseModel):
    type: str
    priority: str
    title: str
    description: str
    action: str


class InsightsResponse(DocumentModel):
    member_insights: dict[str, Any]
    war_insights: dict[str, Any] | None = None
    health_insights: dict[str, Any]
    predictions: dict[str, Any]
    recommendations: list[RecommendationOut]
    generated_at: str


class OverviewResponse(DocumentModel):
    clan_info: dict[str, Any]
    overview: dict[str, Any]
    war_stats: dict[str, Any]
    distributions: dict[str, dict[str, int]]
    top_performers: dict[str, list[dict[str, Any]]]
    current_war: dict[str, Any] | None = None
    last_updated: str


class MemberAnalyticsResponse(DocumentModel):
    member_count: int
    active_count: int
    inactive_count: int
    members: list[dict[str, Any]]
    performance_tiers: dict[str, Any]
    donation_analysis: dict[str, Any]
    trophy_ranges: dict[str, int]
    town_hall_analysis: dict[str, dict[str, int]]
    last_updated: str


class AttendanceResponse(DocumentModel):
    summary: dict[str, Any]
    results: list[dict[str, Any]]
    generated_at: str
