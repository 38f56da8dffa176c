from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import enum
from typing import Any

from clanpulse.core.tuning import DEFAULT_TUNING, AnalyticsTuning
from clanpulse.services.attendance_report import generate_attendance
from clanpulse.services.capital_report import generate_capital_analytics
from clanpulse.services.coc_client import CocApiClient
from clanpulse.services.export import ExportKind, build_export
from clanpulse.services.insights_report import generate_insights
from clanpulse.services.normalizer import (
    normalize_clan,
    normalize_current_war,
    normalize_raid_seasons,
    normalize_roster,
    normalize_war_log,
)
from clanpulse.services.roster_report import generate_member_analytics, generate_overview
from clanpulse.services.war_report import generate_war_analytics


class ReportKind(str, enum.Enum):
    capital = "capital"
    wars = "wars"
    insights = "insights"
    overview = "overview"
    members = "members"
    attendance = "attendance"


@dataclass
class ClanDocuments:
    """Raw game API documents for one clan, before normalization."""

    clan: Any = None
    members: Any = None
    war_log: Any = None
    current_war: Any = None
    raid_seasons: Any = None

    def roster_source(self) -> Any:
        if self.members is not None:
            return self.members
        return self.clan


# Which upstream documents each report reads besides the clan itself.
REPORT_SOURCES: dict[ReportKind, tuple[str, ...]] = {
    ReportKind.capital: ("raid_seasons",),
    ReportKind.wars: ("war_log", "current_war"),
    ReportKind.insights: ("war_log",),
    ReportKind.overview: ("war_log", "current_war"),
    ReportKind.members: (),
    ReportKind.attendance: ("war_log", "current_war"),
}


def fetch_documents(client: CocApiClient, clan_tag: str, sources: tuple[str, ...]) -> ClanDocuments:
    documents = ClanDocuments(clan=client.get_clan(clan_tag))
    if "war_log" in sources:
        documents.war_log = client.get_war_log(clan_tag)
    if "current_war" in sources:
        documents.current_war = client.get_current_war(clan_tag)
    if "raid_seasons" in sources:
        documents.raid_seasons = client.get_raid_seasons(clan_tag)
    return documents


def run_report(
    kind: ReportKind | str,
    documents: ClanDocuments,
    *,
    now: datetime | None = None,
    tuning: AnalyticsTuning = DEFAULT_TUNING,
    days: int | None = None,
) -> dict[str, Any]:
    kind = ReportKind(kind)
    roster = normalize_roster(documents.roster_source())
    if kind == ReportKind.capital:
        return generate_capital_analytics(
            normalize_raid_seasons(documents.raid_seasons), roster, now=now, tuning=tuning
        )
    if kind == ReportKind.wars:
        return generate_war_analytics(
            normalize_war_log(documents.war_log),
            roster,
            normalize_current_war(documents.current_war),
            now=now,
            tuning=tuning,
        )
    if kind == ReportKind.insights:
        return generate_insights(roster, normalize_war_log(documents.war_log), now=now, tuning=tuning)
    if kind == ReportKind.overview:
        return generate_overview(
            normalize_clan(documents.clan),
            normalize_war_log(documents.war_log),
            normalize_current_war(documents.current_war),
            now=now,
            tuning=tuning,
        )
    if kind == ReportKind.attendance:
        return generate_attendance(
            normalize_war_log(documents.war_log),
            normalize_current_war(documents.current_war),
            days=days,
            now=now,
            tuning=tuning,
        )
    return generate_member_analytics(roster, now=now)


def run_export(
    kind: ExportKind | str,
    documents: ClanDocuments,
    *,
    now: datetime | None = None,
    tuning: AnalyticsTuning = DEFAULT_TUNING,
) -> dict[str, Any]:
    return build_export(
        kind,
        normalize_clan(documents.clan),
        normalize_war_log(documents.war_log),
        now=now,
        tuning=tuning,
    )
