import logging

from fastapi import APIRouter

from clanpulse.schemas.analytics import (
    AttendanceRequest,
    AttendanceResponse,
    CapitalAnalyticsRequest,
    CapitalAnalyticsResponse,
    InsightsRequest,
    InsightsResponse,
    MemberAnalyticsResponse,
    MembersRequest,
    OverviewRequest,
    OverviewResponse,
    WarAnalyticsRequest,
    WarAnalyticsResponse,
)
from clanpulse.services.normalizer import as_records, normalize_roster
from clanpulse.services.reports import ClanDocuments, ReportKind, run_report


router = APIRouter(prefix="/analytics", tags=["analytics"])
logger = logging.getLogger("clanpulse.routes")


@router.post("/capital", response_model=CapitalAnalyticsResponse)
def capital_analytics(payload: CapitalAnalyticsRequest) -> dict:
    logger.info("Capital report over %s raid seasons", len(as_records(payload.raid_seasons)))
    return run_report(
        ReportKind.capital,
        ClanDocuments(members=payload.members, raid_seasons=payload.raid_seasons),
    )


@router.post("/wars", response_model=WarAnalyticsResponse)
def war_analytics(payload: WarAnalyticsRequest) -> dict:
    logger.info("War report over %s wars", len(as_records(payload.war_log)))
    return run_report(
        ReportKind.wars,
        ClanDocuments(members=payload.members, war_log=payload.war_log, current_war=payload.current_war),
    )


@router.post("/insights", response_model=InsightsResponse)
def insights(payload: InsightsRequest) -> dict:
    logger.info("Insights report for %s members", len(normalize_roster(payload.members)))
    return run_report(ReportKind.insights, ClanDocuments(members=payload.members, war_log=payload.war_log))


@router.post("/overview", response_model=OverviewResponse)
def overview(payload: OverviewRequest) -> dict:
    return run_report(
        ReportKind.overview,
        ClanDocuments(clan=payload.clan, war_log=payload.war_log, current_war=payload.current_war),
    )


@router.post("/members", response_model=MemberAnalyticsResponse)
def member_analytics(payload: MembersRequest) -> dict:
    return run_report(ReportKind.members, ClanDocuments(members=payload.members))


@router.post("/attendance", response_model=AttendanceResponse)
def attendance(payload: AttendanceRequest) -> dict:
    return run_report(
        ReportKind.attendance,
        ClanDocuments(members=payload.members, war_log=payload.war_log, current_war=payload.current_war),
        days=payload.days,
    )
