import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
import httpx

from clanpulse.api.deps import get_coc_client
from clanpulse.services.coc_client import CocApiClient
from clanpulse.services.reports import REPORT_SOURCES, ClanDocuments, ReportKind, fetch_documents, run_report


router = APIRouter(prefix="/clans", tags=["clans"])
logger = logging.getLogger("clanpulse.routes")


def load_documents(client: CocApiClient, clan_tag: str, sources: tuple[str, ...]) -> ClanDocuments:
    try:
        return fetch_documents(client, clan_tag, sources)
    except httpx.HTTPStatusError as exc:
        if exc.response.status_code == 404:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Clan not found.") from exc
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Game API request failed with status {exc.response.status_code}.",
        ) from exc
    except httpx.HTTPError as exc:
        logger.warning("Game API unreachable for %s: %s", clan_tag, exc)
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Game API unreachable.") from exc


@router.get("/{clan_tag}/analytics/{report}")
def clan_analytics(
    clan_tag: str,
    report: ReportKind,
    days: int | None = Query(default=None),
    client: CocApiClient = Depends(get_coc_client),
) -> dict:
    documents = load_documents(client, clan_tag, REPORT_SOURCES[report])
    logger.info("Generating %s report for %s", report.value, clan_tag)
    return run_report(report, documents, days=days)
