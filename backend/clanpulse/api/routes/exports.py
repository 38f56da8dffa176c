import csv
import io

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from openpyxl import Workbook

from clanpulse.api.deps import get_coc_client
from clanpulse.api.routes.clans import load_documents
from clanpulse.services.coc_client import CocApiClient
from clanpulse.services.export import ExportKind, export_filename, export_rows
from clanpulse.services.reports import run_export


router = APIRouter(tags=["exports"])

_EXPORT_SOURCES = ("war_log",)


def _build_document(client: CocApiClient, clan_tag: str, kind: ExportKind) -> dict:
    documents = load_documents(client, clan_tag, _EXPORT_SOURCES)
    return run_export(kind, documents)


@router.get("/clans/{clan_tag}/exports/csv")
def export_csv(
    clan_tag: str,
    type: ExportKind = Query(default=ExportKind.overview),
    client: CocApiClient = Depends(get_coc_client),
):
    document = _build_document(client, clan_tag, type)
    headers, rows = export_rows(document)
    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=headers)
    writer.writeheader()
    writer.writerows(rows)
    output.seek(0)
    filename = export_filename(document, "csv")
    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/clans/{clan_tag}/exports/excel")
def export_excel(
    clan_tag: str,
    type: ExportKind = Query(default=ExportKind.overview),
    client: CocApiClient = Depends(get_coc_client),
):
    document = _build_document(client, clan_tag, type)
    headers, rows = export_rows(document)
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = type.value.capitalize()
    sheet.append(headers)
    for row in rows:
        sheet.append([row.get(key) for key in headers])

    stream = io.BytesIO()
    workbook.save(stream)
    stream.seek(0)
    filename = export_filename(document, "xlsx")
    return StreamingResponse(
        stream,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
