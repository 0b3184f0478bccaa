"""
FastAPI router for CSV downloads.

Key Endpoints:
- GET /export/table.csv - The (filtered) aggregate table as CSV
- GET /export/template.csv - A one-row template of the recommended input shape
"""

import logging
from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import Response

from persona_retention.api.dashboard import table_rows
from persona_retention.core.dependencies import SessionDep, SettingsDep
from persona_retention.services.export import (
    TABLE_EXPORT_FILENAME,
    TEMPLATE_FILENAME,
    export_rows,
    to_csv_text,
)
from persona_retention.services.insights import ALL_PERSONAS
from persona_retention.services.sample_data import TEMPLATE_ROWS

logger = logging.getLogger(__name__)

CSV_MEDIA_TYPE: str = "text/csv; charset=utf-8"

router = APIRouter()


def _csv_response(text: str, filename: str) -> Response:
    return Response(
        content=text,
        media_type=CSV_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/table.csv")
def export_table(
    session: SessionDep,
    settings: SettingsDep,
    persona: str = Query(ALL_PERSONAS, description="Persona key or 'all'"),
    min_users: Optional[int] = Query(None, ge=0, description="Hide smaller buckets"),
    query: str = Query("", description="Search on month or persona label"),
) -> Response:
    """Download the aggregate table with the same filters as GET /dashboard/table."""
    rows = table_rows(session.result(), settings, persona, min_users, query)
    logger.info(f"Exporting {len(rows)} table rows")
    return _csv_response(to_csv_text(export_rows(rows)), TABLE_EXPORT_FILENAME)


@router.get("/template.csv")
def export_template() -> Response:
    """Download the input template."""
    return _csv_response(to_csv_text(TEMPLATE_ROWS), TEMPLATE_FILENAME)
