"""
FastAPI router for the persona retention dashboard.

Key Endpoints:
- GET /dashboard - Full computed result (aggregates, series, spotlight, alerts)
- PUT /dashboard/csv - Replace the dataset with pasted CSV text
- POST /dashboard/upload - Replace the dataset with an uploaded CSV file
- POST /dashboard/sample - Load the bundled sample dataset
- PUT /dashboard/mode - Switch between dominant and multi aggregation
- GET /dashboard/series - Dense retention or volume series for the trend chart
- GET /dashboard/table - Aggregate table with persona/size/search filters
- GET /dashboard/months/{month}/feedback - Per-user feedback of one month

Ingestion problems (parse errors, empty results, unreadable files) never fail
the request; they come back as notices in the response body. HTTP errors are
reserved for invalid requests: unknown persona or malformed month (404),
oversized upload (413), and invalid mode values (422 via enum validation).

Endpoints are plain functions (not async) because every pass is CPU-bound
pandas work; FastAPI runs them on its thread pool and the session lock keeps
concurrent writers consistent.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, File, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool

from persona_retention.core.config import Settings
from persona_retention.core.dependencies import SessionDep, SettingsDep
from persona_retention.models.enums import SeriesView
from persona_retention.models.schemas import (
    CsvTextRequest,
    DashboardResponse,
    FeedbackEntry,
    IngestionResponse,
    ModeRequest,
    MonthPersonaAggregate,
)
from persona_retention.services.insights import (
    ALL_PERSONAS,
    build_alerts,
    build_spotlight,
    filter_table_rows,
    month_feedback,
)
from persona_retention.services.personas import is_persona_key
from persona_retention.services.pipeline import PipelineResult


# =============================================================================
# Module Configuration
# =============================================================================

logger = logging.getLogger(__name__)

_MONTH_PATTERN = re.compile(r'^\d{4}-\d{2}$')

router = APIRouter()


# =============================================================================
# Helper Functions
# =============================================================================

def resolve_persona_filter(persona: str) -> str:
    """
    Validate a persona filter value ('all' or a catalog key).

    Raises:
        HTTPException 404: If the key is not in the catalog.
    """
    if persona != ALL_PERSONAS and not is_persona_key(persona):
        raise HTTPException(status_code=404, detail=f"Unknown persona: {persona}")
    return persona


def table_rows(
    result: PipelineResult,
    settings: Settings,
    persona: str,
    min_users: Optional[int],
    query: str,
) -> List[MonthPersonaAggregate]:
    """Filtered aggregate rows; min_users falls back to the configured noise guard."""
    return filter_table_rows(
        result.aggregates,
        persona=resolve_persona_filter(persona),
        min_users=settings.min_users if min_users is None else min_users,
        query=query,
    )


def _log_notices(result: PipelineResult) -> None:
    for notice in result.notices:
        logger.warning(f"Ingestion notice ({notice.kind.value}): {notice.message}")


def _ingestion_response(result: PipelineResult) -> IngestionResponse:
    _log_notices(result)
    return IngestionResponse(
        rows_parsed=result.rows_parsed,
        records=len(result.records),
        notices=result.notices,
    )


def build_dashboard_response(result: PipelineResult, settings: Settings) -> DashboardResponse:
    """
    Assemble the dashboard bundle from one pipeline result.

    Args:
        result: Current pipeline result of the session
        settings: Application settings (alert noise guard)

    Returns:
        DashboardResponse with aggregates, dense series, spotlight and alerts
    """
    aggregation = result.aggregation
    return DashboardResponse(
        mode=result.mode,
        months=result.months,
        records=len(result.records),
        aggregates=result.aggregates,
        retention_series=aggregation.retention_series(),
        volume_series=aggregation.volume_series(),
        spotlight=build_spotlight(aggregation),
        alerts=build_alerts(aggregation, min_users=settings.min_users),
        notices=result.notices,
    )


# =============================================================================
# GET /dashboard - Full Result
# =============================================================================

@router.get("", response_model=DashboardResponse)
def get_dashboard(session: SessionDep, settings: SettingsDep) -> DashboardResponse:
    """
    Return the full computed dashboard for the current dataset.

    Example Response (abridged):
        {
            "mode": "dominant",
            "months": ["2025-09", "2025-10"],
            "records": 6,
            "aggregates": [...],
            "retention_series": [{"month": "2025-09", "Trust erosion": 100, ...}],
            "spotlight": {"last_month": "2025-10", "trust": {...}, "veteran": {...}},
            "alerts": [{"tone": "good", "title": "No acute persona alarm", ...}],
            "notices": []
        }
    """
    try:
        return build_dashboard_response(session.result(), settings)
    except Exception as e:
        logger.exception(f"Error building dashboard: {e}")
        raise HTTPException(status_code=500, detail="Failed to build dashboard")


# =============================================================================
# Dataset Ingestion
# =============================================================================

@router.put("/csv", response_model=IngestionResponse)
def put_csv_text(request: CsvTextRequest, session: SessionDep) -> IngestionResponse:
    """Replace the dataset with pasted CSV text."""
    return _ingestion_response(session.set_csv_text(request.text))


@router.post("/upload", response_model=IngestionResponse)
async def upload_csv(
    session: SessionDep,
    settings: SettingsDep,
    file: UploadFile = File(..., description="CSV file (UTF-8, comma/semicolon/tab)"),
) -> IngestionResponse:
    """
    Replace the dataset with an uploaded CSV file.

    Bytes that are not valid UTF-8 are replaced with U+FFFD and the file
    still loads.

    Raises:
        HTTPException 413: If the file exceeds max_upload_bytes.
    """
    content = await file.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        logger.warning(
            f"Upload rejected: {file.filename} exceeds {settings.max_upload_bytes} bytes"
        )
        raise HTTPException(
            status_code=413,
            detail=f"File exceeds {settings.max_upload_bytes} bytes",
        )

    logger.info(f"Received upload {file.filename} ({len(content)} bytes)")
    result = await run_in_threadpool(session.load_upload, content)
    return _ingestion_response(result)


@router.post("/sample", response_model=IngestionResponse)
def load_sample(session: SessionDep) -> IngestionResponse:
    """Load the bundled sample dataset."""
    return _ingestion_response(session.load_sample())


@router.put("/mode", response_model=DashboardResponse)
def put_mode(request: ModeRequest, session: SessionDep, settings: SettingsDep) -> DashboardResponse:
    """Switch the classification mode and return the recomputed dashboard."""
    return build_dashboard_response(session.set_mode(request.mode), settings)


@router.get("/series", response_model=List[Dict[str, Any]])
def get_series(
    session: SessionDep,
    view: SeriesView = Query(SeriesView.RETENTION, description="retention or volume"),
) -> List[Dict[str, Any]]:
    """Dense trend series, one point per month keyed by persona label."""
    aggregation = session.result().aggregation
    if view == SeriesView.VOLUME:
        return aggregation.volume_series()
    return aggregation.retention_series()


# =============================================================================
# Table & Feedback
# =============================================================================

@router.get("/table", response_model=List[MonthPersonaAggregate])
def get_table(
    session: SessionDep,
    settings: SettingsDep,
    persona: str = Query(ALL_PERSONAS, description="Persona key or 'all'"),
    min_users: Optional[int] = Query(None, ge=0, description="Hide smaller buckets"),
    query: str = Query("", description="Search on month or persona label"),
) -> List[MonthPersonaAggregate]:
    """Aggregate table, newest month first."""
    return table_rows(session.result(), settings, persona, min_users, query)


@router.get("/months/{month}/feedback", response_model=List[FeedbackEntry])
def get_month_feedback(
    month: str,
    session: SessionDep,
    settings: SettingsDep,
    min_chars: Optional[int] = Query(None, ge=0, description="Minimum text length"),
) -> List[FeedbackEntry]:
    """
    Per-user feedback of one month, most severe persona first.

    Raises:
        HTTPException 404: If month is not formatted YYYY-MM.
    """
    if not _MONTH_PATTERN.match(month):
        raise HTTPException(status_code=404, detail=f"Invalid month: {month}")

    return month_feedback(
        session.result().classified,
        month,
        min_chars=settings.min_entry_chars if min_chars is None else min_chars,
    )
