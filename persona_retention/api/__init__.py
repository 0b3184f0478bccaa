"""
API package initialization.

This package contains FastAPI router modules for the persona retention dashboard:
- dashboard: dataset ingestion, mode switching, computed dashboard, table, feedback
- keywords: persona catalog and keyword dictionary editing
- export: CSV downloads
"""

from fastapi import APIRouter

from persona_retention.api.dashboard import router as dashboard_router
from persona_retention.api.keywords import router as keywords_router
from persona_retention.api.export import router as export_router

# Create main API router
api_router = APIRouter()

api_router.include_router(dashboard_router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(keywords_router, tags=["keywords"])  # /personas and /keywords
api_router.include_router(export_router, prefix="/export", tags=["export"])

__all__ = [
    "api_router",
    "dashboard_router",
    "keywords_router",
    "export_router",
]
