"""
FastAPI dependency injection module for the Persona Retention backend.

Key Dependencies Provided:
- get_settings_dependency: Returns the cached Settings singleton
- get_session_dependency: Returns the process-wide DashboardSession
- SettingsDep / SessionDep: Annotated aliases for endpoint signatures

Usage:
    @router.get("/dashboard")
    def get_dashboard(session: SessionDep, settings: SettingsDep) -> DashboardResponse:
        ...

In tests, either dependency can be swapped out:

    app.dependency_overrides[get_session_dependency] = lambda: DashboardSession()
"""

from typing import Annotated

from fastapi import Depends

from persona_retention.core.config import Settings, get_settings
from persona_retention.services.session import DashboardSession, get_session


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so FastAPI's dependency override
    mechanism can replace it in tests.
    """
    return get_settings()


# =============================================================================
# Session Dependency
# =============================================================================

def get_session_dependency() -> DashboardSession:
    """
    Return the dashboard session.

    The session is created in the application lifespan; if an endpoint runs
    without it (e.g. a bare TestClient without lifespan), it is created from
    the current settings on first use.
    """
    return get_session()


# =============================================================================
# Type Aliases for Dependency Injection
# =============================================================================

# Usage: def endpoint(settings: SettingsDep)
SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]

# Usage: def endpoint(session: SessionDep)
SessionDep = Annotated[DashboardSession, Depends(get_session_dependency)]
