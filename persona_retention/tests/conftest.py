"""
Pytest Configuration and Shared Fixtures for Persona Retention Tests.

Provides:
- Custom markers (slow, integration, parity)
- CSV fixtures for the supported input shapes
- Fresh keyword dictionaries and sessions
- A FastAPI TestClient with a clean session and settings cache

Parity tests pin exact output formats consumed by the frontend
(rounding, tie-breaking, CSV quoting).
"""

from typing import Generator

import pytest

from persona_retention.core.config import get_settings
from persona_retention.models.enums import ClassificationMode
from persona_retention.models.schemas import UserMonthRecord
from persona_retention.services.personas import KeywordDictionary, default_keywords
from persona_retention.services.sample_data import SAMPLE_CSV
from persona_retention.services.session import DashboardSession, close_session


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Configure custom pytest markers for test organization.

    Custom markers defined:
    - slow: Marks tests as slow (deselect with -m "not slow")
    - integration: Marks tests that exercise the HTTP app end to end
    - parity: Marks tests pinning exact output formats consumed by the frontend
    """
    config.addinivalue_line(
        'markers',
        'slow: marks tests as slow (deselect with -m "not slow")'
    )
    config.addinivalue_line(
        'markers',
        'integration: marks tests that run the FastAPI app through TestClient'
    )
    config.addinivalue_line(
        'markers',
        'parity: marks tests pinning exact output formats consumed by the frontend'
    )


# ============================================================
# HELPERS
# ============================================================

def make_record(
    user_id: str,
    month: str,
    text: str = "",
    active_next_month: str = "",
) -> UserMonthRecord:
    """Build a normalized record for retention/aggregation tests."""
    return UserMonthRecord(
        user_id=user_id,
        month=month,
        text=text,
        active_next_month=active_next_month,
    )


# ============================================================
# CSV FIXTURES
# ============================================================

@pytest.fixture
def sample_csv() -> str:
    """The bundled six-row sample (aggregate shape, presence-based retention)."""
    return SAMPLE_CSV


@pytest.fixture
def raw_event_csv() -> str:
    """Raw event shape: several messages per user and month via created_at."""
    return (
        "user_id,created_at,text\n"
        "u1,2025-09-03T10:00:00Z,Frustrerend\n"
        "u1,2025-09-20T08:30:00Z,Weer kapot\n"
        "u2,2025-09-05,Ik reken hierop\n"
        "u1,2025-10-01,Prima\n"
    )


@pytest.fixture
def explicit_flag_csv() -> str:
    """Aggregate shape with an explicit active_next_month column."""
    return (
        "user_id,month,text,active_next_month\n"
        "a,2025-01,al jaren dagelijks,yes\n"
        "b,2025-01,al jaren,0\n"
        "c,2025-01,routine,\n"
        "c,2025-02,routine,\n"
    )


@pytest.fixture
def survey_csv() -> str:
    """Semicolon-delimited survey export keyed by Network ID."""
    return (
        "Network ID;Beschrijf je ervaring;Start Date (UTC)\n"
        "n1;Het is onvoorspelbaar;2025-03-14 09:12:00\n"
        "n2;;2025-03-15 10:00:00\n"
    )


# ============================================================
# STATE FIXTURES
# ============================================================

@pytest.fixture
def keywords() -> KeywordDictionary:
    """A fresh copy of the default keyword dictionary."""
    return default_keywords()


@pytest.fixture
def session(sample_csv: str) -> DashboardSession:
    """A session seeded with the sample dataset in dominant mode."""
    return DashboardSession(csv_text=sample_csv, mode=ClassificationMode.DOMINANT)


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch) -> Generator:
    """
    TestClient running the app lifespan against a fresh session.

    The settings cache is cleared so env overrides set by a test via
    monkeypatch take effect, and the process-wide session is dropped before
    and after each test.
    """
    from fastapi.testclient import TestClient

    from persona_retention.main import app

    monkeypatch.setenv('PERSONA_LOAD_SAMPLE_ON_STARTUP', 'true')
    get_settings.cache_clear()
    close_session()

    with TestClient(app) as test_client:
        yield test_client

    close_session()
    get_settings.cache_clear()

