"""
Package initialization file for persona_retention models.

Re-exports all Pydantic schemas and enumerations so other modules can import
them from persona_retention.models directly.

Usage:
    from persona_retention.models import (
        ClassificationMode,
        UserMonthRecord,
        MonthPersonaAggregate,
    )
"""

# =============================================================================
# Enums
# =============================================================================

from persona_retention.models.enums import (
    PersonaKey,
    ClassificationMode,
    NoticeKind,
    AlertTone,
    SeriesView,
)

# =============================================================================
# Schemas
# =============================================================================

from persona_retention.models.schemas import (
    # Persona catalog
    Persona,
    PersonaWithKeywords,
    # Pipeline records
    UserMonthRecord,
    PersonaMatch,
    ClassifiedRecord,
    MonthPersonaAggregate,
    # Notices
    IngestionNotice,
    # Insights
    SpotlightCard,
    Spotlight,
    Alert,
    FeedbackEntry,
    # API requests
    CsvTextRequest,
    ModeRequest,
    KeywordUpdateRequest,
    # API responses
    IngestionResponse,
    DashboardResponse,
)


__all__ = [
    # Enums
    'PersonaKey',
    'ClassificationMode',
    'NoticeKind',
    'AlertTone',
    'SeriesView',
    # Schemas
    'Persona',
    'PersonaWithKeywords',
    'UserMonthRecord',
    'PersonaMatch',
    'ClassifiedRecord',
    'MonthPersonaAggregate',
    'IngestionNotice',
    'SpotlightCard',
    'Spotlight',
    'Alert',
    'FeedbackEntry',
    'CsvTextRequest',
    'ModeRequest',
    'KeywordUpdateRequest',
    'IngestionResponse',
    'DashboardResponse',
]
