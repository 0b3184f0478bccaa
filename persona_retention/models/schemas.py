"""
Pydantic models for the Persona Retention backend.

This module covers three groups of models:
- Pipeline records: the user-month unit of analysis before and after
  classification, and the month x persona aggregate rows.
- Insight models: spotlight cards, rule-based alerts and feedback entries
  derived from the aggregates for the presentation layer.
- API contracts: request bodies and the dashboard response bundle.

All models use Pydantic v2 syntax.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from persona_retention.models.enums import (
    AlertTone,
    ClassificationMode,
    NoticeKind,
)


# =============================================================================
# Persona Catalog
# =============================================================================


class Persona(BaseModel):
    """
    One entry of the fixed persona catalog.

    Priority 1 is the most severe persona and wins dominance ties.
    """
    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Unique persona key, e.g. 'trust_erosion'")
    label: str = Field(..., description="Display label")
    priority: int = Field(..., ge=1, description="Dominance priority (1 = highest)")
    description: str = Field(default="", description="Short explanation for the UI")


class PersonaWithKeywords(Persona):
    """Catalog entry joined with the session's current keyword list."""
    keywords: List[str] = Field(default_factory=list)


# =============================================================================
# Pipeline Records
# =============================================================================


class UserMonthRecord(BaseModel):
    """
    One user's merged feedback for one calendar month.

    active_next_month keeps the raw trimmed string from the input. An empty
    string means the value is unresolved and will be inferred from presence.
    """
    user_id: str = Field(..., min_length=1)
    month: str = Field(..., pattern=r"^\d{4}-\d{2}$", description="Calendar month, YYYY-MM")
    text: str = Field(default="", description="Newline-joined feedback texts in input order")
    active_next_month: str = Field(default="", description="Raw explicit flag, '' if absent")


class PersonaMatch(BaseModel):
    """Result of matching one text against the keyword dictionary."""
    dominant_persona: Optional[str] = Field(default=None)
    flags: Dict[str, bool] = Field(default_factory=dict)


class ClassifiedRecord(BaseModel):
    """A user-month record with persona flags and resolved retention."""
    user_id: str
    month: str
    text: str = ""
    dominant_persona: Optional[str] = None
    flags: Dict[str, bool] = Field(default_factory=dict)
    active_next_month: bool = Field(
        ...,
        description="Explicit flag when provided, else presence in the successor month"
    )


class MonthPersonaAggregate(BaseModel):
    """
    Retention statistics for one (month, persona) bucket.

    retention_mom and users_mom compare against the previous month that has an
    aggregate for the same persona; they are None for the persona's first month.
    """
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "month": "2025-10",
                "persona": "trust_erosion",
                "users": 4,
                "retained": 3,
                "churned": 1,
                "retention": 0.75,
                "retention_mom": -0.25,
                "users_mom": 2,
            }
        }
    )

    month: str
    persona: str
    users: int = Field(..., ge=0)
    retained: int = Field(..., ge=0)
    churned: int = Field(..., ge=0)
    retention: float = Field(..., ge=0.0, le=1.0)
    retention_mom: Optional[float] = None
    users_mom: Optional[int] = None

    @model_validator(mode="after")
    def _check_partition(self) -> "MonthPersonaAggregate":
        if self.retained + self.churned != self.users:
            raise ValueError(
                f"retained ({self.retained}) + churned ({self.churned}) "
                f"must equal users ({self.users})"
            )
        return self


# =============================================================================
# Notices
# =============================================================================


class IngestionNotice(BaseModel):
    """
    Non-fatal condition reported after parsing.

    Used instead of raising so the session always stays usable.
    """
    kind: NoticeKind
    message: str


# =============================================================================
# Insight Models
# =============================================================================


class SpotlightCard(BaseModel):
    """Latest-month KPIs for one persona, preformatted for display."""
    persona: str
    users: int = 0
    retention: str = Field(default="—", description="e.g. '66.7%' or '—'")
    retention_delta: str = Field(default="—", description="e.g. '+12.5pp' or '—'")
    users_delta: str = Field(default="—", description="e.g. '+3' or '—'")


class Spotlight(BaseModel):
    """Trust erosion and veteran spotlight for the latest month."""
    last_month: Optional[str] = None
    trust: SpotlightCard
    veteran: SpotlightCard


class Alert(BaseModel):
    """Rule-based interpretation of the latest month."""
    tone: AlertTone
    title: str
    text: str


class FeedbackEntry(BaseModel):
    """One user's feedback for a selected month."""
    user_id: str
    persona: Optional[str] = None
    text: str = ""


# =============================================================================
# API Request Models
# =============================================================================


class CsvTextRequest(BaseModel):
    """Body for replacing the session's CSV text."""
    text: str = Field(..., description="Raw CSV text including the header row")


class ModeRequest(BaseModel):
    """Body for switching the classification mode."""
    mode: ClassificationMode


class KeywordUpdateRequest(BaseModel):
    """Body for editing one persona's keyword list as comma-separated text."""
    keywords: str = Field(..., description="Comma-separated keyword phrases")


# =============================================================================
# API Response Models
# =============================================================================


class IngestionResponse(BaseModel):
    """Outcome of loading new CSV text into the session."""
    rows_parsed: int = Field(..., ge=0)
    records: int = Field(..., ge=0, description="User-month records after normalization")
    notices: List[IngestionNotice] = Field(default_factory=list)


class DashboardResponse(BaseModel):
    """Everything the presentation layer needs for one render."""
    mode: ClassificationMode
    months: List[str] = Field(default_factory=list)
    records: int = Field(default=0, ge=0)
    aggregates: List[MonthPersonaAggregate] = Field(default_factory=list)
    retention_series: List[Dict[str, Any]] = Field(default_factory=list)
    volume_series: List[Dict[str, Any]] = Field(default_factory=list)
    spotlight: Spotlight
    alerts: List[Alert] = Field(default_factory=list)
    notices: List[IngestionNotice] = Field(default_factory=list)
