"""
Persona Insights Service

Read-only views over a pipeline result for the presentation layer.

Views:
- build_spotlight: latest-month KPIs for Trust erosion and Veteran & habit
- build_alerts: rule-based interpretation of the latest month
- filter_table_rows: aggregate table sliced by persona, size and search text
- month_feedback: per-user feedback entries for one month

Alert Rules (latest month only):
- danger: trust erosion has at least min_users users, retention fell and the
  bucket grew
- warn: suggestion-stage shrank while breaking-point grew
- warn: escalation grew
- good: none of the above fired
"""

from typing import List, Optional

from persona_retention.models.enums import AlertTone, PersonaKey
from persona_retention.models.schemas import (
    Alert,
    ClassifiedRecord,
    FeedbackEntry,
    MonthPersonaAggregate,
    Spotlight,
    SpotlightCard,
)
from persona_retention.services.aggregation import AggregationResult, to_percent
from persona_retention.services.personas import persona_label, persona_priority


ALL_PERSONAS: str = "all"


# =============================================================================
# Formatting
# =============================================================================

def format_number(value: float) -> str:
    """Render a number without a trailing '.0' (50.0 -> '50', 66.7 -> '66.7')."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return str(value)


def _signed(delta: float, suffix: str = "", percent: bool = False) -> str:
    # sign follows the raw delta, before rounding
    shown = to_percent(delta) if percent else delta
    sign = "+" if delta > 0 else ""
    return f"{sign}{format_number(shown)}{suffix}"


# =============================================================================
# Spotlight
# =============================================================================

def _spotlight_card(
    persona: str,
    now: Optional[MonthPersonaAggregate],
    prev: Optional[MonthPersonaAggregate],
) -> SpotlightCard:
    card = SpotlightCard(persona=persona, users=now.users if now else 0)
    if now:
        card.retention = f"{format_number(to_percent(now.retention))}%"
    if now and prev:
        card.retention_delta = _signed(now.retention - prev.retention, "pp", percent=True)
        card.users_delta = _signed(now.users - prev.users)
    return card


def build_spotlight(aggregation: AggregationResult) -> Spotlight:
    """
    Trust erosion and veteran KPIs for the latest month.

    Deltas compare against the calendar-previous month in the dataset and show
    '—' when either month has no aggregate for the persona.
    """
    last = aggregation.last_month
    prev = aggregation.previous_month

    def card(persona: PersonaKey) -> SpotlightCard:
        key = persona.value
        return _spotlight_card(key, aggregation.get(last, key), aggregation.get(prev, key))

    return Spotlight(
        last_month=last,
        trust=card(PersonaKey.TRUST_EROSION),
        veteran=card(PersonaKey.VETERAN),
    )


# =============================================================================
# Alerts
# =============================================================================

def build_alerts(aggregation: AggregationResult, min_users: int = 5) -> List[Alert]:
    """
    Rule-based alerts for the latest month.

    Args:
        aggregation: Aggregates of the current pass
        min_users: Noise guard for the trust erosion rule

    Returns:
        Alerts in rule order; a single 'good' alert when nothing fired, and an
        empty list when there is no data at all
    """
    last = aggregation.last_month
    if not last:
        return []

    trust = aggregation.get(last, PersonaKey.TRUST_EROSION.value)
    emotional = aggregation.get(last, PersonaKey.EMOTIONAL.value)
    escalation = aggregation.get(last, PersonaKey.ESCALATION.value)
    suggestion = aggregation.get(last, PersonaKey.SUGGESTION.value)

    alerts: List[Alert] = []

    if (
        trust
        and trust.users >= min_users
        and trust.retention_mom is not None and trust.retention_mom < 0
        and trust.users_mom is not None and trust.users_mom > 0
    ):
        alerts.append(Alert(
            tone=AlertTone.DANGER,
            title="Trust erosion expanding + retention falling",
            text="Brand-level credibility issue. Treat as retention incident, not feature request.",
        ))

    if (
        suggestion and emotional
        and suggestion.users_mom is not None and suggestion.users_mom < 0
        and emotional.users_mom is not None and emotional.users_mom > 0
    ):
        alerts.append(Alert(
            tone=AlertTone.WARN,
            title="Constructive feedback drying up",
            text="Suggestion-stage shrinking while breaking-point grows: users stop helping before they leave.",
        ))

    if escalation and escalation.users_mom is not None and escalation.users_mom > 0:
        alerts.append(Alert(
            tone=AlertTone.WARN,
            title="Escalation rising",
            text="More users repeating themselves, power complainer risk. Prioritize closure loops.",
        ))

    if not alerts:
        alerts.append(Alert(
            tone=AlertTone.GOOD,
            title="No acute persona alarm",
            text="Keep watching Trust erosion + Veteran. Validate with absolute counts and confidence.",
        ))
    return alerts


# =============================================================================
# Table & Feedback
# =============================================================================

def filter_table_rows(
    aggregates: List[MonthPersonaAggregate],
    persona: str = ALL_PERSONAS,
    min_users: int = 0,
    query: str = "",
) -> List[MonthPersonaAggregate]:
    """
    Slice the aggregate table.

    Args:
        aggregates: Aggregate rows of the current pass
        persona: Persona key, or 'all'
        min_users: Hide buckets smaller than this
        query: Case-insensitive search on month or persona label

    Returns:
        Matching rows, newest month first, persona key ascending within a month
    """
    needle = (query or "").lower()

    def keep(row: MonthPersonaAggregate) -> bool:
        if persona != ALL_PERSONAS and row.persona != persona:
            return False
        if row.users < min_users:
            return False
        if needle:
            return needle in row.month or needle in persona_label(row.persona).lower()
        return True

    rows = [row for row in aggregates if keep(row)]
    rows.sort(key=lambda r: r.persona)
    rows.sort(key=lambda r: r.month, reverse=True)
    return rows


def month_feedback(
    classified: List[ClassifiedRecord],
    month: Optional[str],
    min_chars: int = 0,
) -> List[FeedbackEntry]:
    """
    Feedback entries of one month, most severe persona first.

    Args:
        classified: Classified records of the current pass
        month: Month to show ('' or None gives no entries)
        min_chars: Skip entries whose text is shorter than this

    Returns:
        Entries sorted by persona priority (unclassified last), then user_id
    """
    if not month:
        return []

    entries = [
        FeedbackEntry(user_id=record.user_id, persona=record.dominant_persona, text=record.text)
        for record in classified
        if record.month == month and len(record.text or "") >= min_chars
    ]
    entries.sort(key=lambda e: (persona_priority(e.persona), e.user_id))
    return entries


__all__ = [
    'ALL_PERSONAS',
    'format_number',
    'build_spotlight',
    'build_alerts',
    'filter_table_rows',
    'month_feedback',
]
