"""
Enumeration definitions for the Persona Retention backend.

All enums inherit from both `str` and `Enum` so they serialize as plain
strings inside Pydantic models and JSON API responses.
"""

from enum import Enum


class PersonaKey(str, Enum):
    """
    Keys of the fixed persona catalog.

    Declaration order matches priority order (trust_erosion is priority 1).
    The catalog in services/personas.py carries the explicit priority values;
    never rely on this declaration order for dominance decisions.
    """
    TRUST_EROSION = "trust_erosion"
    EMOTIONAL = "emotional"
    ESCALATION = "escalation"
    RELIABILITY = "reliability"
    OVERLOAD = "overload"
    VETERAN = "veteran"
    SUGGESTION = "suggestion"


class ClassificationMode(str, Enum):
    """
    How classified records contribute to month x persona buckets.

    - dominant: each record counts once, for its dominant persona (or not at all)
    - multi: each record counts for every persona whose keyword flag matched
    """
    DOMINANT = "dominant"
    MULTI = "multi"


class NoticeKind(str, Enum):
    """
    Non-fatal conditions reported back to the user after a pipeline pass.

    - parse_error: parsing raised; the dataset was treated as empty
    - empty_result: parsing produced zero rows
    - read_error: the uploaded file could not be read
    """
    PARSE_ERROR = "parse_error"
    EMPTY_RESULT = "empty_result"
    READ_ERROR = "read_error"


class AlertTone(str, Enum):
    """Severity tone of a rule-based alert for the latest month."""
    DANGER = "danger"
    WARN = "warn"
    GOOD = "good"


class SeriesView(str, Enum):
    """Which dense series the trend chart consumes."""
    RETENTION = "retention"
    VOLUME = "volume"
