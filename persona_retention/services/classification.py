"""
Persona Classification Service

Assigns personas to feedback text with case-insensitive substring matching
against a keyword dictionary.

Classification Rules:
- A persona's flag is True when any of its keyword phrases occurs in the
  lowercased text. Flags are independent and not mutually exclusive.
- The dominant persona is the flagged persona with the lowest priority
  number. Ties cannot occur because priorities are unique.
- Text that matches nothing has no dominant persona.

The keyword dictionary is always passed in by the caller. The session owns
the editable copy; this module keeps no keyword state of its own.
"""

from typing import Dict, List, Optional

from persona_retention.models.schemas import PersonaMatch
from persona_retention.services.personas import (
    PERSONAS,
    PERSONAS_BY_PRIORITY,
    KeywordDictionary,
)


def _norm(value: Optional[str]) -> str:
    return (value or "").lower()


def match_flags(text: Optional[str], keywords: KeywordDictionary) -> Dict[str, bool]:
    """
    Evaluate every catalog persona against the text.

    Args:
        text: Feedback text (None treated as empty)
        keywords: Persona key -> keyword phrases. Missing keys match nothing.

    Returns:
        Dict with one boolean per catalog persona, in catalog order
    """
    haystack = _norm(text)
    flags: Dict[str, bool] = {}
    for persona in PERSONAS:
        phrases = keywords.get(persona.key) or []
        flags[persona.key] = any(_norm(phrase) in haystack for phrase in phrases)
    return flags


def resolve_dominant_persona(flags: Dict[str, bool]) -> Optional[str]:
    """
    Pick the highest-priority flagged persona.

    Iterates the catalog in priority order and stops at the first match, so
    the result never depends on the iteration order of the flags mapping.

    Args:
        flags: Persona key -> matched

    Returns:
        Persona key, or None when nothing matched
    """
    for persona in PERSONAS_BY_PRIORITY:
        if flags.get(persona.key):
            return persona.key
    return None


def classify_text(text: Optional[str], keywords: KeywordDictionary) -> PersonaMatch:
    """
    Classify one text into flags and a dominant persona.

    Args:
        text: Feedback text
        keywords: Keyword dictionary owned by the caller

    Returns:
        PersonaMatch with dominant_persona and per-persona flags

    Example:
        >>> match = classify_text("Al jaren dagelijks, maar ik durf niet meer", default_keywords())
        >>> match.dominant_persona
        'trust_erosion'
        >>> match.flags['veteran']
        True
    """
    flags = match_flags(text, keywords)
    return PersonaMatch(dominant_persona=resolve_dominant_persona(flags), flags=flags)


def parse_keyword_input(raw: Optional[str]) -> List[str]:
    """
    Turn comma-separated keyword text from the editor into a keyword list.

    Entries are trimmed and empty entries are discarded.
    """
    return [part.strip() for part in (raw or "").split(",") if part.strip()]


__all__ = [
    'match_flags',
    'resolve_dominant_persona',
    'classify_text',
    'parse_keyword_input',
]
