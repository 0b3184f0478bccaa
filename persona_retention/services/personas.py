"""
Persona Catalog

The seven personas in dominance priority order, plus the default
Dutch-language keyword dictionary the classifier starts from.

Priority Order (lower number = higher priority):
1. Trust erosion (credibility damage, predicts retention loss)
2. Breaking point (late-stage frustration)
3. Escalation & fatigue (repeated reporting)
4. Reliability & predictability (inconsistent behaviour, outages)
5. Cognitive overload (system logic confusion)
6. Veteran & habit (high-LTV users signalling dependency)
7. Suggestion-stage (constructive drift)

When text matches more than one persona, the most severe one is dominant.
"""

import copy
from typing import Dict, List, Optional

from persona_retention.models.enums import PersonaKey
from persona_retention.models.schemas import Persona


# Keyword dictionary type: persona key -> keyword phrases
KeywordDictionary = Dict[str, List[str]]


# =============================================================================
# Catalog
# =============================================================================

PERSONAS: List[Persona] = [
    Persona(
        key=PersonaKey.TRUST_EROSION.value,
        label="Trust erosion",
        priority=1,
        description="Credibility damage: predicts retention loss.",
    ),
    Persona(
        key=PersonaKey.EMOTIONAL.value,
        label="Breaking point",
        priority=2,
        description="Late-stage frustration: often right before disengagement.",
    ),
    Persona(
        key=PersonaKey.ESCALATION.value,
        label="Escalation & fatigue",
        priority=3,
        description="Repeated reporting / fatigue: power-complainer risk.",
    ),
    Persona(
        key=PersonaKey.RELIABILITY.value,
        label="Reliability & predictability",
        priority=4,
        description="Inconsistent behavior / outages: credibility erosion channel.",
    ),
    Persona(
        key=PersonaKey.OVERLOAD.value,
        label="Cognitive overload",
        priority=5,
        description="System logic confusion: fixable but dangerous if ignored.",
    ),
    Persona(
        key=PersonaKey.VETERAN.value,
        label="Veteran & habit",
        priority=6,
        description="High-LTV users signalling dependency / routine.",
    ),
    Persona(
        key=PersonaKey.SUGGESTION.value,
        label="Suggestion-stage",
        priority=7,
        description="Constructive drift: early warning when repeated.",
    ),
]

# Catalog sorted by priority; dominance checks iterate this, never a dict
PERSONAS_BY_PRIORITY: List[Persona] = sorted(PERSONAS, key=lambda p: p.priority)

PERSONA_KEYS: List[str] = [p.key for p in PERSONAS]

_PERSONAS_BY_KEY: Dict[str, Persona] = {p.key: p for p in PERSONAS}

# Sort key for personas that are not in the catalog (e.g. unclassified)
UNKNOWN_PRIORITY: int = 999


# =============================================================================
# Default Keywords (Dutch-focused)
# =============================================================================

DEFAULT_KEYWORDS: KeywordDictionary = {
    PersonaKey.TRUST_EROSION.value: [
        "vertrouwen",
        "betrouwbaar",
        "onbetrouwbaar",
        "ik reken hierop",
        "ik durf niet",
        "kan hier niet op vertrouwen",
        "onzeker",
        "voelt niet veilig",
        "niet veilig",
    ],
    PersonaKey.VETERAN.value: [
        "al jaren",
        "dagelijks",
        "elke rit",
        "altijd gebruikt",
        "sinds het begin",
        "onderdeel van mijn routine",
        "ik ben afhankelijk",
        "afhankelijk",
        "routine",
    ],
    PersonaKey.RELIABILITY.value: [
        "onvoorspelbaar",
        "inconsistent",
        "werkt soms",
        "soms wel",
        "soms niet",
        "wisselend",
        "niet consequent",
        "foutmeldingen",
        "valt uit",
        "crash",
        "loopt vast",
    ],
    PersonaKey.ESCALATION.value: [
        "weer",
        "opnieuw",
        "al vaker gemeld",
        "niet de eerste keer",
        "al meerdere keren",
        "nog steeds",
        "al eens",
        "al gemeld",
    ],
    PersonaKey.OVERLOAD.value: [
        "ik snap niet waarom",
        "onduidelijk",
        "logica ontbreekt",
        "waarom doet hij dit",
        "niet uit te leggen",
        "tegenstrijdig",
        "klopt niet",
    ],
    PersonaKey.EMOTIONAL.value: [
        "frustrerend",
        "klaar mee",
        "irritant",
        "teleurgesteld",
        "dit werkt zo niet",
        "zo wordt het lastig",
        "word ik gek van",
    ],
    PersonaKey.SUGGESTION.value: [
        "zou handig zijn",
        "misschien kunnen jullie",
        "ik mis",
        "ik vraag me af waarom",
        "zou fijn zijn",
        "kunnen jullie",
        "idee:",
    ],
}


# =============================================================================
# Lookups
# =============================================================================

def default_keywords() -> KeywordDictionary:
    """Return a fresh copy of the default keyword dictionary."""
    return copy.deepcopy(DEFAULT_KEYWORDS)


def get_persona(key: str) -> Optional[Persona]:
    """Look up a catalog entry by key; None for unknown keys."""
    return _PERSONAS_BY_KEY.get(key)


def is_persona_key(key: str) -> bool:
    return key in _PERSONAS_BY_KEY


def persona_label(key: Optional[str]) -> str:
    """Display label for a persona key, falling back to the key itself."""
    persona = _PERSONAS_BY_KEY.get(key) if key else None
    return persona.label if persona else (key or "")


def persona_priority(key: Optional[str]) -> int:
    """Priority for sorting; unknown or missing personas sort last."""
    persona = _PERSONAS_BY_KEY.get(key) if key else None
    return persona.priority if persona else UNKNOWN_PRIORITY


__all__ = [
    'KeywordDictionary',
    'PERSONAS',
    'PERSONAS_BY_PRIORITY',
    'PERSONA_KEYS',
    'UNKNOWN_PRIORITY',
    'DEFAULT_KEYWORDS',
    'default_keywords',
    'get_persona',
    'is_persona_key',
    'persona_label',
    'persona_priority',
]
