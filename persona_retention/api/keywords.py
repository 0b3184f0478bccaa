"""
FastAPI router for the persona catalog and keyword dictionary.

Key Endpoints:
- GET /personas - Catalog in priority order with the current keyword lists
- GET /keywords - Current keyword dictionary
- PUT /keywords/{persona} - Replace one persona's keywords (comma-separated)
- POST /keywords/reset - Restore the built-in keyword lists

Keyword edits take effect on the next pipeline pass of the session; nothing
outside the session reads the dictionary.
"""

import logging
from typing import Dict, List

from fastapi import APIRouter, HTTPException

from persona_retention.core.dependencies import SessionDep
from persona_retention.models.schemas import KeywordUpdateRequest, PersonaWithKeywords
from persona_retention.services.personas import PERSONAS_BY_PRIORITY, get_persona
from persona_retention.services.session import UnknownPersonaError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/personas", response_model=List[PersonaWithKeywords])
def list_personas(session: SessionDep) -> List[PersonaWithKeywords]:
    """Persona catalog, most severe first."""
    keywords = session.keywords
    return [
        PersonaWithKeywords(**persona.model_dump(), keywords=keywords.get(persona.key, []))
        for persona in PERSONAS_BY_PRIORITY
    ]


@router.get("/keywords", response_model=Dict[str, List[str]])
def get_keywords(session: SessionDep) -> Dict[str, List[str]]:
    return session.keywords


@router.put("/keywords/{persona}", response_model=PersonaWithKeywords)
def put_keywords(
    persona: str,
    request: KeywordUpdateRequest,
    session: SessionDep,
) -> PersonaWithKeywords:
    """
    Replace one persona's keyword list.

    Args:
        persona: Persona key, e.g. 'trust_erosion'
        request: {"keywords": "phrase one, phrase two"}

    Raises:
        HTTPException 404: If persona is not in the catalog.
    """
    try:
        keywords = session.set_keywords(persona, request.keywords)
    except UnknownPersonaError as e:
        logger.warning(f"PUT /keywords rejected: {e}")
        raise HTTPException(status_code=404, detail=str(e))

    return PersonaWithKeywords(**get_persona(persona).model_dump(), keywords=keywords)


@router.post("/keywords/reset", response_model=Dict[str, List[str]])
def reset_keywords(session: SessionDep) -> Dict[str, List[str]]:
    """Restore the built-in keyword lists."""
    return session.reset_keywords()
