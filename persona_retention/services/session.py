"""
Dashboard Session State

Holds the three pipeline inputs of the running dashboard (CSV text, keyword
dictionary, classification mode) and the most recent pipeline result.

Recomputation Model:
- Every mutation bumps a monotonically increasing revision and invalidates
  the cached result.
- result() snapshots the inputs under the lock, runs the pipeline outside the
  lock and stores the outcome only if no newer write happened meanwhile.
  A stale pass is discarded and recomputed (last write wins).
- The keyword dictionary is owned by the session and handed to the pipeline
  as an explicit deep copy; classification never reads shared globals.

Module Singleton:
    init_session(settings)  # FastAPI lifespan
    get_session()           # endpoints (via core.dependencies)
    close_session()         # shutdown / tests
"""

import copy
import dataclasses
import logging
import threading
from typing import List, Optional

from persona_retention.core.config import Settings, get_settings
from persona_retention.models.enums import ClassificationMode
from persona_retention.models.schemas import IngestionNotice
from persona_retention.services.classification import parse_keyword_input
from persona_retention.services.personas import (
    KeywordDictionary,
    default_keywords,
    is_persona_key,
)
from persona_retention.services.pipeline import (
    PipelineResult,
    decode_csv_bytes,
    run_pipeline,
)
from persona_retention.services.sample_data import SAMPLE_CSV

# Configure module logger
logger = logging.getLogger(__name__)


class UnknownPersonaError(KeyError):
    """Raised when a keyword edit targets a persona key outside the catalog."""

    def __init__(self, persona: str):
        super().__init__(persona)
        self.persona = persona

    def __str__(self) -> str:
        return f"Unknown persona: {self.persona}"


# =============================================================================
# SESSION
# =============================================================================

class DashboardSession:
    """
    In-memory state of one dashboard.

    Args:
        csv_text: Initial CSV text
        keywords: Initial keyword dictionary (defaults to the built-in lists)
        mode: Initial classification mode
    """

    def __init__(
        self,
        csv_text: str = "",
        keywords: Optional[KeywordDictionary] = None,
        mode: ClassificationMode = ClassificationMode.DOMINANT,
    ):
        self._lock = threading.Lock()
        self._csv_text = csv_text
        self._keywords = copy.deepcopy(keywords) if keywords is not None else default_keywords()
        self._mode = ClassificationMode(mode)
        self._revision = 0
        self._result: Optional[PipelineResult] = None
        self._result_revision = -1

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def csv_text(self) -> str:
        return self._csv_text

    @property
    def mode(self) -> ClassificationMode:
        return self._mode

    @property
    def keywords(self) -> KeywordDictionary:
        """Copy of the current keyword dictionary."""
        with self._lock:
            return copy.deepcopy(self._keywords)

    def result(self) -> PipelineResult:
        """
        Pipeline result for the current inputs.

        Returns the cached result when it matches the current revision,
        otherwise recomputes it.
        """
        while True:
            with self._lock:
                if self._result is not None and self._result_revision == self._revision:
                    return self._result
                revision = self._revision
                csv_text = self._csv_text
                keywords = copy.deepcopy(self._keywords)
                mode = self._mode

            computed = run_pipeline(csv_text, keywords, mode)

            with self._lock:
                if revision == self._revision:
                    self._result = computed
                    self._result_revision = revision
                    return computed
            logger.debug(f"Discarding stale pipeline result for revision {revision}")

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _touch(self) -> None:
        # Caller holds the lock
        self._revision += 1
        self._result = None

    def set_csv_text(self, text: Optional[str]) -> PipelineResult:
        """Replace the CSV text and recompute."""
        with self._lock:
            self._csv_text = text or ""
            self._touch()
        logger.info(f"CSV text replaced ({len(text or '')} chars)")
        return self.result()

    def load_upload(self, content: bytes) -> PipelineResult:
        """
        Replace the CSV text with an uploaded file's contents.

        Content that cannot be read leaves the current text in place; the
        returned result then carries a read_error notice on top of the current
        one.
        """
        text, notices = decode_csv_bytes(content)
        if text is None:
            current = self.result()
            return _with_notices(current, notices)
        return self.set_csv_text(text)

    def load_sample(self) -> PipelineResult:
        """Replace the CSV text with the bundled sample dataset."""
        return self.set_csv_text(SAMPLE_CSV)

    def set_mode(self, mode: ClassificationMode) -> PipelineResult:
        """Switch between dominant and multi aggregation."""
        mode = ClassificationMode(mode)
        with self._lock:
            self._mode = mode
            self._touch()
        logger.info(f"Classification mode set to {mode.value}")
        return self.result()

    def set_keywords(self, persona: str, raw: Optional[str]) -> List[str]:
        """
        Replace one persona's keyword list from comma-separated input.

        Args:
            persona: Persona key
            raw: Comma-separated phrases; blank entries are dropped

        Returns:
            The stored keyword list

        Raises:
            UnknownPersonaError: If persona is not in the catalog
        """
        if not is_persona_key(persona):
            raise UnknownPersonaError(persona)

        keywords = parse_keyword_input(raw)
        with self._lock:
            self._keywords[persona] = keywords
            self._touch()
        logger.info(f"Keywords for {persona} updated ({len(keywords)} phrases)")
        return list(keywords)

    def reset_keywords(self) -> KeywordDictionary:
        """Restore the built-in keyword lists."""
        with self._lock:
            self._keywords = default_keywords()
            self._touch()
            keywords = copy.deepcopy(self._keywords)
        logger.info("Keywords reset to defaults")
        return keywords


def _with_notices(result: PipelineResult, notices: List[IngestionNotice]) -> PipelineResult:
    return dataclasses.replace(result, notices=list(result.notices) + list(notices))


# =============================================================================
# Global Session Singleton
# =============================================================================

_session: Optional[DashboardSession] = None


def init_session(settings: Settings) -> DashboardSession:
    """
    Create the process-wide session (idempotent).

    Args:
        settings: Application settings (default mode, sample seeding)

    Returns:
        DashboardSession: The session instance.
    """
    global _session

    if _session is None:
        csv_text = SAMPLE_CSV if settings.load_sample_on_startup else ""
        _session = DashboardSession(csv_text=csv_text, mode=settings.default_mode)
        logger.info(
            f"Dashboard session initialized (mode={settings.default_mode.value}, "
            f"sample={settings.load_sample_on_startup})"
        )

    return _session


def get_session() -> DashboardSession:
    """
    Get the process-wide session, creating it from current settings if needed.
    """
    if _session is None:
        return init_session(get_settings())
    return _session


def close_session() -> None:
    """Drop the process-wide session."""
    global _session
    _session = None


__all__ = [
    'UnknownPersonaError',
    'DashboardSession',
    'init_session',
    'get_session',
    'close_session',
]
