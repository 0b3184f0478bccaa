"""
Persona Retention Pipeline

Runs the full transformation in one synchronous pass:

    CSV text -> parsed rows -> user-month records -> classified records
             -> month x persona aggregates (+ MoM deltas)

Every pass recomputes everything from its three inputs (CSV text, keyword
dictionary, classification mode). The same inputs always give the same
result, and nothing from a previous pass is reused.

Error Handling:
- Any exception raised while parsing becomes a parse_error notice and the
  dataset is treated as empty.
- Zero parsed rows, or zero rows surviving normalization, become an
  empty_result notice.
- Uploads that cannot be read become a read_error notice (see decode_csv_bytes).
None of these stop the pass; callers always get a PipelineResult back.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from persona_retention.models.enums import ClassificationMode, NoticeKind
from persona_retention.models.schemas import (
    ClassifiedRecord,
    IngestionNotice,
    MonthPersonaAggregate,
    UserMonthRecord,
)
from persona_retention.services.aggregation import AggregationResult, aggregate
from persona_retention.services.classification import classify_text
from persona_retention.services.csv_parser import RawRow, parse_csv
from persona_retention.services.normalization import normalize_rows
from persona_retention.services.personas import KeywordDictionary
from persona_retention.services.retention import (
    build_presence_index,
    resolve_active_next_month,
)

# Configure module logger
logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS - User-facing messages
# =============================================================================

EMPTY_PARSE_MESSAGE: str = (
    "Parsed 0 rows. Check delimiter (comma/semicolon) or whether the file has a header row."
)
NO_RECORDS_MESSAGE: str = (
    "Parsed {rows} rows, but none had a user id and a recognizable month."
)
READ_ERROR_MESSAGE: str = "Could not read the file."


# =============================================================================
# RESULT
# =============================================================================

@dataclass
class PipelineResult:
    """
    Output of one pipeline pass.

    Attributes:
        mode: Classification mode the aggregates were built with.
        rows_parsed: Number of data rows produced by the CSV parser.
        records: Normalized user-month records.
        classified: Records with persona flags and resolved retention.
        aggregation: Month x persona aggregates with lookups and series.
        notices: Non-fatal conditions to show the user.
    """
    mode: ClassificationMode
    rows_parsed: int = 0
    records: List[UserMonthRecord] = field(default_factory=list)
    classified: List[ClassifiedRecord] = field(default_factory=list)
    aggregation: AggregationResult = field(default_factory=AggregationResult)
    notices: List[IngestionNotice] = field(default_factory=list)

    @property
    def months(self) -> List[str]:
        return self.aggregation.months

    @property
    def aggregates(self) -> List[MonthPersonaAggregate]:
        return self.aggregation.rows


# =============================================================================
# STAGES
# =============================================================================

def parse_with_notices(csv_text: Optional[str]) -> Tuple[List[RawRow], List[IngestionNotice]]:
    """
    Parse CSV text, converting failures into notices.

    Returns:
        Tuple of (parsed rows, notices)
    """
    try:
        rows = parse_csv(csv_text)
    except Exception as e:
        logger.warning(f"CSV parse failed: {e}")
        return [], [IngestionNotice(kind=NoticeKind.PARSE_ERROR, message=f"CSV parse error: {e}")]

    if not rows:
        return [], [IngestionNotice(kind=NoticeKind.EMPTY_RESULT, message=EMPTY_PARSE_MESSAGE)]
    return rows, []


def decode_csv_bytes(content: bytes) -> Tuple[Optional[str], List[IngestionNotice]]:
    """
    Decode an uploaded file as UTF-8 text (a BOM is kept for the parser).

    Invalid byte sequences become U+FFFD. Only content that is not bytes at
    all is a read error.

    Returns:
        Tuple of (text or None, notices)
    """
    try:
        return content.decode('utf-8', errors='replace'), []
    except AttributeError as e:
        logger.warning(f"Could not read uploaded file: {e}")
        return None, [IngestionNotice(kind=NoticeKind.READ_ERROR, message=READ_ERROR_MESSAGE)]


def classify_records(
    records: List[UserMonthRecord],
    keywords: KeywordDictionary,
) -> List[ClassifiedRecord]:
    """
    Classify records and resolve active_next_month.

    The presence index is built from all records before the first one is
    resolved.
    """
    presence = build_presence_index(records)

    classified: List[ClassifiedRecord] = []
    for record in records:
        match = classify_text(record.text, keywords)
        classified.append(ClassifiedRecord(
            user_id=record.user_id,
            month=record.month,
            text=record.text,
            dominant_persona=match.dominant_persona,
            flags=match.flags,
            active_next_month=resolve_active_next_month(record, presence),
        ))
    return classified


# =============================================================================
# ENTRY POINT
# =============================================================================

def run_pipeline(
    csv_text: Optional[str],
    keywords: KeywordDictionary,
    mode: ClassificationMode = ClassificationMode.DOMINANT,
) -> PipelineResult:
    """
    Run parse -> normalize -> classify -> resolve -> aggregate.

    Args:
        csv_text: Raw CSV text
        keywords: Persona key -> keyword phrases (owned by the caller)
        mode: dominant or multi aggregation

    Returns:
        PipelineResult (never raises for bad input)
    """
    mode = ClassificationMode(mode)

    rows, notices = parse_with_notices(csv_text)
    records = normalize_rows(rows)
    if rows and not records:
        notices.append(IngestionNotice(
            kind=NoticeKind.EMPTY_RESULT,
            message=NO_RECORDS_MESSAGE.format(rows=len(rows)),
        ))

    classified = classify_records(records, keywords)
    aggregation = aggregate(classified, mode)

    logger.info(
        f"Pipeline pass complete: {len(rows)} rows, {len(records)} records, "
        f"{len(aggregation.rows)} aggregates, {len(notices)} notices"
    )

    return PipelineResult(
        mode=mode,
        rows_parsed=len(rows),
        records=records,
        classified=classified,
        aggregation=aggregation,
        notices=notices,
    )


__all__ = [
    'EMPTY_PARSE_MESSAGE',
    'NO_RECORDS_MESSAGE',
    'READ_ERROR_MESSAGE',
    'PipelineResult',
    'parse_with_notices',
    'decode_csv_bytes',
    'classify_records',
    'run_pipeline',
]
