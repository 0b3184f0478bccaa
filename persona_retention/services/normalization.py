"""
Schema Normalization Service

Maps parsed CSV rows onto the canonical user-month record shape and merges
multiple rows for the same user and month.

Accepted Input Shapes:
- Aggregate: user_id, month, text[, active_next_month]
- Raw: user_id, created_at, text (month derived from created_at)
- Survey exports (e.g. Typeform): user id in 'Network ID', month from
  'Start Date (UTC)', free text in a long, sometimes truncated question column

Column Resolution:
- user_id: first truthy value of USER_ID_COLUMNS, trimmed
- text: TEXT_STRATEGIES tried in order, first non-None result wins
- month: 'month' column when the header has one, else created_at, else
  'Start Date (UTC)', normalized through month_from_date_string()
- active_next_month: trimmed raw string, '' when absent

Rows without a user id or with an unparseable month are dropped without an
error. Surviving rows are grouped per (user_id, month): texts are joined with
a newline in input order and the last non-empty active_next_month wins.
"""

import logging
import re
from typing import Callable, Dict, List, Optional, Tuple

import pandas as pd

from persona_retention.models.schemas import UserMonthRecord
from persona_retention.services.csv_parser import RawRow

# Configure module logger
logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS - Column Names
# =============================================================================

USER_ID_COLUMNS: List[str] = ['user_id', 'userid', 'user', 'Network ID', 'network_id']

MONTH_COLUMN: str = 'month'
CREATED_AT_COLUMN: str = 'created_at'
SURVEY_DATE_COLUMN: str = 'Start Date (UTC)'
ACTIVE_NEXT_MONTH_COLUMN: str = 'active_next_month'

# Typeform export header for the open suggestion question
SURVEY_TEXT_COLUMN: str = (
    'Beschrijf je suggestie hieronder zo duidelijk mogelijk. Heb j... '
    'voordeel kan zijn voor je medegebruikers? Laat dit dan weten.'
)

# Exports truncate the question header in different ways
SURVEY_TEXT_HINTS: Tuple[str, ...] = ('beschrijf', 'suggestie')

GENERIC_TEXT_COLUMNS: List[str] = ['text', 'message', 'body']

# Columns that carry identity or dates and never hold the feedback text
STRUCTURAL_COLUMNS = frozenset(
    USER_ID_COLUMNS
    + [MONTH_COLUMN, CREATED_AT_COLUMN, SURVEY_DATE_COLUMN, ACTIVE_NEXT_MONTH_COLUMN]
)

_MONTH_EXACT = re.compile(r'^\d{4}-\d{2}$')
_MONTH_ANYWHERE = re.compile(r'(\d{4})-(\d{2})')

# pandas resolves these against the wall clock
_RELATIVE_DATE_WORDS = frozenset({'now', 'today', 'yesterday', 'tomorrow'})


# =============================================================================
# MONTH NORMALIZATION
# =============================================================================

def month_from_date_string(value: Optional[str]) -> str:
    """
    Normalize a date-ish string to a YYYY-MM calendar month.

    Resolution order:
    1. 'YYYY-MM' is returned verbatim
    2. The first 'YYYY-MM' found anywhere (covers YYYY-MM-DD and ISO datetimes)
    3. General date parsing via pandas, formatted as YYYY-MM; relative words
       such as 'now' and 'today' are rejected
    4. '' when nothing parses

    Args:
        value: Raw cell value

    Returns:
        Month string, or '' if unparseable
    """
    text = (value or '').strip()
    if not text:
        return ''
    if _MONTH_EXACT.match(text):
        return text

    found = _MONTH_ANYWHERE.search(text)
    if found:
        return f"{found.group(1)}-{found.group(2)}"
    if text.lower() in _RELATIVE_DATE_WORDS:
        return ''

    try:
        parsed = pd.to_datetime(text, errors='coerce')
    except (ValueError, TypeError, OverflowError):
        return ''
    if pd.isna(parsed):
        return ''
    return f"{parsed.year:04d}-{parsed.month:02d}"


# =============================================================================
# COLUMN STRATEGIES
# =============================================================================

def extract_user_id(row: RawRow) -> str:
    """First truthy user id candidate, trimmed ('' when none)."""
    for column in USER_ID_COLUMNS:
        value = row.get(column)
        if value:
            return str(value).strip()
    return ''


def _exact_survey_column(row: RawRow) -> Optional[str]:
    value = row.get(SURVEY_TEXT_COLUMN)
    if value and str(value).strip():
        return value
    return None


def _hinted_survey_column(row: RawRow) -> Optional[str]:
    for column, value in row.items():
        lowered = column.lower()
        if any(hint in lowered for hint in SURVEY_TEXT_HINTS):
            if value and str(value).strip():
                return value
    return None


def _second_column(row: RawRow) -> Optional[str]:
    # Survey exports put the open question right after the respondent id
    columns = list(row.keys())
    if len(columns) < 2 or columns[1] in STRUCTURAL_COLUMNS:
        return None
    return row[columns[1]] or ''


def _generic_text_column(row: RawRow) -> Optional[str]:
    for column in GENERIC_TEXT_COLUMNS:
        value = row.get(column)
        if value:
            return value
    return None


TextStrategy = Callable[[RawRow], Optional[str]]

TEXT_STRATEGIES: List[TextStrategy] = [
    _exact_survey_column,
    _hinted_survey_column,
    _second_column,
    _generic_text_column,
]


def extract_text(row: RawRow, strategies: Optional[List[TextStrategy]] = None) -> str:
    """
    Find the feedback text in a row.

    Each strategy returns the text or None to pass; the first non-None wins.

    Args:
        row: Parsed CSV row
        strategies: Override for TEXT_STRATEGIES

    Returns:
        Feedback text ('' when no strategy finds one)
    """
    for strategy in strategies or TEXT_STRATEGIES:
        value = strategy(row)
        if value is not None:
            return str(value)
    return ''


def extract_month(row: RawRow, has_month_column: bool) -> str:
    """Month for a row, from 'month' or from the creation/start date."""
    if has_month_column:
        return month_from_date_string(row.get(MONTH_COLUMN))
    return month_from_date_string(row.get(CREATED_AT_COLUMN) or row.get(SURVEY_DATE_COLUMN))


# =============================================================================
# NORMALIZATION
# =============================================================================

def normalize_rows(rows: List[RawRow]) -> List[UserMonthRecord]:
    """
    Convert parsed rows into merged user-month records.

    Args:
        rows: Output of parse_csv()

    Returns:
        One record per (user_id, month), sorted by month then user_id
    """
    if not rows:
        return []

    has_month_column = MONTH_COLUMN in rows[0]

    merged: Dict[Tuple[str, str], Dict[str, str]] = {}
    dropped = 0

    for row in rows:
        user_id = extract_user_id(row)
        month = extract_month(row, has_month_column)
        if not user_id or not month:
            dropped += 1
            continue

        text = extract_text(row)
        active = str(row.get(ACTIVE_NEXT_MONTH_COLUMN) or '').strip()

        key = (user_id, month)
        current = merged.get(key)
        if current is None:
            merged[key] = {'text': text, 'active_next_month': active}
            continue

        current['text'] = f"{current['text']}\n{text}" if current['text'] else text
        if active:
            current['active_next_month'] = active

    if dropped:
        logger.debug(f"Dropped {dropped} rows without user id or parseable month")

    records = [
        UserMonthRecord(
            user_id=user_id,
            month=month,
            text=values['text'],
            active_next_month=values['active_next_month'],
        )
        for (user_id, month), values in merged.items()
    ]
    records.sort(key=lambda r: (r.month, r.user_id))

    logger.info(f"Normalized {len(rows)} rows into {len(records)} user-month records")
    return records


__all__ = [
    'USER_ID_COLUMNS',
    'SURVEY_TEXT_COLUMN',
    'GENERIC_TEXT_COLUMNS',
    'STRUCTURAL_COLUMNS',
    'TEXT_STRATEGIES',
    'month_from_date_string',
    'extract_user_id',
    'extract_text',
    'extract_month',
    'normalize_rows',
]
