"""
CSV Export Service

Builds the downloadable CSV files of the dashboard with pandas.

Format:
- Comma-delimited, header row taken from the first record's keys
- Fields containing a comma, quote, \\n or \\r are wrapped in double
  quotes with embedded quotes doubled
- '\\n' between lines, no trailing line break
- No records -> empty string

Export Row Shape (aggregate table):
    month, persona (label), users, retained, churned, retention_pct,
    retention_mom_pp, users_mom
Percent values are rounded half-up to one decimal; missing deltas are ''.
"""

import logging
import re
from typing import Any, Dict, List

import pandas as pd

from persona_retention.models.schemas import MonthPersonaAggregate
from persona_retention.services.aggregation import to_percent
from persona_retention.services.insights import format_number
from persona_retention.services.personas import persona_label

# Configure module logger
logger = logging.getLogger(__name__)

TABLE_EXPORT_FILENAME: str = 'persona_retention_export.csv'
TEMPLATE_FILENAME: str = 'template_user_month.csv'

_NEEDS_QUOTING = re.compile(r'[",\n\r]')


def export_rows(aggregates: List[MonthPersonaAggregate]) -> List[Dict[str, Any]]:
    """
    Flatten aggregates into export records.

    Args:
        aggregates: Aggregate rows (usually already filtered for the table)

    Returns:
        List of dicts in export column order
    """
    return [
        {
            'month': row.month,
            'persona': persona_label(row.persona),
            'users': row.users,
            'retained': row.retained,
            'churned': row.churned,
            'retention_pct': format_number(to_percent(row.retention)),
            'retention_mom_pp': (
                '' if row.retention_mom is None else format_number(to_percent(row.retention_mom))
            ),
            'users_mom': '' if row.users_mom is None else row.users_mom,
        }
        for row in aggregates
    ]


def _escape_field(value: Any) -> str:
    """Render one cell, quoting it when it holds a quote, comma or line break."""
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ''
    text = str(value)
    if _NEEDS_QUOTING.search(text):
        return '"' + text.replace('"', '""') + '"'
    return text


def to_csv_text(records: List[Dict[str, Any]]) -> str:
    """
    Serialize records as CSV text.

    Args:
        records: Row dicts; the first record's keys define the header

    Returns:
        CSV text ('' when records is empty)
    """
    if not records:
        return ''

    columns = list(records[0].keys())
    frame = pd.DataFrame(records, columns=columns, dtype=object).map(_escape_field)
    lines = [','.join(_escape_field(column) for column in columns)]
    lines.extend(','.join(row) for row in frame.itertuples(index=False, name=None))

    logger.debug(f"Serialized {len(records)} rows with columns {columns}")
    return '\n'.join(lines)


__all__ = [
    'TABLE_EXPORT_FILENAME',
    'TEMPLATE_FILENAME',
    'export_rows',
    'to_csv_text',
]
