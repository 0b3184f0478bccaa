"""
Retention Resolution Service

Decides per user-month whether the user was active in the following month.

Resolution Rules:
- An explicit active_next_month value wins: '1', 'true', 'yes' or 'y'
  (case-insensitive) mean True, any other non-empty value means False.
- Otherwise the user counts as retained when a record exists for the same
  user in the calendar-successor month.

The presence index is built once from the complete normalized dataset before
any record is resolved, so the outcome never depends on record order.

Records in the last observed month have no successor in the data and resolve
to False unless an explicit value is given. Retention for the most recent
month is therefore structurally incomplete.
"""

from typing import Iterable, Optional, Set, Tuple

from persona_retention.models.schemas import UserMonthRecord


TRUTHY_VALUES = frozenset({'1', 'true', 'yes', 'y'})

# (user_id, month) pairs present in the normalized dataset
PresenceIndex = Set[Tuple[str, str]]


def next_month(month: Optional[str]) -> str:
    """
    Calendar successor of a YYYY-MM month.

    Args:
        month: Month string such as '2025-12'

    Returns:
        Successor month ('2026-01'), or '' when the input has no usable
        non-zero year and month
    """
    parts = (month or '').split('-')
    try:
        year = int(parts[0])
        mon = int(parts[1])
    except (IndexError, ValueError):
        return ''
    if not year or not mon:
        return ''

    if mon == 12:
        return f"{year + 1}-01"
    return f"{year}-{mon + 1:02d}"


def parse_active_flag(raw: str) -> bool:
    """Interpret an explicit, non-empty active_next_month value."""
    return raw.strip().lower() in TRUTHY_VALUES


def build_presence_index(records: Iterable[UserMonthRecord]) -> PresenceIndex:
    """Collect every (user_id, month) pair in the dataset."""
    return {(record.user_id, record.month) for record in records}


def resolve_active_next_month(record: UserMonthRecord, presence: PresenceIndex) -> bool:
    """
    Resolve active_next_month for one record.

    Args:
        record: Normalized user-month record
        presence: Index from build_presence_index() over the full dataset

    Returns:
        True when the user is (explicitly or by presence) active next month
    """
    if record.active_next_month != '':
        return parse_active_flag(record.active_next_month)
    return (record.user_id, next_month(record.month)) in presence


__all__ = [
    'TRUTHY_VALUES',
    'PresenceIndex',
    'next_month',
    'parse_active_flag',
    'build_presence_index',
    'resolve_active_next_month',
]
