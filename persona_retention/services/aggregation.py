"""
Month x Persona Aggregation Service

Groups classified user-month records into (month, persona) buckets and
computes retention statistics plus month-over-month deltas.

Contribution Modes:
- dominant: a record counts for its dominant persona only (or nothing)
- multi: a record counts for every persona whose flag matched, so one user
  can appear in several persona buckets in the same month. Summing users
  across personas in this mode does not give a unique-user total.

Per-Bucket Metrics:
- users: distinct user ids contributing to the bucket
- retained / churned: users partitioned by resolved active_next_month
- retention = retained / users (0 when users == 0)

Month-over-Month Deltas:
- retention_mom = retention - previous retention
- users_mom = users - previous users
- "previous" is the persona's own preceding aggregate in month order. A month
  in which a persona had no contributing records produces no aggregate and is
  skipped, never treated as zero. The first aggregate per persona has None.

Dense Series:
- retention_series(): one row per month with retention percent per persona
- volume_series(): one row per month with user count per persona
- Personas absent in a month are filled with 0; keys are persona labels.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from persona_retention.models.enums import ClassificationMode
from persona_retention.models.schemas import ClassifiedRecord, MonthPersonaAggregate
from persona_retention.services.personas import PERSONAS, PERSONA_KEYS, persona_label

# Configure module logger
logger = logging.getLogger(__name__)

# =============================================================================
# CONSTANTS
# =============================================================================

GROUP_COLUMNS: List[str] = ['month', 'persona']

CONTRIBUTION_COLUMNS: List[str] = ['month', 'persona', 'user_id', 'active']

AGGREGATE_COLUMNS: List[str] = [
    'month',
    'persona',
    'users',
    'retained',
    'churned',
    'retention',
    'retention_mom',
    'users_mom',
]

_PERSONA_ORDER: Dict[str, int] = {key: index for index, key in enumerate(PERSONA_KEYS)}


# =============================================================================
# HELPERS
# =============================================================================

def to_percent(fraction: float) -> float:
    """
    Convert a fraction to a percentage rounded to one decimal.

    Halves round towards positive infinity (66.65 -> 66.7, -12.45 -> -12.4).
    """
    return math.floor(fraction * 1000 + 0.5) / 10


def personas_for_record(record: ClassifiedRecord, mode: ClassificationMode) -> List[str]:
    """
    Persona buckets a record contributes to under the given mode.

    Args:
        record: Classified user-month record
        mode: dominant or multi

    Returns:
        Persona keys (catalog order in multi mode)
    """
    if mode == ClassificationMode.MULTI:
        return [p.key for p in PERSONAS if record.flags.get(p.key)]
    if record.dominant_persona:
        return [record.dominant_persona]
    return []


def build_contributions(
    classified: Iterable[ClassifiedRecord],
    mode: ClassificationMode,
) -> pd.DataFrame:
    """
    One row per (record, persona) contribution.

    Returns:
        DataFrame with columns month, persona, user_id, active
    """
    entries = [
        (record.month, persona, record.user_id, bool(record.active_next_month))
        for record in classified
        for persona in personas_for_record(record, mode)
    ]
    return pd.DataFrame(entries, columns=CONTRIBUTION_COLUMNS)


def compute_aggregate_frame(contributions: pd.DataFrame) -> pd.DataFrame:
    """
    Aggregate contributions into month x persona rows with deltas.

    Args:
        contributions: Output of build_contributions()

    Returns:
        DataFrame with AGGREGATE_COLUMNS, ordered by persona (catalog order)
        then month ascending
    """
    if contributions.empty:
        return pd.DataFrame(columns=AGGREGATE_COLUMNS)

    # A user is counted once per bucket
    distinct = contributions.drop_duplicates(subset=GROUP_COLUMNS + ['user_id'])

    summary = (
        distinct
        .groupby(GROUP_COLUMNS, sort=False)
        .agg(users=('user_id', 'size'), retained=('active', 'sum'))
        .reset_index()
    )
    summary['users'] = summary['users'].astype(int)
    summary['retained'] = summary['retained'].astype(int)
    summary['churned'] = summary['users'] - summary['retained']
    summary['retention'] = (summary['retained'] / summary['users']).where(summary['users'] > 0, 0.0)

    summary['_order'] = summary['persona'].map(_PERSONA_ORDER).fillna(len(_PERSONA_ORDER))
    summary = summary.sort_values(['_order', 'month'], kind='mergesort').reset_index(drop=True)

    by_persona = summary.groupby('persona', sort=False)
    summary['retention_mom'] = by_persona['retention'].diff()
    summary['users_mom'] = by_persona['users'].diff()

    return summary[AGGREGATE_COLUMNS]


def _optional_float(value: Any) -> Optional[float]:
    return None if pd.isna(value) else float(value)


def _optional_int(value: Any) -> Optional[int]:
    return None if pd.isna(value) else int(value)


def frame_to_aggregates(frame: pd.DataFrame) -> List[MonthPersonaAggregate]:
    """Convert an aggregate DataFrame into validated models."""
    return [
        MonthPersonaAggregate(
            month=row['month'],
            persona=row['persona'],
            users=int(row['users']),
            retained=int(row['retained']),
            churned=int(row['churned']),
            retention=float(row['retention']),
            retention_mom=_optional_float(row['retention_mom']),
            users_mom=_optional_int(row['users_mom']),
        )
        for row in frame.to_dict('records')
    ]


# =============================================================================
# RESULT
# =============================================================================

@dataclass
class AggregationResult:
    """
    Aggregates of one pipeline pass with point lookups and dense series.

    Attributes:
        rows: Month x persona aggregates, grouped per persona in catalog order,
            months ascending within a persona.
        months: Distinct months of all classified records, ascending. Months
            without any aggregate still appear here.
    """
    rows: List[MonthPersonaAggregate] = field(default_factory=list)
    months: List[str] = field(default_factory=list)
    _index: Dict[Tuple[str, str], MonthPersonaAggregate] = field(
        default_factory=dict, init=False, repr=False
    )

    def __post_init__(self) -> None:
        self._index = {(row.month, row.persona): row for row in self.rows}

    def get(self, month: Optional[str], persona: str) -> Optional[MonthPersonaAggregate]:
        """O(1) lookup of the aggregate for (month, persona)."""
        if not month:
            return None
        return self._index.get((month, persona))

    def for_persona(self, persona: str) -> List[MonthPersonaAggregate]:
        """Time series of one persona, months ascending."""
        return [row for row in self.rows if row.persona == persona]

    @property
    def last_month(self) -> Optional[str]:
        return self.months[-1] if self.months else None

    @property
    def previous_month(self) -> Optional[str]:
        return self.months[-2] if len(self.months) > 1 else None

    def to_frame(self) -> pd.DataFrame:
        """Aggregates as a DataFrame with AGGREGATE_COLUMNS."""
        if not self.rows:
            return pd.DataFrame(columns=AGGREGATE_COLUMNS)
        return pd.DataFrame([row.model_dump() for row in self.rows], columns=AGGREGATE_COLUMNS)

    def _dense(self, value_column: str) -> pd.DataFrame:
        frame = self.to_frame()
        if frame.empty:
            dense = pd.DataFrame(0, index=self.months, columns=PERSONA_KEYS)
        else:
            dense = (
                frame
                .pivot(index='month', columns='persona', values=value_column)
                .reindex(index=self.months, columns=PERSONA_KEYS)
                .fillna(0)
            )
        dense.index.name = 'month'
        return dense

    def _series_rows(self, dense: pd.DataFrame, convert) -> List[Dict[str, Any]]:
        series: List[Dict[str, Any]] = []
        for month, values in dense.iterrows():
            point: Dict[str, Any] = {'month': month}
            for key in PERSONA_KEYS:
                point[persona_label(key)] = convert(values[key])
            series.append(point)
        return series

    def retention_series(self) -> List[Dict[str, Any]]:
        """Dense retention percent (one decimal) per month and persona label."""
        return self._series_rows(self._dense('retention'), lambda v: to_percent(float(v)))

    def volume_series(self) -> List[Dict[str, Any]]:
        """Dense user counts per month and persona label."""
        return self._series_rows(self._dense('users'), lambda v: int(v))


# =============================================================================
# ENTRY POINT
# =============================================================================

def aggregate(
    classified: List[ClassifiedRecord],
    mode: ClassificationMode = ClassificationMode.DOMINANT,
) -> AggregationResult:
    """
    Aggregate classified records into month x persona statistics.

    Args:
        classified: Records with resolved active_next_month
        mode: dominant or multi contribution

    Returns:
        AggregationResult with rows, months, lookups and dense series
    """
    mode = ClassificationMode(mode)
    contributions = build_contributions(classified, mode)
    frame = compute_aggregate_frame(contributions)
    months = sorted({record.month for record in classified})

    result = AggregationResult(rows=frame_to_aggregates(frame), months=months)
    logger.info(
        f"Aggregated {len(classified)} records into {len(result.rows)} "
        f"month x persona buckets across {len(months)} months (mode={mode.value})"
    )
    return result


__all__ = [
    'AGGREGATE_COLUMNS',
    'to_percent',
    'personas_for_record',
    'build_contributions',
    'compute_aggregate_frame',
    'frame_to_aggregates',
    'AggregationResult',
    'aggregate',
]
