"""
Test Module for Month x Persona Aggregation.

Covers bucket statistics, dominant vs multi contribution, month-over-month
delta chaining across gaps, dense series and percent rounding.
"""

from typing import List

import pytest

from persona_retention.models.enums import ClassificationMode
from persona_retention.models.schemas import ClassifiedRecord
from persona_retention.services.aggregation import (
    AGGREGATE_COLUMNS,
    AggregationResult,
    aggregate,
    personas_for_record,
    to_percent,
)
from persona_retention.services.personas import PERSONA_KEYS, persona_label


def classified(
    user_id: str,
    month: str,
    dominant: str = None,
    flags: List[str] = None,
    active: bool = False,
) -> ClassifiedRecord:
    flag_set = set(flags or ([dominant] if dominant else []))
    return ClassifiedRecord(
        user_id=user_id,
        month=month,
        dominant_persona=dominant,
        flags={key: key in flag_set for key in PERSONA_KEYS},
        active_next_month=active,
    )


# =============================================================================
# TEST CLASS: Percent Rounding
# =============================================================================

class TestToPercent:
    """Tests for one-decimal percent rounding (halves toward +infinity)."""

    @pytest.mark.parity
    @pytest.mark.parametrize("fraction,expected", [
        (1.0, 100.0),
        (0.0, 0.0),
        (2 / 3, 66.7),
        (1 / 3, 33.3),
        (0.125, 12.5),
        (-1.0, -100.0),
        (-0.5, -50.0),
    ])
    def test_to_percent(self, fraction, expected):
        assert to_percent(fraction) == expected


# =============================================================================
# TEST CLASS: Contributions
# =============================================================================

class TestPersonasForRecord:
    """Tests for which buckets a record feeds."""

    def test_dominant_mode(self):
        record = classified("u1", "2025-01", dominant="emotional", flags=["emotional", "veteran"])
        assert personas_for_record(record, ClassificationMode.DOMINANT) == ["emotional"]

    def test_multi_mode_uses_catalog_order(self):
        record = classified("u1", "2025-01", dominant="emotional", flags=["veteran", "emotional"])
        assert personas_for_record(record, ClassificationMode.MULTI) == ["emotional", "veteran"]

    def test_unclassified_record_feeds_nothing(self):
        record = classified("u1", "2025-01")
        assert personas_for_record(record, ClassificationMode.DOMINANT) == []
        assert personas_for_record(record, ClassificationMode.MULTI) == []


# =============================================================================
# TEST CLASS: Aggregate Rows
# =============================================================================

class TestAggregate:
    """Tests for bucket statistics and deltas."""

    def test_bucket_statistics(self):
        result = aggregate([
            classified("a", "2025-01", "veteran", active=True),
            classified("b", "2025-01", "veteran", active=False),
            classified("c", "2025-01", "veteran", active=True),
        ])
        row = result.get("2025-01", "veteran")
        assert (row.users, row.retained, row.churned) == (3, 2, 1)
        assert row.retention == pytest.approx(2 / 3)
        assert row.retention_mom is None
        assert row.users_mom is None

    def test_invariants_hold_for_every_row(self):
        records = [
            classified(f"u{i}", f"2025-0{1 + i % 3}", PERSONA_KEYS[i % 7], active=bool(i % 2))
            for i in range(30)
        ]
        result = aggregate(records)
        for row in result.rows:
            assert row.users == row.retained + row.churned
            assert 0.0 <= row.retention <= 1.0
            assert row.users > 0

    def test_mom_deltas_chain_per_persona(self):
        result = aggregate([
            classified("a", "2025-01", "trust_erosion", active=True),
            classified("b", "2025-02", "trust_erosion", active=False),
            classified("c", "2025-02", "trust_erosion", active=True),
        ])
        feb = result.get("2025-02", "trust_erosion")
        assert feb.retention_mom == pytest.approx(-0.5)
        assert feb.users_mom == 1

    def test_gap_month_chains_to_previous_aggregate(self):
        result = aggregate([
            classified("a", "2025-01", "veteran", active=True),
            classified("b", "2025-02", "suggestion"),
            classified("c", "2025-03", "veteran"),
            classified("d", "2025-03", "veteran"),
        ])
        assert result.get("2025-02", "veteran") is None
        march = result.get("2025-03", "veteran")
        assert march.users_mom == 1
        assert march.retention_mom == pytest.approx(-1.0)
        assert result.months == ["2025-01", "2025-02", "2025-03"]

    def test_rows_grouped_by_persona_in_catalog_order(self):
        result = aggregate([
            classified("a", "2025-02", "suggestion"),
            classified("b", "2025-01", "suggestion"),
            classified("c", "2025-02", "trust_erosion"),
        ])
        assert [(r.persona, r.month) for r in result.rows] == [
            ("trust_erosion", "2025-02"),
            ("suggestion", "2025-01"),
            ("suggestion", "2025-02"),
        ]

    def test_multi_mode_counts_user_in_every_flagged_bucket(self):
        records = [classified("a", "2025-01", "emotional", flags=["emotional", "escalation"], active=True)]
        dominant = aggregate(records, ClassificationMode.DOMINANT)
        multi = aggregate(records, ClassificationMode.MULTI)
        assert [r.persona for r in dominant.rows] == ["emotional"]
        assert [r.persona for r in multi.rows] == ["emotional", "escalation"]
        assert sum(r.users for r in multi.rows) == 2

    def test_unclassified_months_still_listed(self):
        result = aggregate([classified("a", "2025-04")])
        assert result.rows == []
        assert result.months == ["2025-04"]
        assert result.last_month == "2025-04"
        assert result.previous_month is None

    def test_empty_input(self):
        result = aggregate([])
        assert result.rows == []
        assert result.months == []
        assert result.get(None, "veteran") is None
        assert list(result.to_frame().columns) == AGGREGATE_COLUMNS

    def test_for_persona(self):
        result = aggregate([
            classified("a", "2025-01", "veteran"),
            classified("b", "2025-02", "veteran"),
            classified("c", "2025-02", "overload"),
        ])
        assert [r.month for r in result.for_persona("veteran")] == ["2025-01", "2025-02"]


# =============================================================================
# TEST CLASS: Dense Series
# =============================================================================

class TestSeries:
    """Tests for chart-ready series."""

    def test_series_are_dense_and_keyed_by_label(self):
        result = aggregate([
            classified("a", "2025-01", "veteran", active=True),
            classified("b", "2025-01", "veteran"),
            classified("c", "2025-01", "veteran", active=True),
            classified("d", "2025-02", "overload"),
        ])
        retention = result.retention_series()
        volume = result.volume_series()

        assert [point["month"] for point in retention] == ["2025-01", "2025-02"]
        for point in retention + volume:
            assert set(point) == {"month"} | {persona_label(k) for k in PERSONA_KEYS}

        assert retention[0]["Veteran & habit"] == 66.7
        assert retention[1]["Veteran & habit"] == 0
        assert volume[0]["Veteran & habit"] == 3
        assert volume[0]["Cognitive overload"] == 0
        assert volume[1]["Cognitive overload"] == 1

    def test_series_for_months_without_aggregates(self):
        result = AggregationResult(rows=[], months=["2025-01"])
        assert result.volume_series() == [
            {"month": "2025-01", **{persona_label(k): 0 for k in PERSONA_KEYS}}
        ]
