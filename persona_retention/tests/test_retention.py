"""
Test Module for Retention Resolution.

Explicit flags take precedence; otherwise a user counts as active next month
when a record for the calendar-next month exists.
"""

import pytest

from persona_retention.services.retention import (
    build_presence_index,
    next_month,
    parse_active_flag,
    resolve_active_next_month,
)
from persona_retention.tests.conftest import make_record


class TestNextMonth:
    """Tests for the calendar successor."""

    @pytest.mark.parametrize("month,expected", [
        ("2025-01", "2025-02"),
        ("2025-09", "2025-10"),
        ("2025-12", "2026-01"),
        ("", ""),
        (None, ""),
        ("2025", ""),
        ("abcd-ef", ""),
        ("0000-05", ""),
    ])
    def test_next_month(self, month, expected):
        assert next_month(month) == expected


class TestActiveFlag:
    """Tests for explicit active_next_month values."""

    @pytest.mark.parametrize("raw", ["1", "true", "TRUE", " Yes ", "y"])
    def test_truthy(self, raw):
        assert parse_active_flag(raw) is True

    @pytest.mark.parametrize("raw", ["0", "false", "no", "n", "maybe", " "])
    def test_falsy(self, raw):
        assert parse_active_flag(raw) is False


class TestResolveActiveNextMonth:
    """Tests for explicit-or-presence resolution."""

    def test_presence_inference(self):
        records = [
            make_record("u1", "2025-11"),
            make_record("u1", "2025-12"),
            make_record("u1", "2026-01"),
            make_record("u2", "2025-11"),
        ]
        presence = build_presence_index(records)
        resolved = [resolve_active_next_month(r, presence) for r in records]
        assert resolved == [True, True, False, False]

    def test_gap_month_is_not_presence(self):
        records = [make_record("u1", "2025-01"), make_record("u1", "2025-03")]
        presence = build_presence_index(records)
        assert resolve_active_next_month(records[0], presence) is False

    def test_explicit_flag_overrides_presence(self):
        records = [
            make_record("u1", "2025-01", active_next_month="0"),
            make_record("u1", "2025-02"),
            make_record("u2", "2025-01", active_next_month="yes"),
        ]
        presence = build_presence_index(records)
        assert resolve_active_next_month(records[0], presence) is False
        assert resolve_active_next_month(records[2], presence) is True
