"""
Unit Tests for Campaign Date Utilities

Scheduling dates resolve in US Eastern regardless of input form.
"""

from datetime import date, datetime, timezone

import pytest

import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "../../.."))

from microservices.campaign_service.date_utils import (
    EASTERN,
    calendar_position,
    default_date_range,
    format_date,
    is_same_day,
    parse_date_range,
    to_calendar_date,
    to_eastern,
)


class TestToCalendarDate:
    """Tests for date normalization"""

    @pytest.mark.parametrize("value,expected", [
        ("2025-03-14", date(2025, 3, 14)),
        ("2025-03-14T12:00:00.000Z", date(2025, 3, 14)),
        ("2025-03-14T12:00:00+00:00", date(2025, 3, 14)),
        # Just after midnight UTC is still the previous evening in Eastern
        ("2025-03-15T02:30:00Z", date(2025, 3, 14)),
        ("2025-07-01T03:59:00Z", date(2025, 6, 30)),
        ("2025-07-01T04:00:00Z", date(2025, 7, 1)),
    ])
    def test_strings(self, value, expected):
        assert to_calendar_date(value) == expected

    def test_date_passes_through(self):
        assert to_calendar_date(date(2025, 1, 2)) == date(2025, 1, 2)

    def test_aware_datetime_resolves_in_eastern(self):
        assert to_calendar_date(datetime(2025, 1, 2, 3, 0, tzinfo=timezone.utc)) == date(2025, 1, 1)

    def test_naive_datetime_is_eastern_wall_time(self):
        assert to_calendar_date(datetime(2025, 1, 2, 23, 30)) == date(2025, 1, 2)

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty_values(self, value):
        assert to_calendar_date(value) is None

    @pytest.mark.parametrize("value", ["2025-13-01", "not a date", "2025/03/14"])
    def test_invalid_strings(self, value):
        with pytest.raises(ValueError):
            to_calendar_date(value)

    def test_unsupported_type(self):
        with pytest.raises(ValueError, match="Unsupported date value"):
            to_calendar_date(20250314)


class TestFormatting:
    """Tests for format_date, calendar_position and is_same_day"""

    def test_format_date(self):
        assert format_date("2025-03-14T12:00:00.000Z") == "2025-03-14"
        assert format_date(None) is None

    def test_calendar_position(self):
        assert calendar_position("2025-03-14T12:00:00Z") == (2025, 3, 14)
        assert calendar_position(None) is None

    def test_is_same_day(self):
        assert is_same_day("2025-03-14", "2025-03-14T12:00:00.000Z") is True
        assert is_same_day("2025-03-14", "2025-03-15") is False
        assert is_same_day(None, None) is False

    def test_to_eastern_keeps_instant(self):
        moment = datetime(2025, 3, 14, 12, 0, tzinfo=timezone.utc)

        converted = to_eastern(moment)

        assert converted == moment
        assert converted.tzinfo == EASTERN


class TestDateRanges:
    """Tests for analytics date ranges"""

    def test_default_window(self, fixed_today):
        assert default_date_range(today=fixed_today) == (date(2025, 3, 1), date(2025, 3, 31))

    def test_both_absent_uses_default(self, fixed_today):
        assert parse_date_range(None, "", today=fixed_today) == (date(2025, 3, 1), date(2025, 3, 31))

    def test_explicit_range(self):
        assert parse_date_range("2025-01-01", "2025-01-31") == (date(2025, 1, 1), date(2025, 1, 31))

    @pytest.mark.parametrize("start,end", [("2025-01-01", None), (None, "2025-01-31")])
    def test_one_bound_only(self, start, end):
        with pytest.raises(ValueError, match="provided together"):
            parse_date_range(start, end)

    def test_inverted_range(self):
        with pytest.raises(ValueError, match="not be after"):
            parse_date_range("2025-02-01", "2025-01-01")
