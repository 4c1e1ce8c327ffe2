"""Tests for time and price helpers."""

from datetime import time

import pytest

from agenda.core.errors import InvalidTimeWindow
from agenda.core.timeutil import (
    compute_price,
    format_time,
    from_minutes,
    parse_amount,
    parse_time,
    to_minutes,
    validate_time_range,
)


class TestParsing:
    def test_parse_time(self):
        assert parse_time("08:30") == time(8, 30)
        assert parse_time(" 9:05 ") == time(9, 5)

    def test_parse_time_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_time("0830")

    def test_format_time_pads(self):
        assert format_time(time(7, 5)) == "07:05"

    def test_minutes_round_trip(self):
        assert to_minutes("10:45") == 645
        assert from_minutes(645) == time(10, 45)

    def test_from_minutes_outside_day(self):
        with pytest.raises(ValueError):
            from_minutes(-1)
        with pytest.raises(ValueError):
            from_minutes(24 * 60)


class TestComputePrice:
    def test_basic(self):
        assert compute_price("08:00", "12:00", "7") == "28.00"

    def test_fractional_hours(self):
        assert compute_price("08:30", "11:30", "7") == "21.00"
        assert compute_price("09:00", "09:20", "10") == "3.33"

    def test_accepts_time_objects(self):
        assert compute_price(time(9, 0), time(10, 30), "8.50") == "12.75"

    @pytest.mark.parametrize("start,end", [("10:00", "10:00"), ("12:00", "08:00")])
    def test_non_positive_duration_is_none(self, start, end):
        assert compute_price(start, end, "7") is None

    def test_missing_input_is_none(self):
        assert compute_price("", "10:00", "7") is None
        assert compute_price("08:00", "10:00", "") is None

    def test_bad_rate_is_none(self):
        assert compute_price("08:00", "10:00", "abc") is None

    def test_monotonic_in_duration(self):
        prices = [float(compute_price("08:00", f"{h:02d}:00", "7")) for h in range(9, 18)]
        assert prices == sorted(prices)
        assert len(set(prices)) == len(prices)


class TestValidateTimeRange:
    def test_valid(self):
        validate_time_range("08:00", "08:01")

    def test_empty(self):
        with pytest.raises(InvalidTimeWindow, match="required"):
            validate_time_range("", "10:00")

    def test_end_not_after_start(self):
        with pytest.raises(InvalidTimeWindow, match="after"):
            validate_time_range(time(10, 0), time(10, 0))


def test_parse_amount_is_lenient():
    assert str(parse_amount("21.50")) == "21.50"
    assert parse_amount("") == 0
    assert parse_amount("n/a") == 0
