"""
Tests for datetime utilities module.
"""
import pytest
from datetime import datetime, timezone, timedelta

from app.core.datetime_utils import (
    ensure_timezone_aware,
    minutes_between,
    start_of_utc_day,
    utc_day_bounds,
    utc_now,
)


class TestEnsureTimezoneAware:
    """Tests for ensure_timezone_aware function."""

    def test_naive_datetime_becomes_utc(self):
        """Test that a naive datetime (as SQLite returns it) is tagged as UTC."""
        naive_dt = datetime(2024, 1, 15, 12, 30, 45)

        result = ensure_timezone_aware(naive_dt)

        assert result.tzinfo == timezone.utc
        assert result.replace(tzinfo=None) == naive_dt

    def test_utc_datetime_unchanged(self):
        utc_dt = datetime(2024, 1, 15, 12, 30, 45, tzinfo=timezone.utc)

        result = ensure_timezone_aware(utc_dt)

        assert result is utc_dt

    def test_non_utc_timezone_preserved(self):
        tz_plus_5 = timezone(timedelta(hours=5))
        aware_dt = datetime(2024, 1, 15, 12, 30, 45, tzinfo=tz_plus_5)

        result = ensure_timezone_aware(aware_dt)

        assert result.tzinfo == tz_plus_5
        assert result is aware_dt

    def test_none_raises_value_error(self):
        with pytest.raises(ValueError, match="datetime cannot be None"):
            ensure_timezone_aware(None)

    def test_microseconds_preserved(self):
        naive_dt = datetime(2024, 1, 15, 12, 30, 45, 123456)

        assert ensure_timezone_aware(naive_dt).microsecond == 123456


class TestUtcNow:
    def test_returns_aware_utc(self):
        now = utc_now()

        assert now.tzinfo == timezone.utc


class TestUtcDay:
    """Tests for UTC day boundaries used by the streak count."""

    def test_start_of_day(self):
        dt = datetime(2026, 3, 2, 17, 45, 12, 999, tzinfo=timezone.utc)

        assert start_of_utc_day(dt) == datetime(2026, 3, 2, tzinfo=timezone.utc)

    def test_start_of_day_converts_offset_to_utc(self):
        # 01:30 at +05:00 is 20:30 UTC the previous day
        dt = datetime(2026, 3, 2, 1, 30, tzinfo=timezone(timedelta(hours=5)))

        assert start_of_utc_day(dt) == datetime(2026, 3, 1, tzinfo=timezone.utc)

    def test_naive_input_treated_as_utc(self):
        assert start_of_utc_day(datetime(2026, 3, 2, 23, 59)) == datetime(
            2026, 3, 2, tzinfo=timezone.utc
        )

    def test_day_bounds_are_half_open(self):
        start, end = utc_day_bounds(datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc))

        assert start == datetime(2026, 3, 2, tzinfo=timezone.utc)
        assert end == datetime(2026, 3, 3, tzinfo=timezone.utc)
        assert end - start == timedelta(days=1)


class TestMinutesBetween:
    def test_positive_interval(self):
        earlier = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

        assert minutes_between(earlier + timedelta(minutes=31), earlier) == 31.0

    def test_reversed_interval_is_negative(self):
        earlier = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

        assert minutes_between(earlier, earlier + timedelta(seconds=90)) == -1.5

    def test_mixed_naive_and_aware(self):
        naive = datetime(2026, 3, 2, 9, 0)
        aware = datetime(2026, 3, 2, 9, 15, tzinfo=timezone.utc)

        assert minutes_between(aware, naive) == 15.0
