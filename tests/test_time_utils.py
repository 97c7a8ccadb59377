"""
Tests for time helpers.
"""

from datetime import datetime

import pendulum
import pytest

from lessonslots.domain.exceptions import FormatError
from lessonslots.domain.time_utils import (
    convert_timezone,
    day_name,
    day_of_week,
    ensure_aware,
    intervals_overlap,
    minutes_to_time,
    parse_date,
    parse_instant,
    round_to_interval,
    time_to_minutes,
)


class TestTimeToMinutes:
    """Tests for HH:MM parsing."""

    def test_parses_valid_times(self):
        """Test known conversions."""
        assert time_to_minutes("00:00") == 0
        assert time_to_minutes("14:30") == 870
        assert time_to_minutes("23:59") == 1439

    @pytest.mark.parametrize("value", ["24:00", "9:00", "12:60", "noon", "", "12:30:00", 930])
    def test_rejects_malformed_input(self, value):
        """Test that non-conforming input raises FormatError."""
        with pytest.raises(FormatError):
            time_to_minutes(value)

    def test_round_trip_for_every_minute_of_the_day(self):
        """Test that every valid HH:MM survives a round trip."""
        for minute in range(24 * 60):
            text = minutes_to_time(minute)
            assert time_to_minutes(text) == minute
            assert minutes_to_time(time_to_minutes(text)) == text


class TestMinutesToTime:
    """Tests for minute formatting."""

    def test_formats_with_zero_padding(self):
        assert minutes_to_time(0) == "00:00"
        assert minutes_to_time(65) == "01:05"
        assert minutes_to_time(1439) == "23:59"

    def test_wraps_out_of_range_values(self):
        """Test that values outside one day wrap around."""
        assert minutes_to_time(1440) == "00:00"
        assert minutes_to_time(1500) == "01:00"
        assert minutes_to_time(-30) == "23:30"


class TestIntervalsOverlap:
    """Tests for half-open overlap."""

    def test_touching_intervals_do_not_overlap(self):
        assert not intervals_overlap(0, 60, 60, 120)
        assert not intervals_overlap(60, 120, 0, 60)

    def test_overlap_is_symmetric(self):
        cases = [(0, 60, 30, 90), (0, 60, 60, 120), (0, 120, 30, 60), (0, 10, 20, 30)]
        for a, b, c, d in cases:
            assert intervals_overlap(a, b, c, d) == intervals_overlap(c, d, a, b)

    def test_containment_overlaps(self):
        assert intervals_overlap(0, 120, 30, 60)


class TestRoundToInterval:
    """Tests for rounding instants."""

    def test_rounds_to_nearest(self):
        assert round_to_interval(pendulum.datetime(2026, 1, 12, 10, 7, tz="UTC"), 15) == pendulum.datetime(
            2026, 1, 12, 10, 0, tz="UTC"
        )
        assert round_to_interval(pendulum.datetime(2026, 1, 12, 10, 8, tz="UTC"), 15) == pendulum.datetime(
            2026, 1, 12, 10, 15, tz="UTC"
        )

    def test_ties_round_up(self):
        """Test that an exact midpoint goes to the later instant."""
        instant = pendulum.datetime(2026, 1, 12, 10, 7, 30, tz="UTC")
        assert round_to_interval(instant, 15) == pendulum.datetime(2026, 1, 12, 10, 15, tz="UTC")

    def test_keeps_timezone(self):
        instant = pendulum.datetime(2026, 1, 12, 10, 7, tz="Asia/Kolkata")
        rounded = round_to_interval(instant, 15)

        assert rounded.timezone_name == "Asia/Kolkata"
        assert (rounded.hour, rounded.minute) == (10, 0)

    def test_keeps_fixed_offset(self):
        """Test instants parsed from ISO strings carrying a numeric offset."""
        rounded = round_to_interval(parse_instant("2026-11-02T09:08:00+05:30"), 15)

        assert (rounded.hour, rounded.minute) == (9, 15)
        assert rounded.utcoffset().total_seconds() == 19800
        assert rounded == parse_instant("2026-11-02T03:45:00Z")

    def test_fixed_offset_tie_rounds_up(self):
        rounded = round_to_interval(parse_instant("2026-11-02T09:07:30+05:30"), 15)

        assert (rounded.hour, rounded.minute) == (9, 15)

    def test_rejects_non_positive_interval(self):
        with pytest.raises(FormatError):
            round_to_interval(pendulum.datetime(2026, 1, 12, tz="UTC"), 0)


class TestDayHelpers:
    """Tests for weekday helpers."""

    def test_day_name(self):
        assert day_name(0) == "Sunday"
        assert day_name(1) == "Monday"
        assert day_name(6) == "Saturday"

    def test_day_name_out_of_range(self):
        with pytest.raises(FormatError):
            day_name(7)

    def test_day_of_week_uses_sunday_zero(self):
        assert day_of_week(pendulum.date(2026, 1, 11)) == 0  # Sunday
        assert day_of_week(pendulum.date(2026, 1, 12)) == 1  # Monday
        assert day_of_week(pendulum.datetime(2026, 1, 17, 12, tz="UTC")) == 6  # Saturday


class TestParsing:
    """Tests for timezone and parsing helpers."""

    def test_convert_timezone(self):
        converted = convert_timezone(pendulum.datetime(2026, 1, 12, 9, 0, tz="UTC"), "Asia/Kolkata")

        assert (converted.hour, converted.minute) == (14, 30)

    def test_parse_instant_applies_default_timezone(self):
        parsed = parse_instant("2026-01-12T09:00", tz="Asia/Kolkata")

        assert parsed == pendulum.datetime(2026, 1, 12, 3, 30, tz="UTC")

    def test_parse_instant_rejects_garbage(self):
        with pytest.raises(FormatError):
            parse_instant("next tuesday-ish")

    def test_parse_date(self):
        assert parse_date("2026-01-12") == pendulum.date(2026, 1, 12)

    def test_parse_date_rejects_garbage(self):
        with pytest.raises(FormatError):
            parse_date("12/01/2026")

    def test_ensure_aware_rejects_naive_datetime(self):
        with pytest.raises(FormatError, match="no timezone"):
            ensure_aware(datetime(2026, 1, 12, 9, 0))
