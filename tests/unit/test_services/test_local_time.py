"""
Unit tests for business-local time normalization.
"""

from datetime import date, datetime, time, timezone

import pytest

from src.services.exceptions import BookingValidationError
from src.services.local_time import ensure_utc, normalize_interval, resolve_timezone, to_local

from fakes import LONDON


class TestResolveTimezone:
    def test_known_zone(self):
        zone = resolve_timezone("Europe/London")
        summer = datetime(2030, 6, 5, 12, 0, tzinfo=zone)
        assert summer.utcoffset().total_seconds() == 3600

    def test_unknown_zone_raises(self):
        with pytest.raises(ValueError, match="Unknown timezone"):
            resolve_timezone("Mars/Olympus_Mons")

    def test_empty_name_raises(self):
        with pytest.raises(ValueError):
            resolve_timezone("")


class TestToLocal:
    def test_naive_is_local_wall_clock(self):
        local = to_local(datetime(2030, 6, 5, 10, 0), LONDON)
        assert local.hour == 10
        assert local.utcoffset().total_seconds() == 3600

    def test_aware_is_converted(self):
        local = to_local(datetime(2030, 6, 5, 9, 0, tzinfo=timezone.utc), LONDON)
        assert local.hour == 10
        assert local.date() == date(2030, 6, 5)


class TestEnsureUtc:
    def test_naive_is_treated_as_utc(self):
        result = ensure_utc(datetime(2030, 6, 5, 9, 0))
        assert result == datetime(2030, 6, 5, 9, 0, tzinfo=timezone.utc)

    def test_aware_is_converted(self):
        result = ensure_utc(datetime(2030, 6, 5, 10, 0, tzinfo=LONDON))
        assert result.tzinfo == timezone.utc
        assert result.hour == 9


class TestNormalizeInterval:
    def test_local_components(self):
        result = normalize_interval(
            datetime(2030, 6, 5, 9, 0, tzinfo=timezone.utc),
            datetime(2030, 6, 5, 10, 0, tzinfo=timezone.utc),
            LONDON,
        )
        assert result.date == date(2030, 6, 5)
        assert result.start_time == time(10, 0)
        assert result.end_time == time(11, 0)
        assert result.iso_weekday == 3

    def test_utc_late_sunday_is_london_monday(self):
        """23:30 UTC on a summer Sunday is 00:30 on Monday in London."""
        result = normalize_interval(
            datetime(2030, 6, 9, 23, 30, tzinfo=timezone.utc),
            datetime(2030, 6, 10, 0, 30, tzinfo=timezone.utc),
            LONDON,
        )
        assert result.date == date(2030, 6, 10)
        assert result.iso_weekday == 1
        assert result.start_time == time(0, 30)

    def test_winter_has_no_offset(self):
        result = normalize_interval(
            datetime(2030, 1, 8, 9, 0, tzinfo=timezone.utc),
            datetime(2030, 1, 8, 10, 0, tzinfo=timezone.utc),
            LONDON,
        )
        assert result.start_time == time(9, 0)

    def test_start_after_end_raises(self):
        with pytest.raises(BookingValidationError, match="before end"):
            normalize_interval(
                datetime(2030, 6, 5, 11, 0),
                datetime(2030, 6, 5, 10, 0),
                LONDON,
            )

    def test_empty_window_raises(self):
        with pytest.raises(BookingValidationError):
            normalize_interval(
                datetime(2030, 6, 5, 10, 0),
                datetime(2030, 6, 5, 10, 0),
                LONDON,
            )

    def test_window_across_midnight_raises(self):
        with pytest.raises(BookingValidationError, match="same local date"):
            normalize_interval(
                datetime(2030, 6, 5, 23, 0),
                datetime(2030, 6, 6, 1, 0),
                LONDON,
            )


class TestRepeatedHour:
    def test_window_across_repeated_hour_is_valid(self):
        # 01:00 BST to 01:00 GMT on the night the clocks go back
        result = normalize_interval(
            datetime(2030, 10, 27, 0, 0, tzinfo=timezone.utc),
            datetime(2030, 10, 27, 1, 0, tzinfo=timezone.utc),
            LONDON,
        )

        assert result.date == date(2030, 10, 27)
        assert result.start_time == time(1, 0)
        assert result.end_time == time(1, 0)
