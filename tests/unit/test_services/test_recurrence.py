"""
Unit tests for recurrence expansion and slot splitting.
"""

from datetime import date, time, timedelta, timezone

import pytest

from src.services.recurrence import (
    expand_weekly_dates,
    rule_dates_in_range,
    split_window,
    validate_days_of_week,
)

from fakes import LONDON, make_rule


class TestExpandWeeklyDates:
    def test_expands_iso_weekdays(self):
        # 2030-06-03 is a Monday
        dates = expand_weekly_dates({1, 3, 5}, date(2030, 6, 3), date(2030, 6, 9))
        assert dates == [date(2030, 6, 3), date(2030, 6, 5), date(2030, 6, 7)]

    def test_sunday_is_seven(self):
        dates = expand_weekly_dates({7}, date(2030, 6, 3), date(2030, 6, 16))
        assert dates == [date(2030, 6, 9), date(2030, 6, 16)]

    def test_range_is_inclusive(self):
        dates = expand_weekly_dates({3}, date(2030, 6, 5), date(2030, 6, 5))
        assert dates == [date(2030, 6, 5)]

    def test_empty_days(self):
        assert expand_weekly_dates([], date(2030, 6, 3), date(2030, 6, 9)) == []

    def test_inverted_range(self):
        assert expand_weekly_dates({1}, date(2030, 6, 9), date(2030, 6, 3)) == []


class TestRuleDatesInRange:
    def test_specific_date_inside_range(self):
        rule = make_rule(specific_date=date(2030, 6, 8))
        assert rule_dates_in_range(rule, date(2030, 6, 3), date(2030, 6, 9)) == [date(2030, 6, 8)]

    def test_specific_date_outside_range(self):
        rule = make_rule(specific_date=date(2030, 7, 1))
        assert rule_dates_in_range(rule, date(2030, 6, 3), date(2030, 6, 9)) == []

    def test_recurring_rule(self):
        rule = make_rule(days={2})
        assert rule_dates_in_range(rule, date(2030, 6, 3), date(2030, 6, 16)) == [
            date(2030, 6, 4),
            date(2030, 6, 11),
        ]


class TestValidateDaysOfWeek:
    def test_valid(self):
        assert validate_days_of_week([1, 3, 5]) == (True, None)

    @pytest.mark.parametrize(
        "days,message",
        [
            ([], "must not be empty"),
            (None, "must not be empty"),
            ([0], "1-7"),
            ([8], "1-7"),
            (["mon"], "integers"),
            ([1, 1], "duplicates"),
        ],
    )
    def test_invalid(self, days, message):
        is_valid, error = validate_days_of_week(days)
        assert is_valid is False
        assert message in error


class TestSplitWindow:
    def test_no_step_yields_whole_window(self):
        slots = split_window(date(2030, 6, 5), time(9, 0), time(17, 0), None, LONDON)
        assert len(slots) == 1
        start, end = slots[0]
        assert (start.hour, end.hour) == (9, 17)
        assert start.tzinfo is LONDON

    def test_hourly_grid(self):
        slots = split_window(date(2030, 6, 5), time(9, 0), time(12, 0), timedelta(hours=1), LONDON)
        assert [(s.hour, e.hour) for s, e in slots] == [(9, 10), (10, 11), (11, 12)]

    def test_short_remainder_dropped(self):
        slots = split_window(date(2030, 6, 5), time(9, 0), time(10, 30), timedelta(hours=1), LONDON)
        assert len(slots) == 1

    def test_empty_window(self):
        assert split_window(date(2030, 6, 5), time(9, 0), time(9, 0), None, LONDON) == []

    def test_non_positive_step_raises(self):
        with pytest.raises(ValueError):
            split_window(date(2030, 6, 5), time(9, 0), time(10, 0), timedelta(0), LONDON)

    def test_clocks_going_back_repeats_an_hour(self):
        # London leaves summer time at 02:00 BST on 2030-10-27
        slots = split_window(date(2030, 10, 27), time(0, 0), time(3, 0), timedelta(hours=1), LONDON)

        assert len(slots) == 4
        assert [s.hour for s, _ in slots] == [0, 1, 1, 2]
        assert [s.utcoffset() for s, _ in slots] == [
            timedelta(hours=1), timedelta(hours=1), timedelta(0), timedelta(0)
        ]
        for start, end in slots:
            assert end.astimezone(timezone.utc) - start.astimezone(timezone.utc) == timedelta(hours=1)

    def test_clocks_going_forward_skips_an_hour(self):
        # 01:00 GMT jumps to 02:00 BST on 2030-03-31
        slots = split_window(date(2030, 3, 31), time(0, 0), time(4, 0), timedelta(hours=1), LONDON)

        assert [(s.hour, e.hour) for s, e in slots] == [(0, 2), (2, 3), (3, 4)]
