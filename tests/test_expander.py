"""Tests for hearth.core.expander — occurrence expansion."""

import calendar
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from hearth.core.expander import MAX_ITERATIONS, expand
from hearth.core.recurrence import parse_rule

UTC = timezone.utc


def d(year, month, day, hour=0, minute=0):
    return datetime(year, month, day, hour, minute, tzinfo=UTC)


def starts(occs):
    return [o.start for o in occs]


class TestDaily:
    def test_daily_window(self):
        rule = parse_rule("FREQ=DAILY")
        occs = expand(rule, d(2026, 2, 1, 10), d(2026, 2, 1, 11), d(2026, 2, 1), d(2026, 2, 5))
        assert starts(occs) == [d(2026, 2, day, 10) for day in (1, 2, 3, 4)]
        assert all(o.end - o.start == timedelta(hours=1) for o in occs)

    def test_interval_spacing(self):
        rule = parse_rule("FREQ=DAILY;INTERVAL=3")
        occs = expand(rule, d(2026, 2, 1, 8), d(2026, 2, 1, 9), d(2026, 2, 1), d(2026, 3, 1))
        gaps = {b.start - a.start for a, b in zip(occs, occs[1:])}
        assert gaps == {timedelta(days=3)}
        assert occs[0].start == d(2026, 2, 1, 8)

    def test_range_filtering(self):
        rule = parse_rule("FREQ=DAILY")
        occs = expand(rule, d(2026, 2, 1, 10), d(2026, 2, 1, 11), d(2026, 2, 5), d(2026, 2, 10))
        assert len(occs) == 5
        assert occs[0].start.day == 5

    def test_preserves_duration(self):
        rule = parse_rule("FREQ=DAILY")
        occs = expand(rule, d(2026, 2, 1, 10), d(2026, 2, 1, 12), d(2026, 2, 1), d(2026, 2, 4))
        assert [o.end - o.start for o in occs] == [timedelta(hours=2)] * 3


class TestWeekly:
    def test_weekly_same_weekday(self):
        rule = parse_rule("FREQ=WEEKLY")
        occs = expand(rule, d(2026, 2, 3, 9), d(2026, 2, 3, 10), d(2026, 2, 1), d(2026, 3, 1))
        assert [o.start.day for o in occs] == [3, 10, 17, 24]

    def test_biweekly(self):
        rule = parse_rule("FREQ=WEEKLY;INTERVAL=2")
        occs = expand(rule, d(2026, 2, 3, 9), d(2026, 2, 3, 10), d(2026, 2, 1), d(2026, 3, 10))
        assert starts(occs) == [d(2026, 2, 3, 9), d(2026, 2, 17, 9), d(2026, 3, 3, 9)]

    def test_by_day_tuesday_thursday(self):
        rule = parse_rule("FREQ=WEEKLY;BYDAY=TU,TH")
        occs = expand(rule, d(2026, 2, 3, 16), d(2026, 2, 3, 17), d(2026, 2, 1), d(2026, 2, 15))
        assert starts(occs) == [d(2026, 2, day, 16) for day in (3, 5, 10, 12)]

    def test_by_day_skips_days_before_start(self):
        # Start on Wednesday: Monday of that week is skipped.
        rule = parse_rule("FREQ=WEEKLY;BYDAY=MO,WE,FR")
        occs = expand(rule, d(2026, 2, 4, 7), d(2026, 2, 4, 8), d(2026, 2, 1), d(2026, 2, 10))
        assert [o.start.day for o in occs] == [4, 6, 9]

    def test_by_day_start_weekday_is_eligible(self):
        rule = parse_rule("FREQ=WEEKLY;BYDAY=WE,MO")
        occs = expand(rule, d(2026, 2, 2, 7), d(2026, 2, 2, 8), d(2026, 2, 1), d(2026, 2, 9))
        assert [o.start.day for o in occs] == [2, 4]

    def test_by_day_unsorted_list_is_ascending(self):
        rule = parse_rule("FREQ=WEEKLY;BYDAY=FR,MO")
        occs = expand(rule, d(2026, 2, 2, 7), d(2026, 2, 2, 8), d(2026, 2, 1), d(2026, 2, 17))
        assert [o.start.day for o in occs] == [2, 6, 9, 13, 16]

    def test_by_day_sunday_belongs_to_monday_week(self):
        rule = parse_rule("FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,SU")
        # Mon Feb 2: this week's Sunday is Feb 8, then skip a week.
        occs = expand(rule, d(2026, 2, 2, 7), d(2026, 2, 2, 8), d(2026, 2, 1), d(2026, 3, 1))
        assert [o.start.day for o in occs] == [2, 8, 16, 22]

    def test_by_day_keeps_start_time_of_day(self):
        rule = parse_rule("FREQ=WEEKLY;BYDAY=MO,TH")
        occs = expand(rule, d(2026, 2, 2, 18, 45), d(2026, 2, 2, 19), d(2026, 2, 1), d(2026, 2, 20))
        assert {(o.start.hour, o.start.minute) for o in occs} == {(18, 45)}


class TestMonthly:
    def test_monthly_same_day(self):
        rule = parse_rule("FREQ=MONTHLY")
        occs = expand(rule, d(2026, 1, 15, 10), d(2026, 1, 15, 11), d(2026, 1, 1), d(2026, 4, 1))
        assert starts(occs) == [d(2026, m, 15, 10) for m in (1, 2, 3)]

    def test_monthly_31st_skips_short_months(self):
        rule = parse_rule("FREQ=MONTHLY")
        occs = expand(rule, d(2026, 1, 31, 10), d(2026, 1, 31, 11), d(2026, 1, 1), d(2026, 8, 1))
        assert [o.start.month for o in occs] == [1, 3, 5, 7]
        assert all(o.start.day == 31 for o in occs)

    def test_only_31_day_months_over_two_years(self):
        rule = parse_rule("FREQ=MONTHLY")
        occs = expand(rule, d(2026, 1, 31), d(2026, 1, 31, 1), d(2026, 1, 1), d(2028, 1, 1))
        assert all(calendar.monthrange(o.start.year, o.start.month)[1] == 31 for o in occs)
        assert len(occs) == 14

    def test_by_month_day(self):
        rule = parse_rule("FREQ=MONTHLY;BYMONTHDAY=20")
        occs = expand(rule, d(2026, 1, 5, 9), d(2026, 1, 5, 10), d(2026, 1, 1), d(2026, 4, 1))
        # The event start itself is the first occurrence.
        assert starts(occs) == [d(2026, 1, 5, 9), d(2026, 2, 20, 9), d(2026, 3, 20, 9)]

    def test_by_month_day_30_skips_february(self):
        rule = parse_rule("FREQ=MONTHLY;BYMONTHDAY=30")
        occs = expand(rule, d(2026, 1, 30), d(2026, 1, 30, 1), d(2026, 1, 1), d(2026, 5, 1))
        assert [o.start.month for o in occs] == [1, 3, 4]

    def test_every_two_months(self):
        rule = parse_rule("FREQ=MONTHLY;INTERVAL=2")
        occs = expand(rule, d(2026, 11, 10), d(2026, 11, 10, 1), d(2026, 1, 1), d(2027, 6, 1))
        assert [(o.start.year, o.start.month) for o in occs] == [(2026, 11), (2027, 1), (2027, 3), (2027, 5)]


class TestYearly:
    def test_yearly(self):
        rule = parse_rule("FREQ=YEARLY")
        occs = expand(rule, d(2026, 6, 1), d(2026, 6, 1, 1), d(2026, 1, 1), d(2030, 1, 1))
        assert [o.start.year for o in occs] == [2026, 2027, 2028, 2029]

    def test_feb_29_only_on_leap_years(self):
        rule = parse_rule("FREQ=YEARLY")
        occs = expand(
            rule, datetime(2024, 2, 29), datetime(2024, 3, 1), datetime(2024, 1, 1), datetime(2033, 1, 1),
        )
        assert [o.start.year for o in occs] == [2024, 2028, 2032]
        assert all((o.start.month, o.start.day) == (2, 29) for o in occs)
        assert all(o.end - o.start == timedelta(days=1) for o in occs)

    def test_feb_29_skips_century_non_leap(self):
        rule = parse_rule("FREQ=YEARLY;INTERVAL=4")
        occs = expand(rule, d(2096, 2, 29), d(2096, 2, 29, 1), d(2096, 1, 1), d(2110, 1, 1))
        assert [o.start.year for o in occs] == [2096, 2104, 2108]


class TestLimits:
    def test_count_limits_total(self):
        rule = parse_rule("FREQ=DAILY;COUNT=5")
        occs = expand(rule, d(2026, 2, 1, 10), d(2026, 2, 1, 11), d(2026, 2, 1), d(2026, 3, 1))
        assert len(occs) == 5

    def test_count_applies_before_range_filter(self):
        rule = parse_rule("FREQ=DAILY;COUNT=5")
        # Occurrences are Feb 1..5; the window only sees Feb 4 and 5.
        occs = expand(rule, d(2026, 2, 1, 10), d(2026, 2, 1, 11), d(2026, 2, 4), d(2026, 3, 1))
        assert [o.start.day for o in occs] == [4, 5]

    def test_count_with_by_day(self):
        rule = parse_rule("FREQ=WEEKLY;BYDAY=MO,WE,FR;COUNT=4")
        occs = expand(rule, d(2026, 2, 2, 7), d(2026, 2, 2, 8), d(2026, 2, 1), d(2026, 4, 1))
        assert [o.start.day for o in occs] == [2, 4, 6, 9]

    def test_count_ignores_skipped_months(self):
        rule = parse_rule("FREQ=MONTHLY;COUNT=3")
        occs = expand(rule, d(2026, 1, 31), d(2026, 1, 31, 1), d(2026, 1, 1), d(2027, 1, 1))
        assert [o.start.month for o in occs] == [1, 3, 5]

    def test_until_is_inclusive(self):
        rule = parse_rule("FREQ=DAILY;UNTIL=20260209T100000Z")
        occs = expand(rule, d(2026, 2, 1, 10), d(2026, 2, 1, 11), d(2026, 2, 1), d(2026, 3, 1))
        assert len(occs) == 9
        assert occs[-1].start == d(2026, 2, 9, 10)

    def test_until_date_only_excludes_later_same_day(self):
        rule = parse_rule("FREQ=DAILY;UNTIL=20260209")
        occs = expand(rule, d(2026, 2, 1, 10), d(2026, 2, 1, 11), d(2026, 2, 1), d(2026, 3, 1))
        assert occs[-1].start == d(2026, 2, 8, 10)

    def test_until_with_naive_event(self):
        rule = parse_rule("FREQ=DAILY;UNTIL=20260203T235959Z")
        occs = expand(
            rule, datetime(2026, 2, 1, 9), datetime(2026, 2, 1, 10),
            datetime(2026, 2, 1), datetime(2026, 3, 1),
        )
        assert len(occs) == 3

    def test_range_end_is_exclusive(self):
        rule = parse_rule("FREQ=DAILY")
        occs = expand(rule, d(2026, 2, 1, 10), d(2026, 2, 1, 11), d(2026, 2, 1), d(2026, 2, 3, 10))
        assert [o.start.day for o in occs] == [1, 2]

    def test_multi_day_event_straddling_window_start(self):
        rule = parse_rule("FREQ=WEEKLY")
        # Three-day event starting Saturday; window opens Monday.
        occs = expand(rule, d(2026, 1, 31), d(2026, 2, 3), d(2026, 2, 2), d(2026, 2, 6))
        assert starts(occs) == [d(2026, 1, 31)]

    def test_event_ending_at_range_start_is_excluded(self):
        rule = parse_rule("FREQ=DAILY")
        occs = expand(rule, d(2026, 2, 1, 23), d(2026, 2, 2), d(2026, 2, 2), d(2026, 2, 3))
        assert starts(occs) == [d(2026, 2, 2, 23)]

    def test_empty_when_window_before_start(self):
        rule = parse_rule("FREQ=DAILY")
        assert expand(rule, d(2026, 2, 10), d(2026, 2, 10, 1), d(2026, 2, 1), d(2026, 2, 5)) == []

    def test_iteration_ceiling_ends_quietly(self):
        rule = parse_rule("FREQ=DAILY")
        occs = expand(rule, d(2000, 1, 1), d(2000, 1, 1, 1), d(2000, 1, 1), d(2100, 1, 1))
        assert len(occs) == MAX_ITERATIONS

    def test_calendar_overflow_ends_quietly(self):
        rule = parse_rule("FREQ=YEARLY;INTERVAL=1000")
        occs = expand(
            rule, datetime(2000, 1, 1), datetime(2000, 1, 2), datetime(2000, 1, 1), datetime(9999, 12, 31),
        )
        assert [o.start.year for o in occs] == [2000, 3000, 4000, 5000, 6000, 7000, 8000, 9000]


class TestTimezones:
    def test_daily_keeps_wall_clock_across_dst(self):
        ny = ZoneInfo("America/New_York")
        rule = parse_rule("FREQ=DAILY")
        start = datetime(2026, 3, 6, 9, 30, tzinfo=ny)
        occs = expand(
            rule, start, start + timedelta(hours=1),
            datetime(2026, 3, 6, tzinfo=ny), datetime(2026, 3, 11, tzinfo=ny),
        )
        assert [(o.start.day, o.start.hour, o.start.minute) for o in occs] == [
            (6, 9, 30), (7, 9, 30), (8, 9, 30), (9, 9, 30), (10, 9, 30),
        ]
        # DST began on Mar 8: the UTC hour shifts while the wall clock does not.
        assert occs[0].start.astimezone(UTC).hour == 14
        assert occs[-1].start.astimezone(UTC).hour == 13

    def test_weekly_by_day_keeps_wall_clock_across_dst(self):
        ny = ZoneInfo("America/New_York")
        rule = parse_rule("FREQ=WEEKLY;BYDAY=MO,FR")
        start = datetime(2026, 3, 6, 9, 30, tzinfo=ny)  # Friday before the change
        occs = expand(
            rule, start, start + timedelta(hours=1),
            datetime(2026, 3, 1, tzinfo=ny), datetime(2026, 3, 17, tzinfo=ny),
        )
        assert [o.start.day for o in occs] == [6, 9, 13, 16]
        assert {(o.start.hour, o.start.minute) for o in occs} == {(9, 30)}
        assert [o.start.astimezone(UTC).hour for o in occs] == [14, 13, 13, 13]
        assert all(o.end - o.start == timedelta(hours=1) for o in occs)

    def test_monthly_keeps_wall_clock_across_dst(self):
        ny = ZoneInfo("America/New_York")
        rule = parse_rule("FREQ=MONTHLY")
        start = datetime(2026, 2, 15, 9, 30, tzinfo=ny)
        occs = expand(
            rule, start, start + timedelta(hours=1),
            datetime(2026, 2, 1, tzinfo=ny), datetime(2026, 4, 1, tzinfo=ny),
        )
        assert [(o.start.month, o.start.day, o.start.hour, o.start.minute) for o in occs] == [
            (2, 15, 9, 30), (3, 15, 9, 30),
        ]
        assert [o.start.astimezone(UTC).hour for o in occs] == [14, 13]

    def test_output_is_deterministic(self):
        rule = parse_rule("FREQ=WEEKLY;BYDAY=MO,TH;COUNT=10")
        args = (rule, d(2026, 2, 2, 7), d(2026, 2, 2, 8), d(2026, 1, 1), d(2027, 1, 1))
        assert expand(*args) == expand(*args)


@pytest.mark.parametrize(
    "text",
    [
        "FREQ=DAILY;INTERVAL=2",
        "FREQ=WEEKLY;BYDAY=SU,WE,MO",
        "FREQ=MONTHLY;BYMONTHDAY=29",
        "FREQ=YEARLY",
    ],
)
def test_strictly_ascending(text):
    rule = parse_rule(text)
    occs = expand(rule, d(2026, 1, 29, 6), d(2026, 1, 29, 7), d(2025, 1, 1), d(2031, 1, 1))
    assert occs
    assert all(a.start < b.start for a, b in zip(occs, occs[1:]))
