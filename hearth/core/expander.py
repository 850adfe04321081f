"""
Hearth — Occurrence Expander.

Turns a recurrence rule plus its base event into the concrete occurrences
that intersect a query window.

All arithmetic happens in the tzinfo of the event start: adding days keeps
the wall-clock time, so a 10:00 event stays at 10:00 across DST changes.
Naive and aware datetimes must not be mixed, except that the rule's UNTIL
(always UTC) is read as naive UTC for naive events.

No I/O: this module only transforms data.
"""

from __future__ import annotations

import calendar
from datetime import MAXYEAR, datetime, timedelta
from itertools import islice
from typing import Iterator, Optional

from hearth.core.recurrence import Freq, RecurrenceRule
from hearth.data.models import Occurrence

# Hard ceiling on raw steps walked per expansion, skipped slots included.
MAX_ITERATIONS = 10_000

# A generator yields None for a slot the rule skips (a month without the
# target day, a non-leap year for a Feb 29 start) so the ceiling still applies.
_Slot = Optional[datetime]


def expand(
    rule: RecurrenceRule,
    event_start: datetime,
    event_end: datetime,
    range_start: datetime,
    range_end: datetime,
) -> list[Occurrence]:
    """Return occurrences overlapping [range_start, range_end), ascending.

    COUNT is applied to the raw sequence produced by the rule, before the
    window filter, so occurrences before range_start still use up the count.
    Every occurrence keeps the base event's duration. Hitting the iteration
    ceiling or the end of the representable calendar ends the sequence.
    """
    duration = event_end - event_start
    until = _until_for(rule, event_start)
    results: list[Occurrence] = []
    emitted = 0

    for occ_start in islice(_candidates(rule, event_start), MAX_ITERATIONS):
        if occ_start is None:
            continue
        if until is not None and occ_start > until:
            break
        if occ_start >= range_end:
            break
        emitted += 1
        if rule.count and emitted > rule.count:
            break

        try:
            occ_end = occ_start + duration
        except OverflowError:
            break
        if occ_end > range_start:
            results.append(Occurrence(start=occ_start, end=occ_end))

    return results


def _until_for(rule: RecurrenceRule, event_start: datetime) -> datetime | None:
    if rule.until is None:
        return None
    if event_start.tzinfo is None and rule.until.tzinfo is not None:
        return rule.until.replace(tzinfo=None)
    return rule.until


# ---------------------------------------------------------------------------
# Candidate generators — the raw, unbounded sequence for each frequency
# ---------------------------------------------------------------------------


def _candidates(rule: RecurrenceRule, start: datetime) -> Iterator[_Slot]:
    if rule.freq is Freq.DAILY:
        return _step_days(start, rule.interval)
    if rule.freq is Freq.WEEKLY:
        if rule.by_day:
            return _weekly_by_day(rule, start)
        return _step_days(start, 7 * rule.interval)
    if rule.freq is Freq.MONTHLY:
        return _monthly(rule, start)
    return _yearly(rule, start)


def _step_days(start: datetime, days: int) -> Iterator[_Slot]:
    current = start
    while True:
        yield current
        try:
            current = current + timedelta(days=days)
        except OverflowError:
            return


def _weekly_by_day(rule: RecurrenceRule, start: datetime) -> Iterator[_Slot]:
    """Walk the listed weekdays week by week, anchored on the start's Monday.

    Days are visited in calendar order within each week so the sequence stays
    ascending whatever order BYDAY lists them in. Candidates strictly before
    the event start are skipped; the start's own weekday is eligible.
    """
    offsets = sorted({day.offset for day in rule.by_day})
    monday = start.date() - timedelta(days=start.weekday())

    while True:
        for offset in offsets:
            try:
                day = monday + timedelta(days=offset)
            except OverflowError:
                return
            candidate = start.replace(year=day.year, month=day.month, day=day.day)
            if candidate >= start:
                yield candidate
        try:
            monday += timedelta(days=7 * rule.interval)
        except OverflowError:
            return


def _monthly(rule: RecurrenceRule, start: datetime) -> Iterator[_Slot]:
    """Yield the start, then the target day every ``interval`` months.

    Months too short for the target day are skipped entirely, never clamped.
    """
    yield start

    target = rule.by_month_day or start.day
    month_index = start.year * 12 + start.month - 1
    while True:
        month_index += rule.interval
        year, month0 = divmod(month_index, 12)
        if year > MAXYEAR:
            return
        if target > calendar.monthrange(year, month0 + 1)[1]:
            yield None
            continue
        yield start.replace(year=year, month=month0 + 1, day=target)


def _yearly(rule: RecurrenceRule, start: datetime) -> Iterator[_Slot]:
    """Yield the start every ``interval`` years; a Feb 29 start only lands on leap years."""
    leap_day = start.month == 2 and start.day == 29
    year = start.year
    while year <= MAXYEAR:
        if leap_day and not calendar.isleap(year):
            yield None
        else:
            yield start.replace(year=year)
        year += rule.interval
