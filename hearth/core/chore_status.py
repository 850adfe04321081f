"""
Hearth — Chore Status.

Decides whether a chore is pending, overdue, completed for its current cycle,
or not yet due, by expanding its recurrence rule from the day it was created.

Never raises: a malformed rule degrades to one-off semantics.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from hearth.core.expander import expand
from hearth.core.recurrence import ParseError, RecurrenceRule, parse_rule
from hearth.data.models import Task, TaskStatus

logger = logging.getLogger(__name__)

# Chores are expanded as one-hour events; only the start matters.
_NOMINAL_DURATION = timedelta(hours=1)


def start_of_day(moment: datetime) -> datetime:
    """Midnight of ``moment``'s date, in its own tzinfo."""
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def _one_off_status(last_completion: datetime | None) -> tuple[TaskStatus, None]:
    if last_completion is not None:
        return TaskStatus.COMPLETED, None
    return TaskStatus.PENDING, None


def _parse_task_rule(task: Task) -> RecurrenceRule | None:
    try:
        return parse_rule(task.recurrence_rule)
    except ParseError as exc:
        logger.warning(
            "Invalid recurrence rule on chore %s (%r): %s",
            task.id, task.recurrence_rule, exc,
        )
        return None


def compute_status(
    task: Task,
    last_completion: datetime | None,
    today: datetime,
) -> tuple[TaskStatus, date | None]:
    """Return (status, due date) for a chore as of ``today``.

    The due date is the date of the latest occurrence starting before the end
    of today. A completion on or after that date marks the cycle completed;
    otherwise the chore is overdue when that date is before today.
    """
    today = start_of_day(today)

    if not task.recurrence_rule:
        return _one_off_status(last_completion)

    rule = _parse_task_rule(task)
    if rule is None:
        return _one_off_status(last_completion)

    occurrences = expand(
        rule,
        task.created_at,
        task.created_at + _NOMINAL_DURATION,
        task.created_at,
        today + timedelta(hours=48),
    )
    if not occurrences:
        return TaskStatus.NOT_DUE, None

    end_of_today = today + timedelta(hours=24)
    current_due: date | None = None
    for occ in reversed(occurrences):
        if occ.start < end_of_today:
            current_due = occ.start.date()
            break

    if current_due is None:
        return TaskStatus.NOT_DUE, None

    if last_completion is not None and last_completion.date() >= current_due:
        return TaskStatus.COMPLETED, current_due

    if current_due < today.date():
        return TaskStatus.OVERDUE, current_due

    return TaskStatus.PENDING, current_due


def is_due_on_date(task: Task, day: datetime) -> bool:
    """Check whether a chore has an occurrence on ``day``'s date.

    One-off chores are always due until completed; an unparseable rule is
    never due.
    """
    if not task.recurrence_rule:
        return True

    rule = _parse_task_rule(task)
    if rule is None:
        return False

    day_start = start_of_day(day)
    occurrences = expand(
        rule,
        task.created_at,
        task.created_at + _NOMINAL_DURATION,
        day_start,
        day_start + timedelta(hours=24),
    )
    return len(occurrences) > 0
