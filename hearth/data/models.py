"""
Hearth — Data Models.

Plain values exchanged between the core and the rest of the household app.
Nothing here is persisted by the core; the store and the HTTP layer own the
durable copies.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


# Notification types, also used as preference keys.
NOTIF_CALENDAR_REMINDER = "calendar_reminder"
NOTIF_CHORE_DUE = "chore_due"
NOTIF_GROCERY_ADDED = "grocery_added"


class TaskStatus(str, Enum):
    """Where a chore stands relative to its current cycle."""

    PENDING = "pending"
    COMPLETED = "completed"
    OVERDUE = "overdue"
    NOT_DUE = "not_due"


@dataclass(frozen=True)
class Occurrence:
    """One concrete interval produced by expanding a recurrence rule."""

    start: datetime
    end: datetime


@dataclass
class Task:
    """A chore, with or without a recurrence rule.

    Completions are recorded elsewhere; the evaluator receives the latest one
    as a separate argument.
    """

    id: int
    title: str
    created_at: datetime
    recurrence_rule: str = ""          # e.g. "FREQ=WEEKLY;BYDAY=MO"
    household_id: int | None = None


@dataclass
class ReminderEvent:
    """A timed calendar event that carries a reminder lead time."""

    id: int
    title: str
    start: datetime
    lead_minutes: int | None            # None when no reminder is set
    household_id: int


@dataclass
class Target:
    """An addressable push destination for one user's device."""

    user_id: int
    endpoint: str
    keys: dict[str, str] = field(default_factory=dict)   # p256dh / auth
