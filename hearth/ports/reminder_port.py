"""Reminder feed port — where the scheduler learns what to remind about.

Core modules depend on this protocol, never on a specific store.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from hearth.data.models import ReminderEvent, Task


class ReminderFeed(Protocol):
    """Abstract read-only view over calendar events and chores."""

    async def upcoming_with_reminders(
        self, window_start: datetime, window_end: datetime
    ) -> list[ReminderEvent]:
        """Events whose ``start - lead_minutes`` falls in [window_start, window_end)."""
        ...

    async def list_chores_for_household(self, household_id: int) -> list[Task]: ...
