"""Sent ledger port — idempotent record of reminders already emitted.

A row is keyed by (household, notification type, reference id, lead time).
Implementations must be safe for concurrent use.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class SentLedger(Protocol):
    """Abstract dedup ledger used by the reminder scheduler and the janitor."""

    async def was_sent(
        self, household_id: int, notification_type: str, reference_id: str, lead_minutes: int
    ) -> bool: ...

    async def record_sent(
        self, household_id: int, notification_type: str, reference_id: str, lead_minutes: int
    ) -> None:
        """Insert the row; a duplicate is silently ignored."""
        ...

    async def cleanup(self, before: datetime) -> int:
        """Delete rows recorded before ``before``; return how many went."""
        ...
