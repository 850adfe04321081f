"""In-memory sent ledger — implements SentLedger.

Keeps one row per (household, type, reference, lead time) stamped with the
time it was recorded. Rows vanish on restart, so a reminder whose window is
still open may be sent once more after a restart.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from hearth.ports.clock_port import Clock, utc_now

logger = logging.getLogger(__name__)

_Key = tuple[int, str, str, int]


class InMemorySentLedger:
    """In-memory implementation of SentLedger."""

    def __init__(self, clock: Clock = utc_now) -> None:
        self._clock = clock
        self._lock = asyncio.Lock()
        self._rows: dict[_Key, datetime] = {}

    async def was_sent(
        self, household_id: int, notification_type: str, reference_id: str, lead_minutes: int
    ) -> bool:
        async with self._lock:
            return (household_id, notification_type, reference_id, lead_minutes) in self._rows

    async def record_sent(
        self, household_id: int, notification_type: str, reference_id: str, lead_minutes: int
    ) -> None:
        key = (household_id, notification_type, reference_id, lead_minutes)
        async with self._lock:
            self._rows.setdefault(key, self._clock())

    async def cleanup(self, before: datetime) -> int:
        async with self._lock:
            stale = [key for key, sent_at in self._rows.items() if sent_at < before]
            for key in stale:
                del self._rows[key]
        if stale:
            logger.debug("Removed %d sent-notification rows older than %s", len(stale), before)
        return len(stale)

    def __len__(self) -> int:
        return len(self._rows)
