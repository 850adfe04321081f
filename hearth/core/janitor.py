"""
Hearth — Janitor.

Hourly housekeeping: forgets expired rate-limit windows and sweeps sent
ledger rows past their retention period.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from hearth.core.periodic import PeriodicWorker
from hearth.ports.clock_port import Clock, utc_now

if TYPE_CHECKING:
    from hearth.core.rate_limiter import RateLimiter
    from hearth.ports.ledger_port import SentLedger

DEFAULT_INTERVAL = 3600.0
DEFAULT_RETENTION = timedelta(days=7)


class Janitor:
    """Periodic cleanup of the rate limiter and the sent ledger."""

    def __init__(
        self,
        rate_limiter: RateLimiter,
        ledger: SentLedger,
        interval: float = DEFAULT_INTERVAL,
        retention: timedelta = DEFAULT_RETENTION,
        clock: Clock = utc_now,
        logger: logging.Logger | None = None,
    ) -> None:
        self._rate_limiter = rate_limiter
        self._ledger = ledger
        self._retention = retention
        self._clock = clock
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._worker = PeriodicWorker("janitor", interval, self.sweep, self._logger)

    def start(self) -> None:
        self._worker.start()

    async def stop(self) -> None:
        await self._worker.stop()

    async def sweep(self) -> None:
        """Run both cleanups once; a ledger failure does not skip the limiter."""
        expired = self._rate_limiter.cleanup()
        try:
            removed = await self._ledger.cleanup(self._clock() - self._retention)
        except Exception as exc:
            self._logger.error("Sent ledger cleanup failed: %s", exc)
            removed = 0
        self._logger.debug(
            "Janitor removed %s rate-limit window(s) and %s ledger row(s)", expired, removed,
        )
