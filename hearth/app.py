"""
Hearth — Core wiring.

Builds the hub, rate limiter, sent ledger, reminder scheduler and janitor
from settings plus the collaborators the host application supplies (feed,
registry, preferences, transport), and starts/stops the background workers
together.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from hearth.adapters.memory_ledger import InMemorySentLedger
from hearth.core.hub import Hub
from hearth.core.janitor import Janitor
from hearth.core.rate_limiter import RateLimiter
from hearth.core.reminder_scheduler import ReminderScheduler
from hearth.core.session import SubscriberSession
from hearth.ports.clock_port import Clock, utc_now

if TYPE_CHECKING:
    from hearth.config import Settings
    from hearth.ports.ledger_port import SentLedger
    from hearth.ports.reminder_port import ReminderFeed
    from hearth.ports.subscriber_port import PreferenceStore, SubscriberRegistry
    from hearth.ports.transport_port import ConnectionPort, Transport

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper()), format=LOG_FORMAT)


class HouseholdCore:
    """The realtime and reminder core of one app process."""

    def __init__(
        self,
        feed: ReminderFeed,
        registry: SubscriberRegistry,
        preferences: PreferenceStore,
        transport: Transport,
        ledger: SentLedger | None = None,
        clock: Clock = utc_now,
        config: Settings | None = None,
    ) -> None:
        if config is None:
            from hearth.config import settings as config

        self.config = config
        configure_logging(config.LOG_LEVEL)
        self.hub = Hub(logger=logging.getLogger("hearth.hub"))
        self.rate_limiter = RateLimiter()
        self.ledger = ledger if ledger is not None else InMemorySentLedger(clock=clock)
        self.scheduler = ReminderScheduler(
            feed,
            registry,
            preferences,
            transport,
            self.ledger,
            interval=config.SCHEDULER_INTERVAL_SECONDS,
            clock=clock,
            rate_limiter=self.rate_limiter,
            grocery_limit=config.GROCERY_NOTIFY_LIMIT,
            grocery_window=config.GROCERY_NOTIFY_WINDOW_SECONDS,
            logger=logging.getLogger("hearth.push"),
        )
        self.janitor = Janitor(
            self.rate_limiter,
            self.ledger,
            interval=config.JANITOR_INTERVAL_SECONDS,
            retention=timedelta(days=config.SENT_RETENTION_DAYS),
            clock=clock,
            logger=logging.getLogger("hearth.janitor"),
        )

    def new_session(self, connection: ConnectionPort) -> SubscriberSession:
        """Wrap an accepted realtime connection; the caller awaits ``run()``."""
        return SubscriberSession(
            self.hub,
            connection,
            write_timeout=self.config.WRITE_TIMEOUT_SECONDS,
            buffer_size=self.config.SEND_BUFFER_SIZE,
            logger=logging.getLogger("hearth.session"),
        )

    async def start(self) -> None:
        self.scheduler.start()
        self.janitor.start()

    async def stop(self) -> None:
        await self.scheduler.stop()
        await self.janitor.stop()
        self.hub.close()
