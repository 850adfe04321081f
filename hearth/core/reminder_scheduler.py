"""
Hearth — Reminder Scheduler.

Calendar reminders: every tick, events whose reminder time falls inside the
next tick interval are pushed to every household member who has calendar
reminders switched on.

Chore summary: on the first top-of-hour tick of each day, one push listing
the chores due today.

Grocery notifications: pushed on demand when an item is added, to everyone in
the household except the person who added it.

Calendar reminders and chore summaries go through the sent ledger so each
(household, type, reference, lead time) is emitted at most once. Grocery
notifications are not deduplicated.

This module is provider-agnostic: it depends on the port protocols, not on a
specific store or push service.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from pydantic import BaseModel

from hearth.core.chore_status import is_due_on_date
from hearth.core.periodic import PeriodicWorker
from hearth.data.models import (
    NOTIF_CALENDAR_REMINDER,
    NOTIF_CHORE_DUE,
    NOTIF_GROCERY_ADDED,
    ReminderEvent,
)
from hearth.ports.clock_port import Clock, utc_now
from hearth.ports.transport_port import SubscriptionExpired

if TYPE_CHECKING:
    from hearth.core.rate_limiter import RateLimiter
    from hearth.ports.ledger_port import SentLedger
    from hearth.ports.reminder_port import ReminderFeed
    from hearth.ports.subscriber_port import PreferenceStore, SubscriberRegistry
    from hearth.ports.transport_port import Transport

DEFAULT_INTERVAL = 60.0


class ReminderPayload(BaseModel):
    """Push payload handed opaquely to the transport.

    JSON example:
    {"title": "Calendar Reminder", "body": "Dentist starts in 15 minutes",
     "url": "/calendar", "tag": "calendar-7"}
    """

    title: str
    body: str
    url: str
    tag: str


def calendar_reference(event_id: int) -> str:
    return f"event-{event_id}"


def chore_summary_reference(day: datetime) -> str:
    return f"chore-daily-{day.date().isoformat()}"


class ReminderScheduler:
    """Periodic reminder emitter with ledger-backed deduplication."""

    def __init__(
        self,
        feed: ReminderFeed,
        registry: SubscriberRegistry,
        preferences: PreferenceStore,
        transport: Transport,
        ledger: SentLedger,
        interval: float = DEFAULT_INTERVAL,
        clock: Clock = utc_now,
        rate_limiter: RateLimiter | None = None,
        grocery_limit: int = 10,
        grocery_window: float = 60.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self._feed = feed
        self._registry = registry
        self._preferences = preferences
        self._transport = transport
        self._ledger = ledger
        self._clock = clock
        self._rate_limiter = rate_limiter
        self._grocery_limit = grocery_limit
        self._grocery_window = grocery_window
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._worker = PeriodicWorker("reminder-scheduler", interval, self.tick, self._logger)

    # -----------------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------------

    @property
    def interval(self) -> float:
        return self._worker.interval

    @property
    def running(self) -> bool:
        return self._worker.running

    def start(self) -> None:
        self._worker.start()

    async def stop(self) -> None:
        await self._worker.stop()

    # -----------------------------------------------------------------------
    # Tick
    # -----------------------------------------------------------------------

    async def tick(self) -> None:
        """Run one pass over every household that has push targets."""
        now = self._clock()

        try:
            household_ids = await self._registry.list_households()
        except Exception as exc:
            self._logger.error("Reminder tick: listing households failed: %s", exc)
            return

        events = await self._upcoming_by_household(now)

        for household_id in household_ids:
            try:
                await self._send_calendar_reminders(household_id, events.get(household_id, []))
            except Exception as exc:
                self._logger.error(
                    "Calendar reminders failed for household %d: %s", household_id, exc,
                )
            try:
                await self._send_chore_summary(household_id, now)
            except Exception as exc:
                self._logger.error(
                    "Chore summary failed for household %d: %s", household_id, exc,
                )

    async def _upcoming_by_household(self, now: datetime) -> dict[int, list[ReminderEvent]]:
        window_end = now + timedelta(seconds=self.interval)
        try:
            events = await self._feed.upcoming_with_reminders(now, window_end)
        except Exception as exc:
            self._logger.error("Reminder tick: loading upcoming events failed: %s", exc)
            return {}

        grouped: dict[int, list[ReminderEvent]] = defaultdict(list)
        for event in events:
            grouped[event.household_id].append(event)
        return grouped

    async def _send_calendar_reminders(
        self, household_id: int, events: list[ReminderEvent]
    ) -> None:
        for event in events:
            if event.lead_minutes is None:
                continue
            lead = event.lead_minutes
            ref = calendar_reference(event.id)
            try:
                if await self._ledger.was_sent(household_id, NOTIF_CALENDAR_REMINDER, ref, lead):
                    continue

                payload = ReminderPayload(
                    title="Calendar Reminder",
                    body=f"{event.title} starts in {lead} minutes",
                    url="/calendar",
                    tag=f"calendar-{event.id}",
                )
                sent = await self._deliver(household_id, NOTIF_CALENDAR_REMINDER, payload)
                await self._ledger.record_sent(household_id, NOTIF_CALENDAR_REMINDER, ref, lead)
            except Exception as exc:
                self._logger.error(
                    "Calendar reminder for event %d in household %d failed: %s",
                    event.id, household_id, exc,
                )
                continue
            self._logger.info(
                "Calendar reminder for event %d sent to %d target(s) in household %d",
                event.id, sent, household_id,
            )

    async def _send_chore_summary(self, household_id: int, now: datetime) -> None:
        # Only the top-of-hour tick tries; the ledger keeps it to once a day.
        if now.minute != 0:
            return

        ref = chore_summary_reference(now)
        if await self._ledger.was_sent(household_id, NOTIF_CHORE_DUE, ref, 0):
            return

        chores = await self._feed.list_chores_for_household(household_id)
        due = [chore for chore in chores if is_due_on_date(chore, now)]
        if not due:
            return

        if len(due) == 1:
            body = f"Chore due today: {due[0].title}"
        else:
            body = f"You have {len(due)} chores to do today"

        payload = ReminderPayload(
            title="Chore Reminders", body=body, url="/chores", tag="chore-daily",
        )
        sent = await self._deliver(household_id, NOTIF_CHORE_DUE, payload)
        await self._ledger.record_sent(household_id, NOTIF_CHORE_DUE, ref, 0)
        self._logger.info(
            "Chore summary (%d due) sent to %d target(s) in household %d",
            len(due), sent, household_id,
        )

    # -----------------------------------------------------------------------
    # Grocery notifications (on demand)
    # -----------------------------------------------------------------------

    async def send_grocery_notification(
        self, household_id: int, exclude_user_id: int | None, item_name: str
    ) -> bool:
        """Tell the rest of the household an item was added.

        Returns False when the household is over its grocery notification
        rate limit, True once the fan-out has run.
        """
        if self._rate_limiter is not None and not self._rate_limiter.allow(
            f"grocery:{household_id}", self._grocery_limit, self._grocery_window,
        ):
            self._logger.info("Grocery notification for household %d throttled", household_id)
            return False

        payload = ReminderPayload(
            title="Grocery List Updated",
            body=f"{item_name} was added to the grocery list",
            url="/grocery",
            tag="grocery-added",
        )
        try:
            await self._deliver(
                household_id, NOTIF_GROCERY_ADDED, payload, exclude_user_id=exclude_user_id,
            )
        except Exception as exc:
            self._logger.error(
                "Grocery notification for household %d failed: %s", household_id, exc,
            )
        return True

    # -----------------------------------------------------------------------
    # Fan-out
    # -----------------------------------------------------------------------

    async def _deliver(
        self,
        household_id: int,
        notification_type: str,
        payload: ReminderPayload,
        exclude_user_id: int | None = None,
    ) -> int:
        """Send ``payload`` to every opted-in target; return how many succeeded.

        Per-target failures are logged and never abort the fan-out. Raises
        only if the household's targets cannot be listed.
        """
        targets = await self._registry.list_targets(household_id)
        body = payload.model_dump()
        sent = 0

        for target in targets:
            if exclude_user_id is not None and target.user_id == exclude_user_id:
                continue
            try:
                enabled = await self._preferences.is_enabled(
                    target.user_id, household_id, notification_type,
                )
            except Exception as exc:
                self._logger.warning(
                    "Preference lookup for user %d failed: %s", target.user_id, exc,
                )
                continue
            if not enabled:
                continue

            try:
                await self._transport.send(target, body)
            except SubscriptionExpired:
                self._logger.info("Push subscription expired, removing %s", target.endpoint)
                await self._remove_target(target.endpoint)
            except Exception as exc:
                self._logger.warning(
                    "Sending %s to user %d failed: %s", notification_type, target.user_id, exc,
                )
            else:
                sent += 1

        return sent

    async def _remove_target(self, endpoint: str) -> None:
        try:
            await self._registry.remove_by_endpoint(endpoint)
        except Exception as exc:
            self._logger.warning("Removing expired endpoint %s failed: %s", endpoint, exc)
