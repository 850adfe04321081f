"""Subscriber ports — push targets and per-user notification preferences.

Core modules depend on these protocols, never on a specific store.
"""

from __future__ import annotations

from typing import Protocol

from hearth.data.models import Target


class SubscriberRegistry(Protocol):
    """Abstract registry of push subscriptions, grouped by household."""

    async def list_households(self) -> list[int]: ...

    async def list_targets(self, household_id: int) -> list[Target]: ...

    async def remove_by_endpoint(self, endpoint: str) -> None: ...


class PreferenceStore(Protocol):
    """Abstract per-user notification switches.

    A missing row means enabled.
    """

    async def is_enabled(
        self, user_id: int, household_id: int, notification_type: str
    ) -> bool: ...
