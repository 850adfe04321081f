"""Shared test fixtures and configuration.

Sets deterministic environment variables before any hearth import so
hearth.config never picks up a developer's .env, and provides fake
collaborators for the reminder scheduler.
"""

import os

# Patch env vars BEFORE any hearth imports
os.environ.setdefault("SCHEDULER_INTERVAL_SECONDS", "60")
os.environ.setdefault("WRITE_TIMEOUT_SECONDS", "5")
os.environ.setdefault("SEND_BUFFER_SIZE", "16")
os.environ.setdefault("SENT_RETENTION_DAYS", "7")
os.environ.setdefault("LOG_LEVEL", "INFO")

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from hearth.data.models import Target


class FakeClock:
    """Settable clock for code that takes a ``clock`` callable."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 2, 3, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def targets():
    return [
        Target(user_id=1, endpoint="https://push.example/a", keys={"p256dh": "k1", "auth": "a1"}),
        Target(user_id=2, endpoint="https://push.example/b", keys={"p256dh": "k2", "auth": "a2"}),
    ]


@pytest.fixture
def registry(targets):
    """SubscriberRegistry with one household (10) holding two targets."""
    reg = AsyncMock()
    reg.list_households.return_value = [10]
    reg.list_targets.return_value = targets
    return reg


@pytest.fixture
def preferences():
    prefs = AsyncMock()
    prefs.is_enabled.return_value = True
    return prefs


@pytest.fixture
def transport():
    return AsyncMock()


@pytest.fixture
def feed():
    f = AsyncMock()
    f.upcoming_with_reminders.return_value = []
    f.list_chores_for_household.return_value = []
    return f
