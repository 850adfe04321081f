"""
Hearth — Broadcast Hub.

Pushes change notifications ("grocery_item_created", "chore_completed", ...)
to every connected realtime client of the app. Delivery is best-effort and
at-most-once: a message is a hint to re-fetch, the store stays authoritative.

The hub lives on the event loop. ``register``, ``unregister`` and
``broadcast`` are plain synchronous methods with no await inside, so each
runs to completion before any other hub call or session step can interleave.
``broadcast`` never waits on a subscriber: a full buffer drops the message
for that subscriber only.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

SEND_BUFFER_SIZE = 16


# ---------------------------------------------------------------------------
# Wire contract
# ---------------------------------------------------------------------------


class ChangeMessage(BaseModel):
    """A realtime change notification.

    JSON example:
    {"type": "grocery_item_created", "entity": "grocery_item",
     "action": "created", "id": 42, "extra": {"list_id": 1}}

    ``type`` is always derived from entity and action; ``id`` is omitted
    from the wire when zero and ``extra`` when empty.
    """

    model_config = ConfigDict(frozen=True)

    type: str = ""
    entity: str
    action: str
    id: int = 0
    extra: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def derive_type(cls, data: Any) -> Any:
        if isinstance(data, dict) and "entity" in data and "action" in data:
            data = {**data, "type": f"{data['entity']}_{data['action']}"}
        return data

    def to_json(self) -> str:
        exclude = set()
        if not self.id:
            exclude.add("id")
        if not self.extra:
            exclude.add("extra")
        return self.model_dump_json(exclude=exclude)


def new_message(
    entity: str, action: str, id: int = 0, extra: dict[str, Any] | None = None
) -> ChangeMessage:
    return ChangeMessage(entity=entity, action=action, id=id, extra=extra or {})


# ---------------------------------------------------------------------------
# Per-subscriber buffer
# ---------------------------------------------------------------------------

_CLOSED = None


class SendBuffer:
    """Bounded FIFO of serialized messages between the hub and one session.

    The hub is the only producer and the only closer; the session is the only
    consumer. After ``close`` the consumer still drains what was queued, then
    ``get`` returns None.
    """

    def __init__(self, maxsize: int = SEND_BUFFER_SIZE) -> None:
        if maxsize < 1:
            raise ValueError(f"maxsize must be >= 1, got {maxsize}")
        self._maxsize = maxsize
        # Unbounded underneath so the close marker always fits; the bound is
        # enforced in offer().
        self._queue: asyncio.Queue[str | None] = asyncio.Queue()
        self._pending = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __len__(self) -> int:
        return self._pending

    def offer(self, data: str) -> bool:
        """Queue ``data`` without waiting; return False if full or closed."""
        if self._closed or self._pending >= self._maxsize:
            return False
        self._pending += 1
        self._queue.put_nowait(data)
        return True

    def close(self) -> bool:
        """Close the buffer; return False if it was already closed."""
        if self._closed:
            return False
        self._closed = True
        self._queue.put_nowait(_CLOSED)
        return True

    async def get(self) -> str | None:
        """Wait for the next message; None once closed and drained."""
        item = await self._queue.get()
        if item is _CLOSED:
            # Leave the marker for any later get().
            self._queue.put_nowait(_CLOSED)
            return None
        self._pending -= 1
        return item


class Subscriber:
    """Identity of one realtime connection, owning its send buffer."""

    def __init__(self, buffer_size: int = SEND_BUFFER_SIZE) -> None:
        self.buffer = SendBuffer(buffer_size)

    def __repr__(self) -> str:
        return f"Subscriber(0x{id(self):x})"


# ---------------------------------------------------------------------------
# Hub
# ---------------------------------------------------------------------------


class Hub:
    """Set of live subscribers with non-blocking fan-out."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._subscribers: set[Subscriber] = set()
        self._logger = logger if logger is not None else logging.getLogger(__name__)

    def register(self, subscriber: Subscriber) -> None:
        """Add a subscriber. Registering the same one twice is a programming error."""
        if subscriber in self._subscribers:
            raise ValueError(f"{subscriber!r} is already registered")
        if subscriber.buffer.closed:
            raise ValueError(f"{subscriber!r} was already unregistered")
        self._subscribers.add(subscriber)
        self._logger.debug("Registered %r (%d live)", subscriber, len(self._subscribers))

    def unregister(self, subscriber: Subscriber) -> None:
        """Remove a subscriber and close its buffer. A second call is a no-op."""
        if subscriber not in self._subscribers:
            return
        self._subscribers.discard(subscriber)
        subscriber.buffer.close()
        self._logger.debug("Unregistered %r (%d live)", subscriber, len(self._subscribers))

    def broadcast(self, message: ChangeMessage) -> int:
        """Offer ``message`` to every subscriber; return how many accepted it."""
        try:
            data = message.to_json()
        except Exception as exc:
            self._logger.error("Failed to serialize %s broadcast: %s", message.type, exc)
            return 0

        delivered = 0
        for subscriber in self._subscribers:
            if subscriber.buffer.offer(data):
                delivered += 1
            else:
                self._logger.debug("Dropped %s for %r: buffer full", message.type, subscriber)
        return delivered

    def count(self) -> int:
        return len(self._subscribers)

    def close(self) -> None:
        """Unregister everyone; each session sees its buffer close and exits."""
        for subscriber in tuple(self._subscribers):
            self.unregister(subscriber)
