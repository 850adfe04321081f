"""
Hearth — Subscriber Session.

Runs one realtime connection: registers a subscriber with the hub, writes
every buffered message to the connection under a per-message deadline, and
reads (then discards) whatever the client sends so a closed peer is noticed.

The session ends when its buffer is closed (hub eviction or peer gone), when
a write fails or times out, or when its task is cancelled. In every case the
subscriber is unregistered and the connection closed exactly once.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from hearth.core.hub import SEND_BUFFER_SIZE, Hub, Subscriber
from hearth.ports.transport_port import ConnectionPort

DEFAULT_WRITE_TIMEOUT = 5.0


class SubscriberSession:
    """One connection's send loop, tied to the lifetime of its task."""

    def __init__(
        self,
        hub: Hub,
        connection: ConnectionPort,
        write_timeout: float = DEFAULT_WRITE_TIMEOUT,
        buffer_size: int = SEND_BUFFER_SIZE,
        logger: logging.Logger | None = None,
    ) -> None:
        self._hub = hub
        self._connection = connection
        self._write_timeout = write_timeout
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self.subscriber = Subscriber(buffer_size)

    async def run(self) -> None:
        """Serve the connection until it closes; re-raises cancellation."""
        self._hub.register(self.subscriber)
        reader = asyncio.create_task(self._read_loop())
        try:
            await self._write_loop()
        finally:
            self._hub.unregister(self.subscriber)
            reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reader
            await self._close_connection()

    async def _write_loop(self) -> None:
        buffer = self.subscriber.buffer
        while True:
            data = await buffer.get()
            if data is None:
                return
            try:
                await asyncio.wait_for(
                    self._connection.send_text(data), timeout=self._write_timeout
                )
            except asyncio.TimeoutError:
                self._logger.warning(
                    "Write to %r timed out after %.1fs", self.subscriber, self._write_timeout,
                )
                return
            except Exception as exc:
                self._logger.warning("Write to %r failed: %s", self.subscriber, exc)
                return

    async def _read_loop(self) -> None:
        while True:
            try:
                text = await self._connection.receive_text()
            except Exception as exc:
                self._logger.debug("Connection for %r closed: %s", self.subscriber, exc)
                self._hub.unregister(self.subscriber)
                return
            self._logger.debug(
                "Discarding %d-char inbound message from %r", len(text), self.subscriber,
            )

    async def _close_connection(self) -> None:
        try:
            await self._connection.close()
        except Exception as exc:
            self._logger.debug("Closing connection for %r failed: %s", self.subscriber, exc)
