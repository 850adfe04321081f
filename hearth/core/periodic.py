"""
Hearth — Periodic Worker.

A single background task that awaits a callback every ``interval`` seconds.
The first call happens one interval after ``start``. A failing callback is
logged and the loop carries on; cancellation is the only way out.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Awaitable, Callable


class PeriodicWorker:
    """Start/stop wrapper around one ticking asyncio task."""

    def __init__(
        self,
        name: str,
        interval: float,
        callback: Callable[[], Awaitable[None]],
        logger: logging.Logger | None = None,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self.name = name
        self._interval = interval
        self._callback = callback
        self._logger = logger if logger is not None else logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._task: asyncio.Task | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        with self._lock:
            return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Spawn the loop on the running event loop; a no-op if already running."""
        with self._lock:
            if self._task is not None and not self._task.done():
                self._logger.warning("%s already running", self.name)
                return
            self._task = asyncio.get_running_loop().create_task(
                self._run(), name=self.name,
            )
        self._logger.info("%s started (every %.0fs)", self.name, self._interval)

    async def stop(self) -> None:
        """Cancel the loop and wait for it to exit. Safe to call when stopped."""
        with self._lock:
            task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        self._logger.info("%s stopped", self.name)

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self._callback()
            except Exception:
                self._logger.exception("%s tick failed", self.name)
