"""
Hearth — Rate Limiter.

Fixed-window request counter per key (typically a client IP or a household).
The first call in a window opens it; once the window has expired the next
call starts a fresh one rather than sliding. Safe to share between threads.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable


@dataclass
class _Entry:
    count: int
    expires_at: float


class RateLimiter:
    """In-memory fixed-window limiter.

    ``clock`` returns seconds on a monotonic scale; windows are in seconds.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    def allow(self, key: str, limit: int, window: float) -> bool:
        """Count one call for ``key``; True while the window's count is within ``limit``."""
        with self._lock:
            now = self._clock()
            entry = self._entries.get(key)
            if entry is None or now > entry.expires_at:
                self._entries[key] = _Entry(count=1, expires_at=now + window)
                return True
            entry.count += 1
            return entry.count <= limit

    def cleanup(self) -> int:
        """Drop every entry whose window has expired; return how many went."""
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if now > entry.expires_at]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
