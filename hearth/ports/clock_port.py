"""Clock port — the only source of "now" for the core.

Any zero-argument callable returning an aware UTC datetime will do; tests
pass a lambda over a fixed moment.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
