"""Transport ports — abstract interfaces for delivering payloads.

``Transport`` posts one push payload to one target; ``ConnectionPort`` is a
single realtime client connection fed by the broadcast hub. Core modules
depend on these protocols, never on a specific push service or socket library.
"""

from __future__ import annotations

from typing import Protocol

from hearth.data.models import Target


class TransportError(Exception):
    """Base class for failures delivering to a single target."""


class SubscriptionExpired(TransportError):
    """The target is gone for good (e.g. HTTP 410); drop it from the registry."""


class TransientError(TransportError):
    """Any other delivery failure; logged and not retried."""


class Transport(Protocol):
    """Abstract push transport used by the reminder scheduler."""

    async def send(self, target: Target, payload: dict) -> None: ...


class ConnectionPort(Protocol):
    """Abstract realtime connection used by subscriber sessions.

    ``receive_text`` raises once the peer has gone away.
    """

    async def send_text(self, data: str) -> None: ...

    async def receive_text(self) -> str: ...

    async def close(self) -> None: ...
