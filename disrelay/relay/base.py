"""Subscriber interface (port) for the relay hub."""

from __future__ import annotations

from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from disrelay.core.models import RelayEvent


class Subscriber(Protocol):
    """Port: one live consumer of relayed events.

    ``offer`` must not block. Returning False (or raising) tells the hub
    the subscriber cannot keep up and should be dropped.
    """

    name: str

    def offer(self, event: RelayEvent) -> bool: ...

    def close(self) -> None: ...
