"""Relay hub: fans decoded events out to every connected subscriber.

Delivery is best effort: an event is offered to each subscriber registered
at the time ``publish`` runs, in publish order. A subscriber that refuses an
offer (full queue) or raises is removed and the fan-out carries on. There is
no acknowledgement and no backpressure towards the UDP side.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from disrelay.core.models import RelayEvent
    from disrelay.core.stats import ServerStats
    from disrelay.relay.base import Subscriber

log = structlog.get_logger()


@dataclass(frozen=True)
class SubscriberHandle:
    id: int
    name: str = ""


class RelayHub:
    """Owns the subscriber set. Safe to use from several threads.

    The lock is held for the whole fan-out. Offers are non-blocking, so this
    stays cheap, and once ``unsubscribe`` returns no later ``publish`` will
    reach that subscriber.
    """

    def __init__(self, stats: ServerStats | None = None) -> None:
        self._lock = threading.Lock()
        self._subscribers: dict[int, Subscriber] = {}
        self._ids = itertools.count(1)
        self._stats = stats

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self, subscriber: Subscriber) -> SubscriberHandle:
        with self._lock:
            handle = SubscriberHandle(id=next(self._ids), name=subscriber.name)
            self._subscribers[handle.id] = subscriber
            count = len(self._subscribers)
        if self._stats is not None:
            self._stats.record_subscribed()
        log.info("subscriber_added", subscriber=handle.name, id=handle.id,
                 subscribers=count)
        return handle

    def unsubscribe(self, handle: SubscriberHandle) -> bool:
        """Remove a subscriber. Returns False if it was already gone."""
        with self._lock:
            removed = self._subscribers.pop(handle.id, None) is not None
            count = len(self._subscribers)
        if removed:
            if self._stats is not None:
                self._stats.record_unsubscribed()
            log.info("subscriber_removed", subscriber=handle.name, id=handle.id,
                     subscribers=count)
        return removed

    def publish(self, event: RelayEvent) -> int:
        """Offer ``event`` to every subscriber. Returns how many accepted it."""
        delivered = 0
        dropped: list[tuple[int, Subscriber]] = []
        with self._lock:
            if not self._subscribers:
                return 0
            for sub_id, subscriber in self._subscribers.items():
                try:
                    accepted = subscriber.offer(event)
                except Exception:
                    log.warning("subscriber_offer_failed", subscriber=subscriber.name,
                                id=sub_id, exc_info=True)
                    accepted = False
                if accepted:
                    delivered += 1
                else:
                    dropped.append((sub_id, subscriber))
            for sub_id, _ in dropped:
                del self._subscribers[sub_id]
            count = len(self._subscribers)

        for sub_id, subscriber in dropped:
            self._drop(sub_id, subscriber, count)

        if self._stats is not None:
            self._stats.record_published()
        log.debug("event_published", delivered=delivered, dropped=len(dropped))
        return delivered

    def _drop(self, sub_id: int, subscriber: Subscriber, remaining: int) -> None:
        if self._stats is not None:
            self._stats.record_unsubscribed(dropped=True)
        log.warning("subscriber_dropped", subscriber=subscriber.name, id=sub_id,
                    subscribers=remaining)
        try:
            subscriber.close()
        except Exception:
            log.warning("subscriber_close_failed", subscriber=subscriber.name,
                        id=sub_id, exc_info=True)
