"""Server statistics and active-entity tracking.

Tracks in-memory counters and a sliding window of recently seen entities.
No framework dependencies.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass


@dataclass
class EntityActivity:
    """Tracks a single entity's recent activity."""
    last_seen: float          # time.monotonic() timestamp
    domain: str
    marking: str = ""
    pdus_received: int = 0


class ServerStats:
    """Thread-safe relay statistics with active-entity tracking.

    An entity is "active" if an Entity State PDU for it was decoded within
    ``active_window_seconds`` (default 120s). Entities are keyed by their
    ``site:application:entity`` string.
    """

    def __init__(self, active_window_seconds: float = 120.0) -> None:
        self._lock = threading.Lock()
        self._started_at = time.time()
        self._active_window = active_window_seconds

        # Counters
        self.datagrams_received: int = 0
        self.bytes_received: int = 0
        self.pdus_decoded: int = 0
        self.pdus_filtered: int = 0
        self.pdus_rejected: int = 0
        self.rejected_by_reason: dict[str, int] = {}
        self.articulation_errors: int = 0
        self.processing_errors: int = 0
        self.events_published: int = 0
        self.subscribers_connected: int = 0
        self.subscribers_total: int = 0
        self.subscribers_dropped: int = 0

        # Entity tracking: entity key → EntityActivity
        self._entities: dict[str, EntityActivity] = {}

    def record_datagram(self, size_bytes: int) -> None:
        with self._lock:
            self.datagrams_received += 1
            self.bytes_received += size_bytes

    def record_decoded(self, entity_key: str, domain: str, marking: str = "") -> None:
        """Record a successfully decoded Entity State PDU."""
        now = time.monotonic()
        with self._lock:
            self.pdus_decoded += 1
            if entity_key in self._entities:
                ent = self._entities[entity_key]
                ent.last_seen = now
                ent.domain = domain
                ent.marking = marking
                ent.pdus_received += 1
            else:
                self._entities[entity_key] = EntityActivity(
                    last_seen=now, domain=domain, marking=marking, pdus_received=1,
                )

    def record_filtered(self) -> None:
        with self._lock:
            self.pdus_filtered += 1

    def record_rejected(self, reason: str) -> None:
        with self._lock:
            self.pdus_rejected += 1
            self.rejected_by_reason[reason] = self.rejected_by_reason.get(reason, 0) + 1

    def record_articulation_errors(self, count: int) -> None:
        with self._lock:
            self.articulation_errors += count

    def record_processing_error(self) -> None:
        with self._lock:
            self.processing_errors += 1

    def record_published(self) -> None:
        with self._lock:
            self.events_published += 1

    def record_subscribed(self) -> None:
        with self._lock:
            self.subscribers_connected += 1
            self.subscribers_total += 1

    def record_unsubscribed(self, *, dropped: bool = False) -> None:
        with self._lock:
            self.subscribers_connected = max(0, self.subscribers_connected - 1)
            if dropped:
                self.subscribers_dropped += 1

    def _prune_stale_entities(self, now: float) -> None:
        """Remove entities not seen within the active window. Caller holds lock."""
        cutoff = now - self._active_window
        stale = [key for key, ent in self._entities.items() if ent.last_seen < cutoff]
        for key in stale:
            del self._entities[key]

    def snapshot(self) -> dict:
        """Return a JSON-serializable snapshot of all stats."""
        now_mono = time.monotonic()
        with self._lock:
            self._prune_stale_entities(now_mono)

            by_domain: dict[str, int] = {}
            for ent in self._entities.values():
                by_domain[ent.domain] = by_domain.get(ent.domain, 0) + 1

            return {
                "uptime_seconds": round(time.time() - self._started_at, 1),
                "datagrams_received": self.datagrams_received,
                "bytes_received": self.bytes_received,
                "pdus_decoded": self.pdus_decoded,
                "pdus_filtered": self.pdus_filtered,
                "pdus_rejected": self.pdus_rejected,
                "rejected_by_reason": dict(self.rejected_by_reason),
                "articulation_errors": self.articulation_errors,
                "processing_errors": self.processing_errors,
                "events_published": self.events_published,
                "subscribers": {
                    "connected": self.subscribers_connected,
                    "total": self.subscribers_total,
                    "dropped": self.subscribers_dropped,
                },
                "active_entities": {
                    "total": len(self._entities),
                    "by_domain": by_domain,
                    "window_seconds": self._active_window,
                },
            }
