"""Tests for ServerStats and active entity tracking."""

from __future__ import annotations

import time

from disrelay.core.stats import ServerStats


def test_initial_stats():
    stats = ServerStats()
    snap = stats.snapshot()
    assert snap["datagrams_received"] == 0
    assert snap["pdus_decoded"] == 0
    assert snap["rejected_by_reason"] == {}
    assert snap["subscribers"] == {"connected": 0, "total": 0, "dropped": 0}
    assert snap["active_entities"]["total"] == 0
    assert snap["active_entities"]["by_domain"] == {}


def test_record_datagrams():
    stats = ServerStats()
    stats.record_datagram(144)
    stats.record_datagram(160)

    snap = stats.snapshot()
    assert snap["datagrams_received"] == 2
    assert snap["bytes_received"] == 304


def test_record_decoded_entities():
    stats = ServerStats()
    stats.record_decoded("1:1:1", "land", "TANK1")
    stats.record_decoded("1:1:2", "air", "EAGLE")
    stats.record_decoded("1:1:3", "air")

    snap = stats.snapshot()
    assert snap["pdus_decoded"] == 3
    assert snap["active_entities"]["total"] == 3
    assert snap["active_entities"]["by_domain"] == {"land": 1, "air": 2}


def test_entity_domain_updates():
    """An entity that reports a different domain is counted under the latest one."""
    stats = ServerStats()
    stats.record_decoded("1:1:1", "land")
    stats.record_decoded("1:1:1", "surface")

    snap = stats.snapshot()
    assert snap["pdus_decoded"] == 2
    assert snap["active_entities"]["total"] == 1
    assert snap["active_entities"]["by_domain"] == {"surface": 1}


def test_stale_entities_pruned():
    """Entities older than the active window should be pruned from stats."""
    stats = ServerStats(active_window_seconds=0.1)
    stats.record_decoded("1:1:1", "land")

    # Should be active immediately
    snap = stats.snapshot()
    assert snap["active_entities"]["total"] == 1

    # Wait for the window to expire
    time.sleep(0.15)

    snap = stats.snapshot()
    assert snap["active_entities"]["total"] == 0
    # Counters are cumulative and unaffected by pruning
    assert snap["pdus_decoded"] == 1


def test_rejected_by_reason():
    stats = ServerStats()
    stats.record_rejected("too_short")
    stats.record_rejected("too_short")
    stats.record_rejected("unsupported_version")
    stats.record_filtered()

    snap = stats.snapshot()
    assert snap["pdus_rejected"] == 3
    assert snap["rejected_by_reason"] == {"too_short": 2, "unsupported_version": 1}
    assert snap["pdus_filtered"] == 1


def test_error_counters():
    stats = ServerStats()
    stats.record_articulation_errors(2)
    stats.record_articulation_errors(1)
    stats.record_processing_error()

    snap = stats.snapshot()
    assert snap["articulation_errors"] == 3
    assert snap["processing_errors"] == 1


def test_subscriber_counters():
    stats = ServerStats()
    stats.record_subscribed()
    stats.record_subscribed()
    stats.record_subscribed()
    stats.record_unsubscribed()
    stats.record_unsubscribed(dropped=True)
    stats.record_published()

    snap = stats.snapshot()
    assert snap["subscribers"] == {"connected": 1, "total": 3, "dropped": 1}
    assert snap["events_published"] == 1


def test_unsubscribe_never_goes_negative():
    stats = ServerStats()
    stats.record_unsubscribed()
    assert stats.snapshot()["subscribers"]["connected"] == 0
