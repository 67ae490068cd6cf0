"""Health check and monitoring endpoints."""

from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(prefix="/api/v1")


@router.get("/health")
async def health() -> dict:
    """Basic health check."""
    from disrelay.main import get_hub, get_stats

    snapshot = get_stats().snapshot()
    return {
        "status": "ok",
        "version": "0.1.0",
        "uptime_seconds": snapshot["uptime_seconds"],
        "subscribers": len(get_hub()),
        "datagrams_received": snapshot["datagrams_received"],
    }


@router.get("/stats")
async def stats() -> dict:
    """Detailed relay statistics including active entity counts.

    The ``active_entities`` section shows:
    - ``total``: entities seen in the last N seconds (configurable window)
    - ``by_domain``: the same entities grouped by entity-type domain
    - ``window_seconds``: the time window used for "active" calculation
    """
    from disrelay.main import get_stats

    return get_stats().snapshot()


@router.get("/config")
async def get_relay_config() -> dict:
    """What a WebSocket client needs to know to interpret the relay stream."""
    from disrelay.main import get_config

    config = get_config()
    return {
        "dis_protocol_version": 6,
        "udp_address": config.udp.address,
        "udp_port": config.udp.port,
        "relay_mode": config.relay.mode,
        "relay_queue_max_size": config.relay.queue_max_size,
        "websocket_path": "/ws",
    }
