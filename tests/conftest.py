"""Shared test fixtures."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

import disrelay.main as main_module
from disrelay.config import AppConfig
from disrelay.core.codec import encode_entity_state
from disrelay.core.models import (
    EntityID,
    EntityStatePdu,
    EntityType,
    Marking,
    Vector3Double,
)
from disrelay.core.processor import PduProcessor
from disrelay.core.stats import ServerStats
from disrelay.relay.hub import RelayHub

# 45°N 0°E on the WGS-84 ellipsoid.
REFERENCE_LOCATION = Vector3Double(4517590.87, 0.0, 4487348.41)


def build_pdu(**overrides) -> EntityStatePdu:
    """A valid surface-platform ESPDU with sensible defaults."""
    fields = {
        "entity_id": EntityID(1, 2, 3),
        "force_id": 1,
        "entity_type": EntityType(kind=1, domain=3, country=225, category=1),
        "location": REFERENCE_LOCATION,
        "marking": Marking(character_set=1, characters=b"ALPHA" + bytes(6), text="ALPHA"),
    }
    fields.update(overrides)
    return EntityStatePdu(**fields)


@pytest.fixture
def espdu():
    """Factory returning encoded ESPDU bytes; keyword args override PDU fields."""
    def _make(**overrides) -> bytes:
        return encode_entity_state(build_pdu(**overrides))
    return _make


@pytest.fixture(autouse=True)
def _init_server():
    """Initialize server singletons for every test."""
    config = AppConfig()
    config.logging.level = "warning"
    main_module._setup_logging(config)

    stats = ServerStats(active_window_seconds=config.limits.active_window_seconds)
    hub = RelayHub(stats=stats)
    processor = PduProcessor(hub=hub, stats=stats, relay_mode=config.relay.mode)

    # Patch module-level singletons
    main_module._config = config
    main_module._stats = stats
    main_module._hub = hub
    main_module._processor = processor

    yield

    # Cleanup
    main_module._config = None
    main_module._stats = None
    main_module._hub = None
    main_module._processor = None


@pytest.fixture
async def client():
    from disrelay.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
