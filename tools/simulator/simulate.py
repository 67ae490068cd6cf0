#!/usr/bin/env python3
"""disrelay Entity State traffic simulator.

Generates moving DIS v6 entities and sends their Entity State PDUs over UDP,
the way a simulation federate would.

Usage:
    # 5 entities around Monterey for 60 seconds on the default multicast group
    python -m tools.simulator.simulate --entities 5 --duration 60

    # Stress test: 200 entities at 20 Hz to a unicast relay
    python -m tools.simulator.simulate --target 127.0.0.1:62040 --entities 200 --rate 20

    # Mix in 10% invalid datagrams and print relay stats at the end
    python -m tools.simulator.simulate --bad-ratio 0.1 --relay http://localhost:8080
"""

from __future__ import annotations

import argparse
import asyncio
import math
import random
import socket
import struct
import time
from dataclasses import dataclass, field

import httpx

from disrelay.core.appearance import Domain
from disrelay.core.articulation import ARTICULATED_PART, ATTACHED_PART, ENTITY_ID_PARAMETER_TYPE
from disrelay.core.codec import encode_articulation_record, encode_entity_state
from disrelay.core.geodetic import geodetic_to_ecef
from disrelay.core.models import (
    EntityID,
    EntityStatePdu,
    EntityType,
    Marking,
    PduHeader,
    Vector3Double,
    Vector3Float,
)
from disrelay.core.orientation import local_to_body
from disrelay.transport.udp import is_multicast

# Turret azimuth on articulated part class 4096.
TURRET_AZIMUTH = 4096 + 11

_SPEED_RANGE = {
    Domain.LAND: (5.0, 20.0),
    Domain.AIR: (80.0, 250.0),
    Domain.SURFACE: (3.0, 15.0),
}


@dataclass
class SimEntity:
    entity_id: EntityID
    domain: Domain
    marking: str
    lat: float
    lon: float
    alt: float
    heading: float
    speed_mps: float
    damage: int = 0
    turret_deg: float = 0.0
    carrier: EntityID | None = None
    pdus_sent: int = 0
    errors: int = 0
    velocity: tuple[float, float, float] = field(default=(0.0, 0.0, 0.0))


def move_entity(entity: SimEntity, dt_seconds: float) -> None:
    """Move an entity along its current heading, with random turns."""
    entity.heading = (entity.heading + random.uniform(-10, 10)) % 360
    low, high = _SPEED_RANGE[entity.domain]
    entity.speed_mps = max(low, min(high, entity.speed_mps + random.uniform(-1, 1)))
    entity.turret_deg = (entity.turret_deg + random.uniform(-5, 5)) % 360

    before = geodetic_to_ecef(entity.lat, entity.lon, entity.alt)

    distance_m = entity.speed_mps * dt_seconds
    heading_rad = math.radians(entity.heading)
    # Approximate: 1 degree latitude ≈ 111,000 m
    entity.lat += (distance_m * math.cos(heading_rad)) / 111_000
    entity.lon += (distance_m * math.sin(heading_rad)) / (111_000 * math.cos(math.radians(entity.lat)))

    after = geodetic_to_ecef(entity.lat, entity.lon, entity.alt)
    if dt_seconds > 0:
        entity.velocity = tuple((a - b) / dt_seconds for a, b in zip(after, before))

    # Occasional battle damage
    if entity.damage < 3 and random.random() < 0.002:
        entity.damage += 1


def make_pdu(entity: SimEntity, exercise_id: int, timestamp: int) -> EntityStatePdu:
    x, y, z = geodetic_to_ecef(entity.lat, entity.lon, entity.alt)
    pitch = 0.0 if entity.domain != Domain.AIR else random.uniform(-3, 3)
    orientation = local_to_body(entity.heading, pitch, 0.0, entity.lat, entity.lon)

    records = []
    if entity.domain == Domain.LAND:
        value = struct.pack(">f4x", math.radians(entity.turret_deg))
        records.append(encode_articulation_record(ARTICULATED_PART, TURRET_AZIMUTH, value))
    if entity.carrier is not None:
        value = struct.pack(">HHH", entity.carrier.site, entity.carrier.application,
                            entity.carrier.entity)
        records.append(encode_articulation_record(ATTACHED_PART, ENTITY_ID_PARAMETER_TYPE, value))

    # Damage lives in bits 3-4 of the appearance word for every platform domain.
    appearance = entity.damage << 3
    if entity.damage == 3:
        appearance |= 1 << 15  # flaming

    return EntityStatePdu(
        header=PduHeader(exercise_id=exercise_id, timestamp=timestamp),
        entity_id=entity.entity_id,
        force_id=1,
        entity_type=EntityType(kind=1, domain=int(entity.domain), country=225, category=1),
        linear_velocity=Vector3Float(*entity.velocity),
        location=Vector3Double(x, y, z),
        orientation=orientation,
        appearance=appearance,
        marking=Marking(text=entity.marking),
        articulation_records=tuple(records),
    )


def dis_timestamp() -> int:
    """Relative DIS timestamp: units of 3600/2^31 s past the hour, low bit 0."""
    past_hour = time.time() % 3600.0
    return (int(past_hour / 3600.0 * (1 << 31)) << 1) & 0xFFFFFFFE


def make_bad_datagram(good: bytes) -> bytes:
    """Return a datagram the relay must reject or ignore."""
    kind = random.choice(["short", "version", "type"])
    if kind == "short":
        return good[:random.randint(0, 143)]
    data = bytearray(good)
    if kind == "version":
        data[0] = random.choice([4, 5, 7])
    else:
        data[2] = random.choice([2, 3, 20])
    return bytes(data)


def make_socket(target: tuple[str, int], ttl: int) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
    if is_multicast(target[0]):
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, ttl)
    sock.setblocking(False)
    return sock


async def run_entity(
    transport: asyncio.DatagramTransport,
    entity: SimEntity,
    target: tuple[str, int],
    args: argparse.Namespace,
) -> None:
    """Simulate a single entity broadcasting its state."""
    interval = 1.0 / args.rate
    end_time = time.monotonic() + args.duration

    while time.monotonic() < end_time:
        move_entity(entity, interval)
        data = encode_entity_state(make_pdu(entity, args.exercise, dis_timestamp()))
        if args.bad_ratio and random.random() < args.bad_ratio:
            data = make_bad_datagram(data)

        try:
            transport.sendto(data, target)
            entity.pdus_sent += 1
        except OSError:
            entity.errors += 1

        await asyncio.sleep(interval)


def build_entities(args: argparse.Namespace) -> list[SimEntity]:
    center_lat, center_lon = args.center
    domains = [Domain.LAND, Domain.AIR, Domain.SURFACE]
    entities = []
    for i in range(args.entities):
        domain = domains[i % len(domains)]
        # Scatter entities within radius of center
        angle = random.uniform(0, 2 * math.pi)
        dist_km = random.uniform(0, args.radius_km)
        lat = center_lat + (dist_km / 111.0) * math.cos(angle)
        lon = center_lon + (dist_km / (111.0 * math.cos(math.radians(center_lat)))) * math.sin(angle)
        low, high = _SPEED_RANGE[domain]

        entities.append(SimEntity(
            entity_id=EntityID(args.site, args.application, i + 1),
            domain=domain,
            marking=f"{domain.name[:3]}{i + 1:04d}",
            lat=lat,
            lon=lon,
            alt=random.uniform(1000, 8000) if domain == Domain.AIR else 0.0,
            heading=random.uniform(0, 360),
            speed_mps=random.uniform(low, high),
        ))

    # Every other land entity rides on the first surface entity.
    carrier = next((e for e in entities if e.domain == Domain.SURFACE), None)
    if carrier is not None:
        for e in entities:
            if e.domain == Domain.LAND and e.entity_id.entity % 2:
                e.carrier = carrier.entity_id
    return entities


async def print_relay_stats(relay_url: str) -> None:
    try:
        async with httpx.AsyncClient(timeout=5.0) as client:
            resp = await client.get(f"{relay_url}/api/v1/stats")
    except httpx.RequestError as e:
        print(f"\nCould not reach relay at {relay_url}: {e}")
        return
    if resp.status_code != 200:
        print(f"\nRelay stats returned HTTP {resp.status_code}")
        return

    stats = resp.json()
    print("\nRelay stats:")
    print(f"  Datagrams received: {stats['datagrams_received']}")
    print(f"  PDUs decoded: {stats['pdus_decoded']}")
    print(f"  PDUs filtered: {stats['pdus_filtered']}")
    print(f"  PDUs rejected: {stats['pdus_rejected']} {stats['rejected_by_reason']}")
    print(f"  Active entities: {stats['active_entities']['total']} "
          f"{stats['active_entities']['by_domain']}")
    print(f"  Subscribers connected: {stats['subscribers']['connected']}")


async def run_simulation(args: argparse.Namespace) -> None:
    """Run the full simulation."""
    entities = build_entities(args)
    target = args.target

    print(f"Starting simulation: {args.entities} entities at {args.rate} Hz each")
    print(f"  Center: {args.center[0]:.4f}, {args.center[1]:.4f}")
    print(f"  Radius: {args.radius_km} km")
    print(f"  Duration: {args.duration}s")
    print(f"  Target: {target[0]}:{target[1]}")
    if args.bad_ratio:
        print(f"  Invalid datagram ratio: {args.bad_ratio}")
    print()

    loop = asyncio.get_running_loop()
    transport, _ = await loop.create_datagram_endpoint(
        asyncio.DatagramProtocol, sock=make_socket(target, args.ttl),
    )
    start = time.monotonic()
    try:
        await asyncio.gather(*(run_entity(transport, e, target, args) for e in entities))
    finally:
        transport.close()

    elapsed = time.monotonic() - start
    total_sent = sum(e.pdus_sent for e in entities)
    total_errors = sum(e.errors for e in entities)

    print(f"\nSimulation complete in {elapsed:.1f}s")
    print(f"  Total PDUs sent: {total_sent}")
    print(f"  Total errors: {total_errors}")
    print(f"  Throughput: {total_sent / elapsed:.1f} PDUs/sec")

    if args.relay:
        await print_relay_stats(args.relay)


def main():
    parser = argparse.ArgumentParser(description="disrelay Entity State traffic simulator")
    parser.add_argument("--target", default="239.1.2.3:62040",
                        help="Destination address:port (multicast, broadcast or unicast)")
    parser.add_argument("--entities", type=int, default=5, help="Number of simulated entities")
    parser.add_argument("--duration", type=int, default=60, help="Simulation duration in seconds")
    parser.add_argument("--rate", type=float, default=1.0, help="PDUs per second per entity")
    parser.add_argument("--center", type=str, default="36.6,-121.9",
                        help="Center lat,lon (default: Monterey Bay)")
    parser.add_argument("--radius-km", type=float, default=5.0, help="Scatter radius in km")
    parser.add_argument("--exercise", type=int, default=1, help="DIS exercise ID")
    parser.add_argument("--site", type=int, default=1, help="Entity ID site number")
    parser.add_argument("--application", type=int, default=1, help="Entity ID application number")
    parser.add_argument("--bad-ratio", type=float, default=0.0,
                        help="Fraction of datagrams replaced by invalid ones")
    parser.add_argument("--ttl", type=int, default=1, help="Multicast TTL")
    parser.add_argument("--relay", default="", help="Relay URL to query for stats afterwards")

    args = parser.parse_args()

    # Parse center and target
    lat, lon = args.center.split(",")
    args.center = (float(lat), float(lon))
    host, port = args.target.rsplit(":", 1)
    args.target = (host, int(port))

    asyncio.run(run_simulation(args))


if __name__ == "__main__":
    main()
