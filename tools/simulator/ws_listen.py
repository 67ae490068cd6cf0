#!/usr/bin/env python3
"""disrelay WebSocket listener.

Connects to a relay's ``/ws`` endpoint and prints one line per Entity State
update. Binary frames are decoded locally; JSON text frames are printed
from the relay's own summary.

Usage:
    python -m tools.simulator.ws_listen --url ws://localhost:8080/ws
    python -m tools.simulator.ws_listen --url ws://relay:8080/ws --count 100 --json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

import websockets
from websockets.exceptions import WebSocketException

from disrelay.core.codec import decode_entity_state
from disrelay.core.errors import DecodeError
from disrelay.core.processor import enrich


def format_summary(summary: dict) -> str:
    eid = summary["entity_id"]
    pos = summary["position"]
    ori = summary["orientation"]
    damage = summary["appearance"].get("damage", "-")
    line = (f"{eid['site']}:{eid['application']}:{eid['entity']:<6} "
            f"{summary['marking']:<11} "
            f"lat={pos['lat']:9.5f} lon={pos['lon']:10.5f} alt={pos['alt']:8.1f} "
            f"hdg={ori['heading']:5.1f} pitch={ori['pitch']:5.1f} roll={ori['roll']:6.1f} "
            f"damage={damage}")
    for ap in summary["articulation"]:
        if "entity_id" in ap:
            attached = ap["entity_id"]
            line += f" attached={attached['site']}:{attached['application']}:{attached['entity']}"
    return line


def summarize_frame(message: bytes | str) -> dict | None:
    if isinstance(message, str):
        return json.loads(message)
    try:
        pdu = decode_entity_state(message)
    except DecodeError as e:
        print(f"undecodable frame ({len(message)} bytes): {e}", file=sys.stderr)
        return None
    return enrich(pdu).to_summary()


async def listen(args: argparse.Namespace) -> int:
    received = 0
    async with websockets.connect(args.url, max_size=None) as ws:
        print(f"Connected to {args.url}", file=sys.stderr)
        async for message in ws:
            summary = summarize_frame(message)
            if summary is None:
                continue
            received += 1
            if args.json:
                print(json.dumps(summary))
            else:
                print(format_summary(summary))
            if args.count and received >= args.count:
                break
    return received


def main():
    parser = argparse.ArgumentParser(description="disrelay WebSocket listener")
    parser.add_argument("--url", default="ws://localhost:8080/ws", help="Relay WebSocket URL")
    parser.add_argument("--count", type=int, default=0,
                        help="Stop after this many updates (default: run forever)")
    parser.add_argument("--json", action="store_true", help="Print full JSON summaries")
    args = parser.parse_args()

    try:
        received = asyncio.run(listen(args))
    except KeyboardInterrupt:
        return
    except (OSError, WebSocketException) as e:
        print(f"Connection failed: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"Received {received} updates", file=sys.stderr)


if __name__ == "__main__":
    main()
