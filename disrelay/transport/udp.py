"""UDP listener: hands each received datagram to the processor.

Decoding is synchronous and fast, so datagrams are processed inline in
``datagram_received``; there is no internal queue.
"""

from __future__ import annotations

import asyncio
import ipaddress
import socket
import struct
from typing import TYPE_CHECKING

import structlog

from disrelay.core.models import RawDatagram

if TYPE_CHECKING:
    from disrelay.config import UdpConfig
    from disrelay.core.processor import PduProcessor

log = structlog.get_logger()


def is_multicast(address: str) -> bool:
    """True for IPv4 addresses in 224.0.0.0/4."""
    try:
        return ipaddress.ip_address(address).is_multicast
    except ValueError:
        return False


class DisDatagramProtocol(asyncio.DatagramProtocol):
    """asyncio protocol feeding datagrams into a PduProcessor."""

    def __init__(self, processor: PduProcessor) -> None:
        self._processor = processor
        self.transport: asyncio.DatagramTransport | None = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self.transport = transport  # type: ignore[assignment]

    def datagram_received(self, data: bytes, addr: tuple) -> None:
        datagram = RawDatagram(data=bytes(data), address=addr[0], port=addr[1])
        try:
            self._processor.process_datagram(datagram)
        except Exception:
            # process_datagram already guards itself; this keeps the endpoint alive regardless.
            log.error("datagram_handler_failed", address=addr[0], exc_info=True)

    def error_received(self, exc: Exception) -> None:
        log.error("udp_socket_error", error=str(exc))

    def connection_lost(self, exc: Exception | None) -> None:
        if exc is not None:
            log.error("udp_connection_lost", error=str(exc))
        else:
            log.info("udp_listener_closed")


def _make_socket(config: UdpConfig) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
    sock.bind((config.local_address, config.port))

    if is_multicast(config.address):
        log.info("multicast_join", group=config.address)
        mreq = struct.pack("4s4s", socket.inet_aton(config.address),
                           socket.inet_aton(config.local_address))
        sock.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, mreq)

    sock.setblocking(False)
    return sock


async def start_udp_listener(
    config: UdpConfig, processor: PduProcessor,
) -> tuple[asyncio.DatagramTransport, DisDatagramProtocol]:
    """Bind the DIS port (joining the multicast group if needed) and start receiving."""
    loop = asyncio.get_running_loop()
    sock = _make_socket(config)
    transport, protocol = await loop.create_datagram_endpoint(
        lambda: DisDatagramProtocol(processor), sock=sock,
    )
    log.info("udp_listening",
             address=config.address,
             port=config.port,
             multicast=is_multicast(config.address))
    return transport, protocol
