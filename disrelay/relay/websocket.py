"""WebSocket implementation of Subscriber, backed by an asyncio queue.

The hub only ever calls ``offer``, which enqueues without waiting. A drain
task (``run``) owned by the WebSocket endpoint sends queued events with a
per-send timeout. A full queue or a failed/timed-out send ends the
subscription.
"""

from __future__ import annotations

import asyncio
import json
import threading
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from fastapi import WebSocket

    from disrelay.core.models import RelayEvent

log = structlog.get_logger()


def _on_loop(loop: asyncio.AbstractEventLoop) -> bool:
    try:
        return asyncio.get_running_loop() is loop
    except RuntimeError:
        return False


class WebSocketSubscriber:
    """Subscriber that forwards events to one WebSocket client.

    Raw datagrams go out as binary frames, decoded summaries as JSON text
    frames. Must be created on the event loop that serves the connection;
    ``offer`` and ``close`` may be called from any thread.
    """

    def __init__(self, websocket: WebSocket, max_queue_size: int = 1000,
                 send_timeout: float = 5.0) -> None:
        self._ws = websocket
        self._loop = asyncio.get_running_loop()
        # Unbounded so the close sentinel always fits; the bound is enforced in offer().
        self._queue: asyncio.Queue[RelayEvent | None] = asyncio.Queue()
        self._max_queue_size = max_queue_size
        self._send_timeout = send_timeout
        self._closed = False
        # Accepted events not yet taken by run(), including ones still
        # scheduled onto the loop from another thread.
        self._pending = 0
        self._lock = threading.Lock()
        client = websocket.client
        self.name = f"{client.host}:{client.port}" if client else "unknown"

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        with self._lock:
            return self._pending

    def offer(self, event: RelayEvent) -> bool:
        with self._lock:
            if self._closed:
                return False
            accepted = self._pending < self._max_queue_size
            if accepted:
                self._pending += 1
        if not accepted:
            log.warning("subscriber_queue_full", subscriber=self.name,
                        max_size=self._max_queue_size)
            return False
        self._put(event)
        return True

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._put(None)

    def _put(self, item: RelayEvent | None) -> None:
        if _on_loop(self._loop):
            self._queue.put_nowait(item)
        else:
            self._loop.call_soon_threadsafe(self._queue.put_nowait, item)

    async def _send(self, event: RelayEvent) -> None:
        if event.raw is not None:
            await self._ws.send_bytes(event.raw)
        if event.summary is not None:
            await self._ws.send_text(json.dumps(event.summary, separators=(",", ":")))

    async def run(self) -> None:
        """Drain the queue into the socket until closed or a send fails."""
        while True:
            event = await self._queue.get()
            if event is None:
                break
            with self._lock:
                self._pending -= 1
            try:
                await asyncio.wait_for(self._send(event), timeout=self._send_timeout)
            except asyncio.TimeoutError:
                log.warning("subscriber_send_timeout", subscriber=self.name,
                            timeout=self._send_timeout)
                self._closed = True
                break
            except Exception:
                log.warning("subscriber_send_failed", subscriber=self.name, exc_info=True)
                self._closed = True
                break
        log.debug("subscriber_drain_stopped", subscriber=self.name,
                  pending=self._queue.qsize())
