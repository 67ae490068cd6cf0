"""WebSocket relay endpoint.

Each connection becomes one hub subscriber for as long as it stays open.
Inbound client messages are logged and otherwise ignored.
"""

from __future__ import annotations

import anyio
import structlog
from fastapi import APIRouter, WebSocket

from disrelay.relay.websocket import WebSocketSubscriber

router = APIRouter()

log = structlog.get_logger()

# Close code sent to a client dropped for falling behind.
_CLOSE_TRY_AGAIN_LATER = 1013


async def _receive_until_disconnect(websocket: WebSocket, name: str) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return
        log.debug("client_message", subscriber=name,
                  size=len(message.get("bytes") or message.get("text") or ""))


@router.websocket("/ws")
async def relay_stream(websocket: WebSocket) -> None:
    from disrelay.main import get_config, get_hub

    config = get_config()
    hub = get_hub()
    subscriber = WebSocketSubscriber(
        websocket,
        max_queue_size=config.relay.queue_max_size,
        send_timeout=config.relay.send_timeout_seconds,
    )
    # Registered before the handshake completes so nothing published after
    # the client sees the accept is missed.
    handle = hub.subscribe(subscriber)
    drain_stopped = False
    try:
        await websocket.accept()

        async with anyio.create_task_group() as tg:
            async def drain() -> None:
                nonlocal drain_stopped
                await subscriber.run()
                drain_stopped = True
                tg.cancel_scope.cancel()

            async def receive() -> None:
                await _receive_until_disconnect(websocket, subscriber.name)
                tg.cancel_scope.cancel()

            tg.start_soon(drain)
            tg.start_soon(receive)

        if drain_stopped:
            # The client fell behind or a send failed.
            try:
                await websocket.close(code=_CLOSE_TRY_AGAIN_LATER)
            except (RuntimeError, OSError):
                log.debug("websocket_already_closed", subscriber=subscriber.name)
    finally:
        subscriber.close()
        hub.unsubscribe(handle)
