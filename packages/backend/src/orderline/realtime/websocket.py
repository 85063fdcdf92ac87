"""WebSocket endpoint — the per-connection lifecycle.

Learn: Each client connects to /ws?role=chef (or waiter). The handler:
1. Accepts the handshake (no auth: the role label is trusted)
2. Registers with the hub and sends the initial_orders snapshot
3. Reads frames one at a time, each fully handled before the next
4. Deregisters on disconnect or error, whatever the reason

Connecting → Open → Closed. There is no reconnect state: a client that
comes back is a brand-new connection and gets a brand-new snapshot.
"""

import uuid

import structlog
from fastapi import APIRouter, WebSocket
from starlette.websockets import WebSocketState

logger = structlog.get_logger()
router = APIRouter()


@router.websocket("/ws")
async def kitchen_websocket(websocket: WebSocket):
    """WebSocket endpoint for waiters and chefs."""
    hub = websocket.app.state.hub
    role = websocket.query_params.get("role")
    log = logger.bind(conn_id=uuid.uuid4().hex[:8], role=role)

    await websocket.accept()
    try:
        # ── Connecting → Open ───────────────────────────────
        registered = await hub.open(websocket, role)
        log.info("orderline.ws.connected", registered=registered)

        # ── Open ────────────────────────────────────────────
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            await hub.handle_message(websocket, raw)
    except Exception as e:
        log.warning("orderline.ws.connection_error", error=str(e))
    finally:
        # ── Open → Closed ───────────────────────────────────
        hub.close(websocket, role)
        log.info("orderline.ws.disconnected")
        if websocket.client_state == WebSocketState.CONNECTED:
            await websocket.close()
