"""Broadcaster — one serialization, many fire-and-forget deliveries.

Learn: A broadcast encodes {"type", "data"} once and sends the identical
text to every connection in the target partitions. Delivery is per
connection and best effort:

- a connection that is no longer open is skipped
- a send that raises or times out is logged at debug and skipped
- nothing a single client does can stop delivery to the others

Deliveries run concurrently, so a stalled client costs the others
nothing and the whole broadcast is bounded by one send_timeout.

The registry may still hold a connection that closed a moment ago
(deregistration happens when its receive loop notices). That's why the
open-state check and the try/except both exist.
"""

import asyncio
import json
from typing import Any, Iterable

import structlog
from starlette.websockets import WebSocketState

from orderline.realtime.registry import Role, SessionRegistry

logger = structlog.get_logger()


def encode_event(event_type: str, data: Any) -> str:
    return json.dumps({"type": event_type, "data": data})


def is_open(connection: Any) -> bool:
    """True while both sides of the WebSocket are connected."""
    return (
        getattr(connection, "client_state", None) == WebSocketState.CONNECTED
        and getattr(connection, "application_state", None) == WebSocketState.CONNECTED
    )


class Broadcaster:
    """Delivers events to role partitions of a SessionRegistry."""

    def __init__(self, registry: SessionRegistry, send_timeout: float = 5.0):
        self.registry = registry
        self.send_timeout = send_timeout

    async def deliver(self, connection: Any, text: str) -> bool:
        """Send pre-encoded text to one connection. Never raises."""
        if not is_open(connection):
            return False
        try:
            await asyncio.wait_for(connection.send_text(text), self.send_timeout)
        except Exception as e:
            logger.debug("orderline.ws.send_failed", error=repr(e))
            return False
        return True

    async def send(self, connection: Any, message: dict) -> bool:
        """Direct message to a single connection (snapshot, ack, error)."""
        return await self.deliver(connection, json.dumps(message))

    async def broadcast(
        self,
        roles: Role | str | Iterable[Role | str],
        event_type: str,
        data: Any,
    ) -> int:
        """Send one event to every open connection in `roles`.

        Returns how many connections accepted the message.
        """
        text = encode_event(event_type, data)
        results = await asyncio.gather(
            *(self.deliver(c, text) for c in self.registry.members(roles))
        )
        delivered = sum(results)
        logger.debug(
            "orderline.ws.broadcast",
            event_type=event_type,
            delivered=delivered,
        )
        return delivered
