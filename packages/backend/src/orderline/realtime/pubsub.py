"""Redis pub/sub — mirror of kitchen events for out-of-process consumers.

Learn: Redis pub/sub is fire-and-forget. If no one is listening, the
message is lost. That's fine: WebSocket clients are served in-process by
the hub, and this channel only exists so something outside the server
(the push-notification worker, a dashboard) can react to new orders and
status changes without speaking WebSocket.

Redis is optional. If init_redis() failed at startup, publish_event()
returns False and the hub carries on.

Channel: settings.events_channel (default "orderline:events").
"""

import json
from typing import Any, Optional

import redis.asyncio as aioredis
import structlog

from orderline.config import settings

logger = structlog.get_logger()

# Global Redis connection pool (initialized in lifespan)
_redis: Optional[aioredis.Redis] = None


async def init_redis() -> aioredis.Redis:
    """Initialize the Redis connection pool."""
    global _redis
    client = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    # Verify connection before exposing it
    await client.ping()
    _redis = client
    return _redis


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _redis
    if _redis:
        await _redis.aclose()
        _redis = None


def get_redis() -> aioredis.Redis:
    """Get the Redis connection (must be initialized first)."""
    if _redis is None:
        raise RuntimeError("Redis not initialized. Call init_redis() first.")
    return _redis


async def publish_event(event_type: str, data: dict[str, Any]) -> bool:
    """Publish an event to the mirror channel. Returns True if sent.

    Learn: Called by the hub after a successful broadcast. A Redis
    outage must never reach a kitchen client, so errors are logged
    and swallowed here.
    """
    if _redis is None:
        return False
    payload = json.dumps({"type": event_type, **data})
    try:
        await _redis.publish(settings.events_channel, payload)
    except Exception as e:
        logger.warning("orderline.redis.publish_failed", type=event_type, error=str(e))
        return False
    return True
