"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and its
dependencies are reachable. Postgres is required for orders to work;
Redis only feeds the rate limiter and the event mirror, so a missing
Redis reports "unavailable" rather than an error.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from orderline import __version__
from orderline.db.engine import get_db

router = APIRouter()


@router.get("/health")
async def health_check(db: AsyncSession = Depends(get_db)):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    # Check Postgres
    try:
        await db.execute(text("SELECT 1"))
        checks["postgres"] = "ok"
    except Exception as e:
        checks["postgres"] = f"error: {e}"

    # Check Redis (optional)
    from orderline.realtime.pubsub import get_redis

    try:
        await get_redis().ping()
        checks["redis"] = "ok"
    except RuntimeError:
        checks["redis"] = "unavailable"
    except Exception as e:
        checks["redis"] = f"error: {e}"

    status = "healthy" if checks["postgres"] == "ok" else "degraded"

    return {"status": status, **checks}
