"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance with its own KitchenHub on app.state. Lifespan manages startup
and shutdown (Redis, database engine). Tests build a fresh app per test
and swap the hub for one backed by an in-memory store.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from orderline import __version__
from orderline.api import api_router
from orderline.config import settings
from orderline.realtime.hub import KitchenHub

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. Redis is optional — without it the rate limiter and the
    event mirror switch themselves off, the kitchen keeps working.
    """
    logger.info(
        "orderline.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
    )

    from orderline.realtime.pubsub import close_redis, init_redis
    try:
        await init_redis()
        logger.info("orderline.redis_connected", url=settings.redis_url)
    except Exception as e:
        logger.warning("orderline.redis_unavailable", error=str(e))

    yield

    # Shutdown
    logger.info("orderline.shutdown", connections=app.state.hub.registry.counts())

    await close_redis()

    from orderline.db.engine import engine
    await engine.dispose()


def create_app(hub: Optional[KitchenHub] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Orderline",
        description="Real-time kitchen order relay for waiters and chefs",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.hub = hub or KitchenHub()

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → RateLimit → CORS → handler

    from orderline.middleware.rate_limit import RateLimitMiddleware
    from orderline.middleware.request_id import RequestIdMiddleware
    from orderline.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RateLimitMiddleware, rpm=settings.rate_limit_rpm)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)

    # Mount API routes
    app.include_router(api_router)

    # Mount WebSocket route
    from orderline.realtime.websocket import router as ws_router
    app.include_router(ws_router)

    return app


# Default app instance (used by uvicorn: orderline.main:app)
app = create_app()
