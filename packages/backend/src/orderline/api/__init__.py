"""API route aggregation.

All routers registered here get mounted in main.py under /api/v1.

Learn: There is no auth layer. Connections and requests are trusted,
the same way the WebSocket trusts the caller-supplied role label.
"""

from fastapi import APIRouter

from orderline.api.health import router as health_router
from orderline.api.orders import router as orders_router
from orderline.api.stats import router as stats_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(health_router, tags=["health"])
api_router.include_router(orders_router, tags=["orders"])
api_router.include_router(stats_router, tags=["realtime"])
