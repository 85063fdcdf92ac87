"""Order read API routes.

Learn: Orders are only written over the WebSocket, so HTTP is read-only.
The ?view= filter reuses build_snapshot, which keeps the REST listing
and what a freshly connected socket client sees in lockstep.
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from orderline.db.engine import get_db
from orderline.realtime.snapshot import build_snapshot
from orderline.schemas.order import OrderRead
from orderline.services.order_service import OrderService

router = APIRouter()


def _svc(db: AsyncSession = Depends(get_db)) -> OrderService:
    return OrderService(db)


@router.get("/orders", response_model=list[OrderRead])
async def list_orders(
    view: str = Query("all", pattern=r"^(all|chef|waiter)$"),
    svc: OrderService = Depends(_svc),
):
    """All orders, newest first. view=chef|waiter applies the snapshot filter."""
    orders = await svc.list_orders()
    if view != "all":
        orders = build_snapshot(orders, view)
    return orders


@router.get("/orders/{order_id}", response_model=OrderRead)
async def get_order(order_id: int, svc: OrderService = Depends(_svc)):
    order = await svc.get_order(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order
