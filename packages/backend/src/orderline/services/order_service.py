"""Order service — the durable order store behind the kitchen hub.

Learn: Service layer separates business logic from transport. The
WebSocket hub and the HTTP routes both call this class; neither touches
SQLAlchemy directly. Three operations matter to the hub:

1. create_order — always PENDING, attached to the default account
2. update_status — any status value, no transition graph
3. list_orders — newest first, the input to every snapshot
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from orderline.config import settings
from orderline.db.models import Order, OrderStatus, User


class OrderNotFoundError(Exception):
    pass


class OrderService:
    """Business logic for kitchen orders."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # ─── Accounts ───────────────────────────────────────

    async def get_or_create_account(self, email: str) -> User:
        """Upsert an account by email.

        Learn: Orders arriving over the socket have no identity, so they
        all hang off one well-known account that is created on first use.
        """
        result = await self.db.execute(select(User).where(User.email == email))
        user = result.scalars().first()
        if user is None:
            user = User(email=email)
            self.db.add(user)
            await self.db.flush()
        return user

    # ─── Orders ─────────────────────────────────────────

    async def create_order(
        self,
        table_number: int,
        items: list[str],
        *,
        account_email: Optional[str] = None,
    ) -> Order:
        """Persist a new order. Status is always PENDING on creation."""
        user = await self.get_or_create_account(
            account_email or settings.default_account_email
        )
        order = Order(
            table_number=table_number,
            items=list(items),
            status=OrderStatus.PENDING.value,
            user=user,
        )
        self.db.add(order)
        await self.db.commit()
        return order

    async def update_status(self, order_id: int, status: OrderStatus) -> Order:
        order = await self.get_order(order_id)
        if order is None:
            raise OrderNotFoundError(f"Order {order_id} not found")

        order.status = OrderStatus(status).value
        await self.db.commit()
        return order

    async def get_order(self, order_id: int) -> Order | None:
        result = await self.db.execute(
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.user))
        )
        return result.scalars().first()

    async def list_orders(self) -> list[Order]:
        """All orders, newest first (id breaks ties on equal timestamps)."""
        result = await self.db.execute(
            select(Order)
            .options(selectinload(Order.user))
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return list(result.scalars().all())
