"""Kitchen hub — registry, broadcaster, router and order store wired together.

Learn: One hub exists per server lifetime (created in create_app, kept on
app.state). It owns the only shared mutable state, the session registry,
so there is no module-level connection list anywhere.

Event flow:

    waiter ──new_order──▶ store.create_order ──▶ chefs      (new_order)
                                              └▶ sender     (order_confirmation)
    chef ──update_status─▶ store.update_status ─▶ waiters + chefs (status_update)

Failure policy (kept asymmetric on purpose, see DESIGN.md):
- new_order that can't be stored or validated → "error" to the sender
- update_status that fails for any reason    → logged, nobody told
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncContextManager, Callable, Optional

import structlog

from orderline.config import settings
from orderline.db.engine import session_scope
from orderline.events.types import (
    ERROR,
    INITIAL_ORDERS,
    MIRROR_ORDER_CREATED,
    MIRROR_ORDER_STATUS_CHANGED,
    NEW_ORDER,
    ORDER_CONFIRMATION,
    ORDER_CREATED,
    STATUS_UPDATE,
)
from orderline.realtime.broadcaster import Broadcaster
from orderline.realtime.pubsub import publish_event
from orderline.realtime.registry import Role, SessionRegistry
from orderline.realtime.router import (
    InvalidCommandError,
    MessageRouter,
    NewOrderCommand,
    UpdateStatusCommand,
)
from orderline.realtime.snapshot import build_snapshot
from orderline.schemas.order import order_payload
from orderline.services.order_service import OrderNotFoundError, OrderService

logger = structlog.get_logger()

StoreScope = Callable[[], AsyncContextManager[Any]]


@asynccontextmanager
async def database_store():
    """Default store scope: one OrderService on a fresh session."""
    async with session_scope() as session:
        yield OrderService(session)


class KitchenHub:
    """Connection bookkeeping and order event handlers."""

    def __init__(
        self,
        store_scope: StoreScope = database_store,
        send_timeout: Optional[float] = None,
    ):
        self.registry = SessionRegistry()
        self.broadcaster = Broadcaster(
            self.registry,
            send_timeout=send_timeout or settings.ws_send_timeout_seconds,
        )
        self.store_scope = store_scope

        self.router = MessageRouter()
        self.router.on(NewOrderCommand, self.handle_new_order)
        self.router.on(UpdateStatusCommand, self.handle_update_status)
        self.router.on_invalid(self.handle_invalid_command)

    # ─── Lifecycle ──────────────────────────────────────

    async def open(self, connection: Any, role: Optional[str]) -> bool:
        """Register a freshly accepted connection and send its snapshot.

        Returns whether the connection joined a partition (False for a
        missing or unknown role; it still gets the waiter-view snapshot).
        """
        registered = self.registry.register(connection, role)
        await self.send_snapshot(connection, role)
        return registered

    def close(self, connection: Any, role: Optional[str]) -> None:
        self.registry.deregister(connection, role)

    async def send_snapshot(self, connection: Any, role: Optional[str]) -> bool:
        """Read every order fresh from the store and send the role's view."""
        try:
            async with self.store_scope() as store:
                orders = await store.list_orders()
                data = [order_payload(o) for o in build_snapshot(orders, role)]
        except Exception as e:
            logger.error("orderline.ws.snapshot_failed", role=role, error=str(e))
            return False
        return await self.broadcaster.send(
            connection, {"type": INITIAL_ORDERS, "data": data}
        )

    async def handle_message(self, connection: Any, raw: str | bytes) -> bool:
        return await self.router.dispatch(connection, raw)

    # ─── Handlers ───────────────────────────────────────

    async def handle_new_order(self, connection: Any, command: NewOrderCommand) -> None:
        try:
            async with self.store_scope() as store:
                order = await store.create_order(command.table_number, command.items)
                payload = order_payload(order)
        except Exception as e:
            logger.error("orderline.order.create_failed", error=str(e))
            await self._send_error(connection, "Failed to create order")
            return

        logger.info(
            "orderline.order.created",
            order_id=payload["id"],
            table_number=payload["tableNumber"],
        )
        await self.broadcaster.broadcast(Role.CHEF, ORDER_CREATED, payload)
        await self.broadcaster.send(
            connection,
            {
                "type": ORDER_CONFIRMATION,
                "message": f"Order #{payload['id']} sent to kitchen",
            },
        )
        await publish_event(MIRROR_ORDER_CREATED, {"order": payload})

    async def handle_update_status(
        self, connection: Any, command: UpdateStatusCommand
    ) -> None:
        try:
            async with self.store_scope() as store:
                order = await store.update_status(command.order_id, command.status)
                payload = order_payload(order)
        except OrderNotFoundError as e:
            logger.warning("orderline.order.status_update_failed", error=str(e))
            return
        except Exception as e:
            logger.error(
                "orderline.order.status_update_failed",
                order_id=command.order_id,
                error=str(e),
            )
            return

        logger.info(
            "orderline.order.status_changed",
            order_id=payload["id"],
            status=payload["status"],
        )
        data = {"orderId": payload["id"], "status": payload["status"], "order": payload}
        await self.broadcaster.broadcast((Role.WAITER, Role.CHEF), STATUS_UPDATE, data)
        await publish_event(MIRROR_ORDER_STATUS_CHANGED, data)

    async def handle_invalid_command(
        self, connection: Any, error: InvalidCommandError
    ) -> None:
        # Only new_order answers; a bad update_status stays silent.
        if error.message_type == NEW_ORDER:
            await self._send_error(connection, "Failed to create order")

    async def _send_error(self, connection: Any, message: str) -> None:
        await self.broadcaster.send(connection, {"type": ERROR, "message": message})
