"""Snapshot builder — which orders a newly connected client sees.

Learn: Only the initial snapshot is filtered. Live broadcasts go to the
whole partition regardless, so a chef who already has an order on screen
keeps getting its updates after it moves past PREPARING ("sticky"
visibility). Re-applying this filter to broadcasts would make orders
vanish from a chef's screen the moment they are marked READY.
"""

from typing import Any, Iterable, Optional

from orderline.db.models import OrderStatus
from orderline.realtime.registry import Role, parse_role

CHEF_VISIBLE = frozenset({OrderStatus.PENDING.value, OrderStatus.PREPARING.value})


def is_visible(status: str, role: Optional[str]) -> bool:
    """Role filter: chefs see the open queue, everyone else all but DELIVERED."""
    status = OrderStatus(status).value
    if parse_role(role) is Role.CHEF:
        return status in CHEF_VISIBLE
    return status != OrderStatus.DELIVERED.value


def build_snapshot(orders: Iterable[Any], role: Optional[str]) -> list[Any]:
    """Filter orders (already newest first) down to what `role` should see.

    Order is preserved. Missing or unrecognized roles get the waiter view.
    """
    return [order for order in orders if is_visible(order.status, role)]
