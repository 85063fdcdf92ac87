"""Event type constants.

Learn: Centralizing message and event types as constants prevents typos
and makes it easy to discover everything that crosses the wire.
"""

# ─── Inbound (client → server) ───────────────────────────

NEW_ORDER = "new_order"
UPDATE_STATUS = "update_status"

# ─── Outbound (server → client) ──────────────────────────

INITIAL_ORDERS = "initial_orders"
ORDER_CREATED = "new_order"  # same label as the inbound command
ORDER_CONFIRMATION = "order_confirmation"
STATUS_UPDATE = "status_update"
ERROR = "error"

# ─── Redis mirror (server → external consumers) ──────────

MIRROR_ORDER_CREATED = "order.created"
MIRROR_ORDER_STATUS_CHANGED = "order.status_changed"
