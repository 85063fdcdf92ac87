"""Orderline — real-time kitchen order relay.

Waiters send orders, chefs see them live and push status changes back,
and every client that connects gets a fresh snapshot for its role.
"""

__version__ = "0.1.0"
