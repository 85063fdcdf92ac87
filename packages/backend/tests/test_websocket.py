"""End-to-end WebSocket scenarios over /ws.

Learn: Every connection receives initial_orders first, and that message
is only sent after registration. So reading it is how a test knows a
client is fully "Open" before anyone else starts sending.

Absence of a message can't be awaited, so "nothing was sent" is checked
by sending a follow-up and asserting it is the next thing received.
"""

from unittest.mock import AsyncMock

import pytest
from starlette.websockets import WebSocketDisconnect


NEW_ORDER = {"type": "new_order", "order": {"tableNumber": 5, "items": ["Soup", "Bread"]}}


def _open(ws):
    msg = ws.receive_json()
    assert msg["type"] == "initial_orders"
    return msg["data"]


def test_new_order_scenario(ws_client):
    """Chef C1 and waiter W1 connect; W1 orders; C1 sees it, W1 gets an ack."""
    with ws_client.websocket_connect("/ws?role=chef") as c1, \
            ws_client.websocket_connect("/ws?role=waiter") as w1:
        _open(c1)
        _open(w1)

        w1.send_json(NEW_ORDER)

        event = c1.receive_json()
        assert event["type"] == "new_order"
        order = event["data"]
        assert order["tableNumber"] == 5
        assert order["items"] == ["Soup", "Bread"]
        assert order["status"] == "PENDING"
        assert {"id", "createdAt"} <= order.keys()

        ack = w1.receive_json()
        assert ack["type"] == "order_confirmation"
        assert f"#{order['id']}" in ack["message"]


def test_new_order_reaches_every_chef(ws_client):
    with ws_client.websocket_connect("/ws?role=chef") as c1, \
            ws_client.websocket_connect("/ws?role=chef") as c2, \
            ws_client.websocket_connect("/ws?role=waiter") as w1:
        for ws in (c1, c2, w1):
            _open(ws)

        w1.send_json(NEW_ORDER)

        first, second = c1.receive_json(), c2.receive_json()
        assert first == second
        assert w1.receive_json()["type"] == "order_confirmation"


def test_update_status_scenario(ws_client, store):
    """C1 marks pre-existing order 7 READY; chefs and waiters all see it."""
    store.add(table_number=3, items=["Pasta"], order_id=7)

    with ws_client.websocket_connect("/ws?role=chef") as c1, \
            ws_client.websocket_connect("/ws?role=waiter") as w1, \
            ws_client.websocket_connect("/ws?role=waiter") as w2:
        for ws in (c1, w1, w2):
            _open(ws)

        c1.send_json({"type": "update_status", "orderId": 7, "status": "READY"})

        for ws in (c1, w1, w2):
            msg = ws.receive_json()
            assert msg["type"] == "status_update"
            assert msg["data"]["orderId"] == 7
            assert msg["data"]["status"] == "READY"
            assert msg["data"]["order"]["items"] == ["Pasta"]

    assert store.orders[7].status == "READY"


def test_malformed_json_is_ignored_and_connection_survives(ws_client):
    with ws_client.websocket_connect("/ws?role=waiter") as w1:
        _open(w1)

        w1.send_text("this is {not json")
        w1.send_text('["an", "array"]')
        w1.send_json({"type": "ping"})
        w1.send_json(NEW_ORDER)

        # The first reply is the ack for the valid order, nothing before it
        assert w1.receive_json()["type"] == "order_confirmation"


def test_unknown_or_missing_role_gets_waiter_snapshot_and_no_broadcasts(ws_client, store, hub):
    store.add(table_number=1, status="READY")
    store.add(table_number=2, status="DELIVERED")

    with ws_client.websocket_connect("/ws?role=manager") as stranger, \
            ws_client.websocket_connect("/ws") as anonymous, \
            ws_client.websocket_connect("/ws?role=chef") as chef, \
            ws_client.websocket_connect("/ws?role=waiter") as waiter:
        for ws in (stranger, anonymous):
            assert [o["tableNumber"] for o in _open(ws)] == [1]
        _open(chef)
        _open(waiter)

        assert hub.registry.counts() == {"waiter": 1, "chef": 1}

        waiter.send_json(NEW_ORDER)
        new_id = chef.receive_json()["data"]["id"]
        assert waiter.receive_json()["type"] == "order_confirmation"
        chef.send_json({"type": "update_status", "orderId": new_id, "status": "PREPARING"})
        assert chef.receive_json()["type"] == "status_update"
        assert waiter.receive_json()["type"] == "status_update"

        # Had the stranger been in a partition, those broadcasts would come first
        stranger.send_json({"type": "new_order", "order": {"tableNumber": 8, "items": []}})
        assert stranger.receive_json()["type"] == "order_confirmation"
        assert chef.receive_json()["data"]["tableNumber"] == 8


def test_invalid_table_number_gets_error_reply(ws_client, store):
    with ws_client.websocket_connect("/ws?role=chef") as chef, \
            ws_client.websocket_connect("/ws?role=waiter") as waiter:
        _open(chef)
        _open(waiter)

        waiter.send_json({"type": "new_order", "order": {"tableNumber": "five", "items": ["Soup"]}})
        assert waiter.receive_json() == {"type": "error", "message": "Failed to create order"}

        waiter.send_json({"type": "new_order", "order": {"tableNumber": "3", "items": ["Soup"]}})
        assert chef.receive_json()["data"]["tableNumber"] == 3
        assert waiter.receive_json()["type"] == "order_confirmation"

    assert [o.table_number for o in store.orders.values()] == [3]


def test_store_failure_on_new_order_errors_sender(ws_client, store):
    with ws_client.websocket_connect("/ws?role=waiter") as waiter:
        _open(waiter)
        store.fail_writes = True

        waiter.send_json(NEW_ORDER)

        assert waiter.receive_json() == {"type": "error", "message": "Failed to create order"}


def test_update_status_failures_are_silent(ws_client, store):
    store.add(order_id=1, status="PENDING")

    with ws_client.websocket_connect("/ws?role=chef") as chef:
        _open(chef)

        chef.send_json({"type": "update_status", "orderId": 99, "status": "READY"})
        chef.send_json({"type": "update_status", "orderId": 1, "status": "BURNT"})
        chef.send_json({"type": "update_status", "orderId": "1", "status": "PREPARING"})

        msg = chef.receive_json()
        assert msg["type"] == "status_update"
        assert msg["data"]["status"] == "PREPARING"


def test_disconnect_deregisters(ws_client, hub):
    with ws_client.websocket_connect("/ws?role=chef") as chef:
        _open(chef)
        assert hub.registry.counts()["chef"] == 1

    assert hub.registry.counts()["chef"] == 0


def test_connection_that_fails_while_opening_is_deregistered(ws_client, hub):
    """Registration happens before the snapshot; a failure in between still cleans up."""
    hub.send_snapshot = AsyncMock(side_effect=RuntimeError("snapshot aborted"))

    with ws_client.websocket_connect("/ws?role=chef") as chef:
        with pytest.raises(WebSocketDisconnect):
            chef.receive_json()

    assert hub.registry.counts() == {"waiter": 0, "chef": 0}


def test_reconnect_gets_fresh_snapshot(ws_client, store):
    store.add(table_number=1)

    with ws_client.websocket_connect("/ws?role=chef") as chef:
        assert len(_open(chef)) == 1

    store.add(table_number=2)

    with ws_client.websocket_connect("/ws?role=chef") as chef:
        assert [o["tableNumber"] for o in _open(chef)] == [2, 1]


def test_stats_endpoint_counts_live_connections(ws_client):
    with ws_client.websocket_connect("/ws?role=chef") as chef, \
            ws_client.websocket_connect("/ws?role=waiter") as w1, \
            ws_client.websocket_connect("/ws?role=waiter") as w2:
        for ws in (chef, w1, w2):
            _open(ws)

        resp = ws_client.get("/api/v1/ws/stats")
        assert resp.status_code == 200
        assert resp.json() == {"waiters": 2, "chefs": 1}


@pytest.mark.parametrize("role", ["chef", "waiter"])
def test_snapshot_filter_per_role(ws_client, store, role):
    for status in ("PENDING", "PREPARING", "READY", "DELIVERED"):
        store.add(status=status)

    with ws_client.websocket_connect(f"/ws?role={role}") as ws:
        statuses = [o["status"] for o in _open(ws)]

    expected = {
        "chef": ["PREPARING", "PENDING"],
        "waiter": ["READY", "PREPARING", "PENDING"],
    }
    assert statuses == expected[role]
