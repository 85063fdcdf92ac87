"""Test fixtures — in-memory stores, a fresh app per test, HTTP and WS clients.

Learn: Two kinds of persistence are used in tests:

1. db_session — a real SQLAlchemy AsyncSession on an in-memory SQLite
   database (tables created per test). Used for OrderService and the
   HTTP routes, which go through get_db.
2. InMemoryOrderStore — a plain-Python stand-in for the order store
   contract (create_order / update_status / list_orders). The WebSocket
   hub takes a store factory, so WS scenarios run without any database.

WebSocket scenarios use Starlette's TestClient (sync); HTTP routes use
httpx's ASGITransport (async), like the rest of the suite.
"""

import itertools
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool
from starlette.websockets import WebSocketState

from orderline.db.engine import get_db
from orderline.db.models import Base, OrderStatus
from orderline.main import create_app
from orderline.realtime.hub import KitchenHub
from orderline.services.order_service import OrderNotFoundError

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

BASE_TIME = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


class InMemoryOrderStore:
    """Dict-backed order store with the same async surface as OrderService."""

    def __init__(self):
        self.orders: dict[int, SimpleNamespace] = {}
        self._ids = itertools.count(1)
        self.fail_writes = False
        self.reads = 0

    def add(self, table_number=1, items=("Soup",), status="PENDING", order_id=None):
        """Seed an order synchronously. Later orders get later timestamps."""
        oid = order_id if order_id is not None else next(self._ids)
        order = SimpleNamespace(
            id=oid,
            table_number=table_number,
            items=list(items),
            status=OrderStatus(status).value,
            created_at=BASE_TIME + timedelta(minutes=len(self.orders)),
            user=None,
        )
        self.orders[oid] = order
        return order

    @asynccontextmanager
    async def scope(self):
        yield self

    async def create_order(self, table_number, items):
        if self.fail_writes:
            raise RuntimeError("database is down")
        oid = next(self._ids)
        while oid in self.orders:
            oid = next(self._ids)
        return self.add(table_number, items, order_id=oid)

    async def update_status(self, order_id, status):
        if self.fail_writes:
            raise RuntimeError("database is down")
        order = self.orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(f"Order {order_id} not found")
        order.status = OrderStatus(status).value
        return order

    async def list_orders(self):
        self.reads += 1
        return sorted(
            self.orders.values(),
            key=lambda o: (o.created_at, o.id),
            reverse=True,
        )


class FakeConnection:
    """Minimal stand-in for a Starlette WebSocket on the send side."""

    def __init__(self, name="conn", fail=False, open_=True):
        self.name = name
        self.fail = fail
        self.sent: list[str] = []
        state = WebSocketState.CONNECTED if open_ else WebSocketState.DISCONNECTED
        self.client_state = state
        self.application_state = state

    async def send_text(self, text):
        if self.fail:
            raise RuntimeError("socket went away")
        self.sent.append(text)

    def __repr__(self):
        return f"<FakeConnection {self.name}>"


@pytest.fixture()
def make_conn():
    """Factory for fake send-side connections."""
    return FakeConnection


@pytest.fixture()
def store():
    return InMemoryOrderStore()


@pytest.fixture()
def hub(store):
    return KitchenHub(store_scope=store.scope, send_timeout=2.0)


@pytest.fixture()
def app(hub):
    """A fresh app per test, wired to the in-memory store."""
    application = create_app(hub)
    yield application
    application.dependency_overrides.clear()


@pytest.fixture()
def ws_client(app):
    """Sync client for WebSocket scenarios (lifespan not started: no Redis)."""
    return TestClient(app)


@pytest_asyncio.fixture()
async def db_session():
    """Per-test session on a throwaway in-memory SQLite database.

    StaticPool keeps the single connection alive, otherwise every new
    connection would see a brand-new empty database.
    """
    engine = create_async_engine(TEST_DB_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session = AsyncSession(bind=engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()
        await engine.dispose()


@pytest_asyncio.fixture()
async def client(app, db_session):
    """HTTP client with the app's get_db overridden to the test session."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
