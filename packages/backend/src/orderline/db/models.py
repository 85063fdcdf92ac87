"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Each class = one table. Alembic migrations in db/migrations mirror these.

Key concepts:
- Integer primary keys (order numbers are read out loud in a kitchen)
- JSONB for the item list on PostgreSQL, plain JSON elsewhere
- Status stored as a short string, validated by OrderStatus at the edges
- Python-side timestamps so ordering by created_at is stable to the microsecond
"""

import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(str, enum.Enum):
    """Kitchen lifecycle of an order.

    Learn: No transition graph is enforced. A chef can move an order
    from READY back to PREPARING, and the store accepts it.
    """

    PENDING = "PENDING"
    PREPARING = "PREPARING"
    READY = "READY"
    DELIVERED = "DELIVERED"


# JSONB on PostgreSQL, JSON on SQLite (test suite)
ItemList = JSON().with_variant(JSONB(), "postgresql")


class User(Base):
    """An account orders are placed under.

    Learn: Connections carry no identity, so every order placed over the
    WebSocket is attached to one well-known default account
    (settings.default_account_email), created on first use.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    orders: Mapped[list["Order"]] = relationship(back_populates="user")


class Order(Base):
    """A kitchen order for one table.

    Learn: Orders are created PENDING by the WebSocket hub and only ever
    mutated through a status change. createdAt ordering (newest first)
    is what every snapshot and listing is built from.
    """

    __tablename__ = "orders"
    __table_args__ = (
        Index("idx_orders_created", "created_at"),
        Index("idx_orders_status", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    table_number: Mapped[int] = mapped_column(Integer, nullable=False)
    items: Mapped[list[str]] = mapped_column(ItemList, nullable=False, default=list)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=OrderStatus.PENDING.value
    )  # PENDING, PREPARING, READY, DELIVERED
    user_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    user: Mapped[Optional["User"]] = relationship(back_populates="orders")
