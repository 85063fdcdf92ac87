"""Pydantic schemas for orders and accounts.

Learn: The wire shape is camelCase ({id, tableNumber, items, status,
createdAt, user?}) because browser clients consume it directly, while the
Python side stays snake_case. alias_generator=to_camel gives us both:
validate from ORM attributes, dump with by_alias=True.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel

from orderline.db.models import OrderStatus


class AccountRead(BaseModel):
    id: int
    email: str

    model_config = {"from_attributes": True}


class OrderRead(BaseModel):
    id: int
    table_number: int
    items: list[str]
    status: OrderStatus
    created_at: datetime
    user: Optional[AccountRead] = None

    model_config = {
        "from_attributes": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Timestamps are stored in UTC; SQLite hands them back naive."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


def order_payload(order: Any) -> dict:
    """Serialize an order (ORM row or anything attribute-compatible) for the wire."""
    return OrderRead.model_validate(order).model_dump(mode="json", by_alias=True)
