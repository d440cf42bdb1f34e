"""Payloads published to the order events topic."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from shared.types import Money


class EventLine(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    product_id: int
    name: str
    price: Money
    quantity: int


class OrderCreatedEvent(BaseModel):
    """Notification emitted once an order has been persisted.

    Serialized with camelCase keys:
    ``{orderId, customerEmail, items, totalAmount, status, createdAt}``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    order_id: int
    customer_email: Optional[str] = None
    items: list[EventLine] = Field(default_factory=list)
    total_amount: Money = Decimal("0")
    status: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_order(cls, order) -> "OrderCreatedEvent":
        """Build the event from a stored order record."""
        data = {
            "order_id": order.id,
            "customer_email": getattr(order, "customer_email", None),
            "items": [EventLine.model_validate(line) for line in (order.items or [])],
            "total_amount": order.total_amount if order.total_amount is not None else Decimal("0"),
            "status": order.status,
        }
        if getattr(order, "created_at", None) is not None:
            data["created_at"] = order.created_at
        return cls(**data)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)
