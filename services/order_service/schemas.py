from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from shared.types import Money


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class OrderItemRequest(CamelModel):
    # Optional so that missing values reach the validator and produce its message
    product_id: Optional[int] = None
    quantity: Optional[int] = None


class OrderCreate(CamelModel):
    items: Optional[List[OrderItemRequest]] = None
    customer_email: Optional[str] = None


class StatusUpdate(CamelModel):
    status: Optional[str] = None


class OrderLineResponse(CamelModel):
    product_id: int
    name: str
    price: Money
    quantity: int


class OrderResponse(CamelModel):
    id: int
    status: str
    customer_email: Optional[str] = None
    items: List[OrderLineResponse]
    total_amount: Money
    created_at: datetime
    updated_at: datetime
