from dataclasses import dataclass
from decimal import Decimal
from typing import Sequence, Tuple

from shared.exceptions import InsufficientStock, InvalidRequest


@dataclass(frozen=True)
class ResolvedLine:
    """An order line with the product's name and price fixed at validation time."""

    product_id: int
    name: str
    price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class ValidatedOrder:
    lines: Tuple[ResolvedLine, ...]
    total_amount: Decimal


class OrderValidator:
    """Checks requested items against the catalog, left to right, failing fast.

    Each item needs a ``product_id`` and a positive ``quantity``; the product
    must exist and hold at least ``quantity`` units.
    """

    def __init__(self, catalog):
        self.catalog = catalog

    async def validate(self, items: Sequence) -> ValidatedOrder:
        if not items:
            raise InvalidRequest("Order must contain at least one item.")

        lines = []
        total = Decimal("0")
        for item in items:
            product_id = getattr(item, "product_id", None)
            quantity = getattr(item, "quantity", None)
            if product_id is None or quantity is None or quantity <= 0:
                raise InvalidRequest("Each item needs productId and positive quantity.")

            product = await self.catalog.find_product(product_id)
            if product.stock < quantity:
                raise InsufficientStock(product.id, product.name, quantity, product.stock)

            line = ResolvedLine(
                product_id=product.id,
                name=product.name,
                price=Decimal(product.price),
                quantity=quantity,
            )
            total += line.line_total
            lines.append(line)

        return ValidatedOrder(lines=tuple(lines), total_amount=total)
