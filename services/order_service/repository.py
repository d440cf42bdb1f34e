from decimal import Decimal
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.exceptions import OrderNotFound
from .models import Order, OrderLine, OrderStatus, utcnow

DEFAULT_LIST_LIMIT = 50


class OrderRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, lines: Sequence, total_amount: Decimal, customer_email: Optional[str] = None) -> Order:
        """Persist a PENDING order with its lines snapshotted from ``lines``."""
        now = utcnow()
        order = Order(
            status=OrderStatus.PENDING.value,
            customer_email=customer_email,
            total_amount=total_amount,
            created_at=now,
            updated_at=now,
            items=[
                OrderLine(
                    position=position,
                    product_id=line.product_id,
                    name=line.name,
                    price=line.price,
                    quantity=line.quantity,
                )
                for position, line in enumerate(lines)
            ],
        )
        self.db.add(order)
        await self._commit()
        await self.db.refresh(order)
        return order

    async def list_recent(self, limit: int = DEFAULT_LIST_LIMIT) -> Sequence[Order]:
        result = await self.db.execute(
            select(Order).order_by(Order.created_at.desc(), Order.id.desc()).limit(limit)
        )
        return result.scalars().all()

    async def get_by_id(self, order_id: int) -> Order:
        result = await self.db.execute(select(Order).where(Order.id == order_id))
        order = result.scalars().first()
        if order is None:
            raise OrderNotFound(order_id)
        return order

    async def update_status(self, order_id: int, status) -> Order:
        order = await self.get_by_id(order_id)
        order.status = OrderStatus.parse(status).value
        order.updated_at = utcnow()

        await self._commit()
        await self.db.refresh(order)
        return order

    async def _commit(self):
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
