import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.exceptions import ProductNotFound
from .models import Product

logger = structlog.get_logger(__name__)


class CatalogRepository:
    """Read access to products plus the stock decrements issued by order placement."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_product(self, product_id: int) -> Product:
        result = await self.db.execute(select(Product).where(Product.id == product_id))
        product = result.scalars().first()
        if product is None:
            raise ProductNotFound(product_id)
        return product

    async def decrement_stock(self, product_id: int, quantity: int) -> None:
        # Unconditional: relies on an earlier, separate stock check
        await self._execute_update(
            update(Product)
            .where(Product.id == product_id)
            .values(stock=Product.stock - quantity)
        )

    async def decrement_stock_if_available(self, product_id: int, quantity: int) -> bool:
        """Atomically take ``quantity`` units if at least that many are in stock."""
        result = await self._execute_update(
            update(Product)
            .where(Product.id == product_id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
        )
        return result.rowcount == 1

    async def _execute_update(self, stmt):
        # A savepoint keeps a failed update from expiring objects loaded by the same session
        async with self.db.begin_nested():
            result = await self.db.execute(stmt)
        try:
            await self.db.commit()
        except SQLAlchemyError:
            await self.db.rollback()
            raise
        return result
