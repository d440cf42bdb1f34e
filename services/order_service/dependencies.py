from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from services.product_service.repository import CatalogRepository
from shared.config.database import get_db
from shared.config.settings import ATOMIC_STOCK_DECREMENT
from shared.messaging import BackgroundDispatcher, OrderEventPublisher, get_dispatcher, get_event_publisher

from .repository import OrderRepository
from .service import OrderWorkflow


async def get_order_workflow(
    db: AsyncSession = Depends(get_db),
    publisher: OrderEventPublisher = Depends(get_event_publisher),
    dispatcher: BackgroundDispatcher = Depends(get_dispatcher),
) -> OrderWorkflow:
    return OrderWorkflow(
        catalog=CatalogRepository(db),
        orders=OrderRepository(db),
        publisher=publisher,
        dispatcher=dispatcher,
        atomic_stock_decrement=ATOMIC_STOCK_DECREMENT,
    )
