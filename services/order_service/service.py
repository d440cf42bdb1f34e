import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import structlog

from shared.exceptions import InsufficientStock, InvalidRequest, ProductNotFound
from shared.observability import (
    order_placement_duration_seconds,
    orders_placed_total,
    orders_rejected_total,
    stock_decrement_failures_total,
)
from .models import OrderStatus
from .repository import DEFAULT_LIST_LIMIT
from .schemas import OrderResponse
from .validator import OrderValidator, ResolvedLine

logger = structlog.get_logger(__name__)


@dataclass
class StockAdjustment:
    """Which lines had their stock decremented after the order was stored."""

    applied: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.failed)


class OrderWorkflow:
    """Places orders and drives their status.

    Placement is not atomic: the order is committed first, the OrderCreated
    event is handed to the dispatcher without waiting for it, then stock is
    decremented line by line. Failures after the commit are logged and never
    undo the order. ``place_order`` returns a detached ``OrderResponse``.
    """

    def __init__(self, catalog, orders, publisher, dispatcher, atomic_stock_decrement: bool = False):
        self.catalog = catalog
        self.orders = orders
        self.publisher = publisher
        self.dispatcher = dispatcher
        self.atomic_stock_decrement = atomic_stock_decrement

    async def place_order(self, items: Optional[Sequence], customer_email: Optional[str] = None):
        started = time.perf_counter()
        if not isinstance(items, (list, tuple)) or not items:
            orders_rejected_total.labels(reason="invalid_request").inc()
            raise InvalidRequest("Order must contain at least one item.")

        try:
            validated = await OrderValidator(self.catalog).validate(items)
        except InvalidRequest:
            orders_rejected_total.labels(reason="invalid_request").inc()
            raise
        except ProductNotFound as e:
            orders_rejected_total.labels(reason="product_not_found").inc()
            logger.info("order.rejected", reason="product_not_found", product_id=e.product_id)
            raise
        except InsufficientStock as e:
            orders_rejected_total.labels(reason="insufficient_stock").inc()
            logger.info(
                "order.rejected",
                reason="insufficient_stock",
                product_id=e.product_id,
                requested=e.requested,
                available=e.available,
            )
            raise

        stored = await self.orders.create(
            validated.lines, validated.total_amount, customer_email=customer_email
        )
        # Detached copy: a later rollback on the shared session must not expire what is returned or published
        order = OrderResponse.model_validate(stored)
        orders_placed_total.inc()
        logger.info("order.created", order_id=order.id, total_amount=str(order.total_amount), lines=len(validated.lines))

        self.dispatcher.submit(
            self.publisher.publish_order_created(order), name=f"order-created:{order.id}"
        )

        await self._apply_stock_decrements(order.id, validated.lines)
        order_placement_duration_seconds.observe(time.perf_counter() - started)
        return order

    async def _apply_stock_decrements(self, order_id, lines: Sequence[ResolvedLine]) -> StockAdjustment:
        mode = "conditional" if self.atomic_stock_decrement else "unconditional"
        outcome = StockAdjustment()

        for line in lines:
            try:
                if self.atomic_stock_decrement:
                    applied = await self.catalog.decrement_stock_if_available(line.product_id, line.quantity)
                else:
                    await self.catalog.decrement_stock(line.product_id, line.quantity)
                    applied = True
            except Exception as e:
                logger.error(
                    "stock.decrement_failed",
                    order_id=order_id,
                    product_id=line.product_id,
                    quantity=line.quantity,
                    error=str(e),
                )
                applied = False

            if applied:
                outcome.applied.append(line.product_id)
            else:
                stock_decrement_failures_total.labels(mode=mode).inc()
                outcome.failed.append(line.product_id)

        if outcome.partial:
            logger.warning(
                "stock.partial_decrement",
                order_id=order_id,
                mode=mode,
                applied=outcome.applied,
                failed=outcome.failed,
            )
        return outcome

    async def list_orders(self, limit: int = DEFAULT_LIST_LIMIT):
        return await self.orders.list_recent(min(limit, DEFAULT_LIST_LIMIT))

    async def get_order(self, order_id: int):
        return await self.orders.get_by_id(order_id)

    async def update_status(self, order_id: int, status):
        # Any of the three statuses is accepted whatever the current one is
        new_status = OrderStatus.parse(status)
        order = await self.orders.update_status(order_id, new_status)
        logger.info("order.status_updated", order_id=order_id, status=new_status.value)
        return order
