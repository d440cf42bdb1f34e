"""Tests for the order placement workflow and status operations."""

import asyncio
from decimal import Decimal

import pytest

from services.order_service.service import OrderWorkflow
from services.order_service.validator import ResolvedLine
from shared.exceptions import InsufficientStock, InvalidRequest, InvalidStatus, OrderNotFound, ProductNotFound
from shared.messaging import BackgroundDispatcher
from tests.fakes import FakePublisher, item


def _workflow(catalog, store, publisher=None, dispatcher=None, atomic=False):
    return OrderWorkflow(
        catalog=catalog,
        orders=store,
        publisher=publisher or FakePublisher(),
        dispatcher=dispatcher,
        atomic_stock_decrement=atomic,
    )


class TestPlaceOrder:

    def test_persists_pending_order_and_decrements_stock(self, catalog, store, dispatcher):
        workflow = _workflow(catalog, store, dispatcher=dispatcher)
        order = asyncio.run(workflow.place_order([item(1, 3)]))

        assert order.status == "PENDING"
        assert order.total_amount == Decimal("30.00")
        assert store.orders[order.id].total_amount == Decimal("30.00")
        assert catalog.products[1].stock == 2

    def test_decrements_every_line_in_order(self, catalog, store, dispatcher):
        workflow = _workflow(catalog, store, dispatcher=dispatcher)
        asyncio.run(workflow.place_order([item(2, 4), item(1, 1)]))
        assert catalog.decrements == [(2, 4), (1, 1)]

    def test_submits_order_created_event(self, catalog, store, dispatcher):
        workflow = _workflow(catalog, store, dispatcher=dispatcher)
        order = asyncio.run(workflow.place_order([item(1, 1)]))
        assert dispatcher.submitted == [f"order-created:{order.id}"]

    def test_keeps_customer_email(self, catalog, store, dispatcher):
        workflow = _workflow(catalog, store, dispatcher=dispatcher)
        order = asyncio.run(workflow.place_order([item(1, 1)], customer_email="a@example.com"))
        assert order.customer_email == "a@example.com"

    @pytest.mark.parametrize("items", [None, [], "not-a-list"])
    def test_rejects_missing_or_empty_items(self, catalog, store, dispatcher, items):
        workflow = _workflow(catalog, store, dispatcher=dispatcher)
        with pytest.raises(InvalidRequest):
            asyncio.run(workflow.place_order(items))
        assert store.orders == {}

    @pytest.mark.parametrize("items,error", [
        ([item(999, 1)], ProductNotFound),
        ([item(1, 10)], InsufficientStock),
        ([item(1, 0)], InvalidRequest),
    ])
    def test_validation_failure_creates_nothing(self, catalog, store, dispatcher, items, error):
        workflow = _workflow(catalog, store, dispatcher=dispatcher)
        with pytest.raises(error):
            asyncio.run(workflow.place_order(items))

        assert store.orders == {}
        assert catalog.decrements == []
        assert dispatcher.submitted == []

    def test_no_line_decremented_when_a_later_line_is_short(self, catalog, store, dispatcher):
        workflow = _workflow(catalog, store, dispatcher=dispatcher)
        with pytest.raises(InsufficientStock):
            asyncio.run(workflow.place_order([item(2, 1), item(1, 6)]))
        assert catalog.products[2].stock == 100
        assert catalog.products[1].stock == 5

    def test_store_failure_propagates_without_side_effects(self, catalog, store, dispatcher):
        store.fail_on_create = True
        workflow = _workflow(catalog, store, dispatcher=dispatcher)
        with pytest.raises(RuntimeError):
            asyncio.run(workflow.place_order([item(1, 1)]))
        assert catalog.decrements == []
        assert dispatcher.submitted == []

    def test_decrement_failure_does_not_undo_order(self, catalog, store, dispatcher):
        catalog.failing.add(1)
        workflow = _workflow(catalog, store, dispatcher=dispatcher)

        order = asyncio.run(workflow.place_order([item(1, 1), item(2, 2)]))

        assert store.orders[order.id].status == "PENDING"
        # The remaining line is still applied
        assert catalog.decrements == [(2, 2)]
        assert catalog.products[1].stock == 5


class TestEventPublication:

    def test_publisher_runs_in_background(self, catalog, store):
        publisher = FakePublisher()

        async def scenario():
            dispatcher = BackgroundDispatcher()
            workflow = _workflow(catalog, store, publisher=publisher, dispatcher=dispatcher)
            order = await workflow.place_order([item(1, 1)])
            await dispatcher.drain()
            return order

        order = asyncio.run(scenario())
        assert publisher.published == [order.id]

    def test_publisher_failure_is_not_surfaced(self, catalog, store):
        publisher = FakePublisher(fail=True)

        async def scenario():
            dispatcher = BackgroundDispatcher()
            workflow = _workflow(catalog, store, publisher=publisher, dispatcher=dispatcher)
            order = await workflow.place_order([item(1, 2)])
            await dispatcher.drain()
            return order, dispatcher.pending

        order, pending = asyncio.run(scenario())
        assert order.status == "PENDING"
        assert pending == 0
        assert catalog.products[1].stock == 3


class TestStockDecrementModes:

    def _lines(self):
        return [
            ResolvedLine(product_id=1, name="P", price=Decimal("10.00"), quantity=3),
            ResolvedLine(product_id=2, name="Q", price=Decimal("2.50"), quantity=200),
        ]

    def test_unconditional_decrement_can_oversell(self, catalog, store, dispatcher):
        workflow = _workflow(catalog, store, dispatcher=dispatcher)
        outcome = asyncio.run(workflow._apply_stock_decrements(1, self._lines()))

        assert outcome.applied == [1, 2]
        assert not outcome.partial
        assert catalog.products[2].stock == -100

    def test_conditional_decrement_reports_partial_outcome(self, catalog, store, dispatcher):
        workflow = _workflow(catalog, store, dispatcher=dispatcher, atomic=True)
        outcome = asyncio.run(workflow._apply_stock_decrements(1, self._lines()))

        assert outcome.applied == [1]
        assert outcome.failed == [2]
        assert outcome.partial
        assert catalog.products[1].stock == 2
        assert catalog.products[2].stock == 100


class TestOrderQueries:

    def _place(self, workflow, count):
        for _ in range(count):
            asyncio.run(workflow.place_order([item(2, 1)]))

    def test_list_is_newest_first(self, catalog, store, dispatcher):
        workflow = _workflow(catalog, store, dispatcher=dispatcher)
        self._place(workflow, 3)
        orders = asyncio.run(workflow.list_orders())
        assert [o.id for o in orders] == [3, 2, 1]

    def test_list_never_exceeds_fifty(self, catalog, store, dispatcher):
        workflow = _workflow(catalog, store, dispatcher=dispatcher)
        self._place(workflow, 55)
        assert len(asyncio.run(workflow.list_orders())) == 50
        assert len(asyncio.run(workflow.list_orders(limit=500))) == 50

    def test_get_unknown_order(self, catalog, store, dispatcher):
        workflow = _workflow(catalog, store, dispatcher=dispatcher)
        with pytest.raises(OrderNotFound):
            asyncio.run(workflow.get_order(42))


class TestUpdateStatus:

    @pytest.mark.parametrize("raw,expected", [
        ("completed", "COMPLETED"),
        ("Cancelled", "CANCELLED"),
        ("PENDING", "PENDING"),
    ])
    def test_accepts_any_case(self, catalog, store, dispatcher, raw, expected):
        workflow = _workflow(catalog, store, dispatcher=dispatcher)
        order = asyncio.run(workflow.place_order([item(1, 1)]))
        updated = asyncio.run(workflow.update_status(order.id, raw))
        assert updated.status == expected

    def test_completed_order_can_return_to_pending(self, catalog, store, dispatcher):
        workflow = _workflow(catalog, store, dispatcher=dispatcher)
        order = asyncio.run(workflow.place_order([item(1, 1)]))
        asyncio.run(workflow.update_status(order.id, "COMPLETED"))
        assert asyncio.run(workflow.update_status(order.id, "pending")).status == "PENDING"

    def test_invalid_status_leaves_order_unchanged(self, catalog, store, dispatcher):
        workflow = _workflow(catalog, store, dispatcher=dispatcher)
        order = asyncio.run(workflow.place_order([item(1, 1)]))
        with pytest.raises(InvalidStatus):
            asyncio.run(workflow.update_status(order.id, "SHIPPED"))
        assert store.orders[order.id].status == "PENDING"

    def test_invalid_status_is_checked_before_lookup(self, catalog, store, dispatcher):
        workflow = _workflow(catalog, store, dispatcher=dispatcher)
        with pytest.raises(InvalidStatus):
            asyncio.run(workflow.update_status(42, None))

    def test_unknown_order(self, catalog, store, dispatcher):
        workflow = _workflow(catalog, store, dispatcher=dispatcher)
        with pytest.raises(OrderNotFound):
            asyncio.run(workflow.update_status(42, "COMPLETED"))
