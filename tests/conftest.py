"""Shared fixtures for the order service tests."""

from decimal import Decimal

import pytest

from tests.fakes import FakeCatalog, FakeOrderStore, FakePublisher, RecordingDispatcher, make_product


@pytest.fixture
def catalog():
    """Catalog with product P (10.00, stock 5) and Q (2.50, stock 100)."""
    return FakeCatalog([
        make_product(1, "P", Decimal("10.00"), 5),
        make_product(2, "Q", Decimal("2.50"), 100, category="misc"),
    ])


@pytest.fixture
def store():
    return FakeOrderStore()


@pytest.fixture
def publisher():
    return FakePublisher()


@pytest.fixture
def dispatcher():
    return RecordingDispatcher()
