"""Domain errors raised by the catalog, order store and order workflow.

The HTTP layer maps these onto status codes; nothing below the router knows
about HTTP.
"""


class OrderServiceError(Exception):
    """Base class for every expected failure of the order service."""


class InvalidRequest(OrderServiceError):
    pass


class ProductNotFound(OrderServiceError):
    def __init__(self, product_id):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class InsufficientStock(OrderServiceError):
    def __init__(self, product_id, name: str, requested: int, available: int):
        self.product_id = product_id
        self.name = name
        self.requested = requested
        self.available = available
        super().__init__(f"Not enough stock for product: {name}")


class OrderNotFound(OrderServiceError):
    def __init__(self, order_id):
        self.order_id = order_id
        super().__init__("Order not found.")


class InvalidStatus(OrderServiceError):
    def __init__(self, value):
        self.value = value
        super().__init__("Invalid status. Allowed values: PENDING, COMPLETED, CANCELLED.")


class PublishFailure(OrderServiceError):
    """Raised inside the event publisher; never reaches an API caller."""
