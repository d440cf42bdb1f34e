from prometheus_client import Counter, Histogram, Gauge

# Business Metrics
orders_placed_total = Counter(
    "orders_placed_total",
    "Orders validated and persisted"
)

orders_rejected_total = Counter(
    "orders_rejected_total",
    "Order placements rejected before persistence",
    ["reason"] # Labels: 'invalid_request', 'product_not_found', 'insufficient_stock', 'error'
)

order_placement_duration_seconds = Histogram(
    "order_placement_duration_seconds",
    "Time spent placing an order, excluding event delivery"
)

order_events_total = Counter(
    "order_events_total",
    "OrderCreated publish attempts",
    ["outcome"] # Labels: 'sent', 'skipped', 'failed', 'delivery_failed'
)

stock_decrement_failures_total = Counter(
    "stock_decrement_failures_total",
    "Stock decrements that failed after the order was persisted",
    ["mode"] # Labels: 'unconditional', 'conditional'
)

background_tasks_total = Counter(
    "background_tasks_total",
    "Fire-and-forget tasks finished",
    ["outcome"] # Labels: 'ok', 'failed', 'cancelled'
)

background_tasks_pending = Gauge(
    "background_tasks_pending",
    "Fire-and-forget tasks not yet finished"
)
