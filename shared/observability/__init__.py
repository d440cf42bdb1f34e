from .setup import setup_observability, configure_logging
from .metrics import (
    orders_placed_total,
    orders_rejected_total,
    order_placement_duration_seconds,
    order_events_total,
    stock_decrement_failures_total,
    background_tasks_total,
    background_tasks_pending
)
