"""Process-wide event publisher and background dispatcher.

Both are created lazily on first use; the application lifespan initializes
them at startup and tears them down at shutdown.
"""
from typing import Optional

from shared.config.settings import KAFKA_BOOTSTRAP_SERVERS, ORDER_EVENTS_TOPIC

from .dispatcher import BackgroundDispatcher
from .events import OrderCreatedEvent
from .producer import OrderEventPublisher

_publisher: Optional[OrderEventPublisher] = None
_dispatcher: Optional[BackgroundDispatcher] = None


def init_event_publisher(
    bootstrap_servers: Optional[str] = KAFKA_BOOTSTRAP_SERVERS,
    topic: Optional[str] = ORDER_EVENTS_TOPIC,
) -> OrderEventPublisher:
    global _publisher
    if _publisher is None:
        _publisher = OrderEventPublisher(bootstrap_servers, topic)
    return _publisher


def get_event_publisher() -> OrderEventPublisher:
    return init_event_publisher()


def close_event_publisher(timeout: float = 5.0):
    global _publisher
    if _publisher is not None:
        _publisher.close(timeout)
    _publisher = None


def get_dispatcher() -> BackgroundDispatcher:
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = BackgroundDispatcher()
    return _dispatcher
