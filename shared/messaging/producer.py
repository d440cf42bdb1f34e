"""Kafka producer for publishing order events."""

import asyncio
from typing import Optional

import structlog
from confluent_kafka import KafkaException, Producer

from shared.exceptions import PublishFailure
from shared.observability.metrics import order_events_total

from .events import OrderCreatedEvent

logger = structlog.get_logger(__name__)

CONTENT_TYPE = "application/json"


class OrderEventPublisher:
    """Best-effort publisher of ``OrderCreated`` notifications.

    The publisher is inert when either the bootstrap servers or the topic is
    missing: every publish call is then a logged no-op. A configured
    publisher logs and swallows send failures, so callers never see an
    exception from :meth:`publish_order_created`.

    Attributes:
        topic: Destination topic, or ``None`` when unconfigured.
    """

    def __init__(
        self,
        bootstrap_servers: Optional[str],
        topic: Optional[str],
        producer_factory=Producer,
        message_timeout_ms: int = 5000,
    ):
        """Create the underlying Kafka producer if the channel is configured.

        Args:
            bootstrap_servers: Comma-separated list of Kafka broker addresses.
            topic: Topic receiving the order events.
            producer_factory: Callable building the producer from a config dict.
            message_timeout_ms: Upper bound for a single delivery attempt.
        """
        self.topic = topic
        self._producer = None

        if not bootstrap_servers or not topic:
            logger.warning(
                "order_events.disabled",
                reason="KAFKA_BOOTSTRAP_SERVERS or ORDER_EVENTS_TOPIC is not set",
            )
            return

        try:
            self._producer = producer_factory(
                {
                    "bootstrap.servers": bootstrap_servers,
                    "message.timeout.ms": message_timeout_ms,
                    "partitioner": "consistent_random",  # Same order id → same partition
                }
            )
        except KafkaException as e:
            logger.error("order_events.init_failed", error=str(e))
            return

        logger.info("order_events.enabled", topic=topic)

    @property
    def enabled(self) -> bool:
        return self._producer is not None

    @property
    def producer(self):
        return self._producer

    def _delivery_callback(self, err, msg):
        """Delivery report for a produced message, called from ``poll``/``flush``."""
        if err:
            order_events_total.labels(outcome="delivery_failed").inc()
            logger.error("order_events.delivery_failed", error=str(err), topic=msg.topic(), key=msg.key())
        else:
            logger.debug(
                "order_events.delivered",
                topic=msg.topic(),
                partition=msg.partition(),
                offset=msg.offset(),
            )

    def _produce(self, event: OrderCreatedEvent):
        try:
            self._producer.produce(
                topic=self.topic,
                key=str(event.order_id).encode("utf-8"),
                value=event.to_json(),
                headers={"content-type": CONTENT_TYPE},
                on_delivery=self._delivery_callback,
            )
            self._producer.poll(0)  # Trigger delivery callbacks
        except BufferError as e:
            logger.warning("order_events.buffer_full")
            self._producer.poll(0)
            raise PublishFailure(f"producer queue is full: {e}") from e
        except KafkaException as e:
            raise PublishFailure(str(e)) from e

    async def publish_order_created(self, order) -> bool:
        """Publish an ``OrderCreated`` event for ``order``.

        Returns:
            bool: True if the message was handed to the producer, False if the
            publisher is inert or sending failed.
        """
        order_id = None
        try:
            event = OrderCreatedEvent.from_order(order)
            order_id = event.order_id
            if self._producer is None:
                order_events_total.labels(outcome="skipped").inc()
                logger.warning("order_events.skipped", order_id=order_id, reason="publisher not configured")
                return False
            await asyncio.to_thread(self._produce, event)
        except Exception as e:
            order_events_total.labels(outcome="failed").inc()
            logger.error("order_events.publish_failed", order_id=order_id, error=str(e))
            return False

        order_events_total.labels(outcome="sent").inc()
        logger.info("order_events.sent", order_id=order_id, topic=self.topic)
        return True

    def close(self, timeout: float = 5.0) -> int:
        """Flush outstanding messages. Returns how many are still undelivered."""
        if self._producer is None:
            return 0
        remaining = self._producer.flush(timeout)
        if remaining:
            logger.warning("order_events.unflushed", remaining=remaining)
        return remaining
