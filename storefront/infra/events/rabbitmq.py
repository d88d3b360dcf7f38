from __future__ import annotations

import json
import logging
from typing import Awaitable, Callable, Iterable, Optional

import aio_pika

from storefront.core.config import settings

logger = logging.getLogger(__name__)


def _exchange_type(value: str) -> aio_pika.ExchangeType:
    try:
        return aio_pika.ExchangeType(value.lower())
    except ValueError:
        logger.warning("Unknown exchange type %s, falling back to topic", value)
        return aio_pika.ExchangeType.TOPIC


class RabbitMQ:
    """
    aio-pika client shared by the whole process.
    - Robust connection (aio-pika reconnects on its own).
    - One durable exchange, declared at connect time.
    - publish_message never raises: a broker outage must not fail a request.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        exchange_name: Optional[str] = None,
        exchange_type: Optional[str] = None,
    ) -> None:
        self.url = url or settings.RABBITMQ_URL
        self.exchange_name = exchange_name or settings.RABBITMQ_EXCHANGE
        self.exchange_type = _exchange_type(exchange_type or settings.RABBITMQ_EXCHANGE_TYPE)
        self.connection: Optional[aio_pika.abc.AbstractRobustConnection] = None
        self.channel: Optional[aio_pika.abc.AbstractChannel] = None
        self.exchange: Optional[aio_pika.abc.AbstractExchange] = None

    async def connect(self) -> None:
        self.connection = await aio_pika.connect_robust(self.url)
        self.channel = await self.connection.channel()
        self.exchange = await self.channel.declare_exchange(
            self.exchange_name, self.exchange_type, durable=True
        )
        logger.info("RabbitMQ connected (exchange=%s)", self.exchange_name)

    async def disconnect(self) -> None:
        try:
            if self.channel and not self.channel.is_closed:
                await self.channel.close()
                logger.info("RabbitMQ channel closed")
        except Exception:
            logger.exception("Failed to close RabbitMQ channel")
        try:
            if self.connection and not self.connection.is_closed:
                await self.connection.close()
                logger.info("RabbitMQ connection closed")
        except Exception:
            logger.exception("Failed to close RabbitMQ connection")
        self.exchange = None

    async def publish_message(self, routing_key: str, message: dict) -> None:
        if self.exchange is None:
            logger.error("RabbitMQ exchange is not available, dropping %s", routing_key)
            return

        rk = "" if self.exchange_type == aio_pika.ExchangeType.FANOUT else routing_key
        body = json.dumps(message, default=str).encode("utf-8")
        try:
            await self.exchange.publish(
                aio_pika.Message(
                    body=body,
                    content_type="application/json",
                    delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
                ),
                routing_key=rk,
            )
            logger.info("event published", extra={"routing_key": routing_key})
        except Exception:
            logger.exception("Failed to publish %s", routing_key)


async def start_consumer(
    connection,
    exchange,
    exchange_type,
    queue_name: str,
    patterns: Iterable[str],
    handler: Callable[[dict, str], Awaitable[None]],
) -> None:
    """Binds ``queue_name`` to the exchange and feeds decoded messages to ``handler``."""
    channel = await connection.channel()
    await channel.set_qos(prefetch_count=10)
    queue = await channel.declare_queue(queue_name, durable=True)

    if exchange_type == aio_pika.ExchangeType.FANOUT:
        await queue.bind(exchange, routing_key="")
    else:
        for pattern in patterns:
            await queue.bind(exchange, routing_key=pattern)

    logger.info("Consumer started on %s", queue_name)
    async with queue.iterator() as it:
        async for message in it:
            async with message.process():
                try:
                    payload = json.loads(message.body)
                except (TypeError, ValueError):
                    payload = {"raw": message.body}
                try:
                    await handler(payload, message.routing_key)
                except Exception:
                    logger.exception("Handler error for %s", message.routing_key)


rabbitmq = RabbitMQ()
