# autoscaler/infrastructure/messaging/rabbitmq_publisher.py

import json

import aio_pika

from autoscaler.domain.models.event import ScalingEvent

EXCHANGE_SCALING_EVENTS = "scaling_events"


class RabbitMQEventPublisher:
    """Publishes scaling events to a topic exchange; routing key is scaling.<kind>."""

    def __init__(self, rabbitmq_url: str, exchange_name: str = EXCHANGE_SCALING_EVENTS):
        self._url = rabbitmq_url
        self._exchange_name = exchange_name
        self._connection = None
        self._channel = None
        self._exchange = None

    async def connect(self):
        self._connection = await aio_pika.connect_robust(self._url)
        self._channel = await self._connection.channel()
        self._exchange = await self._channel.declare_exchange(
            self._exchange_name,
            aio_pika.ExchangeType.TOPIC,
            durable=True,
        )

    async def append(self, event: ScalingEvent) -> None:
        if not self._exchange:
            await self.connect()

        msg = aio_pika.Message(
            body=json.dumps(event.to_dict()).encode(),
            content_type="application/json",
            delivery_mode=aio_pika.DeliveryMode.PERSISTENT,
            headers={"sequence": event.sequence},
        )

        await self._exchange.publish(msg, routing_key=f"scaling.{event.kind.value}")

    async def close(self):
        if self._connection:
            await self._connection.close()
            self._connection = None
            self._channel = None
            self._exchange = None
