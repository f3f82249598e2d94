import asyncio
import json
import logging
from typing import Any, Optional
from aiokafka import AIOKafkaProducer

from printshop.application.interfaces import EventPublisher
from printshop.domain.exceptions import NotificationError

logger = logging.getLogger(__name__)


class KafkaEventPublisher(EventPublisher):
    """Зеркалирует события заказов в топик Kafka для других сервисов"""

    def __init__(self, bootstrap_servers: str, topic: str, request_timeout_ms: int = 5000):
        self._bootstrap_servers = bootstrap_servers
        self._producer: AIOKafkaProducer | None = None
        self._topic = topic
        self._request_timeout_ms = request_timeout_ms
        self._pending: set[asyncio.Task] = set()

    async def start(self):
        if not self._producer:
            self._producer = AIOKafkaProducer(
                bootstrap_servers=self._bootstrap_servers,
                request_timeout_ms=self._request_timeout_ms,
            )
            await self._producer.start()
            logger.info("Kafka producer started")

    async def stop(self):
        if self._producer:
            await self.flush()
            await self._producer.stop()
            self._producer = None
            logger.info("Kafka producer stopped")

    async def publish(self, channel: str, event: str, data: Optional[dict[str, Any]]) -> None:
        if not self._producer:
            raise NotificationError("Kafka producer not started")

        try:
            message = {
                "event_type": event,
                "channel": channel,
                "data": data
            }
            value = json.dumps(message, default=str).encode()
        except Exception as e:
            raise NotificationError(f"Failed to publish {event} to {channel}: {e}")

        # Отправка идет в фоне: ответ на HTTP запрос не ждет брокер
        task = asyncio.create_task(self._send(self._producer, channel, event, value))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, producer: AIOKafkaProducer, channel: str, event: str, value: bytes) -> None:
        try:
            future = await producer.send(
                topic=self._topic,
                key=channel.encode(),
                value=value
            )
            future.add_done_callback(lambda f: self._on_delivery(f, event, channel))
        except Exception as e:
            logger.error(f"Failed to publish {event} to {channel}: {e}")

    async def flush(self) -> None:
        """Дожидается фоновых отправок (вызывается при остановке)"""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    @staticmethod
    def _on_delivery(future, event: str, channel: str) -> None:
        if future.cancelled():
            logger.warning(f"Delivery of {event} to {channel} cancelled")
        elif future.exception() is not None:
            logger.error(f"Failed to deliver {event} to {channel}: {future.exception()}")


class CompositeEventPublisher(EventPublisher):
    """Публикует во все транспорты; ошибка одного не мешает остальным"""

    def __init__(self, publishers: list[EventPublisher]):
        self._publishers = publishers

    async def publish(self, channel: str, event: str, data: Optional[dict[str, Any]]) -> None:
        errors = []
        for publisher in self._publishers:
            try:
                await publisher.publish(channel, event, data)
            except Exception as e:
                errors.append(f"{type(publisher).__name__}: {e}")
        if errors:
            raise NotificationError("; ".join(errors))
