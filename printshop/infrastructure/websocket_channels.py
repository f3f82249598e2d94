import asyncio
import logging
from typing import Any, Iterable, Optional

from printshop.application.interfaces import EventPublisher

logger = logging.getLogger(__name__)


class Subscription:
    """Одно подключение: набор каналов и ограниченная очередь сообщений"""

    def __init__(self, channels: Iterable[str], max_queue_size: int):
        self.channels = frozenset(channels)
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue_size)


class ChannelRegistry:
    """Каналы реального времени внутри процесса. Без брокера, без хранения и повторов"""

    def __init__(self, max_queue_size: int = 100):
        self._max_queue_size = max_queue_size
        self._channels: dict[str, set[Subscription]] = {}

    def subscribe(self, channels: Iterable[str]) -> Subscription:
        subscription = Subscription(channels, self._max_queue_size)
        for channel in subscription.channels:
            self._channels.setdefault(channel, set()).add(subscription)
        logger.info(f"Подписка на каналы: {sorted(subscription.channels)}")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        for channel in subscription.channels:
            subscribers = self._channels.get(channel)
            if subscribers is None:
                continue
            subscribers.discard(subscription)
            if not subscribers:
                del self._channels[channel]

    def subscriber_count(self, channel: str) -> int:
        return len(self._channels.get(channel, ()))

    def deliver(self, channel: str, message: dict[str, Any]) -> int:
        delivered = 0
        for subscription in list(self._channels.get(channel, ())):
            try:
                subscription.queue.put_nowait(message)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(f"Очередь подписчика {channel} переполнена, сообщение {message.get('event')} отброшено")
        return delivered


class WebSocketChannelPublisher(EventPublisher):
    def __init__(self, registry: ChannelRegistry):
        self._registry = registry

    async def publish(self, channel: str, event: str, data: Optional[dict[str, Any]]) -> None:
        message = {"event": event, "channel": channel, "data": data}
        delivered = self._registry.deliver(channel, message)
        if not delivered:
            logger.debug(f"Нет подписчиков на {channel}, событие {event} отброшено")
