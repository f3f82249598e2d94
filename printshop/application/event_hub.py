import logging
from collections import OrderedDict
from enum import Enum
from typing import Any, Callable

from printshop.application.interfaces import EventPublisher
from printshop.domain.models import Order

logger = logging.getLogger(__name__)

ORDERS_UPDATED_CHANNEL = "orders:updated"


class OrderEventType(str, Enum):
    CREATED = "order:new"
    UPDATED = "order:updated"
    DELETED = "order:deleted"


def store_channel(store_id: str) -> str:
    return f"store:{store_id}"


def user_channel(customer_id: str) -> str:
    return f"user:{customer_id}"


class OrderEventHub:
    """Рассылка изменений заказа: точке печати, клиенту и общий сигнал orders:updated.

    Доставка at-most-once: без подписчиков событие теряется, ошибка
    транспорта логируется и не доходит до вызывающего кода. Для одного заказа
    события не переупорядочиваются: событие с версией старше уже
    опубликованной отбрасывается.
    """

    def __init__(
        self,
        publisher: EventPublisher,
        serializer: Callable[[Order], dict[str, Any]],
        max_tracked_orders: int = 10_000,
    ):
        self._publisher = publisher
        self._serializer = serializer
        self._max_tracked = max_tracked_orders
        self._published_versions: OrderedDict[str, int] = OrderedDict()

    def _accept(self, order_id: str, version: int) -> bool:
        last = self._published_versions.get(order_id)
        if last is not None and version <= last:
            return False
        self._published_versions[order_id] = version
        self._published_versions.move_to_end(order_id)
        while len(self._published_versions) > self._max_tracked:
            self._published_versions.popitem(last=False)
        return True

    async def publish(self, event_type: OrderEventType, order: Order) -> bool:
        # удаление считается еще одной записью поверх последней версии
        version = order.version + 1 if event_type == OrderEventType.DELETED else order.version
        if not self._accept(order.id, version):
            logger.warning(f"Устаревшее событие {event_type.value} для заказа {order.id} (версия {version}) отброшено")
            return False

        if event_type == OrderEventType.DELETED:
            payload = {"id": order.id}
        else:
            try:
                payload = self._serializer(order)
            except Exception as e:
                logger.error(f"Не удалось сериализовать заказ {order.id} для {event_type.value}: {e}", exc_info=True)
                return False

        channels = [store_channel(order.store_id)]
        if order.customer_id:
            channels.append(user_channel(order.customer_id))

        delivered = True
        for channel in channels:
            delivered &= await self._safe_publish(channel, event_type.value, payload)
        delivered &= await self._safe_publish(ORDERS_UPDATED_CHANNEL, ORDERS_UPDATED_CHANNEL, None)
        return delivered

    async def _safe_publish(self, channel: str, event: str, data: dict[str, Any] | None) -> bool:
        try:
            await self._publisher.publish(channel, event, data)
            return True
        except Exception as e:
            logger.error(f"Не удалось опубликовать {event} в {channel}: {e}", exc_info=True)
            return False
