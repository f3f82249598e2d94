import logging

from printshop.application.access import Actor, ensure_can_delete
from printshop.application.event_hub import OrderEventHub, OrderEventType
from printshop.domain.exceptions import OrderNotFoundError
from printshop.domain.models import Order

logger = logging.getLogger(__name__)


class DeleteOrderUseCase:
    """Физическое удаление заказа. Файлы в хранилище не трогаем"""

    def __init__(self, unit_of_work, event_hub: OrderEventHub):
        self._uow = unit_of_work
        self._hub = event_hub

    async def __call__(self, order_id: str, actor: Actor) -> Order:
        async with self._uow() as uow:
            order = await uow.orders.get_by_id(order_id)
            if not order:
                raise OrderNotFoundError(f"Заказ {order_id} не найден")
            ensure_can_delete(actor, order)

            if not await uow.orders.delete(order_id):
                raise OrderNotFoundError(f"Заказ {order_id} не найден")
            await uow.commit()

        logger.info(f"Заказ {order_id} удален пользователем {actor.id}")
        await self._hub.publish(OrderEventType.DELETED, order)
        return order
