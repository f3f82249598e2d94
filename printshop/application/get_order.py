import logging

from printshop.application.access import Actor, ensure_can_view
from printshop.application.interfaces import ObjectStorage
from printshop.domain.exceptions import OrderNotFoundError
from printshop.domain.models import Order

logger = logging.getLogger(__name__)


class GetOrderUseCase:
    def __init__(self, unit_of_work, storage: ObjectStorage, signed_url_ttl: int):
        self._uow = unit_of_work
        self._storage = storage
        self._signed_url_ttl = signed_url_ttl

    async def __call__(self, order_id: str, actor: Actor) -> tuple[Order, list[str]]:
        """Заказ и свежие подписанные ссылки на его файлы (в том же порядке, что files)"""
        async with self._uow() as uow:
            order = await uow.orders.get_by_id(order_id)
            if not order:
                raise OrderNotFoundError(f"Заказ {order_id} не найден")

        ensure_can_view(actor, order)

        signed_urls = []
        for file in order.files:
            signed_urls.append(
                await self._storage.sign_url(file.storage_ref.opaque_id, self._signed_url_ttl)
            )
        logger.info(f"Выданы ссылки на {len(signed_urls)} файлов заказа {order_id}")
        return order, signed_urls
