from typing import Optional

from printshop.application.access import Actor
from printshop.domain.exceptions import PermissionDeniedError
from printshop.domain.lifecycle import ActorRole
from printshop.domain.models import Order, OrderStatus


class ListOrdersUseCase:
    """Список заказов с учетом роли. Он же служит сверкой состояния для клиентов реального времени"""

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, actor: Actor, status: Optional[OrderStatus] = None) -> list[Order]:
        filters = {"status": status}
        if actor.role == ActorRole.USER:
            filters["customer_id"] = actor.id
        elif actor.role == ActorRole.ADMIN:
            if not actor.store_id:
                raise PermissionDeniedError("Оператор не привязан к точке печати")
            filters["store_id"] = actor.store_id

        async with self._uow() as uow:
            orders = await uow.orders.list_orders(**filters)
        return sorted(orders, key=lambda o: o.created_at, reverse=True)
