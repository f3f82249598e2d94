from typing import Optional

from pydantic import BaseModel

from printshop.domain.exceptions import PermissionDeniedError
from printshop.domain.lifecycle import ActorRole, OrderStatus, may_trigger
from printshop.domain.models import Order


class Actor(BaseModel):
    """Кто выполняет запрос. Приходит от шлюза аутентификации"""
    id: str
    role: ActorRole
    store_id: Optional[str] = None


def can_view(actor: Actor, order: Order) -> bool:
    if actor.role == ActorRole.DEVELOPER:
        return True
    if actor.role == ActorRole.ADMIN:
        return actor.store_id is not None and order.store_id == actor.store_id
    return order.customer_id == actor.id


def ensure_can_view(actor: Actor, order: Order) -> None:
    if not can_view(actor, order):
        raise PermissionDeniedError(f"Нет доступа к заказу {order.id}")


def ensure_can_change_status(actor: Actor, order: Order, target: OrderStatus) -> None:
    ensure_can_view(actor, order)
    if not may_trigger(actor.role, order.status, target):
        raise PermissionDeniedError(
            f"Роль {actor.role.value} не может перевести заказ в статус {target.display}"
        )


def ensure_can_delete(actor: Actor, order: Order) -> None:
    ensure_can_view(actor, order)
    if actor.role == ActorRole.USER:
        raise PermissionDeniedError("Удалять заказы может только оператор")
