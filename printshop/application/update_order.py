import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel

from printshop.application.access import Actor, ensure_can_change_status, ensure_can_view
from printshop.application.event_hub import OrderEventHub, OrderEventType
from printshop.domain.exceptions import (
    ConcurrentUpdateError, OrderNotFoundError, OrderValidationError, PermissionDeniedError
)
from printshop.domain.lifecycle import ActorRole, ensure_transition
from printshop.domain.models import Order, OrderStatus

logger = logging.getLogger(__name__)


class UpdateOrderDTO(BaseModel):
    status: Optional[OrderStatus] = None
    details: Optional[str] = None
    payment_status: Optional[str] = None
    # пожелания к каждому файлу, в порядке files; цену не меняют
    file_requirements: Optional[list[str]] = None
    # ожидаемая версия заказа (compare-and-swap со стороны клиента)
    version: Optional[int] = None


class UpdateOrderUseCase:
    def __init__(self, unit_of_work, event_hub: OrderEventHub):
        self._uow = unit_of_work
        self._hub = event_hub

    def _collect_changes(self, order: Order, data: UpdateOrderDTO, actor: Actor) -> dict:
        changes = {}

        if data.status is not None and data.status != order.status:
            ensure_can_change_status(actor, order, data.status)
            ensure_transition(order.status, data.status)
            changes["status"] = data.status

        if data.file_requirements is not None:
            if not order.can_be_edited():
                raise OrderValidationError(
                    f"Файлы заказа нельзя менять в статусе {order.status.display}"
                )
            if len(data.file_requirements) != len(order.files):
                raise OrderValidationError(
                    f"Ожидалось {len(order.files)} пожеланий к файлам, получено {len(data.file_requirements)}"
                )
            changes["files"] = [
                file.model_copy(update={"specific_requirements": requirements})
                for file, requirements in zip(order.files, data.file_requirements)
            ]

        if data.details is not None and data.details != order.details:
            if actor.role == ActorRole.USER and not order.can_be_edited():
                raise PermissionDeniedError("Комментарий к заказу можно менять только до начала работы")
            changes["details"] = data.details

        if data.payment_status is not None and data.payment_status != order.payment_status:
            if actor.role == ActorRole.USER:
                raise PermissionDeniedError("Статус оплаты меняет только оператор")
            changes["payment_status"] = data.payment_status

        return changes

    async def __call__(self, order_id: str, data: UpdateOrderDTO, actor: Actor) -> Order:
        logger.info(f"Обновление заказа {order_id}: {data.model_dump(exclude_none=True)}")

        async with self._uow() as uow:
            order = await uow.orders.get_by_id(order_id)
            if not order:
                raise OrderNotFoundError(f"Заказ {order_id} не найден")
            ensure_can_view(actor, order)

            if data.version is not None and data.version != order.version:
                raise ConcurrentUpdateError(order_id, data.version)

            changes = self._collect_changes(order, data, actor)
            if not changes:
                logger.info(f"Заказ {order_id} не изменился")
                return order

            updated = order.model_copy(update={
                **changes,
                "version": order.version + 1,
                "updated_at": datetime.now(timezone.utc),
            })
            if not await uow.orders.update(updated, expected_version=order.version):
                raise ConcurrentUpdateError(order_id, order.version)
            await uow.commit()

        if "status" in changes:
            logger.info(f"Заказ {order_id}: {order.status.display} -> {updated.status.display}")

        await self._hub.publish(OrderEventType.UPDATED, updated)
        return updated
