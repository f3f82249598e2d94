"""Жизненный цикл заказа: статусы, разрешенные переходы и кто их может выполнять.

    pending -> processing -> completed
                          -> shipped -> delivered
    cancelled достижим из любого нетерминального статуса.
"""
from enum import Enum

from printshop.domain.exceptions import InvalidTransitionError, OrderValidationError


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    COMPLETED = "completed"

    @classmethod
    def parse(cls, value: str) -> "OrderStatus":
        """Статус с клиента приходит в любом регистре ("Pending", "PENDING")"""
        try:
            return cls(value.strip().lower())
        except (ValueError, AttributeError):
            raise OrderValidationError(f"Неизвестный статус заказа: {value!r}")

    @property
    def display(self) -> str:
        return self.value.capitalize()


class ActorRole(str, Enum):
    USER = "user"            # клиент
    ADMIN = "admin"          # оператор точки печати
    DEVELOPER = "developer"  # оператор платформы


TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PROCESSING, OrderStatus.CANCELLED}),
    OrderStatus.PROCESSING: frozenset({
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
        OrderStatus.SHIPPED,
    }),
    OrderStatus.SHIPPED: frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED}),
    OrderStatus.DELIVERED: frozenset(),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in TRANSITIONS.items() if not targets)


def allowed_transitions(current: OrderStatus) -> frozenset[OrderStatus]:
    return TRANSITIONS[current]


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return target in TRANSITIONS[current]


def ensure_transition(current: OrderStatus, target: OrderStatus) -> None:
    if not can_transition(current, target):
        raise InvalidTransitionError(current.display, target.display)


def may_trigger(role: ActorRole, current: OrderStatus, target: OrderStatus) -> bool:
    """Бизнес-правило: клиент может только отменить заказ, пока его не взяли в работу"""
    if role == ActorRole.USER:
        return current == OrderStatus.PENDING and target == OrderStatus.CANCELLED
    return True
