"""In-memory заменители портов приложения для тестов"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Optional

from printshop.application.interfaces import EventPublisher, ObjectStorage, OrderRepository, StoreDirectory
from printshop.domain.exceptions import NotificationError, StorageServiceError
from printshop.domain.models import (
    FileSpec, Order, OrderStatus, PriceTable, SidedRates, StorageRef, Store,
)


class InMemoryOrderRepository(OrderRepository):
    def __init__(self, rows: dict[str, Order], before_update: Optional[Callable] = None):
        self._rows = rows
        self._before_update = before_update

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        return self._rows.get(order_id)

    async def list_orders(self, customer_id=None, store_id=None, status=None) -> list[Order]:
        return [
            order for order in self._rows.values()
            if (customer_id is None or order.customer_id == customer_id)
            and (store_id is None or order.store_id == store_id)
            and (status is None or order.status == status)
        ]

    async def create(self, order: Order) -> None:
        self._rows[order.id] = order

    async def update(self, order: Order, expected_version: int) -> bool:
        if self._before_update:
            self._before_update(self._rows)
        current = self._rows.get(order.id)
        if current is None or current.version != expected_version:
            return False
        self._rows[order.id] = order
        return True

    async def delete(self, order_id: str) -> bool:
        return self._rows.pop(order_id, None) is not None

    async def count_pending_by_store(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for order in self._rows.values():
            if order.status == OrderStatus.PENDING:
                counts[order.store_id] = counts.get(order.store_id, 0) + 1
        return counts


class _InMemorySession:
    def __init__(self, uow: "InMemoryUnitOfWork"):
        self._uow = uow
        self._staged = dict(uow.committed)
        self.orders = InMemoryOrderRepository(self._staged, uow.before_update)

    async def commit(self):
        self._uow.committed = dict(self._staged)
        self._uow.commits += 1

    async def rollback(self):
        self._staged.clear()
        self._staged.update(self._uow.committed)


class InMemoryUnitOfWork:
    """Изменения видны остальным только после commit, как у настоящей сессии"""

    def __init__(self):
        self.committed: dict[str, Order] = {}
        self.commits = 0
        # вызывается перед каждой записью, чтобы смоделировать параллельного писателя
        self.before_update: Optional[Callable] = None

    @asynccontextmanager
    async def __call__(self):
        yield _InMemorySession(self)

    def add(self, order: Order) -> Order:
        self.committed[order.id] = order
        return order


class FakeStoreDirectory(StoreDirectory):
    def __init__(self, stores: Optional[list[Store]] = None):
        self._stores = {store.id: store for store in stores or []}

    async def get_store(self, store_id: str) -> Optional[Store]:
        return self._stores.get(store_id)


class FakeObjectStorage(ObjectStorage):
    def __init__(self, fail_on: Optional[str] = None):
        self.fail_on = fail_on
        self.stored: list[str] = []

    async def store(self, filename: str, content: bytes, content_type: str) -> StorageRef:
        if filename == self.fail_on:
            raise StorageServiceError(f"storage is down for {filename}")
        self.stored.append(filename)
        opaque_id = f"obj-{len(self.stored)}"
        return StorageRef(url=f"https://files.example/{opaque_id}", opaque_id=opaque_id)

    async def sign_url(self, opaque_id: str, expires_in: int) -> str:
        return f"https://files.example/{opaque_id}?expires={expires_in}"


class RecordingPublisher(EventPublisher):
    def __init__(self):
        self.messages: list[tuple[str, str, Optional[dict[str, Any]]]] = []

    async def publish(self, channel: str, event: str, data: Optional[dict[str, Any]]) -> None:
        self.messages.append((channel, event, data))

    def events(self) -> list[str]:
        return [event for _, event, _ in self.messages]

    def channels(self) -> list[str]:
        return [channel for channel, _, _ in self.messages]


class FailingPublisher(EventPublisher):
    def __init__(self):
        self.attempts = 0

    async def publish(self, channel: str, event: str, data: Optional[dict[str, Any]]) -> None:
        self.attempts += 1
        raise NotificationError("transport is down")


STORE_PRICING = PriceTable(
    black_and_white=SidedRates(single_sided=Decimal("2"), double_sided=Decimal("3")),
    color=SidedRates(single_sided=Decimal("5"), double_sided=Decimal("8")),
    binding={"spiralBinding": Decimal("25")},
    paper_types={"glossy": Decimal("5")},
)


def make_file(name: str = "thesis.pdf", **overrides) -> FileSpec:
    values = dict(
        storage_ref=StorageRef(url=f"https://files.example/{name}", opaque_id=f"id-{name}"),
        original_name=name,
        page_count=10,
    )
    values.update(overrides)
    return FileSpec(**values)


def make_order(
    store_id: str = "S1",
    customer_id: str = "u1",
    status: OrderStatus = OrderStatus.PENDING,
    created_at: Optional[datetime] = None,
    **overrides,
) -> Order:
    now = created_at or datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)
    order = Order.create(
        customer_id=customer_id,
        store_id=store_id,
        files=[make_file()],
        total_price=Decimal("20.00"),
        now=now,
        store_name="Copy Center",
    )
    return order.model_copy(update={"status": status, **overrides})
