from abc import ABC, abstractmethod
from typing import Any, Optional, List

from printshop.domain.models import Order, OrderStatus, StorageRef, Store


class OrderRepository(ABC):
    @abstractmethod
    async def get_by_id(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def list_orders(
        self,
        customer_id: Optional[str] = None,
        store_id: Optional[str] = None,
        status: Optional[OrderStatus] = None,
    ) -> List[Order]:
        pass

    @abstractmethod
    async def create(self, order: Order) -> None:
        pass

    @abstractmethod
    async def update(self, order: Order, expected_version: int) -> bool:
        """Compare-and-swap по version. False, если запись успели изменить"""
        pass

    @abstractmethod
    async def delete(self, order_id: str) -> bool:
        pass

    @abstractmethod
    async def count_pending_by_store(self) -> dict[str, int]:
        pass


class UnitOfWork(ABC):
    @property
    @abstractmethod
    def orders(self) -> OrderRepository:
        pass

    @abstractmethod
    async def __call__(self):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass


class StoreDirectory(ABC):
    @abstractmethod
    async def get_store(self, store_id: str) -> Optional[Store]:
        pass


class ObjectStorage(ABC):
    @abstractmethod
    async def store(self, filename: str, content: bytes, content_type: str) -> StorageRef:
        pass

    @abstractmethod
    async def sign_url(self, opaque_id: str, expires_in: int) -> str:
        pass


class EventPublisher(ABC):
    """Транспорт реального времени: доставляет сообщение в логический канал"""

    @abstractmethod
    async def publish(self, channel: str, event: str, data: Optional[dict[str, Any]]) -> None:
        pass
