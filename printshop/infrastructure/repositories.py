from typing import Optional, List
from sqlalchemy import select, insert, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from printshop.domain.models import FileSpec, Order, OrderNumber, OrderStatus
from printshop.infrastructure.db_schema import orders_tbl
from printshop.application.interfaces import OrderRepository


class SQLAlchemyOrderRepository(OrderRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        result = await self._session.execute(
            select(orders_tbl).where(orders_tbl.c.id == order_id)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def list_orders(
        self,
        customer_id: Optional[str] = None,
        store_id: Optional[str] = None,
        status: Optional[OrderStatus] = None,
    ) -> List[Order]:
        stmt = select(orders_tbl).order_by(orders_tbl.c.created_at.desc())
        if customer_id is not None:
            stmt = stmt.where(orders_tbl.c.customer_id == customer_id)
        if store_id is not None:
            stmt = stmt.where(orders_tbl.c.store_id == store_id)
        if status is not None:
            stmt = stmt.where(orders_tbl.c.status == status)

        result = await self._session.execute(stmt)
        return [self._to_domain(row) for row in result.fetchall()]

    async def create(self, order: Order) -> None:
        stmt = insert(orders_tbl).values(**self._to_row(order))
        await self._session.execute(stmt)

    async def update(self, order: Order, expected_version: int) -> bool:
        values = self._to_row(order)
        # id и created_at не меняются никогда
        values.pop("id")
        values.pop("created_at")
        stmt = (
            update(orders_tbl)
            .where(
                orders_tbl.c.id == order.id,
                orders_tbl.c.version == expected_version,
            )
            .values(**values)
        )
        result = await self._session.execute(stmt)
        return result.rowcount == 1

    async def delete(self, order_id: str) -> bool:
        result = await self._session.execute(
            delete(orders_tbl).where(orders_tbl.c.id == order_id)
        )
        return result.rowcount == 1

    async def count_pending_by_store(self) -> dict[str, int]:
        result = await self._session.execute(
            select(orders_tbl.c.store_id, func.count())
            .where(orders_tbl.c.status == OrderStatus.PENDING)
            .group_by(orders_tbl.c.store_id)
        )
        return {row[0]: row[1] for row in result.fetchall()}

    def _to_row(self, order: Order) -> dict:
        """Трансформация Domain → DB"""
        return {
            "id": order.id,
            "order_number": order.order_number,
            "customer_id": order.customer_id,
            "customer_name": order.customer_name,
            "store_id": order.store_id,
            "store_name": order.store_name,
            "document_name": order.document_name,
            "files": [file.model_dump(mode="json") for file in order.files],
            "status": order.status,
            "total_price": order.total_price,
            "copies": order.copies,
            "double_sided": order.double_sided,
            "color_type": order.color_type,
            "details": order.details,
            "payment_status": order.payment_status,
            "version": order.version,
            "created_at": order.created_at,
            "updated_at": order.updated_at,
        }

    def _to_domain(self, row) -> Order:
        """Трансформация DB → Domain"""
        return Order(
            id=row.id,
            order_number=OrderNumber(row.order_number),
            customer_id=row.customer_id,
            customer_name=row.customer_name,
            store_id=row.store_id,
            store_name=row.store_name,
            document_name=row.document_name,
            files=[FileSpec.model_validate(file) for file in row.files],
            status=OrderStatus(row.status),
            total_price=row.total_price,
            copies=row.copies,
            double_sided=row.double_sided,
            color_type=row.color_type,
            details=row.details,
            payment_status=row.payment_status,
            version=row.version,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )
