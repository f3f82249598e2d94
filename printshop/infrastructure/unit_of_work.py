from contextlib import asynccontextmanager
from sqlalchemy.ext.asyncio import AsyncSession

from printshop.infrastructure.repositories import SQLAlchemyOrderRepository


class SQLAlchemyUnitOfWork:
    """Транзакция над сессией запроса. Все, что не закоммичено, откатывается"""

    def __init__(self, session: AsyncSession):
        self._session = session

    @asynccontextmanager
    async def __call__(self):
        scope = _TransactionScope(self._session)
        try:
            yield scope
        except Exception:
            await self._session.rollback()
            raise
        if not scope.committed:
            await self._session.rollback()


class _TransactionScope:
    def __init__(self, session: AsyncSession):
        self._session = session
        self.orders = SQLAlchemyOrderRepository(session)
        self.committed = False

    async def commit(self):
        await self._session.commit()
        self.committed = True

    async def rollback(self):
        await self._session.rollback()
        self.committed = False
