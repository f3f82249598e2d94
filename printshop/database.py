from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from printshop.config import settings
from printshop.infrastructure.db_schema import metadata

engine = create_async_engine(settings.DATABASE_URL, pool_pre_ping=True)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def get_db():
    async with AsyncSessionLocal() as db:
        yield db


async def create_tables():
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
