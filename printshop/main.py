# printshop/main.py
from fastapi import FastAPI
from contextlib import asynccontextmanager
from printshop.config import settings
from printshop.database import create_tables
from printshop.presentation.api import router
from printshop.presentation.dependencies import kafka_publisher
from printshop.presentation.realtime import router as realtime_router
import logging

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Управление жизненным циклом приложения"""
    # 1. Создаем таблицы
    try:
        await create_tables()
        logger.info("Таблицы созданы")
    except Exception as e:
        logger.info(f"Таблицы уже существуют: {e}")

    # 2. Зеркало событий в Kafka, если настроено
    if kafka_publisher:
        await kafka_publisher.start()

    yield

    logger.info("Приложение останавливается...")
    if kafka_publisher:
        await kafka_publisher.stop()

app = FastAPI(
    title="Print Order Service",
    description="Заказы печати: расчет стоимости, статусы, события в реальном времени",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(router, prefix="/api")
app.include_router(realtime_router, prefix="/api")


@app.get("/")
async def root():
    return {"message": "Print Order Service работает"}


@app.get("/health")
async def health():
    return {"status": "healthy", "kafka": "enabled" if kafka_publisher else "disabled"}
