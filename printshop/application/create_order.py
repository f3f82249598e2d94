import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from printshop.application.event_hub import OrderEventHub, OrderEventType
from printshop.application.interfaces import ObjectStorage, StoreDirectory
from printshop.domain.exceptions import OrderValidationError, StorageServiceError, StoreNotFoundError
from printshop.domain.models import (
    MAX_PAGE_COUNT, Binding, FileSpec, Order, PrintType, estimate_page_count
)
from printshop.domain.pricing import price_files

logger = logging.getLogger(__name__)


class FileSpecDTO(BaseModel):
    copies: int = Field(default=1, ge=1)
    print_type: PrintType = PrintType.BLACK_AND_WHITE
    color_pages: str = ""
    page_count: Optional[int] = Field(default=None, ge=1, le=MAX_PAGE_COUNT)
    double_sided: bool = False
    special_paper: str = "none"
    binding: Binding = Binding()
    specific_requirements: str = ""


class UploadedFile(BaseModel):
    filename: str
    content: bytes
    content_type: str = "application/octet-stream"


class CreateOrderDTO(BaseModel):
    customer_id: str
    customer_name: Optional[str] = None
    store_id: str
    details: Optional[str] = None
    files: list[FileSpecDTO]
    uploads: list[UploadedFile]


class CreateOrderUseCase:
    def __init__(
        self,
        unit_of_work,
        store_directory: StoreDirectory,
        storage: ObjectStorage,
        event_hub: OrderEventHub,
    ):
        self._uow = unit_of_work
        self._stores = store_directory
        self._storage = storage
        self._hub = event_hub

    def _validate(self, data: CreateOrderDTO) -> None:
        if not data.store_id:
            raise OrderValidationError("Не выбрана точка печати")
        if not data.files or not data.uploads:
            raise OrderValidationError("Заказ должен содержать хотя бы один файл")
        if len(data.files) != len(data.uploads):
            raise OrderValidationError(
                f"Количество файлов ({len(data.uploads)}) не совпадает с количеством параметров печати ({len(data.files)})"
            )

    async def __call__(self, data: CreateOrderDTO) -> Order:
        logger.info(f"Создание заказа для пользователя {data.customer_id}, точка {data.store_id}")

        # 1. Проверка входных данных до любых побочных эффектов
        self._validate(data)

        # 2. Точка печати и ее прайс
        store = await self._stores.get_store(data.store_id)
        if not store:
            raise StoreNotFoundError(f"Точка печати {data.store_id} не найдена")

        # 3. Загрузка файлов. Уже загруженные при ошибке не удаляем, их подчистит периодическая очистка хранилища
        files = []
        for spec, upload in zip(data.files, data.uploads):
            try:
                storage_ref = await self._storage.store(upload.filename, upload.content, upload.content_type)
            except StorageServiceError:
                raise
            except Exception as e:
                raise StorageServiceError(f"Не удалось загрузить файл {upload.filename}: {e}")

            page_count = spec.page_count or estimate_page_count(len(upload.content))
            files.append(FileSpec(
                storage_ref=storage_ref,
                original_name=upload.filename,
                copies=spec.copies,
                print_type=spec.print_type,
                color_pages=spec.color_pages,
                page_count=page_count,
                double_sided=spec.double_sided,
                special_paper=spec.special_paper,
                binding=spec.binding,
                specific_requirements=spec.specific_requirements,
            ))

        # 4. Расчет суммы по прайсу на момент оформления
        quote = price_files(files, store.price_table)

        # 5. Создание заказа
        order = Order.create(
            customer_id=data.customer_id,
            store_id=store.id,
            files=files,
            total_price=quote.total,
            now=datetime.now(timezone.utc),
            customer_name=data.customer_name,
            store_name=store.name,
            details=data.details,
        )
        async with self._uow() as uow:
            await uow.orders.create(order)
            await uow.commit()
        logger.info(f"Заказ создан: {order.id} ({order.order_number}), сумма {order.total_price}")

        # 6. Уведомление только после коммита
        await self._hub.publish(OrderEventType.CREATED, order)

        return order
