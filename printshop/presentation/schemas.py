from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from decimal import Decimal
from typing import Optional

from printshop.application.create_order import FileSpecDTO
from printshop.domain.exceptions import OrderValidationError
from printshop.domain.models import Binding, Order, OrderStatus, PrintSpec, PrintType


class CreateOrderRequest(BaseModel):
    """JSON-часть multipart запроса: параметры печати в порядке загруженных файлов"""
    store_id: str
    customer_name: Optional[str] = None
    details: Optional[str] = None
    files: list[FileSpecDTO]


class FileResponse(BaseModel):
    original_name: str
    url: str
    storage_id: str
    copies: int
    print_type: PrintType
    color_pages: str
    page_count: int
    double_sided: bool
    special_paper: str
    binding: Binding
    specific_requirements: str


class OrderResponse(BaseModel):
    id: str
    order_number: str
    customer_id: str
    customer_name: Optional[str] = None
    store_id: str
    store_name: Optional[str] = None
    document_name: str
    files: list[FileResponse]
    status: str
    total_price: Decimal
    copies: int
    double_sided: bool
    color_type: str
    details: Optional[str] = None
    payment_status: Optional[str] = None
    version: int
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, order: Order, signed_urls: Optional[list[str]] = None):
        urls = signed_urls or [file.storage_ref.url for file in order.files]
        return cls(
            id=order.id,
            order_number=order.order_number,
            customer_id=order.customer_id,
            customer_name=order.customer_name,
            store_id=order.store_id,
            store_name=order.store_name,
            document_name=order.document_name,
            files=[
                FileResponse(
                    original_name=file.original_name,
                    url=url,
                    storage_id=file.storage_ref.opaque_id,
                    copies=file.copies,
                    print_type=file.print_type,
                    color_pages=file.color_pages,
                    page_count=file.page_count,
                    double_sided=file.double_sided,
                    special_paper=file.special_paper,
                    binding=file.binding,
                    specific_requirements=file.specific_requirements,
                )
                for file, url in zip(order.files, urls)
            ],
            status=order.status.display,
            total_price=order.total_price,
            copies=order.copies,
            double_sided=order.double_sided,
            color_type=order.color_type,
            details=order.details,
            payment_status=order.payment_status,
            version=order.version,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


def order_payload(order: Order) -> dict:
    """Полное представление заказа для событий реального времени"""
    return OrderResponse.from_domain(order).model_dump(mode="json")


class UpdateOrderRequest(BaseModel):
    status: Optional[OrderStatus] = None
    details: Optional[str] = None
    payment_status: Optional[str] = None
    file_requirements: Optional[list[str]] = None
    version: Optional[int] = None

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, value):
        if value is None or isinstance(value, OrderStatus):
            return value
        try:
            return OrderStatus.parse(value)
        except OrderValidationError as e:
            raise ValueError(str(e))


class QuoteRequest(BaseModel):
    store_id: str
    files: list[PrintSpec]


class QuoteResponse(BaseModel):
    per_file: list[Decimal]
    total: Decimal


class PendingCountsResponse(BaseModel):
    success: bool = True
    pending_orders_by_store: dict[str, int] = Field(serialization_alias="pendingOrdersByStore")


class ErrorDetail(BaseModel):
    message: str
    kind: str


class ErrorResponse(BaseModel):
    detail: ErrorDetail
