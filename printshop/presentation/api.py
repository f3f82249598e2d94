import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status
from pydantic import ValidationError

from printshop.presentation.dependencies import (
    enforce_rate_limit, get_actor, get_create_order_use_case, get_delete_order_use_case,
    get_get_order_use_case, get_list_orders_use_case, get_pending_counts_use_case,
    get_quote_use_case, get_update_order_use_case,
)
from printshop.presentation.schemas import (
    CreateOrderRequest, ErrorResponse, OrderResponse, PendingCountsResponse,
    QuoteRequest, QuoteResponse, UpdateOrderRequest,
)
from printshop.application.access import Actor
from printshop.application.create_order import CreateOrderDTO, CreateOrderUseCase, UploadedFile
from printshop.application.delete_order import DeleteOrderUseCase
from printshop.application.get_order import GetOrderUseCase
from printshop.application.list_orders import ListOrdersUseCase
from printshop.application.pending_counts import PendingOrdersCountUseCase
from printshop.application.quote_order import QuoteOrderUseCase
from printshop.application.update_order import UpdateOrderDTO, UpdateOrderUseCase
from printshop.domain.exceptions import (
    ConcurrentUpdateError, DomainException, InvalidTransitionError, OrderNotFoundError,
    OrderValidationError, PermissionDeniedError, StorageServiceError, StoreNotFoundError,
    StoreServiceError,
)
from printshop.domain.models import OrderStatus

logger = logging.getLogger(__name__)

router = APIRouter()

ERROR_STATUS = {
    OrderValidationError: status.HTTP_400_BAD_REQUEST,
    StoreNotFoundError: status.HTTP_400_BAD_REQUEST,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
    OrderNotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    ConcurrentUpdateError: status.HTTP_409_CONFLICT,
    StorageServiceError: status.HTTP_503_SERVICE_UNAVAILABLE,
    StoreServiceError: status.HTTP_503_SERVICE_UNAVAILABLE,
}

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    403: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
}


def http_error(e: DomainException) -> HTTPException:
    """Ошибка домена -> HTTP со стабильным kind, по которому клиент может ветвиться"""
    status_code = ERROR_STATUS.get(type(e), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return HTTPException(status_code=status_code, detail={"message": str(e), "kind": e.kind})


@router.post(
    "/orders",
    response_model=OrderResponse,
    responses={**ERROR_RESPONSES, 429: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_rate_limit)],
)
async def create_order(
    spec: str = Form(...),
    files: list[UploadFile] = File(...),
    actor: Actor = Depends(get_actor),
    use_case: CreateOrderUseCase = Depends(get_create_order_use_case)
):
    """Создать новый заказ: файлы + JSON с параметрами печати"""
    try:
        request = CreateOrderRequest.model_validate_json(spec)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": f"Некорректные параметры заказа: {e}", "kind": OrderValidationError.kind},
        )

    uploads = [
        UploadedFile(
            filename=upload.filename or f"document-{index + 1}",
            content=await upload.read(),
            content_type=upload.content_type or "application/octet-stream",
        )
        for index, upload in enumerate(files)
    ]

    try:
        dto = CreateOrderDTO(
            customer_id=actor.id,
            customer_name=request.customer_name,
            store_id=request.store_id,
            details=request.details,
            files=request.files,
            uploads=uploads,
        )
        order = await use_case(dto)
        return OrderResponse.from_domain(order)

    except DomainException as e:
        logger.warning(f"Заказ не создан: {e}")
        raise http_error(e)


@router.post(
    "/orders/quote",
    response_model=QuoteResponse,
    responses={400: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def quote_order(
    request: QuoteRequest,
    use_case: QuoteOrderUseCase = Depends(get_quote_use_case)
):
    """Предварительный расчет стоимости"""
    try:
        quote = await use_case(request.store_id, request.files)
        return QuoteResponse(per_file=quote.per_file, total=quote.total)
    except DomainException as e:
        raise http_error(e)


@router.get("/orders", response_model=list[OrderResponse], responses={403: {"model": ErrorResponse}})
async def list_orders(
    status_filter: Optional[str] = Query(default=None, alias="status"),
    actor: Actor = Depends(get_actor),
    use_case: ListOrdersUseCase = Depends(get_list_orders_use_case)
):
    """Заказы, видимые текущему пользователю (клиенту свои, точке свои, платформе все)"""
    try:
        order_status = OrderStatus.parse(status_filter) if status_filter else None
        orders = await use_case(actor, order_status)
        return [OrderResponse.from_domain(order) for order in orders]
    except DomainException as e:
        raise http_error(e)


@router.get("/orders/pending-by-store", response_model=PendingCountsResponse)
async def pending_orders_by_store(
    use_case: PendingOrdersCountUseCase = Depends(get_pending_counts_use_case)
):
    """Количество заказов, ожидающих обработки, по точкам печати"""
    counts = await use_case()
    return PendingCountsResponse(pending_orders_by_store=counts)


@router.get(
    "/orders/{order_id}",
    response_model=OrderResponse,
    responses={**ERROR_RESPONSES, 429: {"model": ErrorResponse}},
    dependencies=[Depends(enforce_rate_limit)],
)
async def get_order(
    order_id: str,
    actor: Actor = Depends(get_actor),
    use_case: GetOrderUseCase = Depends(get_get_order_use_case)
):
    """Получить заказ по ID со свежими ссылками на файлы"""
    try:
        order, signed_urls = await use_case(order_id, actor)
        return OrderResponse.from_domain(order, signed_urls)
    except DomainException as e:
        raise http_error(e)


@router.put("/orders/{order_id}", response_model=OrderResponse, responses=ERROR_RESPONSES)
async def update_order(
    order_id: str,
    request: UpdateOrderRequest,
    actor: Actor = Depends(get_actor),
    use_case: UpdateOrderUseCase = Depends(get_update_order_use_case)
):
    """Частичное обновление заказа, в первую очередь смена статуса"""
    try:
        dto = UpdateOrderDTO(**request.model_dump())
        order = await use_case(order_id, dto, actor)
        return OrderResponse.from_domain(order)
    except DomainException as e:
        raise http_error(e)


@router.delete("/orders/{order_id}", responses=ERROR_RESPONSES)
async def delete_order(
    order_id: str,
    actor: Actor = Depends(get_actor),
    use_case: DeleteOrderUseCase = Depends(get_delete_order_use_case)
):
    """Удалить заказ"""
    try:
        order = await use_case(order_id, actor)
        return {"status": "ok", "id": order.id}
    except DomainException as e:
        raise http_error(e)
