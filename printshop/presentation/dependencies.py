import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from printshop.application.access import Actor
from printshop.application.create_order import CreateOrderUseCase
from printshop.application.delete_order import DeleteOrderUseCase
from printshop.application.event_hub import OrderEventHub
from printshop.application.get_order import GetOrderUseCase
from printshop.application.list_orders import ListOrdersUseCase
from printshop.application.pending_counts import PendingOrdersCountUseCase
from printshop.application.quote_order import QuoteOrderUseCase
from printshop.application.update_order import UpdateOrderUseCase
from printshop.config import settings
from printshop.database import get_db
from printshop.domain.exceptions import RateLimitedError
from printshop.domain.lifecycle import ActorRole
from printshop.infrastructure.http_clients import HTTPObjectStorageClient, HTTPStoreClient
from printshop.infrastructure.kafka_producer import CompositeEventPublisher, KafkaEventPublisher
from printshop.infrastructure.rate_limiter import SlidingWindowRateLimiter
from printshop.infrastructure.unit_of_work import SQLAlchemyUnitOfWork
from printshop.infrastructure.websocket_channels import ChannelRegistry, WebSocketChannelPublisher
from printshop.presentation.schemas import order_payload

logger = logging.getLogger(__name__)

# Общие на процесс объекты
channel_registry = ChannelRegistry()
kafka_publisher = (
    KafkaEventPublisher(settings.KAFKA_BOOTSTRAP_SERVERS, settings.ORDER_EVENTS_TOPIC)
    if settings.KAFKA_BOOTSTRAP_SERVERS else None
)
_publishers = [WebSocketChannelPublisher(channel_registry)]
if kafka_publisher:
    _publishers.append(kafka_publisher)
event_hub = OrderEventHub(CompositeEventPublisher(_publishers), serializer=order_payload)

rate_limiter = SlidingWindowRateLimiter(settings.RATE_LIMIT_PER_MINUTE, settings.RATE_LIMIT_WINDOW_SECONDS)
store_directory = HTTPStoreClient(settings.STORES_BASE_URL, settings.API_TOKEN)
object_storage = HTTPObjectStorageClient(settings.STORAGE_BASE_URL, settings.API_TOKEN)


def get_channel_registry() -> ChannelRegistry:
    return channel_registry


def get_event_hub() -> OrderEventHub:
    return event_hub


def get_rate_limiter() -> SlidingWindowRateLimiter:
    return rate_limiter


def get_store_directory():
    return store_directory


def get_object_storage():
    return object_storage


def get_unit_of_work(db: AsyncSession = Depends(get_db)):
    return SQLAlchemyUnitOfWork(db)


# Фабрики для создания use cases
def get_create_order_use_case(
    uow=Depends(get_unit_of_work),
    stores=Depends(get_store_directory),
    storage=Depends(get_object_storage),
    hub: OrderEventHub = Depends(get_event_hub),
):
    return CreateOrderUseCase(uow, stores, storage, hub)


def get_get_order_use_case(uow=Depends(get_unit_of_work), storage=Depends(get_object_storage)):
    return GetOrderUseCase(uow, storage, settings.SIGNED_URL_TTL_SECONDS)


def get_list_orders_use_case(uow=Depends(get_unit_of_work)):
    return ListOrdersUseCase(uow)


def get_update_order_use_case(uow=Depends(get_unit_of_work), hub: OrderEventHub = Depends(get_event_hub)):
    return UpdateOrderUseCase(uow, hub)


def get_delete_order_use_case(uow=Depends(get_unit_of_work), hub: OrderEventHub = Depends(get_event_hub)):
    return DeleteOrderUseCase(uow, hub)


def get_pending_counts_use_case(uow=Depends(get_unit_of_work)):
    return PendingOrdersCountUseCase(uow)


def get_quote_use_case(stores=Depends(get_store_directory)):
    return QuoteOrderUseCase(stores)


def get_actor(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
    x_store_id: Optional[str] = Header(default=None),
) -> Actor:
    """Пользователь, которого аутентифицировал шлюз"""
    if not x_user_id or not x_user_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": "Требуется аутентификация", "kind": "unauthorized"},
        )
    try:
        role = ActorRole(x_user_role.lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"message": f"Неизвестная роль: {x_user_role}", "kind": "unauthorized"},
        )
    return Actor(id=x_user_id, role=role, store_id=x_store_id)


def get_trusted_proxies() -> frozenset[str]:
    return settings.TRUSTED_PROXY_SET


def client_address(request: Request, trusted_proxies: frozenset[str] = frozenset()) -> str:
    """Адрес клиента для лимитов.

    X-Forwarded-For учитывается только если запрос пришел от доверенного прокси:
    цепочка читается справа, берется первый адрес, который не является нашим прокси.
    """
    peer = request.client.host if request.client else "unknown"
    if peer not in trusted_proxies:
        return peer

    forwarded = request.headers.get("x-forwarded-for", "")
    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted_proxies:
            return hop
    return hops[0] if hops else peer


def enforce_rate_limit(
    request: Request,
    limiter: SlidingWindowRateLimiter = Depends(get_rate_limiter),
    trusted_proxies: frozenset[str] = Depends(get_trusted_proxies),
):
    address = client_address(request, trusted_proxies)
    try:
        limiter.hit(address)
    except RateLimitedError as e:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={"message": str(e), "kind": e.kind},
            headers={
                "Retry-After": str(e.retry_after),
                "X-RateLimit-Limit": str(e.limit),
                "X-RateLimit-Remaining": "0",
            },
        )
