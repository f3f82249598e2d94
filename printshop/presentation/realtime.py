import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status

from printshop.application.event_hub import ORDERS_UPDATED_CHANNEL, store_channel, user_channel
from printshop.domain.lifecycle import ActorRole
from printshop.infrastructure.websocket_channels import ChannelRegistry, Subscription
from printshop.presentation.dependencies import get_channel_registry

logger = logging.getLogger(__name__)

router = APIRouter()


def channels_for(user_id: str, role: ActorRole, store_id: Optional[str]) -> list[str]:
    """Каналы, которые получает подключение: свой, своей точки (для админа) и глобальный"""
    channels = [user_channel(user_id), ORDERS_UPDATED_CHANNEL]
    if role in (ActorRole.ADMIN, ActorRole.DEVELOPER) and store_id:
        channels.append(store_channel(store_id))
    return channels


async def forward(websocket: WebSocket, subscription: Subscription):
    while True:
        message = await subscription.queue.get()
        await websocket.send_json(message)


async def stop_forwarding(sender: asyncio.Task) -> None:
    """Останавливает отправку и забирает ее результат, чтобы ошибка не потерялась"""
    sender.cancel()
    result, = await asyncio.gather(sender, return_exceptions=True)
    if isinstance(result, Exception):
        logger.warning(f"Отправка событий в сокет прервалась с ошибкой: {result!r}")


@router.websocket("/ws")
async def order_events(
    websocket: WebSocket,
    user_id: Optional[str] = None,
    role: Optional[str] = None,
    store_id: Optional[str] = None,
    registry: ChannelRegistry = Depends(get_channel_registry),
):
    """Поток событий заказов для клиента, точки печати или платформы"""
    try:
        actor_role = ActorRole((role or "").lower())
    except ValueError:
        actor_role = None
    if not user_id or actor_role is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    subscription = registry.subscribe(channels_for(user_id, actor_role, store_id))
    sender = asyncio.create_task(forward(websocket, subscription))
    try:
        while True:
            # Клиент ничего не присылает по делу, читаем только чтобы заметить отключение
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info(f"Клиент {user_id} отключился")
    finally:
        registry.unsubscribe(subscription)
        await stop_forwarding(sender)
