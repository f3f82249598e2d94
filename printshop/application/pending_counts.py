class PendingOrdersCountUseCase:
    """Количество заказов в статусе pending по точкам печати.

    Каждый раз пересчитывается по базе целиком. Точки без pending-заказов в
    ответ не попадают.
    """

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self) -> dict[str, int]:
        async with self._uow() as uow:
            counts = await uow.orders.count_pending_by_store()
        return {store_id: count for store_id, count in counts.items() if count > 0}
