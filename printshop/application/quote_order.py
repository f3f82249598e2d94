from printshop.application.interfaces import StoreDirectory
from printshop.domain.exceptions import OrderValidationError, StoreNotFoundError
from printshop.domain.models import PrintSpec
from printshop.domain.pricing import PriceQuote, price_files


class QuoteOrderUseCase:
    """Предварительный расчет цены для экрана оформления, без создания заказа"""

    def __init__(self, store_directory: StoreDirectory):
        self._stores = store_directory

    async def __call__(self, store_id: str, specs: list[PrintSpec]) -> PriceQuote:
        if not store_id:
            raise OrderValidationError("Не выбрана точка печати")
        store = await self._stores.get_store(store_id)
        if not store:
            raise StoreNotFoundError(f"Точка печати {store_id} не найдена")
        return price_files(specs, store.price_table)
