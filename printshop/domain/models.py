import secrets
import time
import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, NewType, Optional

from pydantic import BaseModel, ConfigDict, Field

from printshop.domain.exceptions import OrderValidationError
from printshop.domain.lifecycle import OrderStatus, allowed_transitions
from printshop.domain.page_ranges import parse_page_range

NonNegativeDecimal = Annotated[Decimal, Field(ge=0)]

# Человекочитаемый номер заказа. Для поиска используется только Order.id
OrderNumber = NewType("OrderNumber", str)

BYTES_PER_PAGE_ESTIMATE = 100 * 1024
MAX_PAGE_COUNT = 10_000


def generate_order_number() -> OrderNumber:
    millis = str(int(time.time() * 1000))
    return OrderNumber(f"ORD-{millis[-6:]}-{secrets.token_hex(2)}")


class PrintType(str, Enum):
    BLACK_AND_WHITE = "blackAndWhite"
    COLOR = "color"
    MIXED = "mixed"


class BindingType(str, Enum):
    NONE = "none"
    SPIRAL = "spiralBinding"
    STAPLING = "staplingBinding"
    HARDCOVER = "hardcoverBinding"


class StorageRef(BaseModel):
    """Value Object — ссылка на файл во внешнем хранилище, храним как есть"""
    model_config = ConfigDict(frozen=True)

    url: str
    opaque_id: str


class Binding(BaseModel):
    model_config = ConfigDict(frozen=True)

    needed: bool = False
    type: BindingType = BindingType.NONE


def estimate_page_count(size_in_bytes: int) -> int:
    """Грубая оценка, если клиент не прислал число страниц: ~100 КБ на страницу"""
    return min(MAX_PAGE_COUNT, max(1, -(-size_in_bytes // BYTES_PER_PAGE_ESTIMATE)))


class PrintSpec(BaseModel):
    """Value Object — параметры печати, от которых зависит цена"""
    model_config = ConfigDict(frozen=True)

    copies: int = Field(default=1, ge=1)
    print_type: PrintType = PrintType.BLACK_AND_WHITE
    color_pages: str = ""
    page_count: int = Field(ge=1, le=MAX_PAGE_COUNT)
    double_sided: bool = False
    special_paper: str = "none"
    binding: Binding = Binding()

    def color_page_set(self) -> set[int]:
        if self.print_type != PrintType.MIXED:
            return set()
        return parse_page_range(self.color_pages, self.page_count)

    @property
    def prints_color(self) -> bool:
        return self.print_type == PrintType.COLOR or (
            self.print_type == PrintType.MIXED and bool(self.color_page_set())
        )


class FileSpec(PrintSpec):
    """Value Object — один загруженный документ внутри заказа"""
    storage_ref: StorageRef
    original_name: str
    specific_requirements: str = ""


class SidedRates(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    single_sided: NonNegativeDecimal = Field(default=Decimal("0"), alias="singleSided")
    double_sided: NonNegativeDecimal = Field(default=Decimal("0"), alias="doubleSided")

    def for_sides(self, double_sided: bool) -> Decimal:
        return self.double_sided if double_sided else self.single_sided


class PriceTable(BaseModel):
    """Прайс точки печати. Принадлежит магазину, здесь только читается"""
    model_config = ConfigDict(populate_by_name=True)

    black_and_white: SidedRates = Field(default_factory=SidedRates, alias="blackAndWhite")
    color: SidedRates = Field(default_factory=SidedRates)
    binding: dict[str, NonNegativeDecimal] = Field(default_factory=dict)
    paper_types: dict[str, NonNegativeDecimal] = Field(default_factory=dict, alias="paperTypes")


DEFAULT_PRICE_TABLE = PriceTable(
    black_and_white=SidedRates(single_sided=Decimal("2"), double_sided=Decimal("3")),
    color=SidedRates(single_sided=Decimal("5"), double_sided=Decimal("8")),
    binding={
        BindingType.SPIRAL.value: Decimal("25"),
        BindingType.STAPLING.value: Decimal("10"),
        BindingType.HARDCOVER.value: Decimal("50"),
    },
    paper_types={
        "normal": Decimal("0"),
        "glossy": Decimal("5"),
        "matte": Decimal("7"),
        "transparent": Decimal("10"),
    },
)


class Store(BaseModel):
    """Value Object — точка печати из внешнего справочника"""
    id: str
    name: str
    pricing: Optional[PriceTable] = None

    @property
    def price_table(self) -> PriceTable:
        return self.pricing or DEFAULT_PRICE_TABLE


class Order(BaseModel):
    """Domain Entity — заказ на печать"""
    id: str
    order_number: OrderNumber
    customer_id: str
    customer_name: str | None = None
    store_id: str
    store_name: str | None = None
    document_name: str
    files: list[FileSpec]
    status: OrderStatus = OrderStatus.PENDING
    total_price: Decimal = Field(ge=0)
    copies: int
    double_sided: bool
    color_type: str
    details: str | None = None
    payment_status: str | None = None
    version: int = 1
    created_at: datetime
    updated_at: datetime

    @classmethod
    def create(
        cls,
        customer_id: str,
        store_id: str,
        files: list[FileSpec],
        total_price: Decimal,
        now: datetime,
        customer_name: str | None = None,
        store_name: str | None = None,
        details: str | None = None,
    ) -> "Order":
        """Сборка нового заказа. Производные поля считаются здесь один раз"""
        if not store_id:
            raise OrderValidationError("Не выбрана точка печати")
        if not files:
            raise OrderValidationError("Заказ должен содержать хотя бы один файл")

        if len(files) == 1:
            document_name = files[0].original_name
        else:
            document_name = f"{len(files)} documents"

        return cls(
            id=str(uuid.uuid4()),
            order_number=generate_order_number(),
            customer_id=customer_id,
            customer_name=customer_name,
            store_id=store_id,
            store_name=store_name,
            document_name=document_name,
            files=list(files),
            status=OrderStatus.PENDING,
            total_price=total_price,
            copies=sum(f.copies for f in files),
            double_sided=any(f.double_sided for f in files),
            color_type="color" if any(f.prints_color for f in files) else "blackAndWhite",
            details=details,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_pending(self) -> bool:
        return self.status == OrderStatus.PENDING

    def can_be_edited(self) -> bool:
        """Бизнес-правило: состав файлов меняется только пока заказ PENDING"""
        return self.is_pending

    def can_be_cancelled(self) -> bool:
        return OrderStatus.CANCELLED in allowed_transitions(self.status)
