"""Расчет стоимости печати.

Все суммы считаются в Decimal без промежуточного округления; до копеек
округляется только итог заказа. Отсутствующая в прайсе позиция стоит 0.
"""
from decimal import ROUND_HALF_UP, Decimal

from pydantic import BaseModel

from printshop.domain.models import BindingType, PriceTable, PrintSpec, PrintType

CENTS = Decimal("0.01")
ZERO = Decimal("0")

NO_SPECIAL_PAPER = {"", "none", "normal"}


class PriceQuote(BaseModel):
    per_file: list[Decimal]
    total: Decimal


def _paper_surcharge(file: PrintSpec, table: PriceTable) -> Decimal:
    if file.special_paper in NO_SPECIAL_PAPER:
        return ZERO
    return file.copies * table.paper_types.get(file.special_paper, ZERO)


def _binding_cost(file: PrintSpec, table: PriceTable) -> Decimal:
    if not file.binding.needed or file.binding.type == BindingType.NONE:
        return ZERO
    return table.binding.get(file.binding.type.value, ZERO)


def split_pages(file: PrintSpec) -> tuple[int, int]:
    """(цветные, ч/б) страницы одного экземпляра; сумма всегда равна page_count"""
    if file.print_type == PrintType.COLOR:
        return file.page_count, 0
    if file.print_type == PrintType.MIXED:
        color_count = len(file.color_page_set())
        return color_count, file.page_count - color_count
    return 0, file.page_count


def price_file(file: PrintSpec, table: PriceTable) -> Decimal:
    color_count, bw_count = split_pages(file)
    color_rate = table.color.for_sides(file.double_sided)
    bw_rate = table.black_and_white.for_sides(file.double_sided)

    base = file.copies * (color_count * color_rate + bw_count * bw_rate)
    return base + _paper_surcharge(file, table) + _binding_cost(file, table)


def price_files(files: list[PrintSpec], table: PriceTable) -> PriceQuote:
    per_file = [price_file(file, table) for file in files]
    total = sum(per_file, ZERO).quantize(CENTS, rounding=ROUND_HALF_UP)
    return PriceQuote(per_file=per_file, total=total)
