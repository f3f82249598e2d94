from typing import Iterable


def _parse_page_number(token: str) -> int | None:
    token = token.strip()
    if not token.isdecimal():
        return None
    return int(token)


def parse_page_range(spec: str | None, page_count: int) -> set[int]:
    """Разбор строки вида "1-3,5,7-9" в множество номеров страниц.

    Результат всегда лежит в [1, page_count]. Пустой или битый ввод дает
    пустое множество; нераспознанные части пропускаются, исключений нет.
    """
    pages: set[int] = set()
    if not spec or page_count <= 0:
        return pages

    for part in spec.split(","):
        part = part.strip()
        if not part:
            continue

        if "-" in part:
            bounds = part.split("-")
            if len(bounds) != 2:
                continue
            start = _parse_page_number(bounds[0])
            end = _parse_page_number(bounds[1])
            if start is None or end is None or start > end:
                continue
            start = max(start, 1)
            end = min(end, page_count)
            pages.update(range(start, end + 1))
        else:
            page = _parse_page_number(part)
            if page is not None and 1 <= page <= page_count:
                pages.add(page)

    return pages


def format_page_range(pages: Iterable[int]) -> str:
    """Минимальная запись набора страниц: подряд идущие номера сворачиваются в диапазон."""
    ordered = sorted(set(pages))
    runs = []
    start = prev = None
    for page in ordered:
        if start is None:
            start = prev = page
        elif page == prev + 1:
            prev = page
        else:
            runs.append((start, prev))
            start = prev = page
    if start is not None:
        runs.append((start, prev))

    return ",".join(str(a) if a == b else f"{a}-{b}" for a, b in runs)
