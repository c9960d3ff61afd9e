from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Callable, Generic, Sequence, TypeVar

from ..core.constants import DEFAULT_PAGE, MAX_PAGE_LIMIT

T = TypeVar("T")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 0
        return math.ceil(self.total / self.limit)

    def meta(self) -> dict:
        return {"total": self.total, "page": self.page, "pages": self.pages}

    def map(self, fn: Callable[[T], object]) -> list:
        return [fn(item) for item in self.items]


def normalize_paging(page, limit, *, default_limit: int) -> tuple[int, int]:
    """Clamp page/limit query values to sane integers."""
    try:
        page_i = int(page) if page not in (None, "") else DEFAULT_PAGE
    except (TypeError, ValueError):
        page_i = DEFAULT_PAGE
    try:
        limit_i = int(limit) if limit not in (None, "") else default_limit
    except (TypeError, ValueError):
        limit_i = default_limit
    return max(page_i, 1), min(max(limit_i, 1), MAX_PAGE_LIMIT)


def offset_for(page: int, limit: int) -> int:
    return (page - 1) * limit


def slice_page(items: Sequence[T], *, page: int, limit: int) -> Page[T]:
    start = offset_for(page, limit)
    return Page(items=list(items[start:start + limit]), total=len(items), page=page, limit=limit)
