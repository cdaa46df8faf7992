import math
from dataclasses import dataclass
from typing import Any, Generic, List, Optional, TypeVar

from sqlalchemy.orm import Query

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


def _positive_int(raw: Any, default: int) -> int:
    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


def parse_page_params(page: Any = None, limit: Any = None) -> tuple[int, int]:
    """Coerce raw page/limit query values; absent, non-numeric or < 1 fall back to 1/10."""
    return _positive_int(page, DEFAULT_PAGE), _positive_int(limit, DEFAULT_LIMIT)


@dataclass
class Page(Generic[T]):
    items: List[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    def meta(self, total_key: str) -> dict:
        """Pagination block for the response envelope; total_key is e.g. "total_tasks"."""
        return {
            "current_page": self.page,
            "total_pages": self.total_pages,
            total_key: self.total,
            "has_next": self.has_next,
            "has_prev": self.has_prev,
        }


def paginate(query: Query, page: int, limit: int, order_by: Optional[list] = None) -> Page:
    """Run a count and one page of query; order_by is applied to the page only."""
    total = query.order_by(None).count()
    page_query = query
    if order_by:
        page_query = page_query.order_by(*order_by)
    items = page_query.offset((page - 1) * limit).limit(limit).all()
    return Page(items=items, total=total, page=page, limit=limit)
