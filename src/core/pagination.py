"""Offset/limit paging result shared by paged search endpoints."""

import math
from dataclasses import dataclass, field
from typing import Any


@dataclass
class PagedResult:
    """One page of ``items`` out of ``total_count`` matching rows."""

    items: list[Any] = field(default_factory=list)
    total_count: int = 0
    page_number: int = 1
    page_size: int = 10

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 0
        return math.ceil(self.total_count / self.page_size)

    @property
    def has_previous_page(self) -> bool:
        return self.page_number > 1

    @property
    def has_next_page(self) -> bool:
        return self.page_number < self.total_pages

    def to_dict(self, items: list[Any]) -> dict[str, Any]:
        """Serialize the page metadata around already-serialized ``items``."""
        return {
            "items": items,
            "total_count": self.total_count,
            "page_number": self.page_number,
            "page_size": self.page_size,
            "total_pages": self.total_pages,
            "has_previous_page": self.has_previous_page,
            "has_next_page": self.has_next_page,
        }


def paginate(queryset, page_number: int, page_size: int) -> PagedResult:
    """Slice ``queryset`` into a page; pages past the end are empty."""

    total = queryset.count()
    offset = (page_number - 1) * page_size
    return PagedResult(
        items=list(queryset[offset:offset + page_size]),
        total_count=total,
        page_number=page_number,
        page_size=page_size,
    )


__all__ = ["PagedResult", "paginate"]
