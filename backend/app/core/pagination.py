"""Pagination - pure offset/limit math shared by listings and discovery.

Invariants:
    - page is 1-based; page_size >= 1
    - has_prev iff page > 1; has_next iff page < total_pages
    - An out-of-range page yields an empty slice, never an error
    - validate_bounds enforces the hard upper bound on limit/page_size (400 otherwise)
"""

import math
from dataclasses import dataclass
from typing import Sequence, TypeVar

from app.core.errors import InvalidParameterError

T = TypeVar("T")


@dataclass(frozen=True)
class PageInfo:
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.total else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def paginate(items: Sequence[T], page: int, page_size: int) -> tuple[list[T], PageInfo]:
    """Slice items for the requested page and describe the page."""
    if page < 1:
        raise InvalidParameterError("page", f"page must be >= 1, got {page}")
    if page_size < 1:
        raise InvalidParameterError(
            "page_size", f"page_size must be >= 1, got {page_size}",
        )
    info = PageInfo(page=page, page_size=page_size, total=len(items))
    return list(items[info.offset:info.offset + page_size]), info


def validate_bounds(field: str, value: int, maximum: int) -> int:
    """Reject values outside 1..maximum for caller-adjustable sizes."""
    if value < 1 or value > maximum:
        raise InvalidParameterError(
            field, f"{field} must be between 1 and {maximum}, got {value}",
        )
    return value
