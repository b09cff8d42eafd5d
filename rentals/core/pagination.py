"""
Core pagination helpers.

This module provides:
- `normalize_pagination` to clean up page/page_size inputs using defaults
  and clamping.
- `slice_page` to cut one page out of an already ordered sequence.
- `paginate_items` to map and wrap results in a `PaginatedResponse` schema.
"""

from __future__ import annotations

from typing import Callable, List, Optional, Sequence, TypeVar

from rentals.core.constants import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from rentals.schemas.common.pagination import PaginatedResponse, PaginationParams

TItem = TypeVar("TItem")
TSchema = TypeVar("TSchema")


def normalize_pagination(
    page: Optional[int],
    page_size: Optional[int],
) -> PaginationParams:
    """
    Normalize raw page & page_size inputs into a PaginationParams object
    with sane defaults and a clamped max page size.

    Rules:
        - page < 1 or None -> DEFAULT_PAGE
        - page_size < 1 or None -> DEFAULT_PAGE_SIZE
        - page_size > MAX_PAGE_SIZE -> MAX_PAGE_SIZE
    """
    if page is None or page < 1:
        page = DEFAULT_PAGE

    if page_size is None or page_size < 1:
        page_size = DEFAULT_PAGE_SIZE

    if page_size > MAX_PAGE_SIZE:
        page_size = MAX_PAGE_SIZE

    return PaginationParams(page=page, page_size=page_size)


def slice_page(items: Sequence[TItem], params: PaginationParams) -> List[TItem]:
    """Return one page of items; pages past the end are empty."""
    return list(items[params.offset:params.offset + params.limit])


def paginate_items(
    *,
    items: Sequence[TItem],
    total_items: int,
    params: PaginationParams,
    mapper: Callable[[TItem], TSchema],
) -> PaginatedResponse[TSchema]:
    """
    Map and wrap items into a PaginatedResponse.

    Args:
        items: The current page of model instances.
        total_items: Total number of items across all pages.
        params: Pagination parameters (page, page_size).
        mapper: Converts each model instance into a schema instance.
    """
    mapped: List[TSchema] = [mapper(obj) for obj in items]
    return PaginatedResponse[TSchema].create(
        items=mapped,
        total_items=total_items,
        page=params.page,
        page_size=params.page_size,
    )
