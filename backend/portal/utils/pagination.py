"""
Pagination Utility Module

Standardized pagination over in-memory result lists.
"""
from typing import List, Any
from pydantic import BaseModel, Field


class PaginationParams(BaseModel):
    """Standard pagination parameters"""
    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=50, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


def paginate(
    items: List[Any],
    page: int = 1,
    page_size: int = 50,
    max_page_size: int = 100
) -> dict:
    """
    Slice one page out of a full result list.

    Args:
        items: Every matching item, already in display order
        page: Page number (1-indexed)
        page_size: Items per page
        max_page_size: Upper bound applied to page_size

    Returns:
        Dictionary with items, total, page, page_size, total_pages, has_next, has_previous
    """
    page = max(1, page)
    page_size = max(1, min(max_page_size, page_size))

    params = PaginationParams(page=page, page_size=page_size)
    window = items[params.offset:params.offset + params.limit]

    return create_paginated_response(window, len(items), page, page_size)


def create_paginated_response(
    items: List[Any],
    total: int,
    page: int,
    page_size: int
) -> dict:
    """
    Create a paginated response dictionary.

    Args:
        items: List of items for current page
        total: Total count of all items
        page: Current page number
        page_size: Items per page

    Returns:
        Paginated response dictionary
    """
    total_pages = (total + page_size - 1) // page_size if total > 0 else 1

    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_previous": page > 1
    }
