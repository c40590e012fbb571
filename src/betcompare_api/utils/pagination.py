"""Pagination arithmetic shared by the list endpoints."""

import math
from typing import Any, Dict

MAX_PAGE_SIZE = 100


def page_offset(page: int, limit: int) -> int:
    """Number of documents to skip for a 1-based `page`."""
    return (page - 1) * limit


def sort_direction(sort_order: str) -> int:
    return 1 if sort_order == "asc" else -1


def build_pagination(page: int, limit: int, total: int) -> Dict[str, Any]:
    """
    Build the pagination block returned by list endpoints.

    `hasNextPage` is true while `page * limit` is below the total, so a page
    that exactly fills the result set reports no next page.
    """
    return {
        "currentPage": page,
        "totalPages": math.ceil(total / limit) if limit else 0,
        "totalItems": total,
        "itemsPerPage": limit,
        "hasNextPage": page * limit < total,
        "hasPrevPage": page > 1,
    }
