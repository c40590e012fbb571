"""
Query building blocks shared by the entity services.

- `substring_filter`: case-insensitive match of a user query against fixed fields.
- `find_page`: one page of results plus the total count for the same filter.
- `attach_bookmakers`: replace bookmaker ids with the bookmaker's display fields.
"""

import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

from motor.motor_asyncio import AsyncIOMotorCollection

from betcompare_api.utils.dates import utcnow
from betcompare_api.utils.pagination import page_offset

BOOKMAKER_DISPLAY_PROJECTION = {"name": 1, "slug": 1, "logo": 1, "rating": 1}

SortSpec = List[Tuple[str, int]]


def substring_filter(query: Optional[str], fields: Sequence[str]) -> Dict[str, Any]:
    """
    Build an `$or` filter matching `query` anywhere in any of `fields`.

    An empty or whitespace-only query yields an empty filter.
    """
    if not query or not query.strip():
        return {}
    pattern = re.escape(query.strip())
    return {"$or": [{field: {"$regex": pattern, "$options": "i"}} for field in fields]}


def validity_window_filter() -> Dict[str, Any]:
    """Filter for documents whose `[valid_from, valid_until]` window contains now."""
    now = utcnow()
    return {
        "valid_from": {"$lte": now},
        "$or": [{"valid_until": None}, {"valid_until": {"$gte": now}}],
    }


async def find_page(
    collection: AsyncIOMotorCollection,
    filters: Dict[str, Any],
    sort: SortSpec,
    page: int,
    limit: int,
    projection: Optional[Dict[str, int]] = None,
) -> Tuple[List[Dict[str, Any]], int]:
    """Return `(documents, total)` for one page of `filters`."""
    cursor = collection.find(filters, projection).sort(sort).skip(page_offset(page, limit)).limit(limit)
    docs = await cursor.to_list(length=limit)
    total = await collection.count_documents(filters)
    return docs, total


async def attach_bookmakers(
    docs: List[Dict[str, Any]],
    bookmakers: AsyncIOMotorCollection,
    field: str = "bookmaker",
) -> List[Dict[str, Any]]:
    """
    Denormalize `field` on each document into `{_id, name, slug, logo, rating}`.

    Ids that no longer resolve are left as plain ids.
    """
    ids = list({doc[field] for doc in docs if doc.get(field) is not None})
    if not ids:
        return docs

    cursor = bookmakers.find({"_id": {"$in": ids}}, BOOKMAKER_DISPLAY_PROJECTION)
    found = {bookmaker["_id"]: bookmaker for bookmaker in await cursor.to_list(length=len(ids))}
    for doc in docs:
        ref = doc.get(field)
        if ref in found:
            doc[field] = found[ref]
    return docs
