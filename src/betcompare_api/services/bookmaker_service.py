"""
# Bookmaker Service

Business logic and persistence for **bookmakers**.

## Key Features

### 1. Derived Fields
`prepare_bookmaker_document()` runs on every write. The slug is rebuilt from the name
when the bookmaker is created, when the name changes, or when the slug is missing;
otherwise an existing slug is kept so published URLs stay stable.

### 2. Listings
- **Featured**: featured and active, by priority then overall rating.
- **Top rated**: active, by overall rating then priority.
- **Search**: substring match on name and description with feature and minimum
  rating filters. An empty query returns every active bookmaker.

### 3. Detail Views
`get_by_id()` and `get_by_slug()` embed the bookmaker's bonuses and reviews so a
detail page needs a single request.

## Usage Example

```python
service = BookmakerService()
bookmakers, total = await service.search("bet", page=1, limit=10, features=["M-Pesa Ready"])
```
"""

from typing import Any, Dict, List, Optional, Tuple

from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError

from betcompare_api.database import db_manager
from betcompare_api.database.manager import BONUSES, BOOKMAKERS, REVIEWS
from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.models.bookmaker_models import (
    CreateBookmakerRequest,
    UpdateBookmakerRequest,
)
from betcompare_api.services.bonus_service import with_derived_fields
from betcompare_api.services.query_helpers import find_page, substring_filter
from betcompare_api.utils.dates import utcnow
from betcompare_api.utils.pagination import sort_direction
from betcompare_api.utils.serialization import to_object_id
from betcompare_api.utils.text_utils import slugify

logger = get_logger(prefix="[Bookmaker Service]")

SEARCH_FIELDS = ["name", "description"]
SORT_FIELDS = {
    "priority": "priority",
    "rating": "rating.overall",
    "name": "name",
    "created_at": "created_at",
    "createdAt": "created_at",
    "established_year": "established_year",
    "establishedYear": "established_year",
}
ACTIVE_FILTER = {"status": "active"}


def display_features(features: Optional[List[str]], limit: int = 3) -> List[str]:
    return list(features or [])[:limit]


def prepare_bookmaker_document(data: Dict[str, Any], existing: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Apply write-time derivations to a bookmaker document.

    Args:
        data: The full document as it will be stored.
        existing: The stored document for updates, `None` for creates.
    """
    doc = dict(data)
    name_changed = existing is None or doc.get("name") != existing.get("name")
    if name_changed or not doc.get("slug"):
        doc["slug"] = slugify(doc["name"])
    if not doc["slug"]:
        raise ValueError("Name must contain at least one letter or digit")

    now = utcnow()
    doc["last_updated"] = now
    doc["updated_at"] = now
    doc.setdefault("created_at", now)
    return doc


class BookmakerService:
    """Persistence and queries for bookmakers."""

    def __init__(self):
        self.collection_name = BOOKMAKERS

    def _collection(self):
        return db_manager.get_collection(self.collection_name)

    def _sort_spec(self, sort_by: str, sort_order: str) -> List[Tuple[str, int]]:
        if sort_by not in SORT_FIELDS:
            raise ValueError(f"Invalid sort field: {sort_by}")
        return [(SORT_FIELDS[sort_by], sort_direction(sort_order))]

    async def get_featured(self, limit: int = 5) -> List[Dict[str, Any]]:
        cursor = (
            self._collection()
            .find({"featured": True, **ACTIVE_FILTER})
            .sort([("priority", DESCENDING), ("rating.overall", DESCENDING)])
            .limit(limit)
        )
        return await cursor.to_list(length=limit)

    async def get_top_rated(self, limit: int = 10) -> List[Dict[str, Any]]:
        cursor = (
            self._collection()
            .find(dict(ACTIVE_FILTER))
            .sort([("rating.overall", DESCENDING), ("priority", DESCENDING)])
            .limit(limit)
        )
        return await cursor.to_list(length=limit)

    async def search(
        self,
        query: Optional[str] = None,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "priority",
        sort_order: str = "desc",
        features: Optional[List[str]] = None,
        min_rating: float = 0,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Search active bookmakers.

        Returns:
            `(bookmakers, total)` where `total` counts every match, not just this page.
        """
        filters: Dict[str, Any] = {**ACTIVE_FILTER, **substring_filter(query, SEARCH_FIELDS)}
        if features:
            filters["features"] = {"$in": features}
        if min_rating:
            filters["rating.overall"] = {"$gte": min_rating}

        sort = self._sort_spec(sort_by, sort_order)
        start = db_manager.log_query_start(self.collection_name, "search", filters)
        docs, total = await find_page(self._collection(), filters, sort, page, limit)
        db_manager.log_query_success(self.collection_name, "search", start, len(docs))
        return docs, total

    async def list_bookmakers(
        self,
        page: int = 1,
        limit: int = 10,
        featured: bool = False,
        search: Optional[str] = None,
        features: Optional[List[str]] = None,
        min_rating: float = 0,
        sort_by: str = "priority",
        sort_order: str = "desc",
    ) -> Tuple[List[Dict[str, Any]], int]:
        """Listing behind `GET /api/bookmakers`: featured, filtered search or plain active list."""
        if featured:
            docs = await self.get_featured(limit)
            return docs, len(docs)
        return await self.search(
            search,
            page=page,
            limit=limit,
            sort_by=sort_by,
            sort_order=sort_order,
            features=features,
            min_rating=min_rating,
        )

    async def _with_related(self, doc: Dict[str, Any], published_only: bool) -> Dict[str, Any]:
        bonus_filter: Dict[str, Any] = {"bookmaker": doc["_id"]}
        review_filter: Dict[str, Any] = {"bookmaker": doc["_id"]}
        if published_only:
            bonus_filter["is_active"] = True
            review_filter.update({"status": "published", "is_published": True})

        bonuses = db_manager.get_collection(BONUSES).find(bonus_filter).sort("display_info.priority", DESCENDING)
        reviews = db_manager.get_collection(REVIEWS).find(review_filter).sort("published_at", DESCENDING)
        now = utcnow()
        doc["bonuses"] = [with_derived_fields(bonus, now) for bonus in await bonuses.to_list(length=50)]
        doc["reviews"] = await reviews.to_list(length=50)
        return doc

    async def get_by_id(self, bookmaker_id: str) -> Optional[Dict[str, Any]]:
        doc = await self._collection().find_one({"_id": to_object_id(bookmaker_id)})
        if not doc:
            return None
        return await self._with_related(doc, published_only=False)

    async def get_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        doc = await self._collection().find_one({"slug": slug, **ACTIVE_FILTER})
        if not doc:
            return None
        return await self._with_related(doc, published_only=True)

    async def get_active_by_ids(self, bookmaker_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        """Active bookmakers keyed by string id; unknown or inactive ids are absent."""
        object_ids = [to_object_id(bookmaker_id) for bookmaker_id in bookmaker_ids]
        cursor = self._collection().find({"_id": {"$in": object_ids}, **ACTIVE_FILTER})
        docs = await cursor.to_list(length=len(object_ids))
        return {str(doc["_id"]): doc for doc in docs}

    async def suggestions(self, query: str, limit: int = 5) -> List[Dict[str, Any]]:
        """Name completions for the search box; queries under two characters return nothing."""
        if not query or len(query.strip()) < 2:
            return []
        cursor = self._collection().find(
            {**ACTIVE_FILTER, **substring_filter(query, ["name"])},
            {"name": 1, "slug": 1, "logo": 1},
        ).limit(limit)
        return await cursor.to_list(length=limit)

    async def create(self, request: CreateBookmakerRequest) -> Dict[str, Any]:
        doc = prepare_bookmaker_document(request.model_dump())
        try:
            result = await self._collection().insert_one(doc)
        except DuplicateKeyError as e:
            raise ValueError(f"A bookmaker with slug '{doc['slug']}' already exists") from e
        doc["_id"] = result.inserted_id
        logger.info("Created bookmaker %s (%s)", doc["slug"], result.inserted_id)
        return doc

    async def update(self, bookmaker_id: str, request: UpdateBookmakerRequest) -> Optional[Dict[str, Any]]:
        object_id = to_object_id(bookmaker_id)
        existing = await self._collection().find_one({"_id": object_id})
        if not existing:
            return None

        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        doc = prepare_bookmaker_document({**existing, **changes}, existing)
        update = {key: value for key, value in doc.items() if key != "_id"}
        try:
            await self._collection().update_one({"_id": object_id}, {"$set": update})
        except DuplicateKeyError as e:
            raise ValueError(f"A bookmaker with slug '{doc['slug']}' already exists") from e
        logger.info("Updated bookmaker %s (%s)", doc["slug"], bookmaker_id)
        return doc

    async def delete(self, bookmaker_id: str) -> bool:
        result = await self._collection().delete_one({"_id": to_object_id(bookmaker_id)})
        if result.deleted_count:
            logger.info("Deleted bookmaker %s", bookmaker_id)
        return result.deleted_count > 0


bookmaker_service = BookmakerService()
