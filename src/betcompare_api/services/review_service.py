"""
# Review Service

Business logic and persistence for **bookmaker reviews**.

## Derived Fields

On every write `prepare_review_document()`:
- rebuilds the slug from the title when the title changes or the slug is missing,
- sets `ratings.overall` (and `summary.rating`) to the mean of the five sub-ratings,
  rounded half-up to one decimal,
- counts the words of all sections and derives the reading time at 200 words/minute,
- fills the meta title and description when they are empty,
- stamps `published_at` the first time a review goes live.

## Visibility

Public listings and slug lookups only return reviews that are both
`status == "published"` and `is_published`. Fetching a review increments its view counter.
"""

import math
from typing import Any, Dict, List, Optional, Tuple

from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from betcompare_api.config import settings
from betcompare_api.database import db_manager
from betcompare_api.database.manager import BOOKMAKERS, REVIEWS
from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.models.review_models import SUB_RATING_FIELDS, CreateReviewRequest, UpdateReviewRequest
from betcompare_api.services.query_helpers import attach_bookmakers, find_page, substring_filter
from betcompare_api.utils.dates import utcnow
from betcompare_api.utils.pagination import sort_direction
from betcompare_api.utils.serialization import to_object_id
from betcompare_api.utils.text_utils import (
    reading_time,
    seo_title,
    slugify,
    strip_html,
    truncate_with_ellipsis,
    word_count,
)

logger = get_logger(prefix="[Review Service]")

PUBLISHED_FILTER = {"status": "published", "is_published": True}
SEARCH_FIELDS = ["title", "sections.overview"]
SORT_FIELDS = {
    "published_at": "published_at",
    "publishedAt": "published_at",
    "rating": "ratings.overall",
    "views": "views",
    "title": "title",
}


def round_one_decimal(value: float) -> float:
    """Round half away from zero to one decimal place (4.05 -> 4.1)."""
    return math.floor(value * 10 + 0.5) / 10


def compute_overall_rating(ratings: Dict[str, float]) -> float:
    """Mean of the five sub-ratings rounded to one decimal."""
    return round_one_decimal(sum(ratings[field] for field in SUB_RATING_FIELDS) / len(SUB_RATING_FIELDS))


def sections_word_count(sections: Optional[Dict[str, Optional[str]]]) -> int:
    return word_count(" ".join(text for text in (sections or {}).values() if text))


def review_excerpt(doc: Dict[str, Any], length: int = 150) -> str:
    overview = strip_html((doc.get("sections") or {}).get("overview"))
    if len(overview) <= length:
        return overview
    return truncate_with_ellipsis(overview, length)


def review_url(doc: Dict[str, Any]) -> str:
    return f"/review/{doc['slug']}"


def prepare_review_document(data: Dict[str, Any], existing: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Apply write-time derivations to a review document."""
    doc = dict(data)
    if existing is None or doc.get("title") != existing.get("title") or not doc.get("slug"):
        doc["slug"] = slugify(doc["title"])

    doc["bookmaker"] = to_object_id(doc["bookmaker"])
    doc["related_bookmakers"] = [to_object_id(ref) for ref in doc.get("related_bookmakers") or []]

    ratings = dict(doc["ratings"])
    ratings["overall"] = compute_overall_rating(ratings)
    doc["ratings"] = ratings
    summary = dict(doc.get("summary") or {})
    summary["rating"] = ratings["overall"]
    doc["summary"] = summary

    doc["word_count"] = sections_word_count(doc.get("sections"))
    doc["reading_time"] = reading_time(doc["word_count"])

    seo_data = dict(doc.get("seo_data") or {})
    if not seo_data.get("meta_title"):
        seo_data["meta_title"] = seo_title(doc["title"], settings.SITE_NAME)
    overview = strip_html((doc.get("sections") or {}).get("overview"))
    if not seo_data.get("meta_description") and overview:
        seo_data["meta_description"] = truncate_with_ellipsis(overview, 160)
    doc["seo_data"] = seo_data

    now = utcnow()
    if doc.get("status") == "published" and doc.get("is_published") and not doc.get("published_at"):
        doc["published_at"] = now
    doc.setdefault("views", 0)
    doc.setdefault("shares", 0)
    doc["last_updated"] = now
    doc.setdefault("created_at", now)
    return doc


class ReviewService:
    """Persistence and queries for reviews."""

    def __init__(self):
        self.collection_name = REVIEWS

    def _collection(self):
        return db_manager.get_collection(self.collection_name)

    async def _denormalize(self, docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return await attach_bookmakers(docs, db_manager.get_collection(BOOKMAKERS))

    async def get_published(
        self,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "published_at",
        sort_order: str = "desc",
        bookmaker: Optional[str] = None,
    ) -> Tuple[List[Dict[str, Any]], int]:
        if sort_by not in SORT_FIELDS:
            raise ValueError(f"Invalid sort field: {sort_by}")
        filters: Dict[str, Any] = dict(PUBLISHED_FILTER)
        if bookmaker:
            filters["bookmaker"] = to_object_id(bookmaker)

        docs, total = await find_page(
            self._collection(), filters, [(SORT_FIELDS[sort_by], sort_direction(sort_order))], page, limit
        )
        return await self._denormalize(docs), total

    async def get_featured(self, limit: int = 5) -> List[Dict[str, Any]]:
        cursor = (
            self._collection()
            .find({**PUBLISHED_FILTER, "is_featured": True})
            .sort("published_at", DESCENDING)
            .limit(limit)
        )
        return await self._denormalize(await cursor.to_list(length=limit))

    async def search(
        self, query: Optional[str] = None, page: int = 1, limit: int = 10, min_rating: float = 0
    ) -> Tuple[List[Dict[str, Any]], int]:
        filters: Dict[str, Any] = {**PUBLISHED_FILTER, **substring_filter(query, SEARCH_FIELDS)}
        if min_rating:
            filters["summary.rating"] = {"$gte": min_rating}
        docs, total = await find_page(self._collection(), filters, [("published_at", DESCENDING)], page, limit)
        return await self._denormalize(docs), total

    async def _fetch_and_count_view(self, filters: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        doc = await self._collection().find_one_and_update(
            filters, {"$inc": {"views": 1}}, return_document=ReturnDocument.AFTER
        )
        if not doc:
            return None
        return (await self._denormalize([doc]))[0]

    async def get_by_id(self, review_id: str) -> Optional[Dict[str, Any]]:
        return await self._fetch_and_count_view({"_id": to_object_id(review_id)})

    async def get_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        return await self._fetch_and_count_view({"slug": slug, **PUBLISHED_FILTER})

    async def create(self, request: CreateReviewRequest) -> Dict[str, Any]:
        doc = prepare_review_document(request.model_dump())
        try:
            result = await self._collection().insert_one(doc)
        except DuplicateKeyError as e:
            raise ValueError(f"A review with slug '{doc['slug']}' already exists") from e
        doc["_id"] = result.inserted_id
        logger.info("Created review %s for bookmaker %s", doc["slug"], doc["bookmaker"])
        return doc

    async def update(self, review_id: str, request: UpdateReviewRequest) -> Optional[Dict[str, Any]]:
        object_id = to_object_id(review_id)
        existing = await self._collection().find_one({"_id": object_id})
        if not existing:
            return None

        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        doc = prepare_review_document({**existing, **changes}, existing)
        update = {key: value for key, value in doc.items() if key != "_id"}
        try:
            await self._collection().update_one({"_id": object_id}, {"$set": update})
        except DuplicateKeyError as e:
            raise ValueError(f"A review with slug '{doc['slug']}' already exists") from e
        logger.info("Updated review %s (%s)", doc["slug"], review_id)
        return doc

    async def delete(self, review_id: str) -> bool:
        result = await self._collection().delete_one({"_id": to_object_id(review_id)})
        return result.deleted_count > 0


review_service = ReviewService()
