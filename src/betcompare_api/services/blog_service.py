"""
# Blog Service

Business logic and persistence for **blog posts**.

## Derived Fields

`prepare_blog_document()` runs on every write:

```
content ──strip tags──▶ plain text ──▶ metrics.word_count ──▶ metrics.reading_time
   │                        ├──▶ excerpt (first 300 chars + "...", only if missing)
   │                        └──▶ seo_data.meta_description (excerpt, else first 160 chars + "...")
   └──<h1>..<h6>──▶ table_of_contents [{level, title, anchor}]
title ──▶ slug (on create, title change or missing slug), seo_data.meta_title
```

## Listings

Published posts only (`status == "published"` and `is_published`). Featured and sticky
posts, category pages, tag filters, comparison articles and related posts are all
variations of the same filter.
"""

from typing import Any, Dict, List, Optional, Tuple

from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from betcompare_api.config import settings
from betcompare_api.database import db_manager
from betcompare_api.database.manager import BLOG_POSTS
from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.models.blog_models import CreateBlogPostRequest, UpdateBlogPostRequest
from betcompare_api.services.query_helpers import find_page, substring_filter
from betcompare_api.utils.dates import utcnow
from betcompare_api.utils.pagination import sort_direction
from betcompare_api.utils.serialization import to_object_id
from betcompare_api.utils.text_utils import (
    make_excerpt,
    reading_time,
    seo_title,
    slugify,
    strip_html,
    table_of_contents,
    truncate_with_ellipsis,
    word_count,
)

logger = get_logger(prefix="[Blog Service]")

PUBLISHED_FILTER = {"status": "published", "is_published": True}
SEARCH_FIELDS = ["title", "content", "excerpt"]
SORT_FIELDS = {
    "published_at": "published_at",
    "publishedAt": "published_at",
    "views": "metrics.views",
    "title": "title",
    "priority": "priority",
}
RELATED_PROJECTION = {"title": 1, "slug": 1, "excerpt": 1, "featured_image": 1, "published_at": 1, "category": 1}
EMPTY_METRICS = {"views": 0, "shares": 0, "likes": 0, "comments": 0, "bounce_rate": 0, "avg_time_on_page": 0}


def prepare_blog_document(data: Dict[str, Any], existing: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Apply write-time derivations to a blog post document."""
    doc = dict(data)
    if existing is None or doc.get("title") != existing.get("title") or not doc.get("slug"):
        doc["slug"] = slugify(doc["title"])

    content = doc["content"]
    plain_text = strip_html(content)
    metrics = {**EMPTY_METRICS, **(doc.get("metrics") or {})}
    metrics["word_count"] = word_count(content)
    metrics["reading_time"] = reading_time(metrics["word_count"])
    doc["metrics"] = metrics

    seo_data = dict(doc.get("seo_data") or {})
    if not seo_data.get("meta_title"):
        seo_data["meta_title"] = seo_title(doc["title"], settings.SITE_NAME)
    if not seo_data.get("meta_description"):
        seo_data["meta_description"] = doc.get("excerpt") or truncate_with_ellipsis(plain_text, 160)
    doc["seo_data"] = seo_data

    if not doc.get("excerpt"):
        doc["excerpt"] = make_excerpt(content, 300)
    doc["table_of_contents"] = table_of_contents(content)

    for field in ("related_bookmakers", "related_posts"):
        doc[field] = [to_object_id(ref) for ref in doc.get(field) or []]
    comparison = doc.get("comparison_data")
    if comparison:
        comparison = dict(comparison)
        for field in ("bookmaker1", "bookmaker2", "winner"):
            if comparison.get(field):
                comparison[field] = to_object_id(comparison[field])
        doc["comparison_data"] = comparison

    now = utcnow()
    if doc.get("status") == "published" and doc.get("is_published") and not doc.get("published_at"):
        doc["published_at"] = now
    doc["last_updated"] = now
    doc.setdefault("created_at", now)
    return doc


def blog_url(doc: Dict[str, Any]) -> str:
    return f"/blog/{doc['slug']}"


class BlogService:
    """Persistence and queries for blog posts."""

    def __init__(self):
        self.collection_name = BLOG_POSTS

    def _collection(self):
        return db_manager.get_collection(self.collection_name)

    @staticmethod
    def _published_filter(category: Optional[str] = None, tag: Optional[str] = None) -> Dict[str, Any]:
        filters: Dict[str, Any] = dict(PUBLISHED_FILTER)
        if category:
            filters["category"] = category
        if tag:
            filters["tags"] = {"$in": [tag.lower()]}
        return filters

    async def get_published(
        self,
        page: int = 1,
        limit: int = 10,
        category: Optional[str] = None,
        tag: Optional[str] = None,
        sort_by: str = "published_at",
        sort_order: str = "desc",
    ) -> Tuple[List[Dict[str, Any]], int]:
        if sort_by not in SORT_FIELDS:
            raise ValueError(f"Invalid sort field: {sort_by}")
        sort = [("is_sticky", DESCENDING), (SORT_FIELDS[sort_by], sort_direction(sort_order))]
        return await find_page(self._collection(), self._published_filter(category, tag), sort, page, limit)

    async def get_featured(self, limit: int = 5) -> List[Dict[str, Any]]:
        cursor = (
            self._collection()
            .find({**PUBLISHED_FILTER, "is_featured": True})
            .sort([("priority", DESCENDING), ("published_at", DESCENDING)])
            .limit(limit)
        )
        return await cursor.to_list(length=limit)

    async def get_by_category(self, category: str, page: int = 1, limit: int = 10) -> Tuple[List[Dict[str, Any]], int]:
        return await find_page(
            self._collection(), self._published_filter(category), [("published_at", DESCENDING)], page, limit
        )

    async def search(
        self, query: Optional[str] = None, page: int = 1, limit: int = 10, category: Optional[str] = None
    ) -> Tuple[List[Dict[str, Any]], int]:
        filters = {**self._published_filter(category), **substring_filter(query, SEARCH_FIELDS)}
        return await find_page(self._collection(), filters, [("published_at", DESCENDING)], page, limit)

    async def get_comparisons(self, limit: int = 10) -> List[Dict[str, Any]]:
        """Published head-to-head posts that name both bookmakers."""
        filters = {
            **PUBLISHED_FILTER,
            "category": "comparison",
            "comparison_data.bookmaker1": {"$ne": None},
            "comparison_data.bookmaker2": {"$ne": None},
        }
        cursor = self._collection().find(filters).sort("published_at", DESCENDING).limit(limit)
        return await cursor.to_list(length=limit)

    async def get_related(self, doc: Dict[str, Any], limit: int = 3) -> List[Dict[str, Any]]:
        """Other published posts sharing a tag or the category of `doc`."""
        filters = {
            **PUBLISHED_FILTER,
            "_id": {"$ne": doc["_id"]},
            "$or": [{"tags": {"$in": doc.get("tags") or []}}, {"category": doc.get("category")}],
        }
        cursor = self._collection().find(filters, RELATED_PROJECTION).sort("published_at", DESCENDING).limit(limit)
        return await cursor.to_list(length=limit)

    async def get_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        """Published post by slug with its view counted and related posts attached."""
        doc = await self._collection().find_one_and_update(
            {"slug": slug, **PUBLISHED_FILTER},
            {"$inc": {"metrics.views": 1}},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            return None
        doc["related_posts_preview"] = await self.get_related(doc)
        return doc

    async def get_by_id(self, post_id: str) -> Optional[Dict[str, Any]]:
        return await self._collection().find_one({"_id": to_object_id(post_id)})

    async def create(self, request: CreateBlogPostRequest) -> Dict[str, Any]:
        doc = prepare_blog_document(request.model_dump())
        try:
            result = await self._collection().insert_one(doc)
        except DuplicateKeyError as e:
            raise ValueError(f"A blog post with slug '{doc['slug']}' already exists") from e
        doc["_id"] = result.inserted_id
        logger.info("Created blog post %s in category %s", doc["slug"], doc["category"])
        return doc

    async def update(self, post_id: str, request: UpdateBlogPostRequest) -> Optional[Dict[str, Any]]:
        object_id = to_object_id(post_id)
        existing = await self._collection().find_one({"_id": object_id})
        if not existing:
            return None

        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        doc = prepare_blog_document({**existing, **changes}, existing)
        try:
            await self._collection().update_one(
                {"_id": object_id}, {"$set": {k: v for k, v in doc.items() if k != "_id"}}
            )
        except DuplicateKeyError as e:
            raise ValueError(f"A blog post with slug '{doc['slug']}' already exists") from e
        logger.info("Updated blog post %s (%s)", doc["slug"], post_id)
        return doc

    async def delete(self, post_id: str) -> bool:
        result = await self._collection().delete_one({"_id": to_object_id(post_id)})
        return result.deleted_count > 0


blog_service = BlogService()
