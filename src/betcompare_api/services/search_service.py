"""
# Search Service

Universal search across bookmakers, reviews, blog posts and bonuses.

`type` selects one collection or `all`. A single-collection search returns up to
`limit` results of that kind; `all` returns at most three of each so the results
page can show a preview per section. `page` selects which page of each section is
returned. An empty query is not an error: every section
falls back to its unfiltered listing (active bookmakers by priority, published
reviews and posts by date, valid bonuses by display priority).
"""

from typing import Any, Dict, List, Optional

from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.services.blog_service import BlogService, blog_service
from betcompare_api.services.bonus_service import BonusService, bonus_service
from betcompare_api.services.bookmaker_service import BookmakerService, bookmaker_service
from betcompare_api.services.review_service import ReviewService, review_service

logger = get_logger(prefix="[Search Service]")

SEARCH_TYPES = ("all", "bookmakers", "reviews", "blog", "bonuses")
PREVIEW_LIMIT = 3


class SearchService:
    """Fans a query out to the entity services."""

    def __init__(
        self,
        bookmakers: BookmakerService = bookmaker_service,
        reviews: ReviewService = review_service,
        blog: BlogService = blog_service,
        bonuses: BonusService = bonus_service,
    ):
        self.bookmakers = bookmakers
        self.reviews = reviews
        self.blog = blog
        self.bonuses = bonuses

    async def search(
        self, query: Optional[str], search_type: str = "all", limit: int = 10, page: int = 1
    ) -> Dict[str, Any]:
        """
        Search one or all collections.

        Raises:
            ValueError: If `search_type` is not one of `SEARCH_TYPES`.
        """
        if search_type not in SEARCH_TYPES:
            raise ValueError(f"Invalid search type: {search_type}. Must be one of {', '.join(SEARCH_TYPES)}")

        def wanted(kind: str) -> bool:
            return search_type in ("all", kind)

        per_type = limit if search_type != "all" else PREVIEW_LIMIT
        results: Dict[str, List[Dict[str, Any]]] = {
            "bookmakers": [],
            "reviews": [],
            "blog_posts": [],
            "bonuses": [],
        }

        if wanted("bookmakers"):
            results["bookmakers"], _ = await self.bookmakers.search(query, page=page, limit=per_type)
        if wanted("reviews"):
            results["reviews"], _ = await self.reviews.search(query, page=page, limit=per_type)
        if wanted("blog"):
            results["blog_posts"], _ = await self.blog.search(query, page=page, limit=per_type)
        if wanted("bonuses"):
            results["bonuses"], _ = await self.bonuses.search(query, page=page, limit=per_type)

        total = sum(len(items) for items in results.values())
        logger.debug("Search '%s' (%s) returned %d results", query or "", search_type, total)
        return {"query": query or "", "results": results, "total_results": total}

    async def suggestions(self, query: Optional[str]) -> List[Dict[str, Any]]:
        return await self.bookmakers.suggestions(query or "")


search_service = SearchService()
