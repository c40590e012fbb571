"""
# Search Routes

- `GET /api/search?q=&type=all&page=1&limit=10` - Search bookmakers, reviews, blog posts and bonuses
- `GET /api/search/suggestions?q=` - Bookmaker name completions (two characters minimum)

Attributes:
    router (APIRouter): FastAPI router with `/api/search` prefix
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.routes.responses import list_response, success
from betcompare_api.services.search_service import search_service

logger = get_logger(prefix="[Search Routes]")

router = APIRouter(prefix="/api/search", tags=["search"])


@router.get("")
async def search(
    q: Optional[str] = Query(None, max_length=100),
    type: str = Query("all", description="all, bookmakers, reviews, blog or bonuses"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
):
    """Universal search; an empty `q` returns the default listing of each section."""
    try:
        return success(await search_service.search(q, type, limit, page=page))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Search failed for '%s': %s", q, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Search failed")


@router.get("/suggestions")
async def suggestions(q: Optional[str] = Query(None, max_length=100)):
    try:
        return list_response(await search_service.suggestions(q))
    except Exception as e:
        logger.error("Suggestions failed for '%s': %s", q, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get suggestions")
