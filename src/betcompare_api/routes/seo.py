"""
# SEO Routes

- `GET /sitemap.xml` - XML sitemap of static pages, published reviews and blog posts
- `GET /api/seo/schema/review/{slug}` - `Review` JSON-LD for a published review
- `GET /api/seo/schema/blog/{slug}` - `Article` (and `FAQPage`) JSON-LD for a published post
- `GET /api/seo/schema/bonus/{id}` - `Offer` JSON-LD for a bonus
- `GET /api/seo/schema/bookmakers` - `ItemList` JSON-LD of the top rated bookmakers

Attributes:
    router (APIRouter): FastAPI router without a prefix
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.routes.dependencies import valid_object_id
from betcompare_api.routes.responses import success
from betcompare_api.services.bonus_service import bonus_service
from betcompare_api.services.bookmaker_service import bookmaker_service
from betcompare_api.services.seo_service import item_list_schema, offer_schema, seo_service

logger = get_logger(prefix="[SEO Routes]")

router = APIRouter(tags=["seo"])


@router.get("/sitemap.xml", include_in_schema=False)
async def sitemap():
    try:
        return Response(content=await seo_service.sitemap(), media_type="application/xml")
    except Exception as e:
        logger.error("Failed to generate sitemap: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to generate sitemap")


@router.get("/api/seo/schema/review/{slug}")
async def review_schema(slug: str):
    try:
        schema = await seo_service.review_schema_for(slug)
        if schema is None:
            raise HTTPException(status_code=404, detail="Review not found")
        return success(schema)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to build review schema for %s: %s", slug, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to build schema")


@router.get("/api/seo/schema/blog/{slug}")
async def article_schema(slug: str):
    try:
        schema = await seo_service.article_schema_for(slug)
        if schema is None:
            raise HTTPException(status_code=404, detail="Blog post not found")
        return success(schema)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to build article schema for %s: %s", slug, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to build schema")


@router.get("/api/seo/schema/bonus/{bonus_id}")
async def bonus_schema(bonus_id: str = Depends(valid_object_id("bonus_id"))):
    try:
        bonus = await bonus_service.get_by_id(bonus_id)
        if not bonus:
            raise HTTPException(status_code=404, detail="Bonus not found")
        return success(offer_schema(bonus))
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to build offer schema for %s: %s", bonus_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to build schema")


@router.get("/api/seo/schema/bookmakers")
async def bookmakers_schema(limit: int = Query(10, ge=1, le=50)):
    try:
        return success(item_list_schema(await bookmaker_service.get_top_rated(limit)))
    except Exception as e:
        logger.error("Failed to build bookmaker list schema: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to build schema")
