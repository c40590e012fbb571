"""
# Review Routes

REST endpoints for **bookmaker reviews**. Public reads only see published reviews;
every successful read counts a view.

## API Endpoints

- `GET /api/reviews` - Published reviews (filter by bookmaker, featured, sorting)
- `GET /api/reviews/{id}` - Review by id
- `GET /api/reviews/slug/{slug}` - Published review by slug
- `POST /api/reviews` - Create (admin)
- `PUT /api/reviews/{id}` - Partial update (admin)
- `DELETE /api/reviews/{id}` - Delete (admin)

Attributes:
    router (APIRouter): FastAPI router with `/api/reviews` prefix
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.models.review_models import CreateReviewRequest, UpdateReviewRequest
from betcompare_api.routes.dependencies import Pagination, pagination_params, require_admin, valid_object_id
from betcompare_api.routes.responses import document_response, paginated_response, success
from betcompare_api.services.review_service import review_service

logger = get_logger(prefix="[Review Routes]")

router = APIRouter(prefix="/api/reviews", tags=["reviews"])

NOT_FOUND = "Review not found"


@router.get("")
async def list_reviews(
    pagination: Pagination = Depends(pagination_params),
    bookmaker: Optional[str] = Query(None, description="Bookmaker id"),
    featured: bool = Query(False),
    sort_by: str = Query("publishedAt", alias="sortBy"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$", alias="sortOrder"),
):
    try:
        if featured:
            docs = await review_service.get_featured(pagination.limit)
            total = len(docs)
        else:
            docs, total = await review_service.get_published(
                page=pagination.page,
                limit=pagination.limit,
                sort_by=sort_by,
                sort_order=sort_order,
                bookmaker=bookmaker,
            )
        return paginated_response("reviews", docs, pagination.page, pagination.limit, total)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to list reviews: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list reviews")


@router.get("/slug/{slug}")
async def get_review_by_slug(slug: str):
    try:
        doc = await review_service.get_by_slug(slug)
        if not doc:
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        return document_response(doc)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to get review %s: %s", slug, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get review")


@router.get("/{review_id}")
async def get_review(review_id: str = Depends(valid_object_id("review_id"))):
    try:
        doc = await review_service.get_by_id(review_id)
        if not doc:
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        return document_response(doc)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to get review %s: %s", review_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get review")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_review(request: CreateReviewRequest, admin: Dict[str, Any] = Depends(require_admin)):
    try:
        doc = await review_service.create(request)
        return document_response(doc, "Review created successfully")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to create review: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create review")


@router.put("/{review_id}")
async def update_review(
    request: UpdateReviewRequest,
    review_id: str = Depends(valid_object_id("review_id")),
    admin: Dict[str, Any] = Depends(require_admin),
):
    try:
        doc = await review_service.update(review_id, request)
        if not doc:
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        return document_response(doc, "Review updated successfully")
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to update review %s: %s", review_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update review")


@router.delete("/{review_id}")
async def delete_review(
    review_id: str = Depends(valid_object_id("review_id")),
    admin: Dict[str, Any] = Depends(require_admin),
):
    try:
        if not await review_service.delete(review_id):
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        logger.info("Review %s deleted by %s", review_id, admin["email"])
        return success(message="Review deleted successfully")
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to delete review %s: %s", review_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete review")
