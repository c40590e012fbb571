"""
# Bookmaker Routes

REST endpoints for **bookmakers**.

## API Endpoints

- `GET /api/bookmakers` - List active bookmakers (search, feature and rating filters, sorting)
- `GET /api/bookmakers/featured` - Featured bookmakers
- `GET /api/bookmakers/top-rated` - Best rated bookmakers
- `GET /api/bookmakers/{id}` - Bookmaker with its bonuses and reviews
- `GET /api/bookmakers/slug/{slug}` - Active bookmaker by slug with live bonuses and published reviews
- `POST /api/bookmakers` - Create (admin)
- `PUT /api/bookmakers/{id}` - Partial update (admin)
- `DELETE /api/bookmakers/{id}` - Delete (admin)

## Usage Example

```python
response = await client.get("/api/bookmakers", params={"features": "M-Pesa Ready,Live Betting", "minRating": 4})
bookmakers = response.json()["data"]["bookmakers"]
```

Attributes:
    router (APIRouter): FastAPI router with `/api/bookmakers` prefix
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.models.bookmaker_models import CreateBookmakerRequest, UpdateBookmakerRequest
from betcompare_api.routes.dependencies import Pagination, pagination_params, require_admin, valid_object_id
from betcompare_api.routes.responses import document_response, list_response, paginated_response, success
from betcompare_api.services.bookmaker_service import bookmaker_service

logger = get_logger(prefix="[Bookmaker Routes]")

router = APIRouter(prefix="/api/bookmakers", tags=["bookmakers"])

NOT_FOUND = "Bookmaker not found"


@router.get("")
async def list_bookmakers(
    pagination: Pagination = Depends(pagination_params),
    featured: bool = Query(False),
    search: Optional[str] = Query(None, max_length=100),
    features: Optional[str] = Query(None, description="Comma separated feature tags"),
    min_rating: float = Query(0, ge=0, le=5, alias="minRating"),
    sort_by: str = Query("priority", alias="sortBy"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$", alias="sortOrder"),
):
    """
    List active bookmakers.

    With `featured=true` the featured set is returned and `total` is its size.
    An empty `search` lists every active bookmaker.
    """
    feature_list = [item.strip() for item in features.split(",") if item.strip()] if features else None
    try:
        docs, total = await bookmaker_service.list_bookmakers(
            page=pagination.page,
            limit=pagination.limit,
            featured=featured,
            search=search,
            features=feature_list,
            min_rating=min_rating,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return paginated_response("bookmakers", docs, pagination.page, pagination.limit, total)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to list bookmakers: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list bookmakers")


@router.get("/featured")
async def featured_bookmakers(limit: int = Query(5, ge=1, le=50)):
    try:
        return list_response(await bookmaker_service.get_featured(limit))
    except Exception as e:
        logger.error("Failed to get featured bookmakers: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get featured bookmakers")


@router.get("/top-rated")
async def top_rated_bookmakers(limit: int = Query(10, ge=1, le=50)):
    try:
        return list_response(await bookmaker_service.get_top_rated(limit))
    except Exception as e:
        logger.error("Failed to get top rated bookmakers: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get top rated bookmakers")


@router.get("/slug/{slug}")
async def get_bookmaker_by_slug(slug: str):
    try:
        doc = await bookmaker_service.get_by_slug(slug)
        if not doc:
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        return document_response(doc)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to get bookmaker %s: %s", slug, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get bookmaker")


@router.get("/{bookmaker_id}")
async def get_bookmaker(bookmaker_id: str = Depends(valid_object_id("bookmaker_id"))):
    try:
        doc = await bookmaker_service.get_by_id(bookmaker_id)
        if not doc:
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        return document_response(doc)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to get bookmaker %s: %s", bookmaker_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get bookmaker")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_bookmaker(request: CreateBookmakerRequest, admin: Dict[str, Any] = Depends(require_admin)):
    """
    Create a bookmaker.

    Raises:
        HTTPException(400): If the derived slug is already taken.
        HTTPException(401): Without a valid admin token.
    """
    try:
        doc = await bookmaker_service.create(request)
        logger.info("Bookmaker %s created by %s", doc["slug"], admin["email"])
        return document_response(doc, "Bookmaker created successfully")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to create bookmaker: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create bookmaker")


@router.put("/{bookmaker_id}")
async def update_bookmaker(
    request: UpdateBookmakerRequest,
    bookmaker_id: str = Depends(valid_object_id("bookmaker_id")),
    admin: Dict[str, Any] = Depends(require_admin),
):
    try:
        doc = await bookmaker_service.update(bookmaker_id, request)
        if not doc:
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        return document_response(doc, "Bookmaker updated successfully")
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to update bookmaker %s: %s", bookmaker_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update bookmaker")


@router.delete("/{bookmaker_id}")
async def delete_bookmaker(
    bookmaker_id: str = Depends(valid_object_id("bookmaker_id")),
    admin: Dict[str, Any] = Depends(require_admin),
):
    try:
        if not await bookmaker_service.delete(bookmaker_id):
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        logger.info("Bookmaker %s deleted by %s", bookmaker_id, admin["email"])
        return success(message="Bookmaker deleted successfully")
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to delete bookmaker %s: %s", bookmaker_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete bookmaker")
