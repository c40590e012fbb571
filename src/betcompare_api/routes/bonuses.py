"""
# Bonus Routes

REST endpoints for **bookmaker promotions** and their click-through tracking.

## API Endpoints

- `GET /api/bonuses` - Currently valid bonuses (filter by type, bookmaker, featured)
- `GET /api/bonuses/featured` - Featured valid bonuses
- `GET /api/bonuses/type/{type}` - Valid bonuses of one type
- `GET /api/bonuses/expiring?days=7` - Bonuses ending within `days`
- `GET /api/bonuses/{id}` - Bonus by id
- `POST /api/bonuses/{id}/track-impression` - Count an impression
- `POST /api/bonuses/{id}/track-click` - Count a click
- `POST /api/bonuses/{id}/track-conversion` - Count a conversion
- `POST /api/bonuses` - Create (admin)
- `PUT /api/bonuses/{id}` - Partial update (admin)
- `DELETE /api/bonuses/{id}` - Delete (admin)

Tracking responses carry the refreshed counters and rates so the caller can render
them without another request.

Attributes:
    router (APIRouter): FastAPI router with `/api/bonuses` prefix
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.models.bonus_models import BonusType, CreateBonusRequest, UpdateBonusRequest
from betcompare_api.routes.dependencies import Pagination, pagination_params, require_admin, valid_object_id
from betcompare_api.routes.responses import document_response, list_response, paginated_response, success
from betcompare_api.services.bonus_service import bonus_service

logger = get_logger(prefix="[Bonus Routes]")

router = APIRouter(prefix="/api/bonuses", tags=["bonuses"])

NOT_FOUND = "Bonus not found"
TRACKING_MESSAGES = {
    "impression": "Impression tracked",
    "click": "Click tracked",
    "conversion": "Conversion tracked",
}


@router.get("")
async def list_bonuses(
    pagination: Pagination = Depends(pagination_params),
    type: Optional[BonusType] = Query(None, description="Bonus type"),
    bookmaker: Optional[str] = Query(None, description="Bookmaker id"),
    featured: bool = Query(False),
):
    try:
        docs, total = await bonus_service.get_active(
            page=pagination.page,
            limit=pagination.limit,
            bonus_type=type.value if type else None,
            bookmaker=bookmaker,
            featured_only=featured,
        )
        return paginated_response("bonuses", docs, pagination.page, pagination.limit, total)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to list bonuses: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to list bonuses")


@router.get("/featured")
async def featured_bonuses(limit: int = Query(5, ge=1, le=50)):
    try:
        return list_response(await bonus_service.get_featured(limit))
    except Exception as e:
        logger.error("Failed to get featured bonuses: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get featured bonuses")


@router.get("/type/{bonus_type}")
async def bonuses_by_type(bonus_type: BonusType, limit: int = Query(10, ge=1, le=50)):
    try:
        return list_response(await bonus_service.get_by_type(bonus_type.value, limit))
    except Exception as e:
        logger.error("Failed to get %s bonuses: %s", bonus_type.value, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get bonuses")


@router.get("/expiring")
async def expiring_bonuses(days: int = Query(7, ge=1, le=365)):
    try:
        return list_response(await bonus_service.get_expiring(days))
    except Exception as e:
        logger.error("Failed to get expiring bonuses: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get expiring bonuses")


@router.get("/{bonus_id}")
async def get_bonus(bonus_id: str = Depends(valid_object_id("bonus_id"))):
    try:
        doc = await bonus_service.get_by_id(bonus_id)
        if not doc:
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        return document_response(doc)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to get bonus %s: %s", bonus_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get bonus")


async def _track(bonus_id: str, kind: str) -> Dict[str, Any]:
    try:
        tracking = await bonus_service.track(bonus_id, kind)
        if tracking is None:
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        return success(tracking, TRACKING_MESSAGES[kind])
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to track %s for bonus %s: %s", kind, bonus_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail=f"Failed to track {kind}")


@router.post("/{bonus_id}/track-impression")
async def track_impression(bonus_id: str = Depends(valid_object_id("bonus_id"))):
    return await _track(bonus_id, "impression")


@router.post("/{bonus_id}/track-click")
async def track_click(bonus_id: str = Depends(valid_object_id("bonus_id"))):
    return await _track(bonus_id, "click")


@router.post("/{bonus_id}/track-conversion")
async def track_conversion(bonus_id: str = Depends(valid_object_id("bonus_id"))):
    return await _track(bonus_id, "conversion")


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_bonus(request: CreateBonusRequest, admin: Dict[str, Any] = Depends(require_admin)):
    try:
        doc = await bonus_service.create(request)
        return document_response(doc, "Bonus created successfully")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to create bonus: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to create bonus")


@router.put("/{bonus_id}")
async def update_bonus(
    request: UpdateBonusRequest,
    bonus_id: str = Depends(valid_object_id("bonus_id")),
    admin: Dict[str, Any] = Depends(require_admin),
):
    try:
        doc = await bonus_service.update(bonus_id, request)
        if not doc:
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        return document_response(doc, "Bonus updated successfully")
    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Failed to update bonus %s: %s", bonus_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to update bonus")


@router.delete("/{bonus_id}")
async def delete_bonus(
    bonus_id: str = Depends(valid_object_id("bonus_id")),
    admin: Dict[str, Any] = Depends(require_admin),
):
    try:
        if not await bonus_service.delete(bonus_id):
            raise HTTPException(status_code=404, detail=NOT_FOUND)
        logger.info("Bonus %s deleted by %s", bonus_id, admin["email"])
        return success(message="Bonus deleted successfully")
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to delete bonus %s: %s", bonus_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to delete bonus")
