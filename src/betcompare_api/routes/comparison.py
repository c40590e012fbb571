"""
# Comparison Routes

- `GET /api/comparison/compare/{id1}/{id2}` - Head-to-head comparison of two active bookmakers
- `GET /api/comparison/table` - The ten best-rated bookmakers with pros and cons

Attributes:
    router (APIRouter): FastAPI router with `/api/comparison` prefix
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.routes.dependencies import valid_object_id
from betcompare_api.routes.responses import success
from betcompare_api.services.comparison_service import comparison_service

logger = get_logger(prefix="[Comparison Routes]")

router = APIRouter(prefix="/api/comparison", tags=["comparison"])


@router.get("/compare/{id1}/{id2}")
async def compare_bookmakers(
    id1: str = Depends(valid_object_id("id1")),
    id2: str = Depends(valid_object_id("id2")),
):
    """
    Compare two bookmakers category by category.

    Raises:
        HTTPException(400): If either id is malformed.
        HTTPException(404): If either bookmaker is missing or inactive.
    """
    try:
        comparison = await comparison_service.compare(id1, id2)
        if comparison is None:
            raise HTTPException(status_code=404, detail="One or both bookmakers not found")
        return success(comparison)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Failed to compare %s and %s: %s", id1, id2, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to compare bookmakers")


@router.get("/table")
async def comparison_table(limit: int = Query(10, ge=1, le=50)):
    try:
        return success(await comparison_service.comparison_table(limit))
    except Exception as e:
        logger.error("Failed to build comparison table: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to build comparison table")
