"""
# Analytics Routes

Ingestion endpoints for the site's visitor tracker, plus an admin summary.

## API Endpoints

- `POST /api/analytics/track` - Any event; the `event_type` selects the event model (missing means `custom`)
- `POST /api/analytics/track/affiliate` - Affiliate click, returns `click_id` and `conversion_value`
- `POST /api/analytics/track/behavior` - Scroll, time on page and engagement signals
- `POST /api/analytics/track/funnel` - Funnel step, returns `funnel_progress` (`"3/10"`)
- `GET /api/analytics/dashboard?days=7` - Event counts and funnel reach (admin)

Unknown attributes on an event are kept in its `extra` bag rather than rejected.

Attributes:
    router (APIRouter): FastAPI router with `/api/analytics` prefix
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request
from pydantic import ValidationError

from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.models.analytics_models import (
    AffiliateClickEvent,
    FunnelStepEvent,
    TrackEventResponse,
    UserBehaviorEvent,
    parse_event,
)
from betcompare_api.routes.dependencies import require_admin
from betcompare_api.routes.responses import success
from betcompare_api.services.analytics_service import analytics_service
from betcompare_api.utils.error_handlers import VALIDATION_FAILED, format_validation_errors

logger = get_logger(prefix="[Analytics Routes]")

router = APIRouter(prefix="/api/analytics", tags=["analytics"])


def request_context(request: Request) -> Dict[str, Any]:
    return {
        "ip_address": request.client.host if request.client else None,
        "server_user_agent": request.headers.get("user-agent"),
    }


def _respond(result: Dict[str, Any]) -> Dict[str, Any]:
    return TrackEventResponse(**result).model_dump(exclude_none=True)


@router.post("/track")
async def track_event(request: Request, payload: Dict[str, Any] = Body(...)):
    try:
        event = parse_event(payload)
    except ValidationError as e:
        raise HTTPException(
            status_code=400,
            detail={"message": VALIDATION_FAILED, "errors": format_validation_errors(e.errors())},
        )
    try:
        return _respond(await analytics_service.track_event(event, request_context(request)))
    except Exception as e:
        logger.error("Analytics tracking error: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to track event")


@router.post("/track/affiliate")
async def track_affiliate(event: AffiliateClickEvent, request: Request):
    try:
        return _respond(await analytics_service.track_affiliate_click(event, request_context(request)))
    except Exception as e:
        logger.error("Affiliate tracking error: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to track affiliate click")


@router.post("/track/behavior")
async def track_behavior(event: UserBehaviorEvent, request: Request):
    try:
        return _respond(await analytics_service.track_behavior(event, request_context(request)))
    except Exception as e:
        logger.error("Behavior tracking error: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to track behavior")


@router.post("/track/funnel")
async def track_funnel(event: FunnelStepEvent, request: Request):
    try:
        return _respond(await analytics_service.track_funnel_step(event, request_context(request)))
    except Exception as e:
        logger.error("Funnel tracking error: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to track funnel step")


@router.get("/dashboard")
async def dashboard(days: int = Query(7, ge=1, le=365), admin: Dict[str, Any] = Depends(require_admin)):
    try:
        return success(await analytics_service.dashboard(days))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error("Dashboard data error: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to load dashboard data")
