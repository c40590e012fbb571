"""
# Health Route

- `GET /health` - Liveness plus database reachability

The endpoint answers 200 while the process is up, even when MongoDB is down, so the
API can be checked during a database outage; `database` reports the store's state.

Attributes:
    router (APIRouter): FastAPI router without a prefix
"""

from fastapi import APIRouter

from betcompare_api.config import settings
from betcompare_api.database import db_manager
from betcompare_api.utils.dates import utcnow

router = APIRouter(tags=["system"])


@router.get("/health")
async def health():
    database_ok = await db_manager.health_check()
    return {
        "status": "OK",
        "timestamp": utcnow().isoformat(),
        "environment": settings.ENVIRONMENT,
        "version": settings.APP_VERSION,
        "database": "connected" if database_ok else "disconnected",
    }
