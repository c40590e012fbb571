"""
# Auth Routes

- `POST /api/auth/login` - Exchange the admin email and password for a bearer token
- `GET /api/auth/verify` - Decode the bearer token of the current request

Attributes:
    router (APIRouter): FastAPI router with `/api/auth` prefix
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status

from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.models.auth_models import AdminUser, LoginRequest
from betcompare_api.routes.dependencies import bearer_token
from betcompare_api.routes.responses import success
from betcompare_api.services.auth_service import AuthenticationError, auth_service

logger = get_logger(prefix="[Auth Routes]")

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login")
async def login(request: LoginRequest):
    """
    Admin login.

    Raises:
        HTTPException(401): On wrong credentials or when no admin password is configured.
    """
    try:
        result = auth_service.login(request.email, request.password)
        return success({"token": result["token"], "user": AdminUser(**result["user"]).model_dump()})
    except AuthenticationError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))
    except Exception as e:
        logger.error("Login failed: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Login failed")


@router.get("/verify")
async def verify(token: Optional[str] = Depends(bearer_token)):
    try:
        payload = auth_service.verify_token(token)
        return success({"user": AdminUser(email=payload["email"], role=payload["role"]).model_dump()})
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
