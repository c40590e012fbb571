"""
# Route Dependencies

Reusable FastAPI dependencies for the public API.

- `valid_object_id`: rejects malformed `{id}` path parameters with 400 before any query runs.
- `pagination_params`: `page >= 1`, `1 <= limit <= 100`.
- `require_admin`: bearer-token guard for content writes, switchable with
  `WRITE_AUTH_ENABLED`.

## Usage Example

```python
@router.delete("/{bookmaker_id}")
async def delete_bookmaker(
    bookmaker_id: str = Depends(valid_object_id("bookmaker_id")),
    admin: dict = Depends(require_admin),
):
    ...
```
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, HTTPException, Path, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from betcompare_api.config import settings
from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.services.auth_service import AuthenticationError, auth_service
from betcompare_api.utils.pagination import MAX_PAGE_SIZE
from betcompare_api.utils.serialization import is_object_id

logger = get_logger(prefix="[Dependencies]")

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class Pagination:
    page: int
    limit: int


def pagination_params(
    page: int = Query(1, ge=1, description="1-based page number"),
    limit: int = Query(10, ge=1, le=MAX_PAGE_SIZE, description="Items per page"),
) -> Pagination:
    return Pagination(page=page, limit=limit)


def valid_object_id(name: str) -> Callable[..., str]:
    """Dependency factory validating the path parameter `name` as a MongoDB ObjectId."""

    def dependency(value: str = Path(..., alias=name)) -> str:
        if not is_object_id(value):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid ID format")
        return value

    return dependency


def bearer_token(credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme)) -> Optional[str]:
    return credentials.credentials if credentials else None


async def require_admin(token: Optional[str] = Depends(bearer_token)) -> Dict[str, Any]:
    """
    Require a valid admin token.

    When `WRITE_AUTH_ENABLED` is off every caller is treated as the configured admin.

    Raises:
        HTTPException(401): If the token is missing or invalid.
    """
    if not settings.WRITE_AUTH_ENABLED:
        return {"email": settings.ADMIN_EMAIL, "role": "admin"}
    try:
        return auth_service.verify_token(token)
    except AuthenticationError as e:
        logger.info("Rejected write request: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
