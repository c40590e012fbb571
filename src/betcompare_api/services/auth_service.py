"""
# Auth Service

Single-admin authentication for the content management endpoints.

The admin credentials come from settings (`ADMIN_EMAIL`, `ADMIN_PASSWORD`). A successful
login returns an HS256 JWT carrying `{email, role: "admin"}` that expires after
`ACCESS_TOKEN_EXPIRE_MINUTES` (24 hours by default). Login always fails while
`ADMIN_PASSWORD` or `SECRET_KEY` is unset.
"""

import hmac
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import JWTError, jwt

from betcompare_api.config import settings
from betcompare_api.managers.logging_manager import get_logger

logger = get_logger(prefix="[Auth Service]")


class AuthenticationError(Exception):
    """Raised for bad credentials and unusable tokens."""


class AuthService:
    """Issues and verifies admin access tokens."""

    def _signing_key(self) -> str:
        key = settings.SECRET_KEY.get_secret_value()
        if not key:
            raise AuthenticationError("Authentication is not configured")
        return key

    def authenticate(self, email: str, password: str) -> Dict[str, str]:
        """
        Check admin credentials.

        Returns:
            The admin user `{email, role}`.

        Raises:
            AuthenticationError: If the credentials do not match or no admin password is configured.
        """
        expected_password = settings.ADMIN_PASSWORD.get_secret_value()
        email_ok = hmac.compare_digest(email.strip().lower(), settings.ADMIN_EMAIL.lower())
        password_ok = bool(expected_password) and hmac.compare_digest(
            password.encode("utf-8"), expected_password.encode("utf-8")
        )
        if not (email_ok and password_ok):
            logger.warning("Failed admin login for %s", email)
            raise AuthenticationError("Invalid credentials")
        logger.info("Admin login for %s", settings.ADMIN_EMAIL)
        return {"email": settings.ADMIN_EMAIL, "role": "admin"}

    def create_access_token(self, user: Dict[str, str], expires_delta: Optional[timedelta] = None) -> str:
        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
        payload = {"email": user["email"], "role": user.get("role", "admin"), "exp": expire}
        return jwt.encode(payload, self._signing_key(), algorithm=settings.ALGORITHM)

    def verify_token(self, token: Optional[str]) -> Dict[str, Any]:
        """
        Decode a token issued by `create_access_token`.

        Raises:
            AuthenticationError: If the token is missing, expired, tampered with or not an admin token.
        """
        if not token:
            raise AuthenticationError("No token provided")
        try:
            payload = jwt.decode(token, self._signing_key(), algorithms=[settings.ALGORITHM])
        except JWTError as e:
            raise AuthenticationError("Invalid token") from e
        if payload.get("role") != "admin" or not payload.get("email"):
            raise AuthenticationError("Invalid token")
        return payload

    def login(self, email: str, password: str) -> Dict[str, Any]:
        user = self.authenticate(email, password)
        return {"token": self.create_access_token(user), "user": user}


auth_service = AuthService()
