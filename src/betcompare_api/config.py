"""
# Configuration Module

This module provides the **layered configuration system** for the BetCompare API.
Built on **Pydantic Settings**, it loads values from the environment, an optional
config file and typed defaults, and validates them once at import time.

## Loading Hierarchy

```
┌─────────────────────────────────────────────────────────────┐
│         Configuration Loading Hierarchy                     │
│  (Higher layers override lower layers)                      │
├─────────────────────────────────────────────────────────────┤
│  1. Environment Variables (HIGHEST PRIORITY)                │
│  2. BETCOMPARE_CONFIG_PATH (custom config file path)        │
│  3. .betcompare File (Project Root)                         │
│  4. .env File (Project Root)                                │
│  5. Default Values (LOWEST PRIORITY)                        │
└─────────────────────────────────────────────────────────────┘
```

If no configuration file is found, the application runs in **environment-only
mode**, which is what container deployments normally use.

## Secrets

`SECRET_KEY`, `ADMIN_PASSWORD` and `MONGODB_PASSWORD` are `SecretStr` values so they
never end up in logs or reprs. `SECRET_KEY` and `ADMIN_PASSWORD` are validated when
supplied; an unset admin password disables the login endpoint.

## Usage Example

```python
from betcompare_api.config import settings

if settings.is_production:
    log_level = "WARNING"

mongodb_url = settings.MONGODB_URL
signing_key = settings.SECRET_KEY.get_secret_value()
```

Attributes:
    CONFIG_FILENAME (str): Primary configuration filename (`.betcompare`).
    DEFAULT_ENV_FILENAME (str): Fallback configuration filename (`.env`).
    CONFIG_ENV_VAR (str): Environment variable holding a custom config file path.
    PROJECT_ROOT (Path): Directory that holds the `.betcompare` / `.env` files.
    CONFIG_PATH (Optional[str]): Resolved config file, or `None` in environment-only mode.
    settings (Settings): Global settings instance used throughout the application.
"""

import os
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Constants ---
CONFIG_FILENAME: str = ".betcompare"
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "BETCOMPARE_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """
    Resolve the configuration file to load.

    Precedence is the `BETCOMPARE_CONFIG_PATH` environment variable, then `.betcompare`
    in the project root, then `.env` in the project root.

    Returns:
        Optional[str]: The absolute path to the configuration file, or `None` if not found.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    config_path: Path = PROJECT_ROOT / CONFIG_FILENAME
    if config_path.exists():
        return str(config_path)
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=True)


class Settings(BaseSettings):
    """
    Application configuration settings model.

    **Configuration Groups:**
    *   **Server**: Host, port, debug mode, public URLs.
    *   **Database**: MongoDB connection details and timeouts.
    *   **Security**: JWT signing, admin credentials, write protection.
    *   **Site**: Branding used for SEO defaults and the sitemap.
    *   **Analytics**: Event persistence toggle.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",
    )

    # Server configuration
    HOST: str = "127.0.0.1"
    PORT: int = 5000
    DEBUG: bool = True
    ENVIRONMENT: str = "development"
    APP_VERSION: str = "1.0.0"
    BASE_URL: str = "http://localhost:5000"

    # Site branding
    SITE_NAME: str = "BetCompare.co.ke"
    SITE_URL: str = "https://betcompare.co.ke"

    # MongoDB configuration
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "betcompare"
    MONGODB_CONNECTION_TIMEOUT: int = 10000
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000
    MONGODB_USERNAME: Optional[str] = None
    MONGODB_PASSWORD: Optional[SecretStr] = None

    # JWT configuration
    SECRET_KEY: SecretStr = SecretStr("")
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 24 * 60

    # Admin credentials (single static account)
    ADMIN_EMAIL: str = "admin@betcompare.co.ke"
    ADMIN_PASSWORD: SecretStr = SecretStr("")
    WRITE_AUTH_ENABLED: bool = True

    # CORS configuration (comma separated)
    CORS_ORIGINS: str = "http://localhost:3000"

    # Analytics
    ANALYTICS_PERSIST_EVENTS: bool = True

    @field_validator("SECRET_KEY", "ADMIN_PASSWORD", mode="before")
    @classmethod
    def no_placeholder_secrets(cls, v: Any, info: Any) -> Any:
        """
        Reject placeholder or blank secrets supplied through the environment.

        Raises:
            ValueError: If the value is whitespace-only or still a "change me" placeholder.
        """
        if v is None:
            return v
        raw = v.get_secret_value() if isinstance(v, SecretStr) else str(v)
        if raw and (not raw.strip() or "changeme" in raw.lower().replace("-", "").replace("_", "")):
            raise ValueError(f"{info.field_name} must be set via environment or .betcompare and not a placeholder!")
        return v

    @field_validator("MONGODB_URL", mode="before")
    @classmethod
    def no_empty_urls(cls, v: Any, info: Any) -> Any:
        """Validate that the MongoDB URL is not empty."""
        if not v or not str(v).strip():
            raise ValueError(f"{info.field_name} must be set via environment or .betcompare and not empty!")
        return v

    @field_validator("MONGODB_CONNECTION_TIMEOUT", "MONGODB_SERVER_SELECTION_TIMEOUT", "ACCESS_TOKEN_EXPIRE_MINUTES", mode="before")
    @classmethod
    def validate_positive_integers(cls, v: Any, info: Any) -> int:
        """Validate that numeric settings are positive integers."""
        value = int(v)
        if value <= 0:
            raise ValueError(f"{info.field_name} must be a positive integer")
        return value

    @property
    def is_production(self) -> bool:
        """`True` when running with `DEBUG=False`."""
        return not self.DEBUG

    @property
    def cors_origin_list(self) -> List[str]:
        """CORS origins parsed from the comma separated `CORS_ORIGINS` value."""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings: Settings = Settings()
