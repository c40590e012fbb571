"""
# BetCompare API Application

FastAPI application for the Kenyan bookmaker comparison site.

## Startup

`lifespan()` connects to MongoDB and creates the indexes. A database failure is
logged and the server starts anyway: `/health` reports the database as
disconnected and data endpoints answer 500 until it is reachable.

## Request Pipeline

```
CORS ──▶ request logging ──▶ router ──▶ exception handlers (error envelope)
                                 └──▶ Prometheus instrumentation (/metrics)
```

## Routers

| Router | Prefix |
|--------|--------|
| bookmakers | `/api/bookmakers` |
| reviews | `/api/reviews` |
| bonuses | `/api/bonuses` |
| blog | `/api/blog` |
| comparison | `/api/comparison` |
| search | `/api/search` |
| auth | `/api/auth` |
| analytics | `/api/analytics` |
| seo | `/sitemap.xml`, `/api/seo` |
| health | `/health` |

## Running

```bash
uvicorn betcompare_api.main:app --host 0.0.0.0 --port 5000
```

Attributes:
    app (FastAPI): The application instance.
    routers_config (List[Tuple[str, APIRouter, str]]): Routers included at import time.
"""

from contextlib import asynccontextmanager
import time

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
import uvicorn

from betcompare_api.config import settings
from betcompare_api.database import db_manager
from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.routes.analytics import router as analytics_router
from betcompare_api.routes.auth import router as auth_router
from betcompare_api.routes.blog import router as blog_router
from betcompare_api.routes.bonuses import router as bonuses_router
from betcompare_api.routes.bookmakers import router as bookmakers_router
from betcompare_api.routes.comparison import router as comparison_router
from betcompare_api.routes.health import router as health_router
from betcompare_api.routes.reviews import router as reviews_router
from betcompare_api.routes.search import router as search_router
from betcompare_api.routes.seo import router as seo_router
from betcompare_api.utils.error_handlers import register_exception_handlers
from betcompare_api.utils.logging_utils import (
    RequestLoggingMiddleware,
    log_application_lifecycle,
    log_error_with_context,
)

logger = get_logger(prefix="[MAIN]")


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Connect the database on startup and release it on shutdown.

    A failed connection does not abort startup.
    """
    startup_start_time = time.time()
    log_application_lifecycle(
        "startup_initiated",
        {
            "app_name": settings.SITE_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "debug_mode": settings.DEBUG,
        },
    )

    try:
        await db_manager.connect()
        await db_manager.create_indexes()
        log_application_lifecycle("database_ready", {"database_name": settings.MONGODB_DATABASE})
    except Exception as e:
        log_error_with_context(e, {"operation": "database_startup"})
        logger.error("Starting without a database connection: %s", e)

    log_application_lifecycle("startup_completed", {"duration": f"{time.time() - startup_start_time:.3f}s"})

    yield

    log_application_lifecycle("shutdown_initiated")
    await db_manager.disconnect()
    log_application_lifecycle("shutdown_completed")


app = FastAPI(
    title="BetCompare API",
    description="Bookmaker comparison, reviews, bonuses and betting guides for Kenya.",
    version=settings.APP_VERSION,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "bookmakers", "description": "Bookmaker listings and management"},
        {"name": "reviews", "description": "Expert bookmaker reviews"},
        {"name": "bonuses", "description": "Promotions and click tracking"},
        {"name": "blog", "description": "Guides, news and comparison articles"},
        {"name": "comparison", "description": "Head-to-head comparisons and the comparison table"},
        {"name": "search", "description": "Universal search and suggestions"},
        {"name": "auth", "description": "Admin authentication"},
        {"name": "analytics", "description": "Visitor analytics ingestion"},
        {"name": "seo", "description": "Sitemap and structured data"},
        {"name": "system", "description": "Health checks"},
    ],
)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

routers_config = [
    ("bookmakers", bookmakers_router, "Bookmaker endpoints"),
    ("reviews", reviews_router, "Review endpoints"),
    ("bonuses", bonuses_router, "Bonus endpoints"),
    ("blog", blog_router, "Blog endpoints"),
    ("comparison", comparison_router, "Comparison endpoints"),
    ("search", search_router, "Search endpoints"),
    ("auth", auth_router, "Admin authentication endpoints"),
    ("analytics", analytics_router, "Analytics ingestion endpoints"),
    ("seo", seo_router, "Sitemap and structured data endpoints"),
    ("health", health_router, "Health check"),
]

included_routers = []
for router_name, router, description in routers_config:
    app.include_router(router)
    included_routers.append(router_name)
    logger.debug("Included %s router: %s", router_name, description)
log_application_lifecycle("routers_configured", {"routers": included_routers})

Instrumentator(
    should_group_status_codes=True,
    should_ignore_untemplated=True,
    should_respect_env_var=False,
).instrument(app).expose(app, include_in_schema=False, endpoint="/metrics")


if __name__ == "__main__":
    uvicorn.run("betcompare_api.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG, log_level="info")
