"""
# Database Management Module

This module provides the **MongoDB infrastructure** for the BetCompare API. The
`DatabaseManager` class wraps the **Motor** async driver and owns the connection
lifecycle, collection access, index creation and query logging.

## Key Features

### 1. Connection Lifecycle
- **Async Initialization**: Connects during application startup with exponential backoff
  (1s, 2s) across three attempts.
- **Non-fatal Startup**: The application lifespan logs a failed connection and keeps serving;
  collection access raises `ConnectionError` until a connection exists.
- **Graceful Shutdown**: `disconnect()` closes the client pool.

### 2. Indexes
`create_indexes()` ensures the lookup, sort and text indexes for the four content
collections, including a **unique slug index** per collection.

### 3. Observability
- `[DATABASE]`: connection and index events.
- `[DB_PERFORMANCE]`: timings for connects, pings and queries.
- `[DB_HEALTH]`: health check results.

## Usage Example

```python
from betcompare_api.database import db_manager

bookmakers = db_manager.get_collection("bookmakers")
doc = await bookmakers.find_one({"slug": "betway"})
```

Attributes:
    BOOKMAKERS (str): Collection name for bookmakers.
    REVIEWS (str): Collection name for reviews.
    BONUSES (str): Collection name for bonuses.
    BLOG_POSTS (str): Collection name for blog posts.
    ANALYTICS_EVENTS (str): Collection name for ingested analytics events.
    db_manager (DatabaseManager): Global instance, connected in `main.py` lifespan.
"""

import asyncio
import time
from typing import Any, Dict, List, Optional, Tuple

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, TEXT
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError

from betcompare_api.config import settings
from betcompare_api.managers.logging_manager import get_logger

db_logger = get_logger(prefix="[DATABASE]")
perf_logger = get_logger(prefix="[DB_PERFORMANCE]")
health_logger = get_logger(prefix="[DB_HEALTH]")

BOOKMAKERS = "bookmakers"
REVIEWS = "reviews"
BONUSES = "bonuses"
BLOG_POSTS = "blog_posts"
ANALYTICS_EVENTS = "analytics_events"

# (collection, field spec, options)
INDEX_DEFINITIONS: List[Tuple[str, Any, Dict[str, Any]]] = [
    (BOOKMAKERS, [("slug", ASCENDING)], {"unique": True, "name": "slug_unique"}),
    (BOOKMAKERS, [("featured", DESCENDING), ("priority", DESCENDING)], {"name": "featured_priority"}),
    (BOOKMAKERS, [("status", ASCENDING)], {"name": "status"}),
    (BOOKMAKERS, [("rating.overall", DESCENDING)], {"name": "rating_overall"}),
    (BOOKMAKERS, [("name", TEXT), ("description", TEXT)], {"name": "bookmaker_text"}),
    (REVIEWS, [("slug", ASCENDING)], {"unique": True, "name": "slug_unique"}),
    (REVIEWS, [("bookmaker", ASCENDING)], {"name": "bookmaker"}),
    (REVIEWS, [("status", ASCENDING), ("is_published", ASCENDING)], {"name": "status_published"}),
    (REVIEWS, [("published_at", DESCENDING)], {"name": "published_at"}),
    (REVIEWS, [("ratings.overall", DESCENDING)], {"name": "ratings_overall"}),
    (REVIEWS, [("title", TEXT), ("sections.overview", TEXT)], {"name": "review_text"}),
    (BONUSES, [("bookmaker", ASCENDING)], {"name": "bookmaker"}),
    (BONUSES, [("type", ASCENDING)], {"name": "type"}),
    (BONUSES, [("is_active", ASCENDING), ("valid_until", ASCENDING)], {"name": "active_valid_until"}),
    (BONUSES, [("is_featured", DESCENDING), ("display_info.priority", DESCENDING)], {"name": "featured_priority"}),
    (BONUSES, [("title", TEXT), ("description", TEXT)], {"name": "bonus_text"}),
    (BLOG_POSTS, [("slug", ASCENDING)], {"unique": True, "name": "slug_unique"}),
    (BLOG_POSTS, [("category", ASCENDING), ("published_at", DESCENDING)], {"name": "category_published_at"}),
    (BLOG_POSTS, [("status", ASCENDING), ("is_published", ASCENDING)], {"name": "status_published"}),
    (BLOG_POSTS, [("tags", ASCENDING)], {"name": "tags"}),
    (BLOG_POSTS, [("title", TEXT), ("content", TEXT), ("excerpt", TEXT)], {"name": "blog_text"}),
    (ANALYTICS_EVENTS, [("event_type", ASCENDING), ("received_at", DESCENDING)], {"name": "type_received_at"}),
]


class DatabaseManager:
    """
    Manages the MongoDB connection, collections and indexes.

    **Lifecycle:**
    1. **Instantiation**: `client` and `database` start as `None`.
    2. **Connection**: `connect()` establishes the client and pings the server.
    3. **Operations**: `get_collection()` returns Motor collections.
    4. **Shutdown**: `disconnect()` closes the pool.

    Attributes:
        client (`Optional[AsyncIOMotorClient]`): Motor client, `None` until connected.
        database (`Optional[AsyncIOMotorDatabase]`): Selected database, `None` until connected.
    """

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self._connection_retries = 3

    @property
    def is_connected(self) -> bool:
        return self.database is not None

    def _connection_string(self) -> str:
        if settings.MONGODB_USERNAME and settings.MONGODB_PASSWORD:
            password = settings.MONGODB_PASSWORD.get_secret_value()
            db_logger.debug("Using authenticated connection to MongoDB")
            return (
                f"mongodb://{settings.MONGODB_USERNAME}:{password}@"
                f"{settings.MONGODB_URL.replace('mongodb://', '')}"
            )
        db_logger.debug("Using unauthenticated connection to MongoDB")
        return settings.MONGODB_URL

    async def connect(self):
        """
        Establish the MongoDB connection with exponential backoff.

        Up to three attempts are made; the delay doubles after each failure.

        Raises:
            ServerSelectionTimeoutError: If MongoDB is unreachable after all attempts.
            ConnectionFailure: If the server refuses the connection on the last attempt.
        """
        start_time = time.time()
        db_logger.info("Starting MongoDB connection process")

        for attempt in range(self._connection_retries):
            attempt_start = time.time()
            try:
                db_logger.info("Connection attempt %d/%d to MongoDB", attempt + 1, self._connection_retries)
                db_logger.info(
                    "MongoDB connection config - URL: %s, Database: %s, ServerTimeout: %dms, ConnTimeout: %dms",
                    settings.MONGODB_URL.split("@")[-1],
                    settings.MONGODB_DATABASE,
                    settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    settings.MONGODB_CONNECTION_TIMEOUT,
                )

                self.client = AsyncIOMotorClient(
                    self._connection_string(),
                    serverSelectionTimeoutMS=settings.MONGODB_SERVER_SELECTION_TIMEOUT,
                    connectTimeoutMS=settings.MONGODB_CONNECTION_TIMEOUT,
                    maxPoolSize=50,
                    minPoolSize=5,
                )
                self.database = self.client[settings.MONGODB_DATABASE]

                ping_start = time.time()
                await self.client.admin.command("ping")
                ping_duration = time.time() - ping_start

                total_duration = time.time() - start_time
                perf_logger.info(
                    "MongoDB connection established successfully in %.3fs (ping: %.3fs)", total_duration, ping_duration
                )
                db_logger.info("Successfully connected to MongoDB database: %s", settings.MONGODB_DATABASE)
                return

            except (ServerSelectionTimeoutError, ConnectionFailure) as e:
                attempt_duration = time.time() - attempt_start
                perf_logger.warning("Connection attempt %d failed after %.3fs", attempt + 1, attempt_duration)
                db_logger.warning(
                    "Failed to connect to MongoDB (attempt %d/%d): %s", attempt + 1, self._connection_retries, e
                )
                if attempt == self._connection_retries - 1:
                    db_logger.error("All connection attempts failed after %.3fs", time.time() - start_time)
                    self._reset()
                    raise

                backoff_time = 2**attempt
                db_logger.info("Waiting %.1fs before retry (exponential backoff)", backoff_time)
                await asyncio.sleep(backoff_time)

    def _reset(self):
        if self.client is not None:
            self.client.close()
        self.client = None
        self.database = None

    async def disconnect(self):
        """Close the MongoDB client if one is open."""
        start_time = time.time()
        db_logger.info("Starting MongoDB disconnection process")

        if self.client is None:
            db_logger.warning("Disconnect called but no active MongoDB connection found")
            return

        self._reset()
        perf_logger.info("MongoDB disconnection completed in %.3fs", time.time() - start_time)
        db_logger.info("Successfully disconnected from MongoDB")

    async def health_check(self) -> bool:
        """
        Ping the server.

        Returns:
            `True` if the ping succeeds, `False` otherwise. Never raises.
        """
        start_time = time.time()
        if self.client is None:
            health_logger.warning("Health check failed: No database client available")
            return False

        try:
            await self.client.admin.command("ping")
            perf_logger.debug("Database health check completed in %.3fs", time.time() - start_time)
            return True
        except (ServerSelectionTimeoutError, ConnectionFailure) as e:
            health_logger.error("Database health check failed: %s", e)
            return False
        except Exception as e:
            health_logger.error("Unexpected error during health check: %s", e)
            return False

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        """
        Return a collection from the connected database.

        Raises:
            ConnectionError: If `connect()` has not succeeded.
        """
        if self.database is None:
            db_logger.error("Attempted to get collection '%s' without database connection", collection_name)
            raise ConnectionError("Database not connected. Call connect() first.")

        return self.database[collection_name]

    async def create_indexes(self):
        """Create the lookup, sort and text indexes for every collection."""
        start_time = time.time()
        db_logger.info("Starting database index creation process")

        for collection_name, field_spec, options in INDEX_DEFINITIONS:
            collection = self.get_collection(collection_name)
            await self._create_index_if_not_exists(collection, field_spec, options)

        perf_logger.info("Database index creation completed in %.3fs", time.time() - start_time)
        db_logger.info("Database indexes created successfully")

    async def _create_index_if_not_exists(
        self, collection: AsyncIOMotorCollection, field_spec: Any, options: Dict[str, Any]
    ):
        """Create an index if it doesn't already exist"""
        start_time = time.time()
        try:
            await collection.create_index(field_spec, **options)
            perf_logger.debug("Created/ensured index '%s' in %.3fs", field_spec, time.time() - start_time)
        except Exception as e:
            perf_logger.warning("Failed to create/ensure index '%s' after %.3fs", field_spec, time.time() - start_time)
            db_logger.warning("Could not create/ensure index '%s': %s", field_spec, e)

    # Database operation logging utilities
    def log_query_start(self, collection_name: str, operation: str, query: Optional[Dict] = None) -> float:
        """Log the start of a query and return the start time"""
        db_logger.debug(
            "Starting %s operation on collection '%s' - Query: %s",
            operation,
            collection_name,
            self._sanitize_query_for_logging(query) if query else {},
        )
        return time.time()

    def log_query_success(
        self, collection_name: str, operation: str, start_time: float, result_count: Optional[int] = None
    ):
        """Log successful completion of a query with its duration"""
        duration = time.time() - start_time
        if result_count is not None:
            perf_logger.info(
                "%s on '%s' completed successfully in %.3fs - %d records",
                operation,
                collection_name,
                duration,
                result_count,
            )
        else:
            perf_logger.info("%s on '%s' completed successfully in %.3fs", operation, collection_name, duration)

    def log_query_error(
        self, collection_name: str, operation: str, start_time: float, error: Exception, query: Optional[Dict] = None
    ):
        """Log a failed query with context"""
        duration = time.time() - start_time
        perf_logger.error("%s on '%s' failed after %.3fs", operation, collection_name, duration)
        db_logger.error(
            "%s operation failed on collection '%s' after %.3fs - Error: %s, Query: %s",
            operation,
            collection_name,
            duration,
            error,
            self._sanitize_query_for_logging(query) if query else {},
        )

    def _sanitize_query_for_logging(self, query: Dict[str, Any]) -> Dict[str, Any]:
        """Redact credential-like keys before a query is logged"""
        if not isinstance(query, dict):
            return {}

        sensitive_fields = {"password", "token", "secret", "api_key", "affiliate_link", "tracking_pixel"}
        sanitized: Dict[str, Any] = {}
        for key, value in query.items():
            if any(sensitive in key.lower() for sensitive in sensitive_fields):
                sanitized[key] = "[REDACTED]"
            elif isinstance(value, dict):
                sanitized[key] = self._sanitize_query_for_logging(value)
            elif isinstance(value, list):
                sanitized[key] = [
                    self._sanitize_query_for_logging(item) if isinstance(item, dict) else item for item in value
                ]
            else:
                sanitized[key] = value
        return sanitized
