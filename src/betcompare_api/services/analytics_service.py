"""
# Analytics Service

Ingestion for visitor analytics sent by the site's tracker.

Every event is validated into its typed model (`models.analytics_models`), logged,
and, when `ANALYTICS_PERSIST_EVENTS` is on and the database is reachable, stored in
the `analytics_events` collection with an `event_id` and a server `received_at`
timestamp. Ingestion never blocks the visitor: with the database down the event is
only logged.

The dashboard summary aggregates stored events by type and by funnel step.
"""

import random
import string
import time
from datetime import timedelta
from typing import Any, Dict, List, Optional

from betcompare_api.config import settings
from betcompare_api.database import db_manager
from betcompare_api.database.manager import ANALYTICS_EVENTS
from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.models.analytics_models import (
    FUNNEL_STEPS,
    AffiliateClickEvent,
    BaseEvent,
    FunnelStepEvent,
    UserBehaviorEvent,
)
from betcompare_api.services.bonus_service import percentage
from betcompare_api.utils.dates import utcnow

logger = get_logger(prefix="[Analytics]")

DEFAULT_CONVERSION_VALUE = 100
_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_id(prefix: str) -> str:
    """`{prefix}_{epoch millis}_{9 random base-36 chars}`, e.g. `evt_1717171717171_k3j9x0a1b`."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


def funnel_progress(step: int) -> str:
    return f"{step}/{len(FUNNEL_STEPS)}"


def drop_off(step_counts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Per-step reach relative to the first step and the drop from the previous step."""
    if not step_counts:
        return []
    first = step_counts[0]["count"]
    rows = []
    previous = None
    for row in step_counts:
        rows.append(
            {
                "step": row["step"],
                "name": FUNNEL_STEPS[row["step"] - 1],
                "count": row["count"],
                "rate": round(percentage(row["count"], first), 1),
                "drop_rate": round(100 - percentage(row["count"], previous), 1) if previous else 0,
            }
        )
        previous = row["count"]
    return rows


class AnalyticsService:
    """Logs, stores and summarises analytics events."""

    def __init__(self):
        self.collection_name = ANALYTICS_EVENTS

    async def _store(self, record: Dict[str, Any]) -> None:
        if not settings.ANALYTICS_PERSIST_EVENTS:
            return
        if not db_manager.is_connected:
            logger.warning("Database unavailable, analytics event %s not stored", record["event_id"])
            return
        await db_manager.get_collection(self.collection_name).insert_one(record)

    async def record(self, event: BaseEvent, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Log and store one event.

        Args:
            event: The validated event.
            context: Server-side facts about the request (client IP, user agent).

        Returns:
            The stored record, including its generated `event_id`.
        """
        record = event.to_record()
        record.update({key: value for key, value in (context or {}).items() if value is not None})
        record["event_id"] = generate_id("evt")
        record["received_at"] = utcnow()
        logger.info(
            "Event %s type=%s session=%s page=%s",
            record["event_id"],
            event.event_type,
            event.session_id,
            event.page_url,
        )
        await self._store(record)
        return record

    async def track_event(self, event: BaseEvent, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        record = await self.record(event, context)
        return {"message": "Event tracked successfully", "event_id": record["event_id"]}

    async def track_affiliate_click(
        self, event: AffiliateClickEvent, context: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        conversion_value = event.bonus_value or DEFAULT_CONVERSION_VALUE
        click_id = generate_id("click")
        await self.record(event, {**(context or {}), "click_id": click_id, "conversion_value": conversion_value})
        return {"message": "Affiliate click tracked", "click_id": click_id, "conversion_value": conversion_value}

    async def track_behavior(self, event: UserBehaviorEvent, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        await self.record(event, context)
        return {"message": "Behavior tracked successfully"}

    async def track_funnel_step(self, event: FunnelStepEvent, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        if not event.funnel_step_name:
            event.funnel_step_name = FUNNEL_STEPS[event.funnel_step - 1]
        await self.record(event, context)
        return {"message": "Funnel step tracked", "funnel_progress": funnel_progress(event.funnel_step)}

    async def dashboard(self, days: int = 7) -> Dict[str, Any]:
        """Event counts by type and funnel reach for the last `days` days."""
        if days < 1:
            raise ValueError("days must be at least 1")
        collection = db_manager.get_collection(self.collection_name)
        since = utcnow() - timedelta(days=days)

        by_type = await collection.aggregate(
            [
                {"$match": {"received_at": {"$gte": since}}},
                {"$group": {"_id": "$event_type", "count": {"$sum": 1}}},
                {"$sort": {"count": -1}},
            ]
        ).to_list(length=None)
        by_step = await collection.aggregate(
            [
                {"$match": {"received_at": {"$gte": since}, "event_type": "funnel_step"}},
                {"$group": {"_id": "$funnel_step", "count": {"$sum": 1}}},
                {"$sort": {"_id": 1}},
            ]
        ).to_list(length=None)

        event_counts = {row["_id"]: row["count"] for row in by_type}
        clicks = event_counts.get("affiliate_click", 0)
        conversions = event_counts.get("conversion", 0) + event_counts.get("high_value_conversion", 0)
        return {
            "time_range": f"{days}d",
            "overview": {
                "total_events": sum(event_counts.values()),
                "page_views": event_counts.get("page_view", 0),
                "affiliate_clicks": clicks,
                "conversions": conversions,
                "conversion_rate": round(percentage(conversions, clicks), 1),
            },
            "event_counts": event_counts,
            "funnel": drop_off([{"step": row["_id"], "count": row["count"]} for row in by_step if row["_id"]]),
            "last_updated": utcnow(),
        }


analytics_service = AnalyticsService()
