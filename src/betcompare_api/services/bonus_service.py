"""
# Bonus Service

Business logic and persistence for **bookmaker promotions**.

## Derived Values

Computed on read by `with_derived_fields()`, so they are always relative to *now*:

| Field | Rule |
|-------|------|
| `is_valid` | active, started, and not past `valid_until` |
| `formatted_amount` | `"100% (Max: KES 10000)"`, `"KES 500"` or `"N/A"` |
| `value_display` | `"100% Bonus"`, `"KES 500"` or `"Bonus Available"` |
| `urgency_level` | days left ≤1 `critical`, ≤7 `high`, ≤30 `medium`, else `low`; `none` when open-ended |

Tracking ratios are stored: every impression, click or conversion recomputes
`tracking.ctr` and `tracking.conversion_rate` as percentages, 0 when the
denominator is 0.
"""

import math
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from pymongo import ASCENDING, DESCENDING, ReturnDocument

from betcompare_api.database import db_manager
from betcompare_api.database.manager import BONUSES, BOOKMAKERS
from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.models.bonus_models import CreateBonusRequest, UpdateBonusRequest
from betcompare_api.services.query_helpers import (
    attach_bookmakers,
    find_page,
    substring_filter,
    validity_window_filter,
)
from betcompare_api.utils.dates import utcnow
from betcompare_api.utils.serialization import to_object_id

logger = get_logger(prefix="[Bonus Service]")

DEFAULT_SORT = [("display_info.priority", DESCENDING), ("valid_from", DESCENDING)]
SEARCH_FIELDS = ["title", "description"]
TRACKING_COUNTERS = {"impression": "impressions", "click": "clicks", "conversion": "conversions"}


def percentage(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0
    return numerator / denominator * 100


def tracking_rates(tracking: Dict[str, Any]) -> Dict[str, float]:
    """CTR and conversion rate for a tracking block."""
    impressions = tracking.get("impressions", 0)
    clicks = tracking.get("clicks", 0)
    conversions = tracking.get("conversions", 0)
    return {
        "ctr": percentage(clicks, impressions),
        "conversion_rate": percentage(conversions, clicks),
    }


def is_valid(doc: Dict[str, Any], now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    valid_from = doc.get("valid_from")
    valid_until = doc.get("valid_until")
    return bool(
        doc.get("is_active")
        and (valid_from is None or valid_from <= now)
        and (valid_until is None or valid_until >= now)
    )


def days_left(doc: Dict[str, Any], now: Optional[datetime] = None) -> Optional[int]:
    """Whole days until `valid_until`, rounded up. `None` for open-ended bonuses."""
    valid_until = doc.get("valid_until")
    if valid_until is None:
        return None
    remaining = valid_until - (now or utcnow())
    return math.ceil(remaining.total_seconds() / 86400)


def urgency_level(doc: Dict[str, Any], now: Optional[datetime] = None) -> str:
    remaining = days_left(doc, now)
    if remaining is None:
        return "none"
    if remaining <= 1:
        return "critical"
    if remaining <= 7:
        return "high"
    if remaining <= 30:
        return "medium"
    return "low"


def is_expiring_soon(doc: Dict[str, Any], days: int = 7, now: Optional[datetime] = None) -> bool:
    remaining = days_left(doc, now)
    return remaining is not None and 0 < remaining <= days


def _number(value: float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def formatted_amount(amount: Optional[Dict[str, Any]]) -> str:
    amount = amount or {}
    currency = amount.get("currency", "KES")
    if amount.get("percentage"):
        cap = f" (Max: {currency} {_number(amount['max_amount'])})" if amount.get("max_amount") else ""
        return f"{_number(amount['percentage'])}%{cap}"
    if amount.get("value"):
        return f"{currency} {_number(amount['value'])}"
    return "N/A"


def value_display(amount: Optional[Dict[str, Any]]) -> str:
    amount = amount or {}
    if amount.get("percentage"):
        return f"{_number(amount['percentage'])}% Bonus"
    if amount.get("value"):
        return f"{amount.get('currency', 'KES')} {_number(amount['value'])}"
    return "Bonus Available"


def with_derived_fields(doc: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Return `doc` with the read-time derived values added."""
    now = now or utcnow()
    doc["is_valid"] = is_valid(doc, now)
    doc["formatted_amount"] = formatted_amount(doc.get("amount"))
    doc["value_display"] = value_display(doc.get("amount"))
    doc["urgency_level"] = urgency_level(doc, now)
    return doc


def prepare_bonus_document(data: Dict[str, Any], existing: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Apply write-time derivations to a bonus document."""
    doc = dict(data)
    now = utcnow()
    doc["bookmaker"] = to_object_id(doc["bookmaker"])
    if not doc.get("valid_from"):
        doc["valid_from"] = now
    tracking = dict(doc.get("tracking") or {"impressions": 0, "clicks": 0, "conversions": 0})
    tracking.update(tracking_rates(tracking))
    doc["tracking"] = tracking
    doc["last_updated"] = now
    doc.setdefault("created_at", now)
    doc.setdefault("created_by", "system")
    doc["updated_by"] = "system"
    return doc


class BonusService:
    """Persistence and queries for bonuses."""

    def __init__(self):
        self.collection_name = BONUSES

    def _collection(self):
        return db_manager.get_collection(self.collection_name)

    async def _finish(self, docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        now = utcnow()
        docs = await attach_bookmakers(docs, db_manager.get_collection(BOOKMAKERS))
        return [with_derived_fields(doc, now) for doc in docs]

    async def get_active(
        self,
        page: int = 1,
        limit: int = 10,
        bonus_type: Optional[str] = None,
        bookmaker: Optional[str] = None,
        featured_only: bool = False,
    ) -> Tuple[List[Dict[str, Any]], int]:
        filters: Dict[str, Any] = {"is_active": True, **validity_window_filter()}
        if bonus_type:
            filters["type"] = bonus_type
        if bookmaker:
            filters["bookmaker"] = to_object_id(bookmaker)
        if featured_only:
            filters["is_featured"] = True

        docs, total = await find_page(self._collection(), filters, DEFAULT_SORT, page, limit)
        return await self._finish(docs), total

    async def get_featured(self, limit: int = 5) -> List[Dict[str, Any]]:
        filters = {"is_active": True, "is_featured": True, **validity_window_filter()}
        cursor = self._collection().find(filters).sort(DEFAULT_SORT).limit(limit)
        return await self._finish(await cursor.to_list(length=limit))

    async def get_by_type(self, bonus_type: str, limit: int = 10) -> List[Dict[str, Any]]:
        filters = {"type": bonus_type, "is_active": True, **validity_window_filter()}
        cursor = self._collection().find(filters).sort(DEFAULT_SORT).limit(limit)
        return await self._finish(await cursor.to_list(length=limit))

    async def get_expiring(self, days: int = 7) -> List[Dict[str, Any]]:
        """Active bonuses whose `valid_until` falls within the next `days` days, soonest first."""
        now = utcnow()
        filters = {"is_active": True, "valid_until": {"$gte": now, "$lte": now + timedelta(days=days)}}
        cursor = self._collection().find(filters).sort("valid_until", ASCENDING)
        return await self._finish(await cursor.to_list(length=100))

    async def search(self, query: Optional[str] = None, page: int = 1, limit: int = 10) -> Tuple[List[Dict[str, Any]], int]:
        window = validity_window_filter()
        text = substring_filter(query, SEARCH_FIELDS)
        filters: Dict[str, Any] = {"is_active": True, "valid_from": window["valid_from"]}
        clauses = [{"$or": window["$or"]}]
        if text:
            clauses.append(text)
        filters["$and"] = clauses
        docs, total = await find_page(self._collection(), filters, DEFAULT_SORT, page, limit)
        return await self._finish(docs), total

    async def top_bonus_for(self, bookmaker_id: Any) -> Optional[Dict[str, Any]]:
        """Highest-priority currently valid bonus of one bookmaker."""
        filters = {"bookmaker": bookmaker_id, "is_active": True, **validity_window_filter()}
        cursor = self._collection().find(filters).sort(DEFAULT_SORT).limit(1)
        docs = await cursor.to_list(length=1)
        return with_derived_fields(docs[0]) if docs else None

    async def get_by_id(self, bonus_id: str) -> Optional[Dict[str, Any]]:
        doc = await self._collection().find_one({"_id": to_object_id(bonus_id)})
        if not doc:
            return None
        return (await self._finish([doc]))[0]

    async def track(self, bonus_id: str, kind: str) -> Optional[Dict[str, Any]]:
        """
        Count an impression, click or conversion and refresh the stored ratios.

        Returns:
            The updated tracking block, or `None` if the bonus does not exist.
        """
        counter = TRACKING_COUNTERS[kind]
        object_id = to_object_id(bonus_id)
        doc = await self._collection().find_one_and_update(
            {"_id": object_id},
            {"$inc": {f"tracking.{counter}": 1}},
            return_document=ReturnDocument.AFTER,
        )
        if not doc:
            return None

        tracking = dict(doc.get("tracking") or {})
        tracking.update(tracking_rates(tracking))
        await self._collection().update_one(
            {"_id": object_id},
            {"$set": {"tracking.ctr": tracking["ctr"], "tracking.conversion_rate": tracking["conversion_rate"]}},
        )
        logger.debug("Tracked %s for bonus %s", kind, bonus_id)
        return tracking

    async def create(self, request: CreateBonusRequest) -> Dict[str, Any]:
        doc = prepare_bonus_document(request.model_dump())
        result = await self._collection().insert_one(doc)
        doc["_id"] = result.inserted_id
        logger.info("Created %s bonus '%s' for bookmaker %s", doc["type"], doc["title"], doc["bookmaker"])
        return with_derived_fields(doc)

    async def update(self, bonus_id: str, request: UpdateBonusRequest) -> Optional[Dict[str, Any]]:
        object_id = to_object_id(bonus_id)
        existing = await self._collection().find_one({"_id": object_id})
        if not existing:
            return None

        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        doc = prepare_bonus_document({**existing, **changes}, existing)
        if doc.get("valid_until") and doc["valid_until"] < doc["valid_from"]:
            raise ValueError("valid_until must be after valid_from")
        await self._collection().update_one({"_id": object_id}, {"$set": {k: v for k, v in doc.items() if k != "_id"}})
        logger.info("Updated bonus %s", bonus_id)
        return with_derived_fields(doc)

    async def delete(self, bonus_id: str) -> bool:
        result = await self._collection().delete_one({"_id": to_object_id(bonus_id)})
        return result.deleted_count > 0


bonus_service = BonusService()
