"""
# Conversion Funnel & Attribution

Client-side tracking of a visitor's path from landing to affiliate conversion.

## Funnel

```
landing → browse_bookmakers → view_bookmaker_details → start_comparison
→ add_to_comparison → view_comparison → read_review → view_bonus
→ click_affiliate → conversion
```

`ConversionFunnel.track_step()` appends the step (timestamp, running step number)
to the session's funnel state in session storage and emits a `funnel_step` event.
Bookmaker interactions and comparisons map onto steps; conversions are valued by
`calculate_conversion_value()` and attributed with the `last_click` model.

## Attribution

`AttributionTracker` records each visit as a touchpoint (URL, referrer, UTM
parameters), keeping the last ten, and logs every visit that carries a
`utm_campaign` as a campaign.

## Usage Example

```python
storage = MemoryStorage()
sink = MemorySink()
attribution = AttributionTracker(storage, sink)
attribution.track_visit("https://betcompare.co.ke/?utm_campaign=euro", referrer="https://google.com")

funnel = ConversionFunnel(storage, sink, attribution=attribution)
funnel.track_step("landing")
funnel.track_bookmaker_interaction({"id": "b1", "name": "Betway", "rating": 4.5}, "affiliate_click")
```
"""

import random
import time
from typing import Any, Dict, List, Optional
from urllib.parse import parse_qs, urlparse

from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.models.analytics_models import (
    FUNNEL_STEPS,
    ConversionEvent,
    CustomEvent,
    FunnelStepEvent,
    MicroConversionEvent,
)
from betcompare_api.tracking.common import Clock, event_time, new_session_id
from betcompare_api.tracking.sinks import EventSink
from betcompare_api.tracking.storage import Storage

logger = get_logger(prefix="[Tracking]")

CONVERSION_BASE_VALUES = {
    "affiliate_click": 100,
    "bonus_claim": 50,
    "review_read": 25,
    "comparison_complete": 75,
    "newsletter_signup": 30,
    "contact_form": 40,
}
HIGH_VALUE_THRESHOLD = 1000
ACTION_STEPS = {
    "view_details": "view_bookmaker_details",
    "add_to_comparison": "add_to_comparison",
    "view_review": "read_review",
    "view_bonus": "view_bonus",
    "affiliate_click": "click_affiliate",
}
UTM_PARAMS = ("utm_source", "utm_medium", "utm_campaign", "utm_term", "utm_content")
MAX_TOUCHPOINTS = 10
ATTRIBUTION_MODEL = "last_click"


def calculate_conversion_value(bookmaker: Dict[str, Any], conversion_type: str) -> int:
    """
    Estimated value of a conversion.

    The base value for the type is scaled by `rating / 5` when the bookmaker has a
    rating, then `min(bonus_value * 0.1, 50)` is added. Unknown types are worth 0.
    """
    value = float(CONVERSION_BASE_VALUES.get(conversion_type, 0))
    if bookmaker.get("rating"):
        value *= float(bookmaker["rating"]) / 5
    if bookmaker.get("bonus_value"):
        value += min(float(bookmaker["bonus_value"]) * 0.1, 50)
    return int(value + 0.5)


def utm_params(url: str) -> Dict[str, Optional[str]]:
    query = parse_qs(urlparse(url).query)
    return {name: query[name][0] if name in query else None for name in UTM_PARAMS}


class AttributionTracker:
    """Touchpoints and campaigns, persisted in local storage."""

    def __init__(self, storage: Storage, sink: Optional[EventSink] = None, clock: Clock = time.time):
        self.storage = storage
        self.sink = sink
        self.clock = clock
        self.touchpoints: List[Dict[str, Any]] = storage.get("touchpoints") or []
        self.campaigns: List[Dict[str, Any]] = storage.get("campaigns") or []

    def track_visit(self, url: str, referrer: Optional[str] = None, user_agent: Optional[str] = None) -> Dict[str, Any]:
        params = utm_params(url)
        touchpoint = {
            "url": url,
            "referrer": referrer,
            "timestamp": self.clock(),
            "user_agent": user_agent,
            "utm_params": params,
        }
        self.touchpoints = (self.touchpoints + [touchpoint])[-MAX_TOUCHPOINTS:]
        self.storage.set("touchpoints", self.touchpoints)

        if params["utm_campaign"]:
            self.campaigns.append({**params, "timestamp": touchpoint["timestamp"], "url": url})
            self.storage.set("campaigns", self.campaigns)
            if self.sink:
                self.sink.emit(
                    CustomEvent(
                        event_type="campaign_attribution",
                        timestamp=event_time(self.clock),
                        page_url=url,
                        referrer=referrer,
                        **{key: value for key, value in params.items() if value},
                    )
                )
        return touchpoint

    @property
    def first_touch(self) -> Optional[Dict[str, Any]]:
        return self.touchpoints[0] if self.touchpoints else None

    @property
    def last_touch(self) -> Optional[Dict[str, Any]]:
        return self.touchpoints[-1] if self.touchpoints else None


class ConversionFunnel:
    """
    Funnel state for one browsing session.

    Args:
        storage: Session storage; funnel state lives under `funnel_{session_id}`.
        sink: Receives the emitted events.
        session_id: Resume an existing session; a new id is generated otherwise.
        attribution: Source of first/last touch for conversions.
        local_storage: Where the visit count is read from for segmentation.
    """

    def __init__(
        self,
        storage: Storage,
        sink: EventSink,
        session_id: Optional[str] = None,
        attribution: Optional[AttributionTracker] = None,
        local_storage: Optional[Storage] = None,
        clock: Clock = time.time,
        rng: Optional[random.Random] = None,
    ):
        self.storage = storage
        self.sink = sink
        self.attribution = attribution
        self.local_storage = local_storage or storage
        self.clock = clock
        self.rng = rng or random.Random()
        self.session_id = session_id or new_session_id(clock, self.rng)
        self.conversion_value = 0
        self.data = self.storage.get(self._key) or {
            "steps": [],
            "start_time": self.clock(),
            "current_step": None,
            "bookmakers": [],
            "comparisons": [],
            "conversions": [],
        }

    @property
    def _key(self) -> str:
        return f"funnel_{self.session_id}"

    def _save(self) -> None:
        self.storage.set(self._key, self.data)

    def time_in_funnel(self) -> float:
        return self.clock() - self.data["start_time"]

    def track_step(self, step: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Record a funnel step.

        Raises:
            ValueError: If `step` is not one of `FUNNEL_STEPS`.
        """
        if step not in FUNNEL_STEPS:
            raise ValueError(f"Unknown funnel step: {step}")
        entry = {"step": step, "timestamp": self.clock(), **(data or {})}
        self.data["steps"].append(entry)
        self.data["current_step"] = step
        self._save()

        self.sink.emit(
            FunnelStepEvent(
                session_id=self.session_id,
                timestamp=event_time(self.clock),
                funnel_step=FUNNEL_STEPS.index(step) + 1,
                funnel_step_name=step,
                time_in_funnel=self.time_in_funnel(),
                bookmaker_ids=[str(b["id"]) for b in self.data["bookmakers"] if b.get("id") is not None],
                step_number=len(self.data["steps"]),
            )
        )
        return entry

    def track_bookmaker_interaction(
        self, bookmaker: Dict[str, Any], action: str, context: Optional[Dict[str, Any]] = None
    ) -> None:
        if not any(known["name"] == bookmaker.get("name") for known in self.data["bookmakers"]):
            self.data["bookmakers"].append(
                {
                    "name": bookmaker.get("name"),
                    "id": bookmaker.get("id"),
                    "rating": bookmaker.get("rating"),
                    "bonus_value": bookmaker.get("bonus_value"),
                    "added_at": self.clock(),
                }
            )

        interaction = {"bookmaker": bookmaker.get("name"), "action": action, **(context or {})}
        step = ACTION_STEPS.get(action)
        if step:
            self.track_step(step, interaction)
        if action == "affiliate_click":
            self.track_conversion(bookmaker, "affiliate_click")
        self._save()

    def track_comparison(self, bookmakers: List[Dict[str, Any]], comparison_type: str = "general") -> None:
        comparison = {
            "bookmakers": [bookmaker.get("name") for bookmaker in bookmakers],
            "comparison_type": comparison_type,
            "timestamp": self.clock(),
            "bookmaker_count": len(bookmakers),
        }
        self.data["comparisons"].append(comparison)
        if len(self.data["comparisons"]) == 1:
            self.track_step("start_comparison", comparison)
        self.track_step("view_comparison", comparison)
        self.track_micro_conversion(
            "comparison_created", {"comparison_type": comparison_type, "bookmaker_count": len(bookmakers)}
        )

    def attribution_model(self) -> Dict[str, Any]:
        touchpoints = self.attribution.touchpoints if self.attribution else []
        return {
            "first_touch": self.attribution.first_touch if self.attribution else None,
            "last_touch": self.attribution.last_touch if self.attribution else None,
            "touchpoint_count": len(touchpoints),
            "model": ATTRIBUTION_MODEL,
        }

    def track_conversion(
        self, bookmaker: Dict[str, Any], conversion_type: str, conversion_value: Optional[float] = None
    ) -> Dict[str, Any]:
        value = conversion_value or calculate_conversion_value(bookmaker, conversion_type)
        conversion = {
            "bookmaker": bookmaker.get("name"),
            "type": conversion_type,
            "value": value,
            "timestamp": self.clock(),
            "session_id": self.session_id,
            "funnel_steps": len(self.data["steps"]),
            "time_to_conversion": self.time_in_funnel(),
            "attribution": self.attribution_model(),
        }
        self.data["conversions"].append(conversion)
        self.track_step("conversion", {"conversion_type": conversion_type, "value": value})
        self.conversion_value += value

        self.sink.emit(
            ConversionEvent(
                session_id=self.session_id,
                timestamp=event_time(self.clock),
                conversion_type=conversion_type,
                conversion_value=value,
                bookmaker_id=str(bookmaker["id"]) if bookmaker.get("id") is not None else None,
                bookmaker_name=bookmaker.get("name"),
                attribution_model=ATTRIBUTION_MODEL,
                funnel_steps_completed=conversion["funnel_steps"],
            )
        )
        if value >= HIGH_VALUE_THRESHOLD:
            logger.info("High value conversion %s for %s in session %s", value, bookmaker.get("name"), self.session_id)
            self.sink.emit(
                ConversionEvent(
                    event_type="high_value_conversion",
                    session_id=self.session_id,
                    timestamp=event_time(self.clock),
                    conversion_type=conversion_type,
                    conversion_value=value,
                    bookmaker_name=bookmaker.get("name"),
                    user_segment=self.user_segment(),
                )
            )
        self._save()
        return conversion

    def track_micro_conversion(self, action: str, data: Optional[Dict[str, Any]] = None) -> None:
        self.sink.emit(
            MicroConversionEvent(
                session_id=self.session_id,
                timestamp=event_time(self.clock),
                action=action,
                time_in_session=self.time_in_funnel(),
                **(data or {}),
            )
        )

    def user_segment(self) -> str:
        visits = int(self.local_storage.get("visit_count") or 1)
        conversions = len(self.data["conversions"])
        comparisons = len(self.data["comparisons"])
        if conversions >= 3:
            return "high_converter"
        if conversions >= 1:
            return "converter"
        if comparisons >= 3:
            return "active_comparer"
        if comparisons >= 1:
            return "comparer"
        if visits >= 5:
            return "frequent_visitor"
        if visits >= 2:
            return "returning_visitor"
        return "new_visitor"

    def most_engaging_step(self) -> Optional[str]:
        """The step with the most time spent before the next step, `None` with fewer than two steps."""
        steps = self.data["steps"]
        totals: Dict[str, float] = {}
        for previous, current in zip(steps, steps[1:]):
            totals[current["step"]] = totals.get(current["step"], 0) + current["timestamp"] - previous["timestamp"]
        if not totals:
            return None
        return max(totals, key=totals.get)

    def analyze(self) -> Dict[str, Any]:
        steps = len(self.data["steps"])
        elapsed = self.time_in_funnel()
        return {
            "total_steps": steps,
            "time_in_funnel": elapsed,
            "conversion_rate": len(self.data["conversions"]) / steps * 100 if steps else 0,
            "average_time_per_step": elapsed / steps if steps > 1 else 0,
            "most_engaging_step": self.most_engaging_step(),
        }

    def summary(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "steps": len(self.data["steps"]),
            "bookmakers": len(self.data["bookmakers"]),
            "comparisons": len(self.data["comparisons"]),
            "conversions": len(self.data["conversions"]),
            "conversion_value": self.conversion_value,
            "time_in_funnel": self.time_in_funnel(),
            "current_step": self.data["current_step"],
        }
