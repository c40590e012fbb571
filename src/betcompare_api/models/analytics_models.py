"""
# Analytics Event Models

Typed analytics events shared by the ingestion endpoints (`routes.analytics`) and the
visitor tracker (`betcompare_api.tracking`).

## Event Union

`AnalyticsEvent` is a **tagged union** keyed on `event_type`. Known kinds are parsed
into their own model; any other `event_type`, or none at all, becomes a `CustomEvent`
with `event_type="custom"`. Attributes a
model does not declare are not dropped: they are collected into the `extra` bag so
newer clients can send fields an older server does not know about.

```python
event = parse_event({"event_type": "affiliate_click", "bookmaker_id": "b1", "campaign": "x"})
assert isinstance(event, AffiliateClickEvent)
assert event.extra == {"campaign": "x"}
```

Attributes:
    FUNNEL_STEPS (List[str]): The ten ordered funnel steps.
    KNOWN_EVENT_TYPES (Set[str]): Tags with a dedicated model.
"""

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, TypeAdapter, model_validator

FUNNEL_STEPS = [
    "landing",
    "browse_bookmakers",
    "view_bookmaker_details",
    "start_comparison",
    "add_to_comparison",
    "view_comparison",
    "read_review",
    "view_bonus",
    "click_affiliate",
    "conversion",
]


class BaseEvent(BaseModel):
    """Fields every event may carry, plus the extension bag."""

    model_config = ConfigDict(extra="forbid")

    event_type: str = "custom"
    timestamp: Optional[datetime] = None
    session_id: Optional[str] = None
    user_id: Optional[str] = None
    page_url: Optional[str] = None
    user_agent: Optional[str] = None
    referrer: Optional[str] = None
    extra: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def collect_extra(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        known = set(cls.model_fields)
        extra = dict(data.get("extra") or {})
        payload = {}
        for key, value in data.items():
            if key in known:
                payload[key] = value
            else:
                extra[key] = value
        if payload.get("event_type") is None:
            payload.pop("event_type", None)
        payload["extra"] = extra
        return payload

    def to_record(self) -> Dict[str, Any]:
        """Flat dictionary with the extension bag kept under `extra`."""
        return self.model_dump(exclude_none=True)


class PageViewEvent(BaseEvent):
    event_type: Literal["page_view"] = "page_view"
    page_title: Optional[str] = None


class FunnelStepEvent(BaseEvent):
    event_type: Literal["funnel_step"] = "funnel_step"
    funnel_step: int = Field(..., ge=1, le=len(FUNNEL_STEPS))
    funnel_step_name: Optional[str] = None
    funnel_name: str = "bookmaker_conversion"
    time_in_funnel: Optional[float] = Field(None, ge=0)
    bookmaker_ids: List[str] = Field(default_factory=list)
    comparison_data: Optional[Dict[str, Any]] = None


class AffiliateClickEvent(BaseEvent):
    event_type: Literal["affiliate_click"] = "affiliate_click"
    bookmaker_id: Optional[str] = None
    bookmaker_name: Optional[str] = None
    affiliate_url: Optional[str] = None
    position: Optional[int] = None
    section: Optional[str] = None
    bonus_value: Optional[float] = Field(None, ge=0)


class ConversionEvent(BaseEvent):
    event_type: Literal["conversion", "high_value_conversion"] = "conversion"
    conversion_type: str
    conversion_value: float = Field(0, ge=0)
    bookmaker_id: Optional[str] = None
    bookmaker_name: Optional[str] = None
    user_segment: Optional[str] = None


class MicroConversionEvent(BaseEvent):
    event_type: Literal["micro_conversion"] = "micro_conversion"
    action: str


class UserBehaviorEvent(BaseEvent):
    event_type: Literal["user_behavior"] = "user_behavior"
    behavior_type: Optional[str] = None
    scroll_depth: Optional[int] = Field(None, ge=0, le=100)
    time_on_page: Optional[float] = Field(None, ge=0)
    click_coordinates: Optional[Dict[str, float]] = None
    engagement_score: Optional[int] = Field(None, ge=0)


class ExperimentEvent(BaseEvent):
    event_type: Literal["ab_test_assignment", "ab_test_conversion"]
    test_name: str
    variant: str
    conversion_type: Optional[str] = None


class CustomEvent(BaseEvent):
    """Any event kind without a dedicated model."""


_TAGGED_MODELS = {
    "page_view": PageViewEvent,
    "funnel_step": FunnelStepEvent,
    "affiliate_click": AffiliateClickEvent,
    "conversion": ConversionEvent,
    "high_value_conversion": ConversionEvent,
    "micro_conversion": MicroConversionEvent,
    "user_behavior": UserBehaviorEvent,
    "ab_test_assignment": ExperimentEvent,
    "ab_test_conversion": ExperimentEvent,
}
KNOWN_EVENT_TYPES = set(_TAGGED_MODELS)


def _event_kind(value: Any) -> str:
    kind = value.get("event_type") if isinstance(value, dict) else getattr(value, "event_type", None)
    if kind in ("conversion", "high_value_conversion"):
        return "conversion"
    if kind in ("ab_test_assignment", "ab_test_conversion"):
        return "experiment"
    return kind if kind in KNOWN_EVENT_TYPES else "custom"


AnalyticsEvent = Annotated[
    Union[
        Annotated[PageViewEvent, Tag("page_view")],
        Annotated[FunnelStepEvent, Tag("funnel_step")],
        Annotated[AffiliateClickEvent, Tag("affiliate_click")],
        Annotated[ConversionEvent, Tag("conversion")],
        Annotated[MicroConversionEvent, Tag("micro_conversion")],
        Annotated[UserBehaviorEvent, Tag("user_behavior")],
        Annotated[ExperimentEvent, Tag("experiment")],
        Annotated[CustomEvent, Tag("custom")],
    ],
    Discriminator(_event_kind),
]

_event_adapter: TypeAdapter = TypeAdapter(AnalyticsEvent)


def parse_event(payload: Dict[str, Any]) -> BaseEvent:
    """Validate a raw payload into the matching event model."""
    return _event_adapter.validate_python(payload)


class TrackEventResponse(BaseModel):
    success: bool = True
    message: str
    event_id: Optional[str] = None
    click_id: Optional[str] = None
    conversion_value: Optional[float] = None
    funnel_progress: Optional[str] = None
