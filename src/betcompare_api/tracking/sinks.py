"""
Event sinks for the visitor trackers.

A sink receives every typed event a tracker produces. `MemorySink` collects them for
inspection; `HttpSink` forwards them to the ingestion endpoint
(`POST /api/analytics/track`). A failed delivery is logged and reported through the
return value; it never interrupts the tracker that emitted the event.
"""

from typing import List, Optional, Protocol

import httpx

from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.models.analytics_models import BaseEvent

logger = get_logger(prefix="[Tracking]")

TRACK_PATH = "/api/analytics/track"


class EventSink(Protocol):
    def emit(self, event: BaseEvent) -> bool: ...


class MemorySink:
    def __init__(self):
        self.events: List[BaseEvent] = []

    def emit(self, event: BaseEvent) -> bool:
        self.events.append(event)
        return True

    def of_type(self, event_type: str) -> List[BaseEvent]:
        return [event for event in self.events if event.event_type == event_type]


class HttpSink:
    """
    Posts events as JSON to the analytics API.

    Args:
        base_url: API root, e.g. `https://api.betcompare.co.ke`.
        client: Optional preconfigured `httpx.Client` (transport, headers, timeouts).
    """

    def __init__(self, base_url: str, client: Optional[httpx.Client] = None, timeout: float = 5.0):
        self.url = f"{base_url.rstrip('/')}{TRACK_PATH}"
        self.client = client or httpx.Client(timeout=timeout)

    def emit(self, event: BaseEvent) -> bool:
        payload = event.model_dump(mode="json", exclude_none=True)
        try:
            response = self.client.post(self.url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Failed to deliver %s event: %s", event.event_type, e)
            return False
        return True

    def close(self) -> None:
        self.client.close()
