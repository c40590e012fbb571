"""
On-page engagement signals: scroll depth, time on page and an interaction score.

Each tracker reports a milestone once per page view and emits a `user_behavior`
event for it. The host page feeds raw measurements in (`update()`, `check()`,
`record_*()`); nothing here reads the DOM.
"""

import time
from typing import Any, Dict, List, Optional

from betcompare_api.models.analytics_models import UserBehaviorEvent
from betcompare_api.tracking.common import Clock, event_time
from betcompare_api.tracking.sinks import EventSink

SCROLL_MILESTONES = [25, 50, 75, 90, 100]
TIME_MILESTONES = [10, 30, 60, 120, 300]
MOUSE_DISTANCE_PER_POINT = 1000


def time_engagement_level(seconds: float) -> str:
    if seconds >= 120:
        return "high"
    if seconds >= 30:
        return "medium"
    return "low"


class ScrollDepthTracker:
    def __init__(self, sink: EventSink, page_url: Optional[str] = None, session_id: Optional[str] = None, clock: Clock = time.time):
        self.sink = sink
        self.page_url = page_url
        self.session_id = session_id
        self.clock = clock
        self.triggered: set = set()

    @staticmethod
    def scroll_percent(scroll_top: float, document_height: float, viewport_height: float) -> int:
        scrollable = document_height - viewport_height
        if scrollable <= 0:
            return 100
        return min(100, int(scroll_top / scrollable * 100 + 0.5))

    def update(self, scroll_top: float, document_height: float, viewport_height: float) -> List[int]:
        """Report the scroll position and return the milestones crossed for the first time."""
        percent = self.scroll_percent(scroll_top, document_height, viewport_height)
        reached = [m for m in SCROLL_MILESTONES if percent >= m and m not in self.triggered]
        for milestone in reached:
            self.triggered.add(milestone)
            self.sink.emit(
                UserBehaviorEvent(
                    behavior_type="scroll_depth",
                    scroll_depth=milestone,
                    page_url=self.page_url,
                    session_id=self.session_id,
                    timestamp=event_time(self.clock),
                    engagement_level="high" if milestone >= 75 else None,
                )
            )
        return reached

    def reset(self) -> None:
        """Forget reached milestones, e.g. after the viewport was resized."""
        self.triggered.clear()


class TimeTracker:
    def __init__(self, sink: EventSink, page_url: Optional[str] = None, session_id: Optional[str] = None, clock: Clock = time.time):
        self.sink = sink
        self.page_url = page_url
        self.session_id = session_id
        self.clock = clock
        self.start_time = clock()
        self.triggered: set = set()
        self.is_active = True

    def elapsed(self) -> int:
        return int(self.clock() - self.start_time)

    def set_active(self, active: bool) -> None:
        self.is_active = active

    def check(self) -> List[int]:
        """Emit newly reached time milestones. Inactive visitors reach none."""
        if not self.is_active:
            return []
        seconds = self.elapsed()
        reached = [m for m in TIME_MILESTONES if seconds >= m and m not in self.triggered]
        for milestone in reached:
            self.triggered.add(milestone)
            self._emit("time_on_page", milestone)
        return reached

    def finish(self) -> int:
        """Emit the final time on page when the visitor leaves."""
        seconds = self.elapsed()
        self._emit("page_exit", seconds)
        return seconds

    def _emit(self, behavior_type: str, seconds: float) -> None:
        self.sink.emit(
            UserBehaviorEvent(
                behavior_type=behavior_type,
                time_on_page=seconds,
                page_url=self.page_url,
                session_id=self.session_id,
                timestamp=event_time(self.clock),
                engagement_level=time_engagement_level(seconds),
            )
        )


class EngagementScorer:
    """
    Accumulates engagement points from interactions.

    | Signal | Points |
    |--------|--------|
    | 1000px of mouse movement | 1 |
    | key press | 2 |
    | form input | 3 |
    | click | by element, see `click_points()` |

    Every multiple of 25 from 50 upwards emits an `engagement_milestone` event.
    """

    def __init__(self, sink: EventSink, session_id: Optional[str] = None, clock: Clock = time.time):
        self.sink = sink
        self.session_id = session_id
        self.clock = clock
        self.score = 0
        self.interactions = 0
        self._mouse_distance = 0.0

    @staticmethod
    def click_points(tag_name: str, class_name: str = "") -> int:
        tag = tag_name.upper()
        if tag == "BUTTON" or "btn" in class_name:
            return 5
        if tag == "A":
            return 3
        if "card" in class_name or "bookmaker" in class_name:
            return 4
        if "comparison" in class_name or "filter" in class_name:
            return 3
        if tag in ("INPUT", "SELECT"):
            return 2
        return 0

    def level(self) -> str:
        if self.score >= 100:
            return "very_high"
        if self.score >= 50:
            return "high"
        if self.score >= 25:
            return "medium"
        if self.score >= 10:
            return "low"
        return "minimal"

    def add(self, points: int, source: str) -> None:
        self.score += points
        self.interactions += 1
        if self.score >= 50 and self.score % 25 == 0:
            self.sink.emit(
                UserBehaviorEvent(
                    behavior_type="engagement_milestone",
                    engagement_score=self.score,
                    session_id=self.session_id,
                    timestamp=event_time(self.clock),
                    engagement_source=source,
                    total_interactions=self.interactions,
                    engagement_level=self.level(),
                )
            )

    def record_mouse_movement(self, distance: float) -> None:
        self._mouse_distance += distance
        if self._mouse_distance >= MOUSE_DISTANCE_PER_POINT:
            self._mouse_distance = 0
            self.add(1, "mouse_movement")

    def record_key_press(self) -> None:
        self.add(2, "keyboard_input")

    def record_form_input(self) -> None:
        self.add(3, "form_interaction")

    def record_click(self, tag_name: str, class_name: str = "") -> int:
        points = self.click_points(tag_name, class_name)
        if points:
            self.add(points, "content_click")
        return points

    def snapshot(self) -> Dict[str, Any]:
        return {"score": self.score, "interactions": self.interactions, "level": self.level()}
