import json

import httpx
import pytest

from betcompare_api.models.analytics_models import PageViewEvent
from betcompare_api.tracking import (
    ABTestManager,
    AttributionTracker,
    ConversionFunnel,
    EngagementScorer,
    HttpSink,
    MemorySink,
    MemoryStorage,
    ScrollDepthTracker,
    TimeTracker,
    calculate_conversion_value,
)


class FakeClock:
    def __init__(self, start=1_700_000_000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class StubRandom:
    """Returns queued values for `random()` and `randrange()`."""

    def __init__(self, randoms=(), indexes=()):
        self.randoms = list(randoms)
        self.indexes = list(indexes)

    def random(self):
        return self.randoms.pop(0)

    def randrange(self, stop):
        index = self.indexes.pop(0)
        assert index < stop
        return index

    def choice(self, seq):
        return seq[0]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sink():
    return MemorySink()


@pytest.mark.parametrize(
    "bookmaker, conversion_type, expected",
    [
        ({"rating": 4.5, "bonus_value": 1000}, "affiliate_click", 140),
        ({"rating": 5}, "bonus_claim", 50),
        ({}, "review_read", 25),
        ({"bonus_value": 100}, "newsletter_signup", 40),
        ({"rating": 4.5}, "unknown", 0),
    ],
)
def test_calculate_conversion_value(bookmaker, conversion_type, expected):
    assert calculate_conversion_value(bookmaker, conversion_type) == expected


class TestConversionFunnel:
    def make_funnel(self, sink, clock, storage=None, **kwargs):
        return ConversionFunnel(storage or MemoryStorage(), sink, clock=clock, rng=StubRandom(), **kwargs)

    def test_session_id_format(self, sink, clock):
        funnel = self.make_funnel(sink, clock)
        assert funnel.session_id == "session_1700000000000_aaaaaaaaa"

    def test_track_step_emits_numbered_event(self, sink, clock):
        funnel = self.make_funnel(sink, clock)
        funnel.track_step("landing")
        clock.advance(12)
        funnel.track_step("browse_bookmakers")

        events = sink.of_type("funnel_step")
        assert [event.funnel_step for event in events] == [1, 2]
        assert events[1].funnel_step_name == "browse_bookmakers"
        assert events[1].time_in_funnel == 12
        assert events[1].extra["step_number"] == 2
        assert funnel.data["current_step"] == "browse_bookmakers"

    def test_unknown_step_is_rejected(self, sink, clock):
        funnel = self.make_funnel(sink, clock)
        with pytest.raises(ValueError, match="Unknown funnel step"):
            funnel.track_step("checkout")
        assert sink.events == []

    def test_affiliate_click_records_step_and_conversion(self, sink, clock):
        funnel = self.make_funnel(sink, clock)
        funnel.track_bookmaker_interaction({"id": "b1", "name": "Betway", "rating": 4.5}, "affiliate_click")

        steps = [event.funnel_step_name for event in sink.of_type("funnel_step")]
        assert steps == ["click_affiliate", "conversion"]
        conversion = sink.of_type("conversion")[0]
        assert conversion.conversion_value == 90
        assert conversion.bookmaker_id == "b1"
        assert conversion.extra["attribution_model"] == "last_click"
        assert funnel.conversion_value == 90
        assert sink.of_type("high_value_conversion") == []

    def test_high_value_conversion(self, sink, clock):
        funnel = self.make_funnel(sink, clock)
        funnel.track_conversion({"name": "Betway"}, "affiliate_click", conversion_value=1500)

        high_value = sink.of_type("high_value_conversion")
        assert len(high_value) == 1
        assert high_value[0].conversion_value == 1500
        assert high_value[0].user_segment == "converter"

    def test_bookmakers_are_recorded_once(self, sink, clock):
        funnel = self.make_funnel(sink, clock)
        funnel.track_bookmaker_interaction({"id": "b1", "name": "Betway"}, "view_details")
        funnel.track_bookmaker_interaction({"id": "b1", "name": "Betway"}, "view_bonus")
        assert len(funnel.data["bookmakers"]) == 1
        assert sink.of_type("funnel_step")[-1].bookmaker_ids == ["b1"]

    def test_first_comparison_starts_the_comparison_step(self, sink, clock):
        funnel = self.make_funnel(sink, clock)
        pair = [{"name": "Betway"}, {"name": "Odibets"}]
        funnel.track_comparison(pair)
        funnel.track_comparison(pair, "odds")

        steps = [event.funnel_step_name for event in sink.of_type("funnel_step")]
        assert steps == ["start_comparison", "view_comparison", "view_comparison"]
        micro = sink.of_type("micro_conversion")
        assert len(micro) == 2
        assert micro[1].action == "comparison_created"
        assert micro[1].extra["bookmaker_count"] == 2

    def test_user_segment(self, sink, clock):
        local = MemoryStorage({"visit_count": 6})
        funnel = self.make_funnel(sink, clock, local_storage=local)
        assert funnel.user_segment() == "frequent_visitor"
        funnel.track_comparison([{"name": "Betway"}])
        assert funnel.user_segment() == "comparer"
        for _ in range(3):
            funnel.track_conversion({"name": "Betway"}, "review_read")
        assert funnel.user_segment() == "high_converter"

    def test_resumes_from_session_storage(self, sink, clock):
        storage = MemoryStorage()
        first = self.make_funnel(sink, clock, storage=storage, session_id="session_1")
        first.track_step("landing")

        resumed = self.make_funnel(sink, clock, storage=storage, session_id="session_1")
        assert resumed.data["current_step"] == "landing"
        assert resumed.summary()["steps"] == 1

    def test_analyze(self, sink, clock):
        funnel = self.make_funnel(sink, clock)
        funnel.track_step("landing")
        clock.advance(5)
        funnel.track_step("browse_bookmakers")
        clock.advance(20)
        funnel.track_step("view_bookmaker_details")

        analysis = funnel.analyze()
        assert analysis["total_steps"] == 3
        assert analysis["time_in_funnel"] == 25
        assert analysis["most_engaging_step"] == "view_bookmaker_details"
        assert analysis["conversion_rate"] == 0


class TestAttribution:
    def test_campaign_visit_is_logged(self, sink, clock):
        storage = MemoryStorage()
        tracker = AttributionTracker(storage, sink, clock=clock)

        touchpoint = tracker.track_visit(
            "https://betcompare.co.ke/?utm_source=google&utm_campaign=euro", referrer="https://google.com"
        )

        assert touchpoint["utm_params"]["utm_source"] == "google"
        assert touchpoint["utm_params"]["utm_medium"] is None
        event = sink.of_type("campaign_attribution")[0]
        assert event.extra == {"utm_source": "google", "utm_campaign": "euro"}
        assert storage.get("campaigns")[0]["utm_campaign"] == "euro"

    def test_plain_visit_is_not_a_campaign(self, sink, clock):
        tracker = AttributionTracker(MemoryStorage(), sink, clock=clock)
        tracker.track_visit("https://betcompare.co.ke/bookmakers")
        assert sink.events == []
        assert tracker.campaigns == []

    def test_keeps_last_ten_touchpoints(self, sink, clock):
        storage = MemoryStorage()
        tracker = AttributionTracker(storage, sink, clock=clock)
        for page in range(12):
            tracker.track_visit(f"https://betcompare.co.ke/page/{page}")

        assert len(tracker.touchpoints) == 10
        assert tracker.first_touch["url"].endswith("/page/2")
        assert tracker.last_touch["url"].endswith("/page/11")
        assert len(AttributionTracker(storage).touchpoints) == 10


class TestABTestManager:
    def test_assignment_is_stable(self, sink, clock):
        storage = MemoryStorage()
        manager = ABTestManager(storage, sink, rng=StubRandom(randoms=[0.2], indexes=[1]), clock=clock)
        assert manager.create_test("cta_color", ["green"]) == "green"

        again = ABTestManager(storage, sink, rng=StubRandom(), clock=clock)
        assert again.create_test("cta_color", ["green"]) == "green"
        assert len(sink.of_type("ab_test_assignment")) == 1

    def test_assignment_survives_definition_change(self, sink, clock):
        storage = MemoryStorage()
        ABTestManager(storage, sink, rng=StubRandom(randoms=[0.2], indexes=[1]), clock=clock).create_test(
            "cta_color", ["green"]
        )

        manager = ABTestManager(storage, sink, rng=StubRandom(), clock=clock)
        assert manager.create_test("cta_color", ["green", "orange"], traffic_allocation=0.5) == "green"
        assert manager.get_variant("cta_color") == "green"
        assert storage.get("ab_test_variants") == {"cta_color": "green"}
        assert len(sink.of_type("ab_test_assignment")) == 1

    def test_visitors_outside_allocation_get_control(self, sink, clock):
        manager = ABTestManager(MemoryStorage(), sink, rng=StubRandom(randoms=[0.0]), clock=clock)
        assert manager.create_test("hero", ["b"], traffic_allocation=0) == "control"
        assert manager.get_variant("hero") == "control"

    @pytest.mark.parametrize(
        "name, variants, allocation",
        [("", ["b"], 1.0), ("hero", [], 1.0), ("hero", ["b"], 1.5), ("hero", ["b"], -0.1)],
    )
    def test_invalid_tests_are_rejected(self, sink, clock, name, variants, allocation):
        manager = ABTestManager(MemoryStorage(), sink, rng=StubRandom(), clock=clock)
        with pytest.raises(ValueError):
            manager.create_test(name, variants, allocation)

    def test_conversion_reports_variant(self, sink, clock):
        manager = ABTestManager(MemoryStorage(), sink, rng=StubRandom(randoms=[0.5], indexes=[1]), clock=clock)
        manager.create_test("hero", ["b"])
        manager.track_conversion("hero", "affiliate_click", value=3)

        event = sink.of_type("ab_test_conversion")[0]
        assert event.variant == "b"
        assert event.conversion_type == "affiliate_click"
        assert event.extra["conversion_value"] == 3

    def test_unknown_test_variant_is_control(self, sink, clock):
        assert ABTestManager(MemoryStorage(), sink, clock=clock).get_variant("missing") == "control"


class TestBehavior:
    def test_scroll_milestones_fire_once(self, sink, clock):
        tracker = ScrollDepthTracker(sink, page_url="/", clock=clock)

        assert tracker.update(500, 1100, 100) == [25, 50]
        assert tracker.update(500, 1100, 100) == []
        assert tracker.update(1000, 1100, 100) == [75, 90, 100]
        assert [event.scroll_depth for event in sink.events] == [25, 50, 75, 90, 100]
        assert sink.events[2].extra["engagement_level"] == "high"

    def test_short_page_counts_as_fully_scrolled(self):
        assert ScrollDepthTracker.scroll_percent(0, 600, 800) == 100

    def test_time_milestones(self, sink, clock):
        tracker = TimeTracker(sink, clock=clock)
        clock.advance(35)
        assert tracker.check() == [10, 30]
        tracker.set_active(False)
        clock.advance(60)
        assert tracker.check() == []

        assert tracker.finish() == 95
        exit_event = sink.events[-1]
        assert exit_event.behavior_type == "page_exit"
        assert exit_event.extra["engagement_level"] == "medium"

    def test_engagement_milestones(self, sink, clock):
        scorer = EngagementScorer(sink, clock=clock)
        for _ in range(10):
            scorer.record_click("button")

        milestones = [event for event in sink.events if event.behavior_type == "engagement_milestone"]
        assert [event.engagement_score for event in milestones] == [50]
        assert scorer.level() == "high"

    def test_mouse_movement_scores_per_thousand_pixels(self, sink, clock):
        scorer = EngagementScorer(sink, clock=clock)
        scorer.record_mouse_movement(600)
        assert scorer.score == 0
        scorer.record_mouse_movement(600)
        assert scorer.snapshot() == {"score": 1, "interactions": 1, "level": "minimal"}

    @pytest.mark.parametrize(
        "tag, class_name, points",
        [("BUTTON", "", 5), ("div", "btn-primary", 5), ("a", "", 3), ("div", "bookmaker-card", 4), ("span", "", 0)],
    )
    def test_click_points(self, tag, class_name, points):
        assert EngagementScorer.click_points(tag, class_name) == points


class TestHttpSink:
    def test_posts_event_json(self):
        received = []

        def handler(request):
            received.append((request.url.path, json.loads(request.content)))
            return httpx.Response(200, json={"success": True})

        sink = HttpSink("https://api.betcompare.co.ke/", client=httpx.Client(transport=httpx.MockTransport(handler)))
        assert sink.emit(PageViewEvent(page_url="/", session_id="s1")) is True

        path, body = received[0]
        assert path == "/api/analytics/track"
        assert body["event_type"] == "page_view"
        assert body["session_id"] == "s1"

    def test_server_error_is_reported_not_raised(self):
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
        sink = HttpSink("https://api.betcompare.co.ke", client=client)
        assert sink.emit(PageViewEvent(page_url="/")) is False
