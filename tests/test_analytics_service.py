import re
from unittest.mock import AsyncMock, MagicMock

import pytest

from betcompare_api.config import settings
from betcompare_api.database import db_manager
from betcompare_api.models.analytics_models import AffiliateClickEvent, FunnelStepEvent, PageViewEvent
from betcompare_api.services.analytics_service import analytics_service, drop_off, funnel_progress, generate_id


@pytest.fixture
def connected(mock_db, monkeypatch):
    monkeypatch.setattr(db_manager, "database", MagicMock())
    monkeypatch.setattr(settings, "ANALYTICS_PERSIST_EVENTS", True)
    return mock_db


def test_generate_id_format():
    assert re.fullmatch(r"evt_\d{13}_[a-z0-9]{9}", generate_id("evt"))
    assert generate_id("click") != generate_id("click")


def test_funnel_progress():
    assert funnel_progress(3) == "3/10"
    assert funnel_progress(10) == "10/10"


def test_drop_off():
    rows = drop_off([{"step": 1, "count": 200}, {"step": 2, "count": 100}, {"step": 3, "count": 25}])
    assert rows[0] == {"step": 1, "name": "landing", "count": 200, "rate": 100.0, "drop_rate": 0}
    assert rows[1]["rate"] == 50.0
    assert rows[1]["drop_rate"] == 50.0
    assert rows[2]["name"] == "view_bookmaker_details"
    assert rows[2]["drop_rate"] == 75.0
    assert drop_off([]) == []


@pytest.mark.asyncio
async def test_event_is_stored_with_server_context(connected):
    event = PageViewEvent(page_url="/compare", session_id="s1", utm_source="google")

    result = await analytics_service.track_event(event, {"ip_address": "10.0.0.1", "server_user_agent": None})

    assert result["message"] == "Event tracked successfully"
    stored = connected["analytics_events"].insert_one.call_args[0][0]
    assert stored["event_id"] == result["event_id"]
    assert stored["event_type"] == "page_view"
    assert stored["ip_address"] == "10.0.0.1"
    assert "server_user_agent" not in stored
    assert stored["extra"] == {"utm_source": "google"}
    assert stored["received_at"] is not None


@pytest.mark.asyncio
async def test_event_is_only_logged_when_database_is_down(mock_db, monkeypatch):
    monkeypatch.setattr(db_manager, "database", None)

    result = await analytics_service.track_event(PageViewEvent(page_url="/"))

    assert result["event_id"].startswith("evt_")
    assert "analytics_events" not in mock_db


@pytest.mark.asyncio
async def test_persistence_can_be_switched_off(connected, monkeypatch):
    monkeypatch.setattr(settings, "ANALYTICS_PERSIST_EVENTS", False)
    await analytics_service.track_event(PageViewEvent(page_url="/"))
    assert "analytics_events" not in connected


@pytest.mark.asyncio
async def test_affiliate_click_defaults_conversion_value(connected):
    result = await analytics_service.track_affiliate_click(AffiliateClickEvent(bookmaker_id="b1"))
    assert result["conversion_value"] == 100
    assert result["click_id"].startswith("click_")
    stored = connected["analytics_events"].insert_one.call_args[0][0]
    assert stored["click_id"] == result["click_id"]

    result = await analytics_service.track_affiliate_click(AffiliateClickEvent(bookmaker_id="b1", bonus_value=250))
    assert result["conversion_value"] == 250


@pytest.mark.asyncio
async def test_funnel_step_fills_step_name(connected):
    result = await analytics_service.track_funnel_step(FunnelStepEvent(funnel_step=3))

    assert result == {"message": "Funnel step tracked", "funnel_progress": "3/10"}
    stored = connected["analytics_events"].insert_one.call_args[0][0]
    assert stored["funnel_step_name"] == "view_bookmaker_details"


@pytest.mark.asyncio
async def test_dashboard_summarises_counts(connected):
    collection = MagicMock()
    by_type = MagicMock()
    by_type.to_list = AsyncMock(
        return_value=[
            {"_id": "page_view", "count": 120},
            {"_id": "affiliate_click", "count": 20},
            {"_id": "conversion", "count": 4},
            {"_id": "high_value_conversion", "count": 1},
        ]
    )
    by_step = MagicMock()
    by_step.to_list = AsyncMock(return_value=[{"_id": 1, "count": 100}, {"_id": 2, "count": 60}])
    collection.aggregate.side_effect = [by_type, by_step]
    connected["analytics_events"] = collection

    summary = await analytics_service.dashboard(days=7)

    assert summary["time_range"] == "7d"
    assert summary["overview"] == {
        "total_events": 145,
        "page_views": 120,
        "affiliate_clicks": 20,
        "conversions": 5,
        "conversion_rate": 25.0,
    }
    assert [row["name"] for row in summary["funnel"]] == ["landing", "browse_bookmakers"]
    assert summary["funnel"][1]["drop_rate"] == 40.0


@pytest.mark.asyncio
async def test_dashboard_rejects_empty_range(connected):
    with pytest.raises(ValueError):
        await analytics_service.dashboard(days=0)
