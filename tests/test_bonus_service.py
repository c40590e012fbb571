from datetime import datetime, timedelta

from bson import ObjectId
import pytest

from betcompare_api.models.bonus_models import CreateBonusRequest, UpdateBonusRequest
from betcompare_api.services.bonus_service import (
    bonus_service,
    days_left,
    formatted_amount,
    is_expiring_soon,
    is_valid,
    prepare_bonus_document,
    tracking_rates,
    urgency_level,
    value_display,
    with_derived_fields,
)
from tests.conftest import make_collection

NOW = datetime(2024, 6, 1, 12, 0)


def bonus(**overrides):
    doc = {"is_active": True, "valid_from": NOW - timedelta(days=10), "valid_until": None}
    doc.update(overrides)
    return doc


def test_tracking_rates_guard_zero_denominators():
    assert tracking_rates({}) == {"ctr": 0, "conversion_rate": 0}
    assert tracking_rates({"impressions": 0, "clicks": 5, "conversions": 0}) == {"ctr": 0, "conversion_rate": 0}


def test_tracking_rates_are_percentages():
    rates = tracking_rates({"impressions": 200, "clicks": 10, "conversions": 2})
    assert rates == {"ctr": 5.0, "conversion_rate": 20.0}


@pytest.mark.parametrize(
    "amount, formatted, display",
    [
        ({"percentage": 100, "max_amount": 10000, "currency": "KES"}, "100% (Max: KES 10000)", "100% Bonus"),
        ({"percentage": 50.0}, "50%", "50% Bonus"),
        ({"value": 500.0, "currency": "KES"}, "KES 500", "KES 500"),
        ({"value": 99.5}, "KES 99.5", "KES 99.5"),
        ({}, "N/A", "Bonus Available"),
        (None, "N/A", "Bonus Available"),
    ],
)
def test_amount_formatting(amount, formatted, display):
    assert formatted_amount(amount) == formatted
    assert value_display(amount) == display


def test_is_valid_requires_active_and_open_window():
    assert is_valid(bonus(), NOW)
    assert not is_valid(bonus(is_active=False), NOW)
    assert not is_valid(bonus(valid_from=NOW + timedelta(days=1)), NOW)
    assert not is_valid(bonus(valid_until=NOW - timedelta(seconds=1)), NOW)
    assert is_valid(bonus(valid_until=NOW + timedelta(days=1)), NOW)


@pytest.mark.parametrize(
    "remaining, level",
    [
        (timedelta(hours=12), "critical"),
        (timedelta(days=1), "critical"),
        (timedelta(days=5), "high"),
        (timedelta(days=20), "medium"),
        (timedelta(days=60), "low"),
    ],
)
def test_urgency_level(remaining, level):
    assert urgency_level(bonus(valid_until=NOW + remaining), NOW) == level


def test_open_ended_bonus_has_no_urgency():
    assert days_left(bonus(), NOW) is None
    assert urgency_level(bonus(), NOW) == "none"
    assert not is_expiring_soon(bonus(), now=NOW)


def test_is_expiring_soon():
    assert is_expiring_soon(bonus(valid_until=NOW + timedelta(days=3)), now=NOW)
    assert not is_expiring_soon(bonus(valid_until=NOW + timedelta(days=30)), now=NOW)


def test_with_derived_fields():
    doc = with_derived_fields(bonus(amount={"value": 1000}, valid_until=NOW + timedelta(days=3)), NOW)
    assert doc["is_valid"] is True
    assert doc["formatted_amount"] == "KES 1000"
    assert doc["urgency_level"] == "high"


def test_prepare_initialises_tracking_and_valid_from():
    data = CreateBonusRequest(bookmaker=str(ObjectId()), type="welcome", title="Welcome Bonus").model_dump()
    doc = prepare_bonus_document(data)
    assert doc["tracking"] == {"impressions": 0, "clicks": 0, "conversions": 0, "ctr": 0, "conversion_rate": 0}
    assert doc["valid_from"] is not None
    assert isinstance(doc["bookmaker"], ObjectId)
    assert doc["created_by"] == "system"


@pytest.mark.asyncio
async def test_track_click_refreshes_ratios(mock_db):
    object_id = ObjectId()
    collection = make_collection()
    collection.find_one_and_update.return_value = {
        "_id": object_id,
        "tracking": {"impressions": 4, "clicks": 1, "conversions": 0},
    }
    mock_db["bonuses"] = collection

    tracking = await bonus_service.track(str(object_id), "click")

    assert tracking["ctr"] == 25.0
    assert tracking["conversion_rate"] == 0
    assert collection.find_one_and_update.call_args[0][1] == {"$inc": {"tracking.clicks": 1}}
    collection.update_one.assert_awaited_once_with(
        {"_id": object_id}, {"$set": {"tracking.ctr": 25.0, "tracking.conversion_rate": 0}}
    )


@pytest.mark.asyncio
async def test_track_unknown_bonus_returns_none(mock_db):
    assert await bonus_service.track(str(ObjectId()), "impression") is None
    mock_db["bonuses"].update_one.assert_not_awaited()


@pytest.mark.asyncio
async def test_get_active_filters_by_validity_window(mock_db):
    mock_db["bonuses"] = make_collection([])
    bookmaker_id = ObjectId()

    await bonus_service.get_active(bonus_type="cashback", bookmaker=str(bookmaker_id), featured_only=True)

    filters = mock_db["bonuses"].find.call_args[0][0]
    assert filters["is_active"] is True
    assert filters["type"] == "cashback"
    assert filters["bookmaker"] == bookmaker_id
    assert filters["is_featured"] is True
    assert "$lte" in filters["valid_from"]
    assert filters["$or"][0] == {"valid_until": None}


@pytest.mark.asyncio
async def test_search_combines_text_and_window_clauses(mock_db):
    mock_db["bonuses"] = make_collection([])

    await bonus_service.search("free bet")

    filters = mock_db["bonuses"].find.call_args[0][0]
    assert len(filters["$and"]) == 2
    assert filters["$and"][1]["$or"][0] == {"title": {"$regex": "free\\ bet", "$options": "i"}}


@pytest.mark.asyncio
async def test_update_rejects_inverted_window(mock_db):
    object_id = ObjectId()
    collection = make_collection()
    collection.find_one.return_value = {
        "_id": object_id,
        "bookmaker": ObjectId(),
        "type": "welcome",
        "title": "Welcome Bonus",
        "valid_from": datetime(2024, 6, 1),
        "tracking": {"impressions": 0, "clicks": 0, "conversions": 0},
    }
    mock_db["bonuses"] = collection

    with pytest.raises(ValueError, match="valid_until must be after valid_from"):
        await bonus_service.update(str(object_id), UpdateBonusRequest(valid_until=datetime(2024, 5, 1)))
    collection.update_one.assert_not_awaited()
