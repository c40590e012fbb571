from datetime import datetime, timedelta
from unittest.mock import MagicMock

from bson import ObjectId
from pymongo.errors import DuplicateKeyError
import pytest

from betcompare_api.models.bookmaker_models import CreateBookmakerRequest, UpdateBookmakerRequest
from betcompare_api.services.bookmaker_service import bookmaker_service, prepare_bookmaker_document
from betcompare_api.utils.dates import utcnow
from tests.conftest import make_collection, make_cursor


def test_prepare_derives_slug_on_create():
    doc = prepare_bookmaker_document({"name": "Bet Way Kenya!", "slug": "ignored-slug"})
    assert doc["slug"] == "bet-way-kenya"
    assert doc["created_at"] == doc["updated_at"]


def test_prepare_keeps_slug_when_name_unchanged():
    existing = {"name": "Betway", "slug": "betway-ke"}
    doc = prepare_bookmaker_document({"name": "Betway", "slug": "betway-ke", "priority": 3}, existing)
    assert doc["slug"] == "betway-ke"


def test_prepare_rederives_slug_when_name_changes():
    existing = {"name": "Betway", "slug": "betway"}
    doc = prepare_bookmaker_document({"name": "Betway Kenya", "slug": "betway"}, existing)
    assert doc["slug"] == "betway-kenya"


def test_prepare_slug_is_stable_across_resaves():
    created = prepare_bookmaker_document({"name": "Bet Way Kenya!"})
    resaved = prepare_bookmaker_document(dict(created), created)
    assert resaved["slug"] == created["slug"] == "bet-way-kenya"


def test_prepare_rejects_name_without_slug_characters():
    with pytest.raises(ValueError):
        prepare_bookmaker_document({"name": "!!!"})


@pytest.mark.asyncio
async def test_empty_search_returns_active_bookmakers_by_priority(mock_db):
    """An empty query lists active bookmakers, highest priority first."""
    docs = [{"_id": ObjectId(), "name": "Betika", "status": "active", "priority": 10}]
    mock_db["bookmakers"] = make_collection(docs)

    results, total = await bookmaker_service.search("", page=1, limit=10)

    collection = mock_db["bookmakers"]
    assert results == docs
    assert total == 1
    assert collection.find.call_args[0][0] == {"status": "active"}
    cursor = collection.find.return_value
    cursor.sort.assert_called_once_with([("priority", -1)])
    cursor.skip.assert_called_once_with(0)
    cursor.limit.assert_called_once_with(10)
    collection.count_documents.assert_awaited_once_with({"status": "active"})


@pytest.mark.asyncio
async def test_search_applies_text_feature_and_rating_filters(mock_db):
    mock_db["bookmakers"] = make_collection([])

    await bookmaker_service.search(
        "bet", page=2, limit=5, sort_by="rating", sort_order="asc", features=["M-Pesa Ready"], min_rating=4
    )

    collection = mock_db["bookmakers"]
    filters = collection.find.call_args[0][0]
    assert filters["status"] == "active"
    assert filters["features"] == {"$in": ["M-Pesa Ready"]}
    assert filters["rating.overall"] == {"$gte": 4}
    assert filters["$or"] == [
        {"name": {"$regex": "bet", "$options": "i"}},
        {"description": {"$regex": "bet", "$options": "i"}},
    ]
    cursor = collection.find.return_value
    cursor.sort.assert_called_once_with([("rating.overall", 1)])
    cursor.skip.assert_called_once_with(5)


@pytest.mark.asyncio
async def test_search_rejects_unknown_sort_field(mock_db):
    with pytest.raises(ValueError, match="Invalid sort field"):
        await bookmaker_service.search(None, sort_by="affiliate_link")


@pytest.mark.asyncio
async def test_list_featured_returns_featured_set(mock_db):
    docs = [{"_id": ObjectId(), "name": "Betway"}, {"_id": ObjectId(), "name": "Odibets"}]
    mock_db["bookmakers"] = make_collection(docs)

    results, total = await bookmaker_service.list_bookmakers(featured=True, limit=5)

    assert total == 2
    assert mock_db["bookmakers"].find.call_args[0][0] == {"featured": True, "status": "active"}


@pytest.mark.asyncio
async def test_get_by_slug_embeds_live_bonuses_and_published_reviews(mock_db):
    bookmaker_id = ObjectId()
    bookmakers = make_collection()
    bookmakers.find_one.return_value = {"_id": bookmaker_id, "name": "Betway", "slug": "betway"}
    bonus = {
        "_id": ObjectId(),
        "bookmaker": bookmaker_id,
        "is_active": True,
        "amount": {"percentage": 100, "max_amount": 10000, "currency": "KES"},
        "valid_from": utcnow() - timedelta(days=1),
        "valid_until": None,
    }
    mock_db["bookmakers"] = bookmakers
    mock_db["bonuses"] = make_collection([bonus])
    mock_db["reviews"] = make_collection([{"_id": ObjectId(), "title": "Betway Kenya Review"}])

    doc = await bookmaker_service.get_by_slug("betway")

    bookmakers.find_one.assert_awaited_once_with({"slug": "betway", "status": "active"})
    assert mock_db["bonuses"].find.call_args[0][0] == {"bookmaker": bookmaker_id, "is_active": True}
    assert mock_db["reviews"].find.call_args[0][0] == {
        "bookmaker": bookmaker_id,
        "status": "published",
        "is_published": True,
    }
    assert doc["bonuses"][0]["formatted_amount"] == "100% (Max: KES 10000)"
    assert doc["bonuses"][0]["is_valid"] is True
    assert len(doc["reviews"]) == 1


@pytest.mark.asyncio
async def test_get_by_id_missing_returns_none(mock_db):
    assert await bookmaker_service.get_by_id(str(ObjectId())) is None


@pytest.mark.asyncio
async def test_suggestions_need_two_characters(mock_db):
    assert await bookmaker_service.suggestions("b") == []
    mock_db["bookmakers"] = make_collection([{"name": "Betway", "slug": "betway"}])
    assert await bookmaker_service.suggestions("be") == [{"name": "Betway", "slug": "betway"}]


@pytest.mark.asyncio
async def test_create_derives_slug_and_reports_duplicates(mock_db):
    collection = make_collection()
    inserted_id = ObjectId()
    collection.insert_one.return_value = MagicMock(inserted_id=inserted_id)
    mock_db["bookmakers"] = collection
    request = CreateBookmakerRequest(
        name="Bet Way Kenya!",
        logo="https://cdn.example.com/betway.png",
        website_url="https://betway.co.ke",
        affiliate_link="https://betway.co.ke/?ref=betcompare",
    )

    doc = await bookmaker_service.create(request)
    assert doc["_id"] == inserted_id
    assert doc["slug"] == "bet-way-kenya"

    collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")
    with pytest.raises(ValueError, match="already exists"):
        await bookmaker_service.create(request)


@pytest.mark.asyncio
async def test_update_merges_supplied_fields(mock_db):
    object_id = ObjectId()
    collection = make_collection()
    collection.find_one.return_value = {
        "_id": object_id,
        "name": "Betway",
        "slug": "betway",
        "priority": 1,
        "created_at": datetime(2024, 1, 1),
    }
    mock_db["bookmakers"] = collection

    doc = await bookmaker_service.update(str(object_id), UpdateBookmakerRequest(priority=7))

    assert doc["priority"] == 7
    assert doc["slug"] == "betway"
    assert doc["created_at"] == datetime(2024, 1, 1)
    filters, update = collection.update_one.call_args[0]
    assert filters == {"_id": object_id}
    assert "_id" not in update["$set"]
    assert update["$set"]["priority"] == 7


@pytest.mark.asyncio
async def test_update_missing_returns_none(mock_db):
    assert await bookmaker_service.update(str(ObjectId()), UpdateBookmakerRequest(priority=1)) is None


@pytest.mark.asyncio
async def test_delete_reports_whether_a_document_was_removed(mock_db):
    collection = make_collection()
    collection.delete_one.return_value = MagicMock(deleted_count=1)
    mock_db["bookmakers"] = collection
    assert await bookmaker_service.delete(str(ObjectId())) is True

    collection.delete_one.return_value = MagicMock(deleted_count=0)
    assert await bookmaker_service.delete(str(ObjectId())) is False


@pytest.mark.asyncio
async def test_get_active_by_ids_keys_by_string_id(mock_db):
    first, second = ObjectId(), ObjectId()
    collection = make_collection()
    collection.find.return_value = make_cursor([{"_id": first, "name": "Betway"}])
    mock_db["bookmakers"] = collection

    found = await bookmaker_service.get_active_by_ids([str(first), str(second)])

    assert list(found) == [str(first)]
    assert collection.find.call_args[0][0] == {"_id": {"$in": [first, second]}, "status": "active"}
