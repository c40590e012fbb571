from unittest.mock import AsyncMock, MagicMock

from bson import ObjectId
import pytest

from betcompare_api.services.comparison_service import (
    ComparisonService,
    compare_ratings,
    derive_cons,
    derive_pros,
)
from betcompare_api.services.search_service import SearchService, search_service
from tests.conftest import make_collection

RATING_A = {"overall": 4.5, "odds": 4.0, "bonuses": 4.5, "mobile": 4.2, "support": 3.8, "payout": 4.0}
RATING_B = {"overall": 4.0, "odds": 4.5, "bonuses": 4.5, "mobile": 3.9, "support": 3.5, "payout": 4.5}


def test_higher_overall_rating_wins_the_category():
    comparisons = compare_ratings(RATING_A, RATING_B)
    overall = comparisons[0]
    assert overall == {
        "category": "Overall Rating",
        "bookmaker1_score": 4.5,
        "bookmaker2_score": 4.0,
        "winner": "bookmaker1",
    }
    assert [item["category"] for item in comparisons] == [
        "Overall Rating",
        "Odds Quality",
        "Bonuses",
        "Mobile Experience",
        "Customer Support",
    ]


def test_equal_scores_go_to_the_second_bookmaker():
    comparisons = compare_ratings(RATING_A, RATING_B)
    bonuses = next(item for item in comparisons if item["category"] == "Bonuses")
    assert bonuses["bookmaker1_score"] == bonuses["bookmaker2_score"] == 4.5
    assert bonuses["winner"] == "bookmaker2"
    assert {item["winner"] for item in compare_ratings(RATING_A, dict(RATING_A))} == {"bookmaker2"}


def test_pros_and_cons():
    assert derive_pros(["Live Betting", "M-Pesa Ready", "Cash Out"]) == ["M-Pesa Ready", "Live Betting"]
    assert derive_pros(None) == []
    assert derive_cons({"mobile": 3.9, "support": 4.0}) == ["Mobile could be better"]
    assert derive_cons({}) == ["Mobile could be better", "Support needs improvement"]


def comparison_service_with(found, bonuses=None, top_rated=None):
    bookmakers = MagicMock()
    bookmakers.get_active_by_ids = AsyncMock(return_value=found)
    bookmakers.get_top_rated = AsyncMock(return_value=top_rated or [])
    bonus_service = MagicMock()
    bonus_service.get_active = AsyncMock(return_value=(bonuses or [], len(bonuses or [])))
    bonus_service.top_bonus_for = AsyncMock(return_value=None)
    return ComparisonService(bookmakers=bookmakers, bonuses=bonus_service)


@pytest.mark.asyncio
async def test_compare_two_active_bookmakers():
    first, second = ObjectId(), ObjectId()
    found = {
        str(first): {"_id": first, "name": "Betway", "rating": RATING_A, "features": ["M-Pesa Ready"]},
        str(second): {"_id": second, "name": "Odibets", "rating": RATING_B},
    }
    service = comparison_service_with(found, bonuses=[{"title": "Welcome Bonus"}])

    result = await service.compare(str(first), str(second))

    assert result["bookmaker1"]["name"] == "Betway"
    assert result["bookmaker2"]["bonuses"] == [{"title": "Welcome Bonus"}]
    assert result["comparisons"][0]["winner"] == "bookmaker1"
    assert set(result) == {"bookmaker1", "bookmaker2", "comparisons"}
    service.bonuses.get_active.assert_any_await(limit=5, bookmaker=str(first))


@pytest.mark.asyncio
async def test_compare_with_missing_bookmaker_returns_none():
    first = ObjectId()
    service = comparison_service_with({str(first): {"_id": first, "name": "Betway"}})
    assert await service.compare(str(first), str(ObjectId())) is None
    service.bonuses.get_active.assert_not_awaited()


@pytest.mark.asyncio
async def test_comparison_table_rows():
    top = [
        {
            "_id": ObjectId(),
            "name": "Betway",
            "slug": "betway",
            "rating": RATING_A,
            "features": ["M-Pesa Ready", "Live Betting", "Cash Out", "Mobile App"],
        }
    ]
    service = comparison_service_with({}, top_rated=top)

    rows = await service.comparison_table(limit=10)

    assert len(rows) == 1
    row = rows[0]
    assert row["features"] == ["M-Pesa Ready", "Live Betting", "Cash Out"]
    assert row["pros"] == ["M-Pesa Ready", "Live Betting"]
    assert row["cons"] == ["Support needs improvement"]
    assert row["top_bonus"] is None
    service.bookmakers.get_top_rated.assert_awaited_once_with(10)


def stub_search_service():
    services = {}
    for name in ("bookmakers", "reviews", "blog", "bonuses"):
        service = MagicMock()
        service.search = AsyncMock(return_value=([{"kind": name}], 1))
        services[name] = service
    services["bookmakers"].suggestions = AsyncMock(return_value=[{"name": "Betway"}])
    return SearchService(**services), services


@pytest.mark.asyncio
async def test_search_single_type_uses_full_limit():
    service, services = stub_search_service()

    result = await service.search("bet", "bookmakers", limit=10)

    services["bookmakers"].search.assert_awaited_once_with("bet", page=1, limit=10)
    services["reviews"].search.assert_not_awaited()
    assert result == {
        "query": "bet",
        "results": {"bookmakers": [{"kind": "bookmakers"}], "reviews": [], "blog_posts": [], "bonuses": []},
        "total_results": 1,
    }


@pytest.mark.asyncio
async def test_search_all_previews_each_type():
    service, services = stub_search_service()

    result = await service.search(None, "all", limit=10)

    for name in ("bookmakers", "reviews", "blog", "bonuses"):
        services[name].search.assert_awaited_once_with(None, page=1, limit=3)
    assert result["query"] == ""
    assert result["total_results"] == 4


@pytest.mark.asyncio
async def test_search_passes_page_to_each_type():
    service, services = stub_search_service()

    await service.search("bet", "reviews", limit=20, page=2)
    await service.search("bet", "all", limit=20, page=3)

    assert services["reviews"].search.await_args_list[0].kwargs == {"page": 2, "limit": 20}
    assert services["reviews"].search.await_args_list[1].kwargs == {"page": 3, "limit": 3}
    services["bonuses"].search.assert_awaited_once_with("bet", page=3, limit=3)


@pytest.mark.asyncio
async def test_search_rejects_unknown_type():
    service, _ = stub_search_service()
    with pytest.raises(ValueError, match="Invalid search type"):
        await service.search("bet", "casinos")


@pytest.mark.asyncio
async def test_suggestions_delegate_to_bookmakers():
    service, services = stub_search_service()
    assert await service.suggestions(None) == [{"name": "Betway"}]
    services["bookmakers"].suggestions.assert_awaited_once_with("")


@pytest.mark.asyncio
async def test_empty_bookmaker_search_lists_active_by_priority(mock_db):
    """An empty query with type=bookmakers returns active bookmakers, priority descending."""
    docs = [
        {"_id": ObjectId(), "name": "Betika", "status": "active", "priority": 9},
        {"_id": ObjectId(), "name": "Odibets", "status": "active", "priority": 4},
    ]
    mock_db["bookmakers"] = make_collection(docs)

    result = await search_service.search("", "bookmakers", limit=10)

    collection = mock_db["bookmakers"]
    assert collection.find.call_args[0][0] == {"status": "active"}
    collection.find.return_value.sort.assert_called_once_with([("priority", -1)])
    assert [doc["name"] for doc in result["results"]["bookmakers"]] == ["Betika", "Odibets"]
    assert result["total_results"] == 2
