from bson import ObjectId
import pytest

from betcompare_api.services.blog_service import blog_service, prepare_blog_document
from tests.conftest import make_collection, make_cursor


def post_data(**overrides):
    data = {
        "title": "How to Bet With M-Pesa in Kenya",
        "content": "<h2>Getting Started</h2><p>" + "word " * 399 + "</p><h3>Withdrawals</h3>",
        "category": "guide",
        "tags": ["m-pesa"],
        "status": "draft",
        "is_published": False,
    }
    data.update(overrides)
    return data


def test_prepare_derives_metrics_excerpt_and_toc():
    doc = prepare_blog_document(post_data())

    assert doc["slug"] == "how-to-bet-with-m-pesa-in-kenya"
    assert doc["metrics"]["word_count"] == 401
    assert doc["metrics"]["reading_time"] == 3
    assert doc["metrics"]["views"] == 0
    assert doc["excerpt"].endswith("...")
    assert len(doc["excerpt"]) == 303
    assert doc["table_of_contents"] == [
        {"level": 2, "title": "Getting Started", "anchor": "getting-started"},
        {"level": 3, "title": "Withdrawals", "anchor": "withdrawals"},
    ]
    assert doc["seo_data"]["meta_title"] == "How to Bet With M-Pesa in Kenya | BetCompare.co.ke"


def test_prepare_keeps_supplied_excerpt_and_uses_it_for_meta_description():
    doc = prepare_blog_document(post_data(excerpt="Deposit and withdraw with M-Pesa."))
    assert doc["excerpt"] == "Deposit and withdraw with M-Pesa."
    assert doc["seo_data"]["meta_description"] == "Deposit and withdraw with M-Pesa."


def test_prepare_converts_comparison_ids():
    first, second = str(ObjectId()), str(ObjectId())
    doc = prepare_blog_document(
        post_data(category="comparison", comparison_data={"bookmaker1": first, "bookmaker2": second, "winner": first})
    )
    assert doc["comparison_data"]["bookmaker1"] == ObjectId(first)
    assert doc["comparison_data"]["winner"] == ObjectId(first)


def test_prepare_keeps_existing_metrics_counters():
    existing = prepare_blog_document(post_data())
    existing["metrics"]["views"] = 42
    doc = prepare_blog_document(dict(existing), existing)
    assert doc["metrics"]["views"] == 42
    assert doc["slug"] == existing["slug"]


@pytest.mark.asyncio
async def test_get_published_filters_by_tag_and_pins_sticky_posts(mock_db):
    mock_db["blog_posts"] = make_collection([])

    await blog_service.get_published(tag="Tips", category="guide")

    collection = mock_db["blog_posts"]
    assert collection.find.call_args[0][0] == {
        "status": "published",
        "is_published": True,
        "category": "guide",
        "tags": {"$in": ["tips"]},
    }
    collection.find.return_value.sort.assert_called_once_with([("is_sticky", -1), ("published_at", -1)])


@pytest.mark.asyncio
async def test_get_by_slug_attaches_related_posts(mock_db):
    post_id = ObjectId()
    collection = make_collection()
    collection.find_one_and_update.return_value = {"_id": post_id, "slug": "a", "tags": ["m-pesa"], "category": "guide"}
    collection.find.return_value = make_cursor([{"_id": ObjectId(), "slug": "b"}])
    mock_db["blog_posts"] = collection

    doc = await blog_service.get_by_slug("a")

    assert [related["slug"] for related in doc["related_posts_preview"]] == ["b"]
    related_filter = collection.find.call_args[0][0]
    assert related_filter["_id"] == {"$ne": post_id}
    assert related_filter["$or"] == [{"tags": {"$in": ["m-pesa"]}}, {"category": "guide"}]


@pytest.mark.asyncio
async def test_get_comparisons_requires_both_bookmakers(mock_db):
    mock_db["blog_posts"] = make_collection([])
    await blog_service.get_comparisons()
    filters = mock_db["blog_posts"].find.call_args[0][0]
    assert filters["category"] == "comparison"
    assert filters["comparison_data.bookmaker1"] == {"$ne": None}
    assert filters["comparison_data.bookmaker2"] == {"$ne": None}
