from datetime import datetime

from bson import ObjectId
from pydantic import ValidationError
import pytest

from betcompare_api.models.analytics_models import (
    AffiliateClickEvent,
    ConversionEvent,
    CustomEvent,
    ExperimentEvent,
    FunnelStepEvent,
    parse_event,
)
from betcompare_api.models.blog_models import CreateBlogPostRequest
from betcompare_api.models.bonus_models import CreateBonusRequest, UpdateBonusRequest
from betcompare_api.models.bookmaker_models import CreateBookmakerRequest, UpdateBookmakerRequest
from betcompare_api.models.review_models import CreateReviewRequest
from betcompare_api.services.validation_service import validate_payload
from betcompare_api.utils.error_handlers import format_validation_errors

BOOKMAKER_ID = str(ObjectId())


def bookmaker_payload(**overrides):
    payload = {
        "name": "Betway Kenya",
        "logo": "https://cdn.example.com/betway.png",
        "website_url": "https://betway.co.ke",
        "affiliate_link": "https://betway.co.ke/?ref=betcompare",
    }
    payload.update(overrides)
    return payload


def test_bookmaker_defaults_and_enum_values():
    request = CreateBookmakerRequest(**bookmaker_payload(features=["M-Pesa Ready", "Live Betting", "M-Pesa Ready"]))
    data = request.model_dump()
    assert data["status"] == "active"
    assert data["features"] == ["M-Pesa Ready", "Live Betting"]
    assert data["rating"]["overall"] == 3


def test_bookmaker_name_is_sanitized():
    request = CreateBookmakerRequest(**bookmaker_payload(name="<b>Betway</b>"))
    assert request.name == "Betway"


@pytest.mark.parametrize(
    "overrides",
    [
        {"logo": "not a url"},
        {"affiliate_link": "ftp://betway.co.ke"},
        {"rating": {"overall": 6}},
        {"features": ["Free Money"]},
        {"name": "B"},
        {"status": "deleted"},
        {"slug": "Not A Slug"},
    ],
)
def test_bookmaker_rejects_invalid_fields(overrides):
    with pytest.raises(ValidationError):
        CreateBookmakerRequest(**bookmaker_payload(**overrides))


def test_bookmaker_missing_required_fields_are_itemized():
    with pytest.raises(ValidationError) as exc_info:
        CreateBookmakerRequest(name="Betway")
    fields = {error["field"] for error in format_validation_errors(exc_info.value.errors())}
    assert {"logo", "website_url", "affiliate_link"} <= fields


def test_update_bookmaker_tracks_only_supplied_fields():
    request = UpdateBookmakerRequest(priority=5)
    assert request.model_dump(exclude_unset=True) == {"priority": 5}


def test_review_requires_valid_bookmaker_and_title():
    ratings = {"odds": 4, "bonuses": 4, "mobile": 4, "support": 4, "payout": 4}
    with pytest.raises(ValidationError):
        CreateReviewRequest(bookmaker="abc", title="Betway Kenya Review", ratings=ratings)
    with pytest.raises(ValidationError):
        CreateReviewRequest(bookmaker=BOOKMAKER_ID, title="Short", ratings=ratings)
    with pytest.raises(ValidationError):
        CreateReviewRequest(bookmaker=BOOKMAKER_ID, title="Betway Kenya Review", ratings={**ratings, "odds": 0})

    review = CreateReviewRequest(bookmaker=BOOKMAKER_ID, title="Betway Kenya Review", ratings=ratings)
    assert review.status == "draft"
    assert review.author.name == "BetCompare Team"


def test_bonus_validity_window_and_promo_code():
    with pytest.raises(ValidationError, match="valid_until must be after valid_from"):
        CreateBonusRequest(
            bookmaker=BOOKMAKER_ID,
            type="welcome",
            title="Welcome Bonus",
            valid_from=datetime(2024, 2, 1),
            valid_until=datetime(2024, 1, 1),
        )

    bonus = CreateBonusRequest(bookmaker=BOOKMAKER_ID, type="free-bet", title="Free Bet Friday", promo_code=" fbf50 ")
    assert bonus.promo_code == "FBF50"
    assert bonus.type == "free-bet"


def test_bonus_rejects_unknown_type_and_bad_percentage():
    with pytest.raises(ValidationError):
        CreateBonusRequest(bookmaker=BOOKMAKER_ID, type="jackpot", title="Mega Jackpot")
    with pytest.raises(ValidationError):
        UpdateBonusRequest(amount={"percentage": 150})


def test_blog_content_is_sanitized():
    content = "<p>" + "Betting guide content. " * 10 + "</p><script>alert(1)</script>"
    post = CreateBlogPostRequest(
        title="How to Bet With M-Pesa",
        content=content,
        category="guide",
        tags=[" M-Pesa ", "Tips", ""],
    )
    assert "<script>" not in post.content
    assert "<p>" in post.content
    assert post.tags == ["m-pesa", "tips"]


def test_blog_rejects_short_content_and_unknown_category():
    with pytest.raises(ValidationError, match="at least 100 characters"):
        CreateBlogPostRequest(title="How to Bet With M-Pesa", content="<p>Too short</p>", category="guide")
    with pytest.raises(ValidationError):
        CreateBlogPostRequest(title="How to Bet With M-Pesa", content="x" * 200, category="gossip")


def test_parse_event_selects_model_and_keeps_unknown_fields():
    event = parse_event({"event_type": "affiliate_click", "bookmaker_id": "b1", "campaign": "euro"})
    assert isinstance(event, AffiliateClickEvent)
    assert event.bookmaker_id == "b1"
    assert event.extra == {"campaign": "euro"}


def test_parse_event_unknown_type_is_custom():
    event = parse_event({"event_type": "newsletter_signup", "email_domain": "gmail.com"})
    assert isinstance(event, CustomEvent)
    assert event.extra == {"email_domain": "gmail.com"}


def test_parse_event_shared_models():
    conversion = parse_event({"event_type": "high_value_conversion", "conversion_type": "affiliate_click"})
    assert isinstance(conversion, ConversionEvent)
    assert conversion.event_type == "high_value_conversion"

    experiment = parse_event({"event_type": "ab_test_assignment", "test_name": "cta", "variant": "green"})
    assert isinstance(experiment, ExperimentEvent)


def test_parse_event_without_type_is_custom():
    event = parse_event({"page_url": "/", "campaign": "euro"})
    assert isinstance(event, CustomEvent)
    assert event.event_type == "custom"
    assert event.page_url == "/"
    assert event.extra == {"campaign": "euro"}
    assert parse_event({"event_type": None}).event_type == "custom"


def test_parse_event_rejects_invalid_payloads():
    with pytest.raises(ValidationError):
        parse_event({"event_type": "funnel_step", "funnel_step": 11})


def test_event_record_merges_extra_bag():
    event = FunnelStepEvent(funnel_step=2, session_id="s1", step_number=4)
    record = event.to_record()
    assert record["event_type"] == "funnel_step"
    assert record["extra"] == {"step_number": 4}
    assert "timestamp" not in record


def test_validate_payload_itemizes_errors():
    data, errors = validate_payload("bookmaker", {"name": "Betway", "logo": "not-a-url"})
    assert data is None
    fields = {error["field"] for error in errors}
    assert {"logo", "website_url", "affiliate_link"} <= fields
    assert {"field": "logo", "message": "Logo must be a valid URL"} in errors


def test_validate_payload_passes_valid_data_through():
    data, errors = validate_payload("bookmaker", bookmaker_payload(name="<b>Betway</b> Kenya"))
    assert errors == []
    assert data["name"] == "Betway Kenya"


def test_validate_partial_payload():
    data, errors = validate_payload("bonus", {"title": "Cashback"}, partial=True)
    assert errors == []
    assert data == {"title": "Cashback"}


def test_validate_payload_unknown_entity():
    with pytest.raises(ValueError, match="Unknown entity type"):
        validate_payload("casino", {})
