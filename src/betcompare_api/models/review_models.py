"""
# Review Models

Request models for **editorial bookmaker reviews**. A review belongs to exactly one
bookmaker and scores it on five categories; the overall score, word count and
reading time are derived when the review is written.

## Section Length Caps

| Section | Max characters |
|---------|----------------|
| `overview` | 5000 |
| `odds_and_markets` | 3000 |
| `bonuses_and_promotions` | 3000 |
| `mobile_experience` | 2000 |
| `deposits_withdrawals` | 3000 |
| `customer_support` | 2000 |
| `security_and_licensing` | 2000 |
| `final_verdict` | 1500 |

Attributes:
    REVIEW_STATUSES (List[str]): Valid lifecycle states.
    SUB_RATING_FIELDS (List[str]): Ratings averaged into the overall score.
    DEFAULT_AUTHOR (str): Byline used when no author is supplied.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator

from betcompare_api.models.common import (
    DocumentModel,
    SeoData,
    sanitize_plain_text,
    validate_http_url,
    validate_item_lengths,
    validate_object_id,
    validate_object_id_list,
    validate_slug,
)
from betcompare_api.utils.dates import to_naive_utc

REVIEW_STATUSES = ["draft", "published", "archived"]
SUB_RATING_FIELDS = ["odds", "bonuses", "mobile", "support", "payout"]
DEFAULT_AUTHOR = "BetCompare Team"


class ReviewStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class ReviewSummary(DocumentModel):
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)
    verdict: Optional[str] = Field(None, max_length=1000)

    @field_validator("pros", "cons")
    @classmethod
    def item_length(cls, v: List[str], info) -> List[str]:
        return validate_item_lengths(v, 200, info.field_name[:-1])


class ReviewSections(DocumentModel):
    overview: Optional[str] = Field(None, max_length=5000)
    odds_and_markets: Optional[str] = Field(None, max_length=3000)
    bonuses_and_promotions: Optional[str] = Field(None, max_length=3000)
    mobile_experience: Optional[str] = Field(None, max_length=2000)
    deposits_withdrawals: Optional[str] = Field(None, max_length=3000)
    customer_support: Optional[str] = Field(None, max_length=2000)
    security_and_licensing: Optional[str] = Field(None, max_length=2000)
    final_verdict: Optional[str] = Field(None, max_length=1500)


class ReviewRatings(DocumentModel):
    """The five scored categories. `overall` is always derived from these."""

    odds: float = Field(..., ge=1, le=5)
    bonuses: float = Field(..., ge=1, le=5)
    mobile: float = Field(..., ge=1, le=5)
    support: float = Field(..., ge=1, le=5)
    payout: float = Field(..., ge=1, le=5)


class ReviewHighlight(DocumentModel):
    icon: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=300)


class ReviewAuthor(DocumentModel):
    name: str = DEFAULT_AUTHOR
    bio: Optional[str] = None
    avatar: Optional[str] = None
    expertise: List[str] = Field(default_factory=list)


class ReviewSeoData(SeoData):
    focus_keyword: Optional[str] = None


class _ReviewFieldValidators(DocumentModel):
    @field_validator("title", check_fields=False)
    @classmethod
    def sanitize_title(cls, v: Optional[str]) -> Optional[str]:
        v = sanitize_plain_text(v)
        if v is not None and not 10 <= len(v) <= 200:
            raise ValueError("Title must be between 10 and 200 characters")
        return v

    @field_validator("bookmaker", check_fields=False)
    @classmethod
    def bookmaker_id(cls, v: Optional[str]) -> Optional[str]:
        return validate_object_id(v, "Bookmaker ID")

    @field_validator("related_bookmakers", check_fields=False)
    @classmethod
    def related_ids(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return validate_object_id_list(v, "Related bookmaker ID")

    @field_validator("slug", check_fields=False)
    @classmethod
    def slug_format(cls, v: Optional[str]) -> Optional[str]:
        return validate_slug(v)

    @field_validator("featured_image", check_fields=False)
    @classmethod
    def image_url(cls, v: Optional[str]) -> Optional[str]:
        return validate_http_url(v, "Featured image")

    @field_validator("published_at", check_fields=False)
    @classmethod
    def utc_published_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class CreateReviewRequest(_ReviewFieldValidators):
    """Payload for `POST /api/reviews`."""

    bookmaker: str
    title: str = Field(..., max_length=200)
    slug: Optional[str] = None
    summary: ReviewSummary = Field(default_factory=ReviewSummary)
    sections: ReviewSections = Field(default_factory=ReviewSections)
    ratings: ReviewRatings
    highlights: List[ReviewHighlight] = Field(default_factory=list)
    author: ReviewAuthor = Field(default_factory=ReviewAuthor)
    featured_image: Optional[str] = None
    gallery: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    related_bookmakers: List[str] = Field(default_factory=list)
    seo_data: ReviewSeoData = Field(default_factory=ReviewSeoData)
    status: ReviewStatus = ReviewStatus.DRAFT
    is_published: bool = False
    is_featured: bool = False
    published_at: Optional[datetime] = None


class UpdateReviewRequest(_ReviewFieldValidators):
    """Payload for `PUT /api/reviews/{id}`; only supplied fields change."""

    bookmaker: Optional[str] = None
    title: Optional[str] = Field(None, max_length=200)
    slug: Optional[str] = None
    summary: Optional[ReviewSummary] = None
    sections: Optional[ReviewSections] = None
    ratings: Optional[ReviewRatings] = None
    highlights: Optional[List[ReviewHighlight]] = None
    author: Optional[ReviewAuthor] = None
    featured_image: Optional[str] = None
    gallery: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    related_bookmakers: Optional[List[str]] = None
    seo_data: Optional[ReviewSeoData] = None
    status: Optional[ReviewStatus] = None
    is_published: Optional[bool] = None
    is_featured: Optional[bool] = None
    published_at: Optional[datetime] = None
