"""
# Bookmaker Models

Request and document models for **bookmakers**, the central entity of the
comparison site. Every review, bonus and comparison refers back to one.

## Domain Overview

A bookmaker carries six 1-5 ratings, a closed set of feature tags, the payment
methods it accepts (M-Pesa, Airtel Money, cards...) and the affiliate link that
monetizes outbound clicks. Only `active` bookmakers are visible on public listings.

## Key Features
- **Closed feature set**: `BookmakerFeature` lists the tags the UI knows how to render.
- **Rating bounds**: every rating is between 1 and 5 and defaults to 3.
- **Derived slug**: the slug is computed from the name on write; a supplied slug is
  only checked for format.

## Usage Example

```python
request = CreateBookmakerRequest(
    name="Bet Way Kenya!",
    logo="https://cdn.example.com/betway.png",
    website_url="https://betway.co.ke",
    affiliate_link="https://betway.co.ke/?ref=betcompare",
    features=["M-Pesa Ready", "Live Betting"],
)
```

Attributes:
    BOOKMAKER_STATUSES (List[str]): Valid lifecycle states.
    RATING_CATEGORIES (List[str]): Sub-ratings carried by every bookmaker.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator

from betcompare_api.models.common import (
    DocumentModel,
    SeoData,
    SocialLinks,
    sanitize_plain_text,
    validate_http_url,
    validate_slug,
)

BOOKMAKER_STATUSES = ["active", "inactive", "pending", "suspended"]
RATING_CATEGORIES = ["overall", "odds", "bonuses", "mobile", "support", "payout"]


class BookmakerStatus(str, Enum):
    """Lifecycle state of a bookmaker listing."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"
    SUSPENDED = "suspended"


class BookmakerFeature(str, Enum):
    """Feature tags shown on bookmaker cards."""

    MPESA_READY = "M-Pesa Ready"
    HIGH_ODDS = "High Odds"
    LIVE_BETTING = "Live Betting"
    MOBILE_APP = "Mobile App"
    FAST_PAYOUTS = "Fast Payouts"
    LIVE_STREAMING = "Live Streaming"
    CASH_OUT = "Cash Out"
    MULTI_LANGUAGE = "Multi-Language"
    CUSTOMER_SUPPORT = "Customer Support"
    SECURE_BANKING = "Secure Banking"


class BookmakerRating(DocumentModel):
    overall: float = Field(3, ge=1, le=5)
    odds: float = Field(3, ge=1, le=5)
    bonuses: float = Field(3, ge=1, le=5)
    mobile: float = Field(3, ge=1, le=5)
    support: float = Field(3, ge=1, le=5)
    payout: float = Field(3, ge=1, le=5)


class PaymentMethod(DocumentModel):
    name: str = Field(..., min_length=1, max_length=100)
    logo: Optional[str] = None
    processing_time: Optional[str] = None
    min_deposit: Optional[float] = Field(None, ge=0)
    max_deposit: Optional[float] = Field(None, ge=0)
    fees: Optional[str] = None


class BettingMarket(DocumentModel):
    name: str = Field(..., min_length=1, max_length=100)
    available: bool = True
    margin: Optional[float] = Field(None, ge=0)


class LicenseInfo(DocumentModel):
    authority: Optional[str] = None
    license_number: Optional[str] = None
    valid_until: Optional[datetime] = None


class ContactInfo(DocumentModel):
    email: Optional[str] = None
    phone: Optional[str] = None
    live_chat_available: bool = False
    support_hours: Optional[str] = None


class BookmakerStatistics(DocumentModel):
    total_bets: int = Field(0, ge=0)
    total_winnings: float = Field(0, ge=0)
    average_odds: float = Field(0, ge=0)
    payout_percentage: float = Field(0, ge=0, le=100)


class _BookmakerFieldValidators(DocumentModel):
    """Validators shared by the create and update requests."""

    @field_validator("name", "description", "headquarters", "parent_company", check_fields=False)
    @classmethod
    def sanitize_text(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_plain_text(v)

    @field_validator("name", check_fields=False)
    @classmethod
    def name_length_after_sanitizing(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not 2 <= len(v) <= 100:
            raise ValueError("Name must be between 2 and 100 characters")
        return v

    @field_validator("slug", check_fields=False)
    @classmethod
    def slug_format(cls, v: Optional[str]) -> Optional[str]:
        return validate_slug(v)

    @field_validator("logo", check_fields=False)
    @classmethod
    def logo_url(cls, v: Optional[str]) -> Optional[str]:
        return validate_http_url(v, "Logo")

    @field_validator("website_url", check_fields=False)
    @classmethod
    def website(cls, v: Optional[str]) -> Optional[str]:
        return validate_http_url(v, "Website URL")

    @field_validator("affiliate_link", check_fields=False)
    @classmethod
    def affiliate(cls, v: Optional[str]) -> Optional[str]:
        return validate_http_url(v, "Affiliate link")

    @field_validator("features", check_fields=False)
    @classmethod
    def unique_features(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return None
        return list(dict.fromkeys(v))


class CreateBookmakerRequest(_BookmakerFieldValidators):
    """Payload for `POST /api/bookmakers`."""

    name: str = Field(..., max_length=100)
    slug: Optional[str] = None
    logo: str
    description: Optional[str] = Field(None, max_length=500)
    rating: BookmakerRating = Field(default_factory=BookmakerRating)
    features: List[BookmakerFeature] = Field(default_factory=list)
    payment_methods: List[PaymentMethod] = Field(default_factory=list)
    betting_markets: List[BettingMarket] = Field(default_factory=list)
    license_info: LicenseInfo = Field(default_factory=LicenseInfo)
    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    website_url: str
    affiliate_link: str
    tracking_pixel: Optional[str] = None
    seo_data: SeoData = Field(default_factory=SeoData)
    status: BookmakerStatus = BookmakerStatus.ACTIVE
    featured: bool = False
    priority: int = 0
    established_year: Optional[int] = Field(None, ge=1900, le=2100)
    headquarters: Optional[str] = None
    parent_company: Optional[str] = None
    statistics: BookmakerStatistics = Field(default_factory=BookmakerStatistics)
    social_media: SocialLinks = Field(default_factory=SocialLinks)


class UpdateBookmakerRequest(_BookmakerFieldValidators):
    """Payload for `PUT /api/bookmakers/{id}`; only supplied fields change."""

    name: Optional[str] = Field(None, max_length=100)
    slug: Optional[str] = None
    logo: Optional[str] = None
    description: Optional[str] = Field(None, max_length=500)
    rating: Optional[BookmakerRating] = None
    features: Optional[List[BookmakerFeature]] = None
    payment_methods: Optional[List[PaymentMethod]] = None
    betting_markets: Optional[List[BettingMarket]] = None
    license_info: Optional[LicenseInfo] = None
    contact_info: Optional[ContactInfo] = None
    website_url: Optional[str] = None
    affiliate_link: Optional[str] = None
    tracking_pixel: Optional[str] = None
    seo_data: Optional[SeoData] = None
    status: Optional[BookmakerStatus] = None
    featured: Optional[bool] = None
    priority: Optional[int] = None
    established_year: Optional[int] = Field(None, ge=1900, le=2100)
    headquarters: Optional[str] = None
    parent_company: Optional[str] = None
    statistics: Optional[BookmakerStatistics] = None
    social_media: Optional[SocialLinks] = None
