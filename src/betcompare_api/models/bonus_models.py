"""
# Bonus Models

Request models for **bookmaker promotions** (welcome offers, free bets, cashback...).

## Domain Overview

A bonus belongs to one bookmaker and is either a flat amount (`amount.value`) or a
percentage match with an optional cap (`amount.percentage` + `amount.max_amount`).
It is valid while it is active and the current time lies inside
`[valid_from, valid_until]`; an open-ended bonus has no `valid_until`.

Impressions, clicks and conversions are counted server-side; the click-through
and conversion rates are derived from those counters and are never accepted as input.

Attributes:
    BONUS_TYPES (List[str]): Every bonus type a stored document may carry.
    BADGES (List[str]): Display badges rendered on bonus cards.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field, field_validator, model_validator

from betcompare_api.models.common import (
    DocumentModel,
    sanitize_plain_text,
    validate_item_lengths,
    validate_object_id,
)
from betcompare_api.utils.dates import to_naive_utc

BONUS_TYPES = ["welcome", "no-deposit", "reload", "cashback", "free-bet", "loyalty", "referral", "seasonal"]
BADGES = ["hot", "new", "exclusive", "limited-time", "popular"]


class BonusType(str, Enum):
    WELCOME = "welcome"
    NO_DEPOSIT = "no-deposit"
    RELOAD = "reload"
    CASHBACK = "cashback"
    FREE_BET = "free-bet"
    LOYALTY = "loyalty"
    REFERRAL = "referral"
    SEASONAL = "seasonal"


class BonusBadge(str, Enum):
    HOT = "hot"
    NEW = "new"
    EXCLUSIVE = "exclusive"
    LIMITED_TIME = "limited-time"
    POPULAR = "popular"


class BonusAmount(DocumentModel):
    value: Optional[float] = Field(None, ge=0)
    currency: str = "KES"
    percentage: Optional[float] = Field(None, ge=0, le=100)
    max_amount: Optional[float] = Field(None, ge=0)
    min_amount: Optional[float] = Field(None, ge=0)


class BonusRequirements(DocumentModel):
    min_deposit: float = Field(0, ge=0)
    wagering_requirement: float = Field(1, ge=0)
    time_limit: str = "30 days"
    time_limit_days: int = Field(30, ge=0)
    game_restrictions: List[str] = Field(default_factory=list)
    odds_requirement: Optional[float] = Field(None, ge=1.0)
    max_bet_amount: Optional[float] = Field(None, ge=0)
    eligible_markets: List[str] = Field(default_factory=list)
    excluded_markets: List[str] = Field(default_factory=list)


class BonusEligibility(DocumentModel):
    new_customers_only: bool = True
    country_restrictions: List[str] = Field(default_factory=list)
    age_restriction: int = Field(18, ge=18)
    payment_method_restrictions: List[str] = Field(default_factory=list)
    excluded_payment_methods: List[str] = Field(default_factory=list)


class ClaimInstruction(DocumentModel):
    step: int = Field(..., ge=1)
    instruction: str = Field(..., min_length=1, max_length=500)


class BonusDisplayInfo(DocumentModel):
    badge: Optional[BonusBadge] = None
    badge_color: str = "#FF6B00"
    priority: int = 0
    show_on_homepage: bool = False


class _BonusFieldValidators(DocumentModel):
    @field_validator("title", check_fields=False)
    @classmethod
    def sanitize_title(cls, v: Optional[str]) -> Optional[str]:
        v = sanitize_plain_text(v)
        if v is not None and not 5 <= len(v) <= 200:
            raise ValueError("Title must be between 5 and 200 characters")
        return v

    @field_validator("description", check_fields=False)
    @classmethod
    def sanitize_description(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_plain_text(v)

    @field_validator("bookmaker", check_fields=False)
    @classmethod
    def bookmaker_id(cls, v: Optional[str]) -> Optional[str]:
        return validate_object_id(v, "Bookmaker ID")

    @field_validator("promo_code", check_fields=False)
    @classmethod
    def upper_promo_code(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().upper() if v else v

    @field_validator("highlights", check_fields=False)
    @classmethod
    def highlight_length(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return validate_item_lengths(v, 100, "highlight")

    @field_validator("valid_from", "valid_until", check_fields=False)
    @classmethod
    def utc_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)

    @model_validator(mode="after")
    def validity_window(self):
        valid_from = getattr(self, "valid_from", None)
        valid_until = getattr(self, "valid_until", None)
        if valid_from and valid_until and valid_until < valid_from:
            raise ValueError("valid_until must be after valid_from")
        return self


class CreateBonusRequest(_BonusFieldValidators):
    """Payload for `POST /api/bonuses`."""

    bookmaker: str
    type: BonusType
    title: str = Field(..., max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    amount: BonusAmount = Field(default_factory=BonusAmount)
    requirements: BonusRequirements = Field(default_factory=BonusRequirements)
    eligibility: BonusEligibility = Field(default_factory=BonusEligibility)
    terms: Optional[str] = Field(None, max_length=5000)
    highlights: List[str] = Field(default_factory=list)
    promo_code: Optional[str] = None
    claim_instructions: List[ClaimInstruction] = Field(default_factory=list)
    display_info: BonusDisplayInfo = Field(default_factory=BonusDisplayInfo)
    is_active: bool = True
    is_featured: bool = False
    is_exclusive: bool = False
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None


class UpdateBonusRequest(_BonusFieldValidators):
    """Payload for `PUT /api/bonuses/{id}`; only supplied fields change."""

    bookmaker: Optional[str] = None
    type: Optional[BonusType] = None
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)
    amount: Optional[BonusAmount] = None
    requirements: Optional[BonusRequirements] = None
    eligibility: Optional[BonusEligibility] = None
    terms: Optional[str] = Field(None, max_length=5000)
    highlights: Optional[List[str]] = None
    promo_code: Optional[str] = None
    claim_instructions: Optional[List[ClaimInstruction]] = None
    display_info: Optional[BonusDisplayInfo] = None
    is_active: Optional[bool] = None
    is_featured: Optional[bool] = None
    is_exclusive: Optional[bool] = None
    valid_from: Optional[datetime] = None
    valid_until: Optional[datetime] = None
