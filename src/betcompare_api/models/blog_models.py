"""
# Blog Models

Request models for the **editorial blog**: betting guides, bookmaker head-to-heads,
bonus spotlights and industry news.

## Key Features

### 1. Content Safety
`content` is HTML and is sanitized with `bleach` against an allow-list of formatting
tags, so stored posts can be rendered without further escaping. Titles are plain text.

### 2. Derived Fields
The excerpt, meta title/description, word count, reading time and table of contents
are computed from the content on every write (see `services.blog_service`). A
supplied excerpt or meta description is never overwritten.

### 3. Comparison Posts
Posts in the `comparison` category may carry `comparison_data` linking two bookmakers,
a per-category scorecard and an overall winner.

Attributes:
    BLOG_CATEGORIES (List[str]): Every category a post may carry.
    BLOG_POST_STATUSES (List[str]): Valid lifecycle states.
    ALLOWED_HTML_TAGS (List[str]): Tags preserved when sanitizing `content`.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

import bleach
from pydantic import Field, field_validator

from betcompare_api.models.common import (
    DocumentModel,
    SeoData,
    sanitize_plain_text,
    validate_object_id,
    validate_object_id_list,
    validate_slug,
)
from betcompare_api.utils.dates import to_naive_utc

BLOG_CATEGORIES = ["comparison", "guide", "news", "review", "bonus-spotlight", "tips", "analysis"]
BLOG_POST_STATUSES = ["draft", "published", "scheduled", "archived"]
ALLOWED_HTML_TAGS = [
    "p", "br", "strong", "em", "u", "s", "a", "ul", "ol", "li", "blockquote", "code", "pre",
    "h1", "h2", "h3", "h4", "h5", "h6", "img", "table", "thead", "tbody", "tr", "th", "td", "span",
]
ALLOWED_HTML_ATTRIBUTES = {"a": ["href", "title", "rel", "target"], "img": ["src", "alt", "title"], "*": ["id", "class"]}


class BlogCategory(str, Enum):
    COMPARISON = "comparison"
    GUIDE = "guide"
    NEWS = "news"
    REVIEW = "review"
    BONUS_SPOTLIGHT = "bonus-spotlight"
    TIPS = "tips"
    ANALYSIS = "analysis"


class BlogPostStatus(str, Enum):
    """Blog post lifecycle states."""

    DRAFT = "draft"
    PUBLISHED = "published"
    SCHEDULED = "scheduled"
    ARCHIVED = "archived"


class TwitterCard(str, Enum):
    SUMMARY = "summary"
    SUMMARY_LARGE_IMAGE = "summary_large_image"


class FeaturedImage(DocumentModel):
    url: Optional[str] = None
    alt: Optional[str] = None
    caption: Optional[str] = None


class BlogAuthor(DocumentModel):
    name: str = "BetCompare Team"
    bio: Optional[str] = None
    avatar: Optional[str] = None
    social_links: List[str] = Field(default_factory=list)


class ComparisonPoint(DocumentModel):
    category: str = Field(..., min_length=1, max_length=100)
    bookmaker1_score: float = Field(..., ge=0, le=10)
    bookmaker2_score: float = Field(..., ge=0, le=10)
    winner: Optional[str] = None
    explanation: Optional[str] = Field(None, max_length=1000)


class ComparisonData(DocumentModel):
    bookmaker1: Optional[str] = None
    bookmaker2: Optional[str] = None
    winner: Optional[str] = None
    comparison_points: List[ComparisonPoint] = Field(default_factory=list)

    @field_validator("bookmaker1", "bookmaker2", "winner")
    @classmethod
    def bookmaker_ids(cls, v: Optional[str]) -> Optional[str]:
        return validate_object_id(v, "Bookmaker ID")


class BlogSeoData(SeoData):
    focus_keyword: Optional[str] = None
    readability_score: Optional[float] = Field(None, ge=0, le=100)
    seo_score: Optional[float] = Field(None, ge=0, le=100)


class BlogSocialMedia(DocumentModel):
    twitter_card: TwitterCard = TwitterCard.SUMMARY_LARGE_IMAGE
    og_image: Optional[str] = None
    og_description: Optional[str] = None


class FaqEntry(DocumentModel):
    question: str = Field(..., min_length=1, max_length=300)
    answer: str = Field(..., min_length=1, max_length=2000)


class CallToAction(DocumentModel):
    enabled: bool = False
    text: Optional[str] = None
    button_text: Optional[str] = None
    button_url: Optional[str] = None
    bookmaker: Optional[str] = None

    @field_validator("bookmaker")
    @classmethod
    def bookmaker_id(cls, v: Optional[str]) -> Optional[str]:
        return validate_object_id(v, "Bookmaker ID")


class _BlogFieldValidators(DocumentModel):
    @field_validator("title", check_fields=False)
    @classmethod
    def sanitize_title(cls, v: Optional[str]) -> Optional[str]:
        v = sanitize_plain_text(v)
        if v is not None and not 10 <= len(v) <= 200:
            raise ValueError("Title must be between 10 and 200 characters")
        return v

    @field_validator("content", check_fields=False)
    @classmethod
    def sanitize_content(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        cleaned = bleach.clean(v, tags=ALLOWED_HTML_TAGS, attributes=ALLOWED_HTML_ATTRIBUTES, strip=True)
        if len(cleaned) < 100:
            raise ValueError("Content must be at least 100 characters")
        return cleaned

    @field_validator("excerpt", check_fields=False)
    @classmethod
    def sanitize_excerpt(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_plain_text(v)

    @field_validator("tags", check_fields=False)
    @classmethod
    def lowercase_tags(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        if v is None:
            return None
        return [tag.strip().lower() for tag in v if tag.strip()]

    @field_validator("slug", check_fields=False)
    @classmethod
    def slug_format(cls, v: Optional[str]) -> Optional[str]:
        return validate_slug(v)

    @field_validator("related_bookmakers", "related_posts", check_fields=False)
    @classmethod
    def related_ids(cls, v: Optional[List[str]]) -> Optional[List[str]]:
        return validate_object_id_list(v, "Related ID")

    @field_validator("published_at", "scheduled_for", check_fields=False)
    @classmethod
    def utc_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class CreateBlogPostRequest(_BlogFieldValidators):
    """Payload for `POST /api/blog`."""

    title: str = Field(..., max_length=200)
    slug: Optional[str] = None
    excerpt: Optional[str] = Field(None, max_length=300)
    content: str
    category: BlogCategory
    tags: List[str] = Field(default_factory=list)
    featured_image: FeaturedImage = Field(default_factory=FeaturedImage)
    gallery: List[str] = Field(default_factory=list)
    author: BlogAuthor = Field(default_factory=BlogAuthor)
    related_bookmakers: List[str] = Field(default_factory=list)
    related_posts: List[str] = Field(default_factory=list)
    comparison_data: Optional[ComparisonData] = None
    seo_data: BlogSeoData = Field(default_factory=BlogSeoData)
    social_media: BlogSocialMedia = Field(default_factory=BlogSocialMedia)
    published_at: Optional[datetime] = None
    scheduled_for: Optional[datetime] = None
    is_published: bool = False
    is_featured: bool = False
    is_sticky: bool = False
    allow_comments: bool = True
    status: BlogPostStatus = BlogPostStatus.DRAFT
    priority: int = 0
    faqs: List[FaqEntry] = Field(default_factory=list)
    call_to_action: CallToAction = Field(default_factory=CallToAction)


class UpdateBlogPostRequest(_BlogFieldValidators):
    """Payload for `PUT /api/blog/{id}`; only supplied fields change."""

    title: Optional[str] = Field(None, max_length=200)
    slug: Optional[str] = None
    excerpt: Optional[str] = Field(None, max_length=300)
    content: Optional[str] = None
    category: Optional[BlogCategory] = None
    tags: Optional[List[str]] = None
    featured_image: Optional[FeaturedImage] = None
    gallery: Optional[List[str]] = None
    author: Optional[BlogAuthor] = None
    related_bookmakers: Optional[List[str]] = None
    related_posts: Optional[List[str]] = None
    comparison_data: Optional[ComparisonData] = None
    seo_data: Optional[BlogSeoData] = None
    social_media: Optional[BlogSocialMedia] = None
    published_at: Optional[datetime] = None
    scheduled_for: Optional[datetime] = None
    is_published: Optional[bool] = None
    is_featured: Optional[bool] = None
    is_sticky: Optional[bool] = None
    allow_comments: Optional[bool] = None
    status: Optional[BlogPostStatus] = None
    priority: Optional[int] = None
    faqs: Optional[List[FaqEntry]] = None
    call_to_action: Optional[CallToAction] = None
