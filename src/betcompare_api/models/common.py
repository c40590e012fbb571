"""
# Shared Model Building Blocks

Field types, validators and small sub-documents reused by the entity models.

## Key Features
- **Sanitization**: `sanitize_plain_text` strips every HTML tag with `bleach`, the way
  plain-text inputs (names, titles, summaries) are stored.
- **Format checks**: `validate_http_url`, `validate_slug` and `validate_object_id` raise
  `ValueError` with the message that ends up in the `errors` list of a 400 response.
- **SEO metadata**: `SeoData` is embedded in every public entity.
"""

from typing import Any, List, Optional
from urllib.parse import urlparse

import bleach
from pydantic import BaseModel, ConfigDict, Field

from betcompare_api.utils.serialization import is_object_id
from betcompare_api.utils.text_utils import is_valid_slug


class DocumentModel(BaseModel):
    """Base for models that are persisted; enum members are stored as their values."""

    model_config = ConfigDict(use_enum_values=True, populate_by_name=True)


def sanitize_plain_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return bleach.clean(value, tags=[], strip=True).strip()


def validate_http_url(value: Optional[str], label: str) -> Optional[str]:
    if value is None:
        return None
    parsed = urlparse(value.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"{label} must be a valid URL")
    return value.strip()


def validate_slug(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    if not is_valid_slug(value):
        raise ValueError("Slug must be a valid URL slug")
    return value


def validate_object_id(value: Any, label: str) -> Any:
    if value is None:
        return None
    if not is_object_id(str(value)):
        raise ValueError(f"{label} must be a valid MongoDB ObjectId")
    return str(value)


def validate_object_id_list(values: Optional[List[Any]], label: str) -> Optional[List[str]]:
    if values is None:
        return None
    return [validate_object_id(value, label) for value in values]


def validate_item_lengths(values: Optional[List[str]], max_length: int, label: str) -> Optional[List[str]]:
    if values is None:
        return None
    for item in values:
        if len(item) > max_length:
            raise ValueError(f"Each {label} must be less than {max_length} characters")
    return values


class SeoData(DocumentModel):
    """Search-engine metadata. Empty title/description are filled in on write."""

    meta_title: Optional[str] = Field(None, max_length=200)
    meta_description: Optional[str] = Field(None, max_length=320)
    keywords: List[str] = Field(default_factory=list)
    canonical_url: Optional[str] = None


class SocialLinks(DocumentModel):
    facebook: Optional[str] = None
    twitter: Optional[str] = None
    instagram: Optional[str] = None
    youtube: Optional[str] = None
    telegram: Optional[str] = None
