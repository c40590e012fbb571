"""
# Validation Service

Programmatic access to the request validation rules, for callers that hold a raw
payload instead of going through a route (imports, admin scripts, tests).

```python
data, errors = validate_payload("bookmaker", {"name": "Betway"})
# errors == [{"field": "logo", "message": "Field required"}, ...]
```

The rules are the ones the routes enforce: the `Create*Request` models, or the
`Update*Request` models when `partial=True`.
"""

from typing import Any, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError

from betcompare_api.models.blog_models import CreateBlogPostRequest, UpdateBlogPostRequest
from betcompare_api.models.bonus_models import CreateBonusRequest, UpdateBonusRequest
from betcompare_api.models.bookmaker_models import CreateBookmakerRequest, UpdateBookmakerRequest
from betcompare_api.models.review_models import CreateReviewRequest, UpdateReviewRequest
from betcompare_api.utils.error_handlers import format_validation_errors

ENTITY_MODELS: Dict[str, Tuple[Type[BaseModel], Type[BaseModel]]] = {
    "bookmaker": (CreateBookmakerRequest, UpdateBookmakerRequest),
    "review": (CreateReviewRequest, UpdateReviewRequest),
    "bonus": (CreateBonusRequest, UpdateBonusRequest),
    "blog_post": (CreateBlogPostRequest, UpdateBlogPostRequest),
}


def validate_payload(
    entity: str, payload: Dict[str, Any], partial: bool = False
) -> Tuple[Optional[Dict[str, Any]], List[Dict[str, str]]]:
    """
    Validate `payload` against the rules for `entity`.

    Returns:
        `(data, [])` with the sanitized data when the payload passes, or
        `(None, errors)` with itemized `{field, message}` errors.

    Raises:
        ValueError: If `entity` is not a known entity type.
    """
    if entity not in ENTITY_MODELS:
        raise ValueError(f"Unknown entity type: {entity}. Must be one of {', '.join(ENTITY_MODELS)}")
    create_model, update_model = ENTITY_MODELS[entity]
    model = update_model if partial else create_model
    try:
        instance = model.model_validate(payload)
    except ValidationError as e:
        return None, format_validation_errors(e.errors())
    return instance.model_dump(exclude_unset=partial), []
