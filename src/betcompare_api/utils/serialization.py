"""Conversion between MongoDB documents and JSON-safe dictionaries."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId


def is_object_id(value: Any) -> bool:
    return isinstance(value, str) and ObjectId.is_valid(value) and len(value) == 24


def to_object_id(value: Any) -> ObjectId:
    """
    Coerce `value` to an `ObjectId`.

    Raises:
        ValueError: If `value` is not a 24 character hex id.
    """
    if isinstance(value, ObjectId):
        return value
    if not is_object_id(value):
        raise ValueError("Invalid ID format")
    try:
        return ObjectId(value)
    except InvalidId as e:
        raise ValueError("Invalid ID format") from e


def serialize_value(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {("id" if key == "_id" else key): serialize_value(item) for key, item in value.items()}
    if isinstance(value, list):
        return [serialize_value(item) for item in value]
    return value


def serialize_document(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Return a JSON-safe copy of `doc` with every `_id`, nested ones included, exposed as `id`."""
    if doc is None:
        return None
    return serialize_value(doc)


def serialize_documents(docs: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [serialize_document(doc) for doc in docs]
