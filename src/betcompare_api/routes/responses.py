"""Success envelopes shared by the route modules."""

from typing import Any, Dict, List, Optional

from betcompare_api.utils.pagination import build_pagination
from betcompare_api.utils.serialization import serialize_document, serialize_documents, serialize_value


def success(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = serialize_value(data)
    if message:
        body["message"] = message
    return body


def document_response(doc: Dict[str, Any], message: Optional[str] = None) -> Dict[str, Any]:
    return success(serialize_document(doc), message)


def list_response(docs: List[Dict[str, Any]]) -> Dict[str, Any]:
    return success(serialize_documents(docs))


def paginated_response(key: str, docs: List[Dict[str, Any]], page: int, limit: int, total: int) -> Dict[str, Any]:
    """`{success, data: {<key>: [...], pagination: {...}}}`"""
    return success({key: serialize_documents(docs), "pagination": build_pagination(page, limit, total)})
