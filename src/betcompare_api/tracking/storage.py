"""
Key/value storage backing the visitor trackers.

Trackers persist their state (funnel progress, touchpoints, A/B assignments) through
a `Storage` passed in at construction. `MemoryStorage` keeps JSON-encoded values in a
dict, so stored data behaves like browser session/local storage: callers always get
a fresh copy and only JSON-compatible values round-trip.
"""

import json
from typing import Any, Dict, Optional, Protocol


class Storage(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    """In-process `Storage`. Two trackers sharing one instance see each other's writes."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, str] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self):
        return list(self._data)

    def __contains__(self, key: str) -> bool:
        return key in self._data
