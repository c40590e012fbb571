import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-pytest")
os.environ.setdefault("ADMIN_PASSWORD", "admin-test-password")
os.environ.setdefault("ADMIN_EMAIL", "admin@betcompare.co.ke")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from unittest.mock import AsyncMock, MagicMock  # noqa: E402

import pytest  # noqa: E402


def make_cursor(docs):
    """Chainable Motor cursor mock whose `to_list` resolves to `docs`."""
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=list(docs))
    return cursor


def make_collection(docs=None, total=None):
    """Collection mock: `find` yields `docs`, `count_documents` yields `total`."""
    docs = docs or []
    collection = MagicMock()
    collection.find.return_value = make_cursor(docs)
    collection.count_documents = AsyncMock(return_value=len(docs) if total is None else total)
    collection.find_one = AsyncMock(return_value=None)
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock()
    collection.update_one = AsyncMock()
    collection.delete_one = AsyncMock()
    return collection


@pytest.fixture
def collections():
    """Per-name collection mocks, created on first access."""
    return {}


@pytest.fixture
def mock_db(collections, monkeypatch):
    from betcompare_api.database import db_manager

    def get_collection(name):
        if name not in collections:
            collections[name] = make_collection()
        return collections[name]

    monkeypatch.setattr(db_manager, "get_collection", get_collection)
    return collections
