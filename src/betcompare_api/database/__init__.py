"""Database package exposing the shared `db_manager` instance."""

from betcompare_api.database.manager import DatabaseManager

db_manager = DatabaseManager()

__all__ = ["DatabaseManager", "db_manager"]
