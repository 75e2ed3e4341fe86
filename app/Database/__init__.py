"""Database package for the HARSI journal.

SQLite-backed stores for conversation records, orders and trend surveys.

Usage:
    from Database import DoMigrations
    manager = DoMigrations(settings)
    store = manager.get_conversation_store()
"""

from .database_manager import DatabaseManager


def DoMigrations(settings) -> DatabaseManager:
    """Create the schema at the configured path and return its manager"""
    manager = DatabaseManager(settings.database_path)
    manager.migrate()
    return manager


__all__ = ["DatabaseManager", "DoMigrations"]
