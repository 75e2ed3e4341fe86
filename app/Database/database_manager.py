"""Explicitly constructed access point to the journal stores"""

from loguru import logger

from .models import DatabaseSchema
from .repository.Repository import SQLiteRepository
from .repository.conversation_repository import SQLiteConversationStore
from .repository.order_repository import OrderRepository
from .repository.trend_repository import TrendRepository


class DatabaseManager:
    """Owns the database path and hands out the stores built on it"""

    def __init__(self, db_path: str = "journal.db"):
        self.db_path = db_path
        self._conversation_store = None
        self._order_repository = None
        self._trend_repository = None

    def get_conversation_store(self) -> SQLiteConversationStore:
        if self._conversation_store is None:
            self._conversation_store = SQLiteConversationStore(self.db_path)
        return self._conversation_store

    def get_order_repository(self) -> OrderRepository:
        if self._order_repository is None:
            self._order_repository = OrderRepository(self.db_path)
        return self._order_repository

    def get_trend_repository(self) -> TrendRepository:
        if self._trend_repository is None:
            self._trend_repository = TrendRepository(self.db_path)
        return self._trend_repository

    def migrate(self) -> None:
        """Create tables and indexes if they do not exist"""
        logger.info(f"Running database migrations on {self.db_path}")
        self.get_order_repository().create_table()
        self.get_trend_repository().create_table()
        self.get_conversation_store().create_table()

        runner = SQLiteRepository(self.db_path, DatabaseSchema.ORDERS_TABLE)
        for statement in DatabaseSchema.INDEXES:
            runner.execute(statement)
        logger.success("Database migrations completed")
