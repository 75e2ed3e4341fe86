"""Order repository for database operations on journal orders"""

from datetime import datetime
from typing import List, Optional

from loguru import logger

from Journal.models import OrderDraft, StoredOrder
from Journal.risk_calculator import calculate_order_risk
from .Repository import SQLiteRepository
from ..models import DatabaseSchema, OrderModel


class OrderRepository:
    """Repository for order-related database operations"""

    def __init__(self, db_path: str = "journal.db"):
        self.repository = SQLiteRepository(db_path, DatabaseSchema.ORDERS_TABLE)

    def create_table(self) -> None:
        """Create the orders table"""
        self.repository.create_table(DatabaseSchema.ORDER_COLUMNS)

    def save(self, user_id: int, draft: OrderDraft, created_at: Optional[datetime] = None) -> int:
        """Insert a finalized order and return its id"""
        order_id = self.repository.insert(OrderModel.to_row(user_id, draft, created_at))
        logger.info(f"Order {order_id} saved for user {user_id}")
        return order_id

    def get_by_id(self, order_id: int) -> Optional[StoredOrder]:
        row = self.repository.get_by_id(order_id)
        return OrderModel.from_row(row) if row else None

    def update_close_price(self, order_id: int, close_price: float) -> Optional[StoredOrder]:
        """Recompute the derived fields of an order with a close price"""
        order = self.get_by_id(order_id)
        if order is None:
            return None

        draft = calculate_order_risk(order.draft, close_price)
        changes = OrderModel.draft_columns(draft)
        changes["updated_at"] = datetime.now().isoformat()
        self.repository.update(order_id, changes)
        return self.get_by_id(order_id)

    def get_user_orders(self, user_id: int, limit: Optional[int] = None) -> List[StoredOrder]:
        """Orders of a user, newest first"""
        query = f"SELECT * FROM {DatabaseSchema.ORDERS_TABLE} WHERE user_id = ? ORDER BY created_at DESC, id DESC"
        params = [user_id]
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        return [OrderModel.from_row(row) for row in self.repository.execute_query(query, params)]

    def get_user_orders_by_date_range(self, user_id: int, start: datetime, end: datetime) -> List[StoredOrder]:
        """Orders created in [start, end), newest first"""
        query = f"""
            SELECT *
            FROM {DatabaseSchema.ORDERS_TABLE}
            WHERE user_id = ? AND created_at >= ? AND created_at < ?
            ORDER BY created_at DESC, id DESC
        """
        rows = self.repository.execute_query(query, (user_id, start.isoformat(), end.isoformat()))
        return [OrderModel.from_row(row) for row in rows]

    def get_open_orders(self, user_id: int, limit: int = 10) -> List[StoredOrder]:
        """Orders without an actual result yet, newest first"""
        query = f"""
            SELECT *
            FROM {DatabaseSchema.ORDERS_TABLE}
            WHERE user_id = ? AND actual_risk_reward_ratio IS NULL
            ORDER BY created_at DESC, id DESC
            LIMIT ?
        """
        return [OrderModel.from_row(row) for row in self.repository.execute_query(query, (user_id, limit))]
