"""Trend repository for survey records"""

from typing import Optional

from Journal.models import TradingSymbol, TrendRecord
from .Repository import SQLiteRepository
from ..models import DatabaseSchema, TrendModel


class TrendRepository:
    """Stores trend surveys and returns the latest one per symbol"""

    def __init__(self, db_path: str = "journal.db"):
        self.repository = SQLiteRepository(db_path, DatabaseSchema.TRENDS_TABLE)

    def create_table(self) -> None:
        self.repository.create_table(DatabaseSchema.TREND_COLUMNS)

    def save(self, record: TrendRecord) -> TrendRecord:
        record.id = self.repository.insert(TrendModel.to_row(record))
        return record

    def latest(self, symbol: TradingSymbol) -> Optional[TrendRecord]:
        query = f"""
            SELECT *
            FROM {DatabaseSchema.TRENDS_TABLE}
            WHERE symbol = ?
            ORDER BY surveyed_at DESC, id DESC
            LIMIT 1
        """
        rows = self.repository.execute_query(query, (TradingSymbol(symbol).value,))
        return TrendModel.from_row(rows[0]) if rows else None
