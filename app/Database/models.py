"""Database schema definitions and row mappers for the journal"""

import json
from datetime import datetime
from typing import Any, Dict, Optional

from Journal.models import (
    ALL_TIMEFRAMES, ConversationRecord, ConversationStep, MarketState, OrderDraft, OrderMetadata,
    StoredOrder, TradingSymbol, TrendRecord,
)


class DatabaseSchema:
    """Database schema definitions"""

    ORDERS_TABLE = "Orders"
    TRENDS_TABLE = "Trends"
    CONVERSATIONS_TABLE = "Conversations"

    # Orders table schema
    ORDER_COLUMNS = {
        "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
        "user_id": "INTEGER NOT NULL",
        "created_at": "TEXT NOT NULL",
        "updated_at": "TEXT",
        "symbol": "TEXT",
        "direction": "TEXT",
        "harsi1w": "TEXT",
        "harsi3d": "TEXT",
        "harsi2d": "TEXT",
        "harsi1d": "TEXT",
        "harsi8h": "TEXT",
        "harsi4h": "TEXT",
        "harsi2h": "TEXT",
        "entry": "REAL",
        "stop_loss": "REAL",
        "take_profit": "REAL",
        "quantity": "REAL",
        "notes": "TEXT",
        "potential_stop_loss": "REAL",
        "potential_stop_loss_usd": "REAL",
        "potential_stop_loss_percent": "REAL",
        "potential_profit": "REAL",
        "potential_profit_usd": "REAL",
        "potential_profit_percent": "REAL",
        "potential_risk_reward_ratio": "REAL",
        "actual_close_price": "REAL",
        "actual_realized_pnl": "REAL",
        "actual_realized_pnl_usd": "REAL",
        "actual_realized_pnl_percent": "REAL",
        "actual_risk_reward_ratio": "REAL",
        "order_result": "TEXT",
    }

    # Trend surveys table schema
    TREND_COLUMNS = {
        "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
        "symbol": "TEXT NOT NULL",
        "harsi1w": "TEXT",
        "harsi3d": "TEXT",
        "harsi2d": "TEXT",
        "harsi1d": "TEXT",
        "harsi8h": "TEXT",
        "harsi4h": "TEXT",
        "harsi2h": "TEXT",
        "trend": "TEXT",
        "recommendation": "TEXT",
        "surveyed_at": "TEXT NOT NULL",
    }

    # Conversation records, one row per user
    CONVERSATION_COLUMNS = {
        "user_id": "INTEGER PRIMARY KEY",
        "step": "TEXT NOT NULL",
        "data": "TEXT NOT NULL DEFAULT '{}'",
        "created_at": "TEXT NOT NULL",
        "selected_order_id": "INTEGER",
        "version": "INTEGER NOT NULL DEFAULT 0",
    }

    INDEXES = [
        "CREATE INDEX IF NOT EXISTS idx_orders_user_created ON Orders(user_id, created_at)",
        "CREATE INDEX IF NOT EXISTS idx_trends_symbol ON Trends(symbol, surveyed_at)",
    ]


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class OrderModel:
    """Maps between Orders rows and StoredOrder envelopes"""

    METADATA_COLUMNS = ("id", "user_id", "created_at", "updated_at")

    @staticmethod
    def to_row(user_id: int, draft: OrderDraft, created_at: Optional[datetime] = None) -> Dict[str, Any]:
        row = {
            "user_id": user_id,
            "created_at": (created_at or datetime.now()).isoformat(),
        }
        row.update(draft.to_dict())
        return row

    @staticmethod
    def draft_columns(draft: OrderDraft) -> Dict[str, Any]:
        """Every draft column with its stored value, absent fields as NULL"""
        values = draft.to_dict()
        return {
            column: values.get(column)
            for column in DatabaseSchema.ORDER_COLUMNS
            if column not in OrderModel.METADATA_COLUMNS
        }

    @staticmethod
    def from_row(row) -> StoredOrder:
        data = dict(row)
        metadata = OrderMetadata(
            id=data["id"],
            user_id=data["user_id"],
            created_at=_parse_time(data["created_at"]),
            updated_at=_parse_time(data.get("updated_at")),
        )
        draft = OrderDraft.from_dict({
            key: value for key, value in data.items() if key not in OrderModel.METADATA_COLUMNS
        })
        return StoredOrder(metadata=metadata, draft=draft)


class TrendModel:
    """Maps between Trends rows and TrendRecord"""

    @staticmethod
    def to_row(record: TrendRecord) -> Dict[str, Any]:
        row = {
            "symbol": record.symbol.value,
            "trend": record.trend.value if record.trend else None,
            "recommendation": record.recommendation,
            "surveyed_at": record.surveyed_at.isoformat(),
        }
        for tf in ALL_TIMEFRAMES:
            state = record.reading(tf)
            row[tf.field_name] = state.value if state else None
        return row

    @staticmethod
    def from_row(row) -> TrendRecord:
        data = dict(row)
        readings = {
            tf: MarketState(data[tf.field_name]) for tf in ALL_TIMEFRAMES if data.get(tf.field_name)
        }
        return TrendRecord(
            id=data["id"],
            symbol=TradingSymbol(data["symbol"]),
            readings=readings,
            trend=MarketState(data["trend"]) if data.get("trend") else None,
            recommendation=data.get("recommendation"),
            surveyed_at=_parse_time(data["surveyed_at"]),
        )


class ConversationModel:
    """Maps between Conversations rows and ConversationRecord"""

    @staticmethod
    def to_row(record: ConversationRecord, version: int) -> Dict[str, Any]:
        return {
            "user_id": record.user_id,
            "step": record.step.value,
            "data": json.dumps(record.data.to_dict()),
            "created_at": record.created_at.isoformat(),
            "selected_order_id": record.selected_order_id,
            "version": version,
        }

    @staticmethod
    def from_row(row) -> ConversationRecord:
        data = dict(row)
        return ConversationRecord(
            user_id=data["user_id"],
            step=ConversationStep(data["step"]),
            data=OrderDraft.from_dict(json.loads(data["data"] or "{}")),
            created_at=_parse_time(data["created_at"]),
            selected_order_id=data.get("selected_order_id"),
            version=data["version"],
        )
