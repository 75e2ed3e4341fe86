"""
Tests for the SQLite order and trend repositories
"""

import sqlite3
from datetime import datetime

import pytest

from Database import DatabaseManager, DoMigrations
from Database.models import DatabaseSchema
from Database.repository.Repository import SQLiteRepository
from Journal.errors import StoreUnavailableError
from Journal.models import Direction, MarketState, OrderDraft, OrderResult, Timeframe, TradingSymbol
from Journal.risk_calculator import calculate_order_risk
from Journal.trend_survey import build_trend_record
from fixtures import make_trend


@pytest.fixture
def manager(db_path):
    manager = DatabaseManager(db_path)
    manager.migrate()
    return manager


@pytest.fixture
def order_repository(manager):
    return manager.get_order_repository()


@pytest.fixture
def trend_repository(manager):
    return manager.get_trend_repository()


def long_order(**changes):
    draft = OrderDraft(
        symbol=TradingSymbol.BTCUSDT,
        direction=Direction.LONG,
        harsi1d=MarketState.BULLISH,
        entry=100.0,
        stop_loss=90.0,
        take_profit=120.0,
        quantity=0.5,
        notes="Strong Buy 5M",
    )
    return calculate_order_risk(draft.copy(**changes))


class TestOrderRepository:

    def test_save_and_get_by_id(self, order_repository):
        draft = long_order()
        order_id = order_repository.save(7, draft)

        order = order_repository.get_by_id(order_id)
        assert order.metadata.id == order_id
        assert order.metadata.user_id == 7
        assert order.metadata.updated_at is None
        assert order.draft == draft
        assert order.is_open

    def test_missing_order(self, order_repository):
        assert order_repository.get_by_id(999) is None
        assert order_repository.update_close_price(999, 110.0) is None

    def test_update_close_price_recomputes(self, order_repository):
        order_id = order_repository.save(7, long_order())

        order = order_repository.update_close_price(order_id, 110.0)

        assert order.draft.actual_close_price == 110.0
        assert order.draft.actual_realized_pnl == pytest.approx(10.0)
        assert order.draft.actual_realized_pnl_usd == pytest.approx(5.0)
        assert order.draft.actual_risk_reward_ratio == pytest.approx(1.0)
        assert order.draft.order_result is OrderResult.WIN
        assert order.metadata.updated_at is not None
        assert not order.is_open
        assert order.draft.potential_risk_reward_ratio == pytest.approx(2.0)

    def test_open_orders_exclude_closed_ones(self, order_repository):
        first = order_repository.save(7, long_order(), created_at=datetime(2025, 1, 1))
        second = order_repository.save(7, long_order(), created_at=datetime(2025, 1, 2))
        closed = order_repository.save(7, long_order(), created_at=datetime(2025, 1, 3))
        order_repository.save(8, long_order())
        order_repository.update_close_price(closed, 85.0)

        open_ids = [order.metadata.id for order in order_repository.get_open_orders(7)]
        assert open_ids == [second, first]
        assert len(order_repository.get_open_orders(7, limit=1)) == 1

    def test_user_orders_newest_first(self, order_repository):
        older = order_repository.save(7, long_order(), created_at=datetime(2025, 1, 1))
        newer = order_repository.save(7, long_order(), created_at=datetime(2025, 2, 1))
        order_repository.save(8, long_order())

        assert [o.metadata.id for o in order_repository.get_user_orders(7)] == [newer, older]
        assert [o.metadata.id for o in order_repository.get_user_orders(7, limit=1)] == [newer]

    def test_date_range_is_end_exclusive(self, order_repository):
        order_repository.save(7, long_order(), created_at=datetime(2025, 1, 31, 23, 59))
        inside = order_repository.save(7, long_order(), created_at=datetime(2025, 2, 1))
        order_repository.save(7, long_order(), created_at=datetime(2025, 3, 1))

        orders = order_repository.get_user_orders_by_date_range(7, datetime(2025, 2, 1), datetime(2025, 3, 1))
        assert [o.metadata.id for o in orders] == [inside]


class TestTrendRepository:

    def test_latest_returns_newest_for_symbol(self, trend_repository):
        trend_repository.save(make_trend(
            readings={Timeframe.D1: MarketState.BULLISH}, surveyed_at=datetime(2025, 1, 1),
        ))
        newest = build_trend_record(TradingSymbol.BTCUSDT, {
            Timeframe.D1: MarketState.BEARISH,
            Timeframe.H8: MarketState.BEARISH,
            Timeframe.H2: MarketState.BULLISH,
        })
        newest.surveyed_at = datetime(2025, 1, 5)
        trend_repository.save(newest)
        trend_repository.save(make_trend(
            symbol=TradingSymbol.ETHUSDT, readings={Timeframe.D1: MarketState.BULLISH},
            surveyed_at=datetime(2025, 1, 9),
        ))

        latest = trend_repository.latest(TradingSymbol.BTCUSDT)
        assert latest.id == newest.id
        assert latest.readings == newest.readings
        assert latest.trend is MarketState.BEARISH
        assert latest.recommendation == newest.recommendation
        assert latest.surveyed_at == datetime(2025, 1, 5)

    def test_latest_accepts_plain_symbol(self, trend_repository):
        trend_repository.save(make_trend(symbol=TradingSymbol.XAUUSD))
        assert trend_repository.latest("XAUUSD").symbol is TradingSymbol.XAUUSD

    def test_latest_without_surveys(self, trend_repository):
        assert trend_repository.latest(TradingSymbol.ETHUSDT) is None


class TestDatabaseManager:

    def test_do_migrations_creates_schema(self, db_path):
        settings = type("StubSettings", (), {"database_path": db_path})()
        manager = DoMigrations(settings)

        assert manager.get_order_repository() is manager.get_order_repository()
        with sqlite3.connect(db_path) as conn:
            tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
        assert {
            DatabaseSchema.ORDERS_TABLE, DatabaseSchema.TRENDS_TABLE, DatabaseSchema.CONVERSATIONS_TABLE,
        } <= tables

    def test_migrate_is_repeatable(self, manager):
        manager.migrate()

    def test_sqlite_errors_become_store_unavailable(self, db_path):
        repository = SQLiteRepository(db_path, "MissingTable")
        with pytest.raises(StoreUnavailableError):
            repository.get_by_id(1)
