"""
Tests for prompt builders, selection tokens and message formatting
"""

from datetime import datetime

import pytest

from Journal.formatting import (
    NOT_AVAILABLE, build_close_summary, build_order_summary, format_notes, format_risk_unit,
    format_statistics, format_trend_summary, format_value, safe_to_fixed, split_notes,
)
from Journal.models import (
    Direction, MarketState, OrderDraft, OrderMetadata, StoredOrder, Timeframe, TradingSymbol,
)
from Journal.prompts import (
    make_token, notes_options, open_orders_prompt, parse_token, quantity_options, round_stop_loss,
    stop_loss_options, take_profit_options,
)
from Journal.risk_calculator import calculate_order_risk, calculate_risk_unit_statistics
from fixtures import make_trend


def tokens(rows):
    return [option.token for row in rows for option in row]


class TestTokens:

    def test_make_and_parse(self):
        assert make_token("sl", 95000) == "sl:95000"
        assert parse_token("note:add:Strong Buy 5M") == ("note", "add:Strong Buy 5M")
        assert parse_token("skip") == ("skip", "")

    def test_tokens_fit_callback_limit(self):
        rows = notes_options(["Very Strong Buy 15M"], ["x"]) + stop_loss_options(100000, Direction.LONG, None, 99000)
        assert all(len(token.encode()) <= 64 for token in tokens(rows))


class TestStopLossOptions:

    def test_default_offsets_below_entry_for_long(self):
        assert tokens(stop_loss_options(3000.4, Direction.LONG, TradingSymbol.ETHUSDT)) == [
            "sl:2800", "sl:2700", "sl:2600", "sl:2500",
        ]

    def test_xauusd_offsets_above_entry_for_short(self):
        assert tokens(stop_loss_options(2650.4, Direction.SHORT, TradingSymbol.XAUUSD)) == [
            "sl:2653", "sl:2654", "sl:2655", "sl:2656",
        ]

    def test_btc_is_floored_to_the_hundred(self):
        assert round_stop_loss(97750.0, TradingSymbol.BTCUSDT) == 97700
        assert round_stop_loss(97750.0, TradingSymbol.ETHUSDT) == 97750
        assert round_stop_loss(2.5, TradingSymbol.XAUUSD) == 3

    def test_no_suggestions_at_or_below_zero(self):
        assert tokens(stop_loss_options(300.0, Direction.LONG, TradingSymbol.BTCUSDT)) == ["sl:100"]
        assert stop_loss_options(150.0, Direction.LONG, TradingSymbol.ETHUSDT) == []

    def test_recent_low_row(self):
        rows = stop_loss_options(3000.0, Direction.LONG, TradingSymbol.ETHUSDT, recent_low=2911.6)
        assert rows[-1][0].token == "sl:2912"
        assert "Recent low" in rows[-1][0].label


class TestTakeProfitOptions:

    def test_targets_for_short(self):
        rows = take_profit_options(100.0, 110.0, Direction.SHORT)
        assert tokens(rows) == ["tp:90", "tp:85", "tp:80", "tp:70", "skip"]
        assert rows[0][0].label == "TP 1R (90)"
        assert rows[0][1].label == "TP 1.5R (85)"

    @pytest.mark.parametrize("entry,stop_loss,direction", [
        (100.0, 110.0, Direction.LONG),
        (100.0, 90.0, Direction.SHORT),
        (100.0, 100.0, Direction.LONG),
        (100.0, None, Direction.LONG),
        (100.0, 90.0, None),
    ])
    def test_no_targets_without_positive_risk(self, entry, stop_loss, direction):
        assert take_profit_options(entry, stop_loss, direction) == []


class TestOtherOptions:

    def test_quantity_presets_and_skip(self):
        assert tokens(quantity_options([0.01, 1])) == ["qty:0.01", "qty:1", "skip"]

    def test_clear_only_with_notes(self):
        assert "note:clear" not in tokens(notes_options(["A"], []))
        assert tokens(notes_options(["A"], ["A"])) == ["note:add:A", "note:clear", "note:done", "note:skip"]

    def test_open_orders_prompt(self):
        order = StoredOrder(
            metadata=OrderMetadata(id=12, user_id=1, created_at=datetime(2025, 4, 2)),
            draft=OrderDraft(symbol=TradingSymbol.ETHUSDT, direction=Direction.SHORT, entry=3000.0),
        )
        prompt = open_orders_prompt([order])
        assert tokens(prompt.options) == ["close:12"]
        assert prompt.options[0][0].label == "1. ETHUSDT SHORT - 2025-04-02"
        assert "⏳ ETHUSDT SHORT - Entry: 3000 - 2025-04-02" in prompt.text


class TestFormatting:

    def test_values(self):
        assert format_value(None) == NOT_AVAILABLE
        assert format_value(100.0) == "100"
        assert format_value(0.25) == "0.25"
        assert format_value(TradingSymbol.BTCUSDT) == "BTCUSDT"
        assert safe_to_fixed(None) == NOT_AVAILABLE
        assert safe_to_fixed(1.23456, 4) == "1.2346"

    @pytest.mark.parametrize("r,expected", [(1.5, "+1.50R"), (-2.0, "-2.00R"), (0.0, "0R")])
    def test_format_risk_unit(self, r, expected):
        assert format_risk_unit(r) == expected

    def test_notes(self):
        assert split_notes(" A , ,B ") == ["A", "B"]
        assert format_notes(None) == NOT_AVAILABLE
        assert format_notes("A, B") == "  • A\n  • B"

    def test_order_summary(self):
        draft = calculate_order_risk(OrderDraft(
            symbol=TradingSymbol.BTCUSDT, direction=Direction.LONG, harsi1d=MarketState.BULLISH,
            entry=100.0, stop_loss=90.0, take_profit=130.0,
        ))
        text = build_order_summary(draft, now=datetime(2025, 5, 1, 8, 30))
        assert "HARSI 1D: 🟢 Bullish" in text
        assert "HARSI 8H: N/A" in text
        assert "Potential Risk/Reward: 1:3.00" in text
        assert "Loss USD: $N/A" in text
        assert "⏰ Time: 2025-05-01 08:30" in text
        assert "RISK WARNING" not in text

    def test_close_summary(self):
        draft = calculate_order_risk(
            OrderDraft(symbol=TradingSymbol.BTCUSDT, direction=Direction.LONG, entry=100.0, stop_loss=90.0, quantity=2.0),
            close_price=85.0,
        )
        order = StoredOrder(OrderMetadata(id=3, user_id=1, created_at=datetime(2025, 5, 1)), draft)
        text = build_close_summary(order)
        assert "Result: ❌ loss" in text
        assert "📊 Actual result: -1.50R" in text
        assert "(Loss 150.0% of risk)" in text
        assert "Actual PnL USD: $-30.00" in text

    def test_trend_summary(self):
        assert "No data yet" in format_trend_summary(None)
        text = format_trend_summary(make_trend(readings={Timeframe.H8: MarketState.BEARISH}))
        assert "• Surveyed: 2025-01-01 12:00" in text
        assert "• Trend: Unclear" in text
        assert "• HARSI 8H: 🔴 Bearish" in text

    def test_statistics_message(self):
        orders = [
            calculate_order_risk(OrderDraft(direction=Direction.LONG, entry=100.0, stop_loss=90.0), close_price=120.0),
        ]
        text = format_statistics(calculate_risk_unit_statistics(orders), "All time")
        assert "Total R: +2.00R ✅ (Profit)" in text
        assert "Loss R: 0.00R" in text
        assert "Win rate: 100.0%" in text
