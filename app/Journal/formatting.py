"""
Text formatting for journal messages

Rounding happens here and only here; stored values keep full precision.
"""

from datetime import datetime
from typing import List, Optional

from .models import ALL_TIMEFRAMES, MarketState, OrderDraft, OrderResult, StoredOrder, TrendRecord
from .risk_calculator import RiskUnitStatistics

NOT_AVAILABLE = "N/A"

HARSI_LABELS = {
    MarketState.BULLISH: "🟢 Bullish",
    MarketState.BEARISH: "🔴 Bearish",
    MarketState.NEUTRAL: "⚪ Neutral",
}

ORDER_RESULT_ICONS = {
    OrderResult.WIN: "✅",
    OrderResult.LOSS: "❌",
    OrderResult.BREAKEVEN: "⚪",
    OrderResult.IN_PROGRESS: "⏳",
}

HARSI_8H_BEARISH_WARNING = (
    "⚠️ RISK WARNING\n"
    "HARSI 8H is Bearish: the 8-hour trend points down and the Stop Loss is easier to hit.\n"
    "💡 Re-check the other timeframes and size the position carefully."
)


def safe_to_fixed(value: Optional[float], digits: int = 2) -> str:
    if value is None:
        return NOT_AVAILABLE
    return f"{value:.{digits}f}"


def format_value(value) -> str:
    if value is None:
        return NOT_AVAILABLE
    if hasattr(value, "value"):
        return str(value.value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_risk_unit(r: float) -> str:
    """Render an R multiple as +1.50R / -2.00R / 0R"""
    if r > 0:
        return f"+{r:.2f}R"
    if r < 0:
        return f"{r:.2f}R"
    return "0R"


def format_harsi_value(state: Optional[MarketState]) -> str:
    return HARSI_LABELS.get(state, NOT_AVAILABLE)


def split_notes(notes: Optional[str]) -> List[str]:
    """Split a comma-joined notes string into trimmed, non-empty labels"""
    if not notes:
        return []
    return [note.strip() for note in notes.split(",") if note.strip()]


def format_notes(notes: Optional[str]) -> str:
    labels = split_notes(notes)
    if not labels:
        return NOT_AVAILABLE
    return "\n".join(f"  • {label}" for label in labels)


def format_harsi_lines(draft: OrderDraft) -> List[str]:
    return [f"HARSI {tf.label}: {format_harsi_value(draft.get_harsi(tf))}" for tf in ALL_TIMEFRAMES]


def format_trend_summary(trend: Optional[TrendRecord]) -> str:
    """Latest survey block shown when a symbol is chosen"""
    if trend is None:
        return '📊 Latest survey:\n• No data yet.\nPress "New survey" to record one.'

    lines = [
        "📊 Latest survey:",
        f"• Symbol: {format_value(trend.symbol)}",
        f"• Surveyed: {trend.surveyed_at.strftime('%Y-%m-%d %H:%M')}",
        f"• Trend: {format_harsi_value(trend.trend) if trend.trend else 'Unclear'}",
    ]
    lines.extend(f"• HARSI {tf.label}: {format_harsi_value(trend.reading(tf))}" for tf in ALL_TIMEFRAMES)
    if trend.recommendation:
        lines.append(f"\n📝 Recommendation:\n{trend.recommendation}")
    return "\n".join(lines)


def _risk_blocks(draft: OrderDraft) -> List[str]:
    blocks = []
    if draft.potential_stop_loss is not None:
        blocks.append(
            "📉 Risk if Stop Loss is hit:\n"
            f"   • Loss: {safe_to_fixed(draft.potential_stop_loss, 4)} "
            f"({safe_to_fixed(draft.potential_stop_loss_percent, 2)}%)\n"
            f"   • Loss USD: ${safe_to_fixed(draft.potential_stop_loss_usd, 2)}"
        )
    if draft.potential_profit is not None:
        blocks.append(
            "📈 Profit if Take Profit is hit:\n"
            f"   • Move: {safe_to_fixed(draft.potential_profit, 4)} "
            f"({safe_to_fixed(draft.potential_profit_percent, 2)}%)\n"
            f"   • Profit USD: ${safe_to_fixed(draft.potential_profit_usd, 2)}"
        )
    if draft.potential_risk_reward_ratio is not None:
        blocks.append(f"⚖️ Potential Risk/Reward: 1:{safe_to_fixed(draft.potential_risk_reward_ratio, 2)}")
    if draft.actual_risk_reward_ratio is not None:
        blocks.append(format_actual_result(draft))
    return blocks


def format_actual_result(draft: OrderDraft) -> str:
    ratio = draft.actual_risk_reward_ratio
    if ratio is None:
        return "R not available (no Stop Loss)"
    if ratio > 0:
        direction_text = f"(Profit {safe_to_fixed(ratio * 100, 1)}% of risk)"
    else:
        direction_text = f"(Loss {safe_to_fixed(abs(ratio * 100), 1)}% of risk)"
    pnl = draft.actual_realized_pnl
    pnl_usd = draft.actual_realized_pnl_usd
    return "\n".join([
        f"📊 Actual result: {format_risk_unit(ratio)}",
        f"   {direction_text}",
        f"   • 1R = {safe_to_fixed(draft.potential_stop_loss, 4)}",
        f"   • Actual PnL: {'+' if pnl and pnl > 0 else ''}{safe_to_fixed(pnl, 4)}",
        f"   • Actual PnL USD: {'+' if pnl_usd and pnl_usd > 0 else ''}${safe_to_fixed(pnl_usd, 2)}",
    ])


def build_order_summary(draft: OrderDraft, now: Optional[datetime] = None) -> str:
    """Completion message for a finalized order"""
    now = now or datetime.now()
    lines = [
        "✅ Order recorded!",
        "",
        "📋 Order:",
        f"Symbol: {format_value(draft.symbol)}",
        f"Direction: {format_value(draft.direction)}",
        *format_harsi_lines(draft),
        f"Entry: {format_value(draft.entry)}",
        f"Stop Loss: {format_value(draft.stop_loss)}",
        f"Take Profit: {format_value(draft.take_profit)}",
        f"Quantity: {format_value(draft.quantity)}",
    ]
    if draft.actual_close_price is not None:
        lines.append(f"Close Price: {safe_to_fixed(draft.actual_close_price, 2)}")

    blocks = _risk_blocks(draft)
    if blocks:
        lines.append("")
        lines.append("\n\n".join(blocks))

    lines.extend(["", "Notes:", format_notes(draft.notes), "", f"⏰ Time: {now.strftime('%Y-%m-%d %H:%M')}"])
    if draft.harsi8h is MarketState.BEARISH:
        lines.extend(["", HARSI_8H_BEARISH_WARNING])
    return "\n".join(lines).strip()


def build_close_summary(order: StoredOrder) -> str:
    """Result message after a close price was recorded"""
    draft = order.draft
    return "\n".join([
        "✅ Order updated with Close Price!",
        "",
        "📋 Order:",
        f"Symbol: {format_value(draft.symbol)}",
        f"Direction: {format_value(draft.direction)}",
        f"Entry: {format_value(draft.entry)}",
        f"Stop Loss: {format_value(draft.stop_loss)}",
        f"Close Price: {format_value(draft.actual_close_price)}",
        f"Result: {ORDER_RESULT_ICONS[draft.order_result or OrderResult.IN_PROGRESS]} "
        f"{(draft.order_result or OrderResult.IN_PROGRESS).value}",
        "",
        format_actual_result(draft),
    ])


def build_preview(draft: OrderDraft, step_name: str) -> str:
    """In-progress draft shown by /preview"""
    return "\n".join([
        "📋 Current order:",
        "",
        f"Symbol: {format_value(draft.symbol)}",
        f"Direction: {format_value(draft.direction)}",
        *format_harsi_lines(draft),
        f"Entry: {format_value(draft.entry)}",
        f"Stop Loss: {format_value(draft.stop_loss)}",
        f"Take Profit: {format_value(draft.take_profit)}",
        f"Quantity: {format_value(draft.quantity)}",
        "Notes:",
        format_notes(draft.notes),
        "",
        f"Current step: {step_name}",
    ])


def format_order_line(index: int, order: StoredOrder) -> str:
    draft = order.draft
    icon = ORDER_RESULT_ICONS[draft.order_result or OrderResult.IN_PROGRESS]
    r_text = f" {format_risk_unit(draft.actual_risk_reward_ratio)}" if draft.actual_risk_reward_ratio is not None else ""
    return (
        f"{index}. {icon} {format_value(draft.symbol)} {format_value(draft.direction)} "
        f"- Entry: {format_value(draft.entry)}{r_text} - {order.metadata.created_at.strftime('%Y-%m-%d')}"
    )


def format_statistics(stats: RiskUnitStatistics, period_label: str) -> str:
    """R statistics message"""
    if stats.total_r > 0:
        verdict = "✅ (Profit)"
    elif stats.total_r < 0:
        verdict = "❌ (Loss)"
    else:
        verdict = "⚪ (Breakeven)"
    return "\n".join([
        "📊 R statistics (Risk Unit)",
        f"📅 Period: {period_label}",
        "",
        "📈 Summary:",
        f"   • Total R: {format_risk_unit(stats.total_r)} {verdict}",
        "",
        "📊 Details:",
        f"   • Profit R: +{stats.total_profit_r:.2f}R",
        f"   • Loss R: {'-' if stats.total_loss_r > 0 else ''}{stats.total_loss_r:.2f}R",
        f"   • Winning orders: {stats.winning_orders}",
        f"   • Losing orders: {stats.losing_orders}",
        f"   • Breakeven orders: {stats.breakeven_orders}",
        f"   • Total orders: {stats.total_orders}",
        f"   • Win rate: {stats.win_rate:.1f}%",
    ])
