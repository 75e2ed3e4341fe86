"""
Risk calculations for journal orders

Derives the potential and actual risk fields of an order draft and
aggregates realized results into R (risk unit) statistics.

Sign convention: potential loss/profit and realized PnL are positive when
they favour the trader, whatever the direction. 1R is the originally risked
amount (potential_stop_loss).
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from .models import Direction, OrderDraft, OrderResult

# Results within +/- this many R count as breakeven
BREAKEVEN_BAND_R = 0.2


@dataclass
class RiskUnitStatistics:
    """Aggregated R results over closed orders"""
    total_r: float = 0.0
    total_profit_r: float = 0.0
    total_loss_r: float = 0.0
    total_orders: int = 0
    winning_orders: int = 0
    losing_orders: int = 0
    breakeven_orders: int = 0
    win_rate: float = 0.0


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _directional_move(direction: Optional[Direction], start: float, end: float) -> float:
    """Price move from start to end, positive when it favours the direction"""
    if direction is Direction.LONG:
        return end - start
    if direction is Direction.SHORT:
        return start - end
    return abs(end - start)


def classify_order_result(actual_risk_reward_ratio: Optional[float]) -> OrderResult:
    """Map a realized R multiple to win/loss/breakeven"""
    if actual_risk_reward_ratio is None:
        return OrderResult.IN_PROGRESS
    if -BREAKEVEN_BAND_R <= actual_risk_reward_ratio <= BREAKEVEN_BAND_R:
        return OrderResult.BREAKEVEN
    if actual_risk_reward_ratio > BREAKEVEN_BAND_R:
        return OrderResult.WIN
    return OrderResult.LOSS


def calculate_order_risk(draft: OrderDraft, close_price: Optional[float] = None) -> OrderDraft:
    """
    Return a copy of the draft with every derived field recomputed.

    Args:
        draft: Order with entry/stop_loss/take_profit/quantity/direction
        close_price: Price the order was closed at, if it is closed

    Returns:
        New OrderDraft; inputs are untouched, derived fields replaced
    """
    entry = draft.entry
    quantity = draft.quantity if _is_number(draft.quantity) else None
    direction = draft.direction

    potential_stop_loss = None
    potential_stop_loss_usd = None
    potential_stop_loss_percent = None
    if _is_number(entry) and _is_number(draft.stop_loss):
        # Positive when the stop sits on the losing side of entry
        potential_stop_loss = _directional_move(direction, draft.stop_loss, entry)
        if entry > 0:
            potential_stop_loss_percent = potential_stop_loss / entry * 100
        if quantity is not None:
            potential_stop_loss_usd = potential_stop_loss * quantity

    potential_profit = None
    potential_profit_usd = None
    potential_profit_percent = None
    if _is_number(entry) and _is_number(draft.take_profit):
        potential_profit = _directional_move(direction, entry, draft.take_profit)
        if entry > 0:
            potential_profit_percent = potential_profit / entry * 100
        if quantity is not None:
            potential_profit_usd = potential_profit * quantity

    potential_risk_reward_ratio = None
    if potential_stop_loss is not None and potential_stop_loss > 0 and potential_profit is not None:
        potential_risk_reward_ratio = potential_profit / potential_stop_loss

    actual_realized_pnl = None
    actual_realized_pnl_usd = None
    actual_realized_pnl_percent = None
    if _is_number(entry) and _is_number(close_price):
        actual_realized_pnl = _directional_move(direction, entry, close_price)
        if entry > 0:
            actual_realized_pnl_percent = actual_realized_pnl / entry * 100
        if quantity is not None:
            actual_realized_pnl_usd = actual_realized_pnl * quantity

    actual_risk_reward_ratio = None
    if actual_realized_pnl is not None and potential_stop_loss is not None and potential_stop_loss > 0:
        actual_risk_reward_ratio = actual_realized_pnl / potential_stop_loss

    return draft.copy(
        potential_stop_loss=potential_stop_loss,
        potential_stop_loss_usd=potential_stop_loss_usd,
        potential_stop_loss_percent=potential_stop_loss_percent,
        potential_profit=potential_profit,
        potential_profit_usd=potential_profit_usd,
        potential_profit_percent=potential_profit_percent,
        potential_risk_reward_ratio=potential_risk_reward_ratio,
        actual_close_price=close_price if _is_number(close_price) else None,
        actual_realized_pnl=actual_realized_pnl,
        actual_realized_pnl_usd=actual_realized_pnl_usd,
        actual_realized_pnl_percent=actual_realized_pnl_percent,
        actual_risk_reward_ratio=actual_risk_reward_ratio,
        order_result=classify_order_result(actual_risk_reward_ratio),
    )


def calculate_risk_unit_statistics(orders: Iterable[OrderDraft]) -> RiskUnitStatistics:
    """
    Aggregate R results.

    Breakeven orders are left out of total_r but their sign still counts
    towards total_profit_r or total_loss_r. Orders without an actual ratio
    count towards total_orders only.
    """
    stats = RiskUnitStatistics()
    for order in orders:
        stats.total_orders += 1
        r = order.actual_risk_reward_ratio
        if r is None:
            continue

        result = classify_order_result(r)
        if result is OrderResult.BREAKEVEN:
            stats.breakeven_orders += 1
            if r > 0:
                stats.total_profit_r += r
            elif r < 0:
                stats.total_loss_r += abs(r)
        elif result is OrderResult.WIN:
            stats.total_r += r
            stats.total_profit_r += r
            stats.winning_orders += 1
        else:
            stats.total_r += r
            stats.total_loss_r += abs(r)
            stats.losing_orders += 1

    if stats.total_orders > 0:
        stats.win_rate = stats.winning_orders / stats.total_orders * 100
    return stats
