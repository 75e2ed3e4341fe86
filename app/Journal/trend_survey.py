"""
Trend survey rules

A survey records one HARSI reading per timeframe for a symbol. The overall
trend is the majority of bullish against bearish readings; recommendations
come from the 1D/8H combination, which is also what the direction gate of
the order wizard checks.
"""

from typing import Dict, Optional

from .models import Direction, MarketState, Timeframe, TrendRecord

# The deciding pair for recommendations and the direction gate
GATE_TIMEFRAMES = (Timeframe.D1, Timeframe.H8)

_COMBO_RECOMMENDATIONS = {
    (MarketState.BEARISH, MarketState.BEARISH): (
        "🚨 CRITICAL WARNING\n"
        "HARSI 1D & 8H are both 🔴 Bearish.\n"
        "❗ Do not open orders against the trend in this phase."
    ),
    (MarketState.BEARISH, MarketState.BULLISH): (
        "🚨 CRITICAL WARNING\n"
        "HARSI 1D 🔴 Bearish but HARSI 8H 🟢 Bullish (diverging).\n"
        "❗ The higher timeframe is still falling while the lower one bounces, reversal risk is high.\n"
        "❗ Open at most 1 order and do not DCA.\n"
        "❗ Only consider DCA once both 1D and 8H turn Bullish."
    ),
    (MarketState.BULLISH, MarketState.BEARISH): (
        "🚨 CRITICAL WARNING\n"
        "HARSI 1D 🟢 Bullish but HARSI 8H 🔴 Bearish (diverging).\n"
        "❗ The higher timeframe rises while the lower one drops hard, stop hunts are likely.\n"
        "❗ Open at most 1 order and do not DCA.\n"
        "❗ Wait for the lower timeframe to confirm before adding size."
    ),
    (MarketState.BULLISH, MarketState.BULLISH): (
        "✅ POSITIVE SETUP\n"
        "HARSI 1D and 8H are both 🟢 Bullish, the uptrend is aligned.\n"
        "👍 LONG entries following the trend can be considered.\n"
        "🔹 DCA on reasonable pullbacks is possible, keep a clear Stop Loss."
    ),
}


def calculate_trend(readings: Dict[Timeframe, MarketState]) -> Optional[MarketState]:
    """Majority of bullish vs bearish readings; None on a tie or no readings"""
    values = [state for state in readings.values() if state is not None]
    if not values:
        return None

    bullish = sum(1 for state in values if state is MarketState.BULLISH)
    bearish = sum(1 for state in values if state is MarketState.BEARISH)
    if bullish > bearish:
        return MarketState.BULLISH
    if bearish > bullish:
        return MarketState.BEARISH
    return None


def build_recommendation(readings: Dict[Timeframe, MarketState]) -> Optional[str]:
    """Recommendation text for the 1D/8H combination, if one applies"""
    key = tuple(readings.get(tf) for tf in GATE_TIMEFRAMES)
    return _COMBO_RECOMMENDATIONS.get(key)


def build_trend_record(symbol, readings: Dict[Timeframe, MarketState]) -> TrendRecord:
    """Assemble a trend record from finished survey readings"""
    cleaned = {tf: state for tf, state in readings.items() if state is not None}
    return TrendRecord(
        symbol=symbol,
        readings=cleaned,
        trend=calculate_trend(cleaned),
        recommendation=build_recommendation(cleaned),
    )


def opposing_state(direction: Direction) -> MarketState:
    """The HARSI reading that runs against the given direction"""
    if direction is Direction.LONG:
        return MarketState.BEARISH
    if direction is Direction.SHORT:
        return MarketState.BULLISH
    raise ValueError(f"Unknown direction: {direction!r}")


def direction_contradicts_trend(direction: Direction, trend: Optional[TrendRecord]) -> bool:
    """True when both 1D and 8H readings oppose the chosen direction"""
    if trend is None:
        return False
    against = opposing_state(direction)
    return all(trend.reading(tf) is against for tf in GATE_TIMEFRAMES)
