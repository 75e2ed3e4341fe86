"""
Prompt builders and selection tokens

Options carry short "kind:value" tokens that come back as the selection of
a UserEvent. Telegram limits callback data to 64 bytes.
"""

import math
from typing import Iterable, List, Optional, Sequence, Tuple

from .models import (
    Direction, MarketState, Prompt, PromptOption, StoredOrder, TradingSymbol,
)
from .formatting import format_order_line, format_value


class Tokens:
    """Selection token kinds"""
    SYMBOL = "sym"
    DIRECTION = "dir"
    HARSI = "harsi"
    STOP_LOSS = "sl"
    TAKE_PROFIT = "tp"
    QUANTITY = "qty"
    NOTE = "note"
    SURVEY = "survey"
    CLOSE = "close"
    STATS = "stats"
    SKIP = "skip"
    CANCEL = "cancel"
    NEW_ORDER = "neworder"

    NOTE_ADD = "add"
    NOTE_CLEAR = "clear"
    NOTE_DONE = "done"
    NOTE_SKIP = "skip"


def make_token(kind: str, *values) -> str:
    return ":".join([kind, *[str(v) for v in values]])


def parse_token(token: str) -> Tuple[str, str]:
    """Split "kind:value" into its parts; value may contain further colons"""
    kind, _, value = token.partition(":")
    return kind, value


STOP_LOSS_OFFSETS = {
    TradingSymbol.XAUUSD: [3, 4, 5, 6],
}
DEFAULT_STOP_LOSS_OFFSETS = [200, 300, 400, 500]
TAKE_PROFIT_MULTIPLIERS = [1, 1.5, 2, 3]

DEFAULT_NOTE_PRESETS = [
    "Strong Buy 5M",
    "Strong Buy 15M",
    "Medium Buy 5M",
    "Medium Buy 15M",
    "Very Strong Buy 5M",
    "Very Strong Buy 15M",
]
DEFAULT_QUANTITY_PRESETS = [0.01, 0.02, 0.1, 0.2]

STATS_PERIODS = {
    "all": "All time",
    "this_month": "This month",
    "last_month": "Last month",
    "this_week": "This week",
    "last_week": "Last week",
}


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _rows(options: Sequence[PromptOption], per_row: int = 2) -> List[List[PromptOption]]:
    return [list(options[i:i + per_row]) for i in range(0, len(options), per_row)]


def round_stop_loss(value: float, symbol: Optional[TradingSymbol]) -> int:
    if symbol is TradingSymbol.BTCUSDT:
        return int(math.floor(value / 100) * 100)
    return _round_half_up(value)


def symbol_prompt(text: str) -> Prompt:
    options = [PromptOption(f"/{s.value}", make_token(Tokens.SYMBOL, s.value)) for s in TradingSymbol]
    return Prompt(text=text, options=[options])


def survey_option(symbol: Optional[TradingSymbol]) -> PromptOption:
    if symbol is None:
        return PromptOption("🔄 New survey", Tokens.SURVEY)
    short = symbol.value.replace("USDT", "").replace("USD", "")
    return PromptOption(f"🔄 New survey {short}", make_token(Tokens.SURVEY, symbol.value))


def direction_options(symbol: Optional[TradingSymbol]) -> List[List[PromptOption]]:
    return [
        [PromptOption(f"/{d.value}", make_token(Tokens.DIRECTION, d.value)) for d in Direction],
        [survey_option(symbol)],
    ]


def harsi_options() -> List[List[PromptOption]]:
    return [
        [
            PromptOption("📈 Bullish", make_token(Tokens.HARSI, MarketState.BULLISH.value)),
            PromptOption("📉 Bearish", make_token(Tokens.HARSI, MarketState.BEARISH.value)),
        ],
        [
            PromptOption("⚪ Neutral", make_token(Tokens.HARSI, MarketState.NEUTRAL.value)),
            PromptOption("⏭️ Skip", make_token(Tokens.HARSI, Tokens.SKIP)),
        ],
    ]


def stop_loss_options(
    entry: float,
    direction: Optional[Direction],
    symbol: Optional[TradingSymbol],
    recent_low: Optional[float] = None,
) -> List[List[PromptOption]]:
    """Suggested stops at fixed offsets from entry, plus the recent low"""
    is_long = direction is not Direction.SHORT
    offsets = STOP_LOSS_OFFSETS.get(symbol, DEFAULT_STOP_LOSS_OFFSETS)
    buttons = []
    for offset in offsets:
        raw = entry - offset if is_long else entry + offset
        rounded = round_stop_loss(raw, symbol)
        if rounded <= 0:
            continue
        buttons.append(PromptOption(f"SL {offset} ({rounded})", make_token(Tokens.STOP_LOSS, rounded)))

    rows = _rows(buttons)
    if recent_low is not None and recent_low > 0:
        rounded_low = round_stop_loss(recent_low, symbol)
        rows.append([PromptOption(f"Recent low ({rounded_low})", make_token(Tokens.STOP_LOSS, rounded_low))])
    return rows


def take_profit_options(
    entry: Optional[float],
    stop_loss: Optional[float],
    direction: Optional[Direction],
) -> List[List[PromptOption]]:
    """1R/1.5R/2R/3R targets; empty when the risk per unit is not positive"""
    if not entry or not stop_loss or direction is None:
        return []
    is_long = direction is Direction.LONG
    risk_per_unit = entry - stop_loss if is_long else stop_loss - entry
    if not math.isfinite(risk_per_unit) or risk_per_unit <= 0:
        return []

    buttons = []
    for multiplier in TAKE_PROFIT_MULTIPLIERS:
        target = entry + risk_per_unit * multiplier if is_long else entry - risk_per_unit * multiplier
        rounded = _round_half_up(target)
        buttons.append(PromptOption(f"TP {multiplier:g}R ({rounded})", make_token(Tokens.TAKE_PROFIT, rounded)))
    rows = _rows(buttons)
    rows.append([PromptOption("⏭️ Skip", Tokens.SKIP)])
    return rows


def quantity_options(presets: Iterable[float]) -> List[List[PromptOption]]:
    buttons = [PromptOption(format_value(float(q)), make_token(Tokens.QUANTITY, format_value(float(q)))) for q in presets]
    rows = _rows(buttons)
    rows.append([PromptOption("/skip", Tokens.SKIP)])
    return rows


def notes_options(presets: Iterable[str], current_notes: List[str]) -> List[List[PromptOption]]:
    buttons = [PromptOption(label, make_token(Tokens.NOTE, Tokens.NOTE_ADD, label)) for label in presets]
    rows = _rows(buttons)
    controls = []
    if current_notes:
        controls.append(PromptOption("🗑️ Clear", make_token(Tokens.NOTE, Tokens.NOTE_CLEAR)))
    controls.append(PromptOption("✅ Done", make_token(Tokens.NOTE, Tokens.NOTE_DONE)))
    controls.append(PromptOption("⏭️ Skip", make_token(Tokens.NOTE, Tokens.NOTE_SKIP)))
    rows.append(controls)
    return rows


def open_orders_prompt(orders: List[StoredOrder]) -> Prompt:
    if not orders:
        return Prompt(text="📋 No open orders to update.")
    lines = ["📋 Choose the order to record a close price for:", ""]
    options = []
    for index, order in enumerate(orders, 1):
        lines.append(format_order_line(index, order))
        draft = order.draft
        options.append([PromptOption(
            f"{index}. {format_value(draft.symbol)} {format_value(draft.direction)} "
            f"- {order.metadata.created_at.strftime('%Y-%m-%d')}",
            make_token(Tokens.CLOSE, order.metadata.id),
        )])
    return Prompt(text="\n".join(lines), options=options)


def stats_period_options() -> List[List[PromptOption]]:
    buttons = [PromptOption(label, make_token(Tokens.STATS, key)) for key, label in STATS_PERIODS.items()]
    return _rows(buttons)
