"""
Order wizard state machine

Walks a user through symbol, direction, HARSI readings, entry, stop loss,
take profit, quantity and notes, persisting the conversation record after
every accepted input. Also runs the close-price flow for stored orders and
the trend survey that unblocks the direction gate.

Every public method returns a WizardResult carrying exactly one Prompt.
Collaborator failures are logged and reported through the result, never
raised to the caller.
"""

import math
import re
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from loguru import logger

from .errors import JournalError, StaleStateError
from .formatting import (
    build_close_summary, build_order_summary, build_preview, format_notes,
    format_order_line, format_statistics, format_trend_summary, format_value, split_notes,
)
from .models import (
    ALL_TIMEFRAMES, HARSI_STEPS, STEP_TIMEFRAMES, SURVEY_STEPS, ConversationRecord,
    ConversationStep, Direction, KeyboardKind, MarketState, OrderDraft, OrderMetadata,
    Prompt, PromptOption, StoredOrder, Timeframe, TradingSymbol, TrendRecord, UserEvent,
    WizardResult, WizardStatus,
)
from .prompts import (
    DEFAULT_NOTE_PRESETS, DEFAULT_QUANTITY_PRESETS, STATS_PERIODS, Tokens, direction_options,
    harsi_options, make_token, notes_options, open_orders_prompt, parse_token, quantity_options,
    stats_period_options, stop_loss_options, survey_option, symbol_prompt, take_profit_options,
)
from .risk_calculator import calculate_order_risk, calculate_risk_unit_statistics
from .trend_survey import build_trend_record, direction_contradicts_trend

DEFAULT_HARSI_TIMEFRAMES = [Timeframe.D1, Timeframe.H8, Timeframe.H4]
OPEN_ORDERS_LIMIT = 10
RECENT_ORDERS_LIMIT = 10

SKIP_WORDS = ("skip",)
CANCEL_WORDS = ("cancel", "cancelorder")

STALE_TEXT = "⚠️ State changed, please retry."
STORAGE_FAILED_TEXT = "❌ Storage is unavailable right now, please try again."
NO_SESSION_TEXT = "ℹ️ No active order. Send /neworder to start one."

NUMBER_PATTERN = re.compile(r"[+]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def normalize_command(text: Optional[str]) -> str:
    """Strip whitespace, a leading slash and a trailing @botname suffix"""
    if not text:
        return ""
    value = text.strip()
    if value.startswith("/"):
        value = value[1:]
    return value.split("@", 1)[0].strip()


def parse_positive_number(text: Optional[str]) -> Optional[float]:
    """Parse a strictly positive finite number, None when invalid"""
    value = normalize_command(text)
    if not NUMBER_PATTERN.fullmatch(value):
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return number


def parse_symbol(text: Optional[str]) -> Optional[TradingSymbol]:
    value = normalize_command(text).upper()
    try:
        return TradingSymbol(value)
    except ValueError:
        return None


def parse_direction(text: Optional[str]) -> Optional[Direction]:
    value = normalize_command(text).upper()
    try:
        return Direction(value)
    except ValueError:
        return None


def format_price_hint(price: float) -> str:
    if price >= 1000:
        return str(int(math.floor(price + 0.5)))
    return f"{price:.1f}"


def period_bounds(period: str, now: Optional[datetime] = None) -> Tuple[Optional[datetime], Optional[datetime]]:
    """
    Date range for a statistics period.

    Returns (start, end) with end exclusive; (None, None) means all time.
    Raises ValueError for an unknown period.
    """
    now = now or datetime.now()
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if period == "all":
        return None, None
    if period == "this_month":
        return today.replace(day=1), now
    if period == "last_month":
        this_month = today.replace(day=1)
        last_month = (this_month - timedelta(days=1)).replace(day=1)
        return last_month, this_month
    if period == "this_week":
        return today - timedelta(days=today.weekday()), now
    if period == "last_week":
        this_week = today - timedelta(days=today.weekday())
        return this_week - timedelta(days=7), this_week
    raise ValueError(f"Unknown statistics period: {period}")


class OrderWizard:
    """
    Conversation state machine for journal orders.

    Collaborators:
        store: conversation store (get / put / delete, versioned put)
        order_repository: save / get_by_id / update_close_price / listings
        trend_repository: latest(symbol) / save(record)
        market_data: optional price provider for prompt hints
    """

    def __init__(
        self,
        store,
        order_repository,
        trend_repository,
        market_data=None,
        harsi_timeframes: Optional[List] = None,
        quantity_presets: Optional[List[float]] = None,
        note_presets: Optional[List[str]] = None,
    ):
        self.store = store
        self.order_repository = order_repository
        self.trend_repository = trend_repository
        self.market_data = market_data
        self.harsi_timeframes = [
            Timeframe(tf) for tf in (DEFAULT_HARSI_TIMEFRAMES if harsi_timeframes is None else harsi_timeframes)
        ]
        self.quantity_presets = list(quantity_presets or DEFAULT_QUANTITY_PRESETS)
        self.note_presets = list(note_presets or DEFAULT_NOTE_PRESETS)

        # Asked timeframes keep the fixed largest-to-smallest order
        asked = [tf for tf in ALL_TIMEFRAMES if tf in self.harsi_timeframes]
        self.order_steps = [
            ConversationStep.WAITING_SYMBOL,
            ConversationStep.WAITING_DIRECTION,
            *[HARSI_STEPS[tf] for tf in asked],
            ConversationStep.WAITING_ENTRY,
            ConversationStep.WAITING_STOP_LOSS,
            ConversationStep.WAITING_TAKE_PROFIT,
            ConversationStep.WAITING_QUANTITY,
            ConversationStep.WAITING_NOTES,
        ]
        self.survey_steps = [SURVEY_STEPS[tf] for tf in ALL_TIMEFRAMES]

        self._handlers: Dict[ConversationStep, Callable[[ConversationRecord, UserEvent], WizardResult]] = {
            ConversationStep.WAITING_SYMBOL: self._handle_symbol,
            ConversationStep.WAITING_DIRECTION: self._handle_direction,
            ConversationStep.WAITING_ENTRY: self._handle_entry,
            ConversationStep.WAITING_STOP_LOSS: self._handle_stop_loss,
            ConversationStep.WAITING_TAKE_PROFIT: self._handle_take_profit,
            ConversationStep.WAITING_QUANTITY: self._handle_quantity,
            ConversationStep.WAITING_NOTES: self._handle_notes,
            ConversationStep.WAITING_CLOSE_PRICE: self._handle_close_price,
            ConversationStep.COMPLETED: self._handle_finished,
            **{step: self._handle_harsi for step in HARSI_STEPS.values()},
            **{step: self._handle_survey for step in SURVEY_STEPS.values()},
        }

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def start(self, user_id: int) -> WizardResult:
        """Open a fresh order session, replacing any existing one"""
        record = ConversationRecord(user_id=user_id, step=ConversationStep.WAITING_SYMBOL)
        return self._guard(user_id, lambda: self._open_session(record))

    def handle(self, event: UserEvent) -> WizardResult:
        """Feed one user event into the state machine"""
        return self._guard(event.user_id, lambda: self._dispatch(event))

    def cancel(self, user_id: int) -> WizardResult:
        return self._guard(user_id, lambda: self._cancel(user_id))

    def preview(self, user_id: int) -> WizardResult:
        """Show the in-progress draft without changing anything"""
        def run():
            record = self.store.get(user_id)
            if record is None:
                return self._no_session()
            text = build_preview(record.data, record.step.value)
            return WizardResult(WizardStatus.SHOWN, Prompt(text=text), step=record.step)
        return self._guard(user_id, run)

    def list_open_orders(self, user_id: int) -> WizardResult:
        """Prompt with the newest open orders as close candidates"""
        def run():
            orders = self.order_repository.get_open_orders(user_id, limit=OPEN_ORDERS_LIMIT)
            return WizardResult(WizardStatus.SHOWN, open_orders_prompt(orders))
        return self._guard(user_id, run)

    def start_close(self, user_id: int, order_id: int) -> WizardResult:
        """Open a close-price session for one of the user's orders"""
        def run():
            order = self.order_repository.get_by_id(order_id)
            if order is None or order.metadata.user_id != user_id:
                logger.info(f"User {user_id} asked to close unknown order {order_id}")
                return WizardResult(WizardStatus.REJECTED, Prompt(text=f"❌ Order #{order_id} not found."))
            record = ConversationRecord(
                user_id=user_id,
                step=ConversationStep.WAITING_CLOSE_PRICE,
                selected_order_id=order_id,
            )
            self.store.put(record, force=True)
            logger.info(f"User {user_id}: close session opened for order {order_id}")
            return WizardResult(WizardStatus.STARTED, self._close_price_prompt(order), step=record.step)
        return self._guard(user_id, run)

    def start_survey(self, user_id: int, symbol=None) -> WizardResult:
        """Open a trend survey session for a symbol, replacing any existing one"""
        parsed = symbol if isinstance(symbol, TradingSymbol) else parse_symbol(symbol)
        if parsed is None:
            options = [[
                PromptOption(s.value, make_token(Tokens.SURVEY, s.value)) for s in TradingSymbol
            ]]
            return WizardResult(WizardStatus.REJECTED, Prompt(text="📊 Choose the symbol to survey:", options=options))

        record = ConversationRecord(
            user_id=user_id,
            step=self.survey_steps[0],
            data=OrderDraft(symbol=parsed),
        )
        return self._guard(user_id, lambda: self._open_session(record))

    def statistics(self, user_id: int, period: str = "all", now: Optional[datetime] = None) -> WizardResult:
        """R statistics over the user's closed orders for a period"""
        if period not in STATS_PERIODS:
            return WizardResult(
                WizardStatus.REJECTED,
                Prompt(text="📊 Choose a period:", options=stats_period_options()),
            )

        def run():
            start, end = period_bounds(period, now)
            if start is None:
                orders = self.order_repository.get_user_orders(user_id)
            else:
                orders = self.order_repository.get_user_orders_by_date_range(user_id, start, end)
            closed = [order.draft for order in orders if not order.is_open]
            stats = calculate_risk_unit_statistics(closed)
            text = format_statistics(stats, STATS_PERIODS[period])
            return WizardResult(WizardStatus.SHOWN, Prompt(text=text, options=stats_period_options()))
        return self._guard(user_id, run)

    def recent_orders(self, user_id: int, limit: int = RECENT_ORDERS_LIMIT) -> WizardResult:
        def run():
            orders = self.order_repository.get_user_orders(user_id, limit=limit)
            if not orders:
                return WizardResult(WizardStatus.SHOWN, Prompt(text="📋 No orders recorded yet."))
            lines = [f"📋 Last {len(orders)} orders:", ""]
            lines.extend(format_order_line(index, order) for index, order in enumerate(orders, 1))
            return WizardResult(WizardStatus.SHOWN, Prompt(text="\n".join(lines)))
        return self._guard(user_id, run)

    def trend_overview(self, symbol=None) -> WizardResult:
        """Latest survey for one symbol, or for every symbol when none is given"""
        parsed = symbol if isinstance(symbol, TradingSymbol) else parse_symbol(symbol)
        symbols = [parsed] if parsed else list(TradingSymbol)
        blocks = []
        for item in symbols:
            trend = self._latest_trend(item)
            blocks.append(f"🪙 {item.value}\n{format_trend_summary(trend)}")
        options = [[survey_option(item)] for item in symbols]
        return WizardResult(WizardStatus.SHOWN, Prompt(text="\n\n".join(blocks), options=options))

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _guard(self, user_id: int, operation: Callable[[], WizardResult]) -> WizardResult:
        """Run an operation, turning collaborator failures into results"""
        try:
            return operation()
        except StaleStateError as e:
            logger.warning(f"Stale conversation state for user {user_id}: {e}")
            return WizardResult(WizardStatus.STALE, Prompt(text=STALE_TEXT))
        except JournalError as e:
            logger.error(f"Wizard operation failed for user {user_id}: {e}")
            return WizardResult(WizardStatus.FAILED, Prompt(text=STORAGE_FAILED_TEXT))

    def _dispatch(self, event: UserEvent) -> WizardResult:
        if event.selection:
            kind, value = parse_token(event.selection)
            if kind == Tokens.SURVEY:
                return self.start_survey(event.user_id, value or None)

        record = self.store.get(event.user_id)
        if record is None:
            return self._no_session()

        if self._is_cancel(event):
            return self._drop(record)

        handler = self._handlers[record.step]
        return handler(record, event)

    def _open_session(self, record: ConversationRecord) -> WizardResult:
        self.store.put(record, force=True)
        logger.info(f"User {record.user_id}: session started at {record.step.value}")
        return WizardResult(WizardStatus.STARTED, self._prompt_for(record), step=record.step)

    def _cancel(self, user_id: int) -> WizardResult:
        record = self.store.get(user_id)
        if record is None:
            return self._no_session()
        return self._drop(record)

    def _drop(self, record: ConversationRecord) -> WizardResult:
        self.store.delete(record.user_id)
        logger.info(f"User {record.user_id}: session cancelled at {record.step.value}")
        return WizardResult(
            WizardStatus.CANCELLED,
            Prompt(text="❌ Order cancelled.", keyboard=KeyboardKind.REMOVE),
        )

    def _no_session(self) -> WizardResult:
        return WizardResult(WizardStatus.NO_SESSION, Prompt(text=NO_SESSION_TEXT))

    def _advance(self, record: ConversationRecord, next_step: ConversationStep) -> WizardResult:
        previous = record.step
        record.step = next_step
        self.store.put(record)
        logger.info(f"User {record.user_id}: {previous.value} -> {next_step.value}")
        return WizardResult(WizardStatus.ADVANCED, self._prompt_for(record), step=next_step)

    def _reject(self, record: ConversationRecord, message: str) -> WizardResult:
        logger.debug(f"User {record.user_id}: input rejected at {record.step.value}")
        prompt = self._prompt_for(record)
        prompt.text = f"{message}\n\n{prompt.text}"
        return WizardResult(WizardStatus.REJECTED, prompt, step=record.step)

    def _next_order_step(self, step: ConversationStep) -> ConversationStep:
        if step not in self.order_steps:
            # HARSI step of a timeframe that is no longer asked
            position = ALL_TIMEFRAMES.index(STEP_TIMEFRAMES[step])
            later = [
                s for s in self.order_steps
                if s in STEP_TIMEFRAMES and ALL_TIMEFRAMES.index(STEP_TIMEFRAMES[s]) > position
            ]
            return later[0] if later else ConversationStep.WAITING_ENTRY
        index = self.order_steps.index(step)
        return self.order_steps[index + 1]

    # ------------------------------------------------------------------
    # Input helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _is_cancel(event: UserEvent) -> bool:
        if event.selection == Tokens.CANCEL:
            return True
        return event.text is not None and normalize_command(event.text).lower() in CANCEL_WORDS

    @staticmethod
    def _is_skip(event: UserEvent) -> bool:
        if event.selection:
            kind, value = parse_token(event.selection)
            return kind == Tokens.SKIP or value == Tokens.SKIP
        return normalize_command(event.text).lower() in SKIP_WORDS

    @staticmethod
    def _value(event: UserEvent, kind: str) -> Optional[str]:
        """Value of a selection of the given kind, else the raw text"""
        if event.selection:
            token_kind, value = parse_token(event.selection)
            return value if token_kind == kind else None
        return event.text

    # ------------------------------------------------------------------
    # Step handlers
    # ------------------------------------------------------------------

    def _handle_symbol(self, record: ConversationRecord, event: UserEvent) -> WizardResult:
        symbol = parse_symbol(self._value(event, Tokens.SYMBOL))
        if symbol is None:
            return self._reject(record, "❌ Unknown symbol. Pick one of the options.")
        record.data.symbol = symbol
        return self._advance(record, self._next_order_step(record.step))

    def _handle_direction(self, record: ConversationRecord, event: UserEvent) -> WizardResult:
        direction = parse_direction(self._value(event, Tokens.DIRECTION))
        if direction is None:
            return self._reject(record, "❌ Direction must be LONG or SHORT.")

        trend = self._latest_trend(record.data.symbol)
        if direction_contradicts_trend(direction, trend):
            logger.info(f"User {record.user_id}: {direction.value} blocked by the 1D/8H trend")
            against = "Bearish" if direction is Direction.LONG else "Bullish"
            text = (
                f"🚫 {direction.value} is blocked: HARSI 1D and 8H are both {against}.\n"
                "Run a new survey once the market changes, or cancel this order."
            )
            options = [
                [survey_option(record.data.symbol)],
                [PromptOption("❌ Cancel", Tokens.CANCEL)],
            ]
            return WizardResult(WizardStatus.BLOCKED, Prompt(text=text, options=options), step=record.step)

        record.data.direction = direction
        return self._advance(record, self._next_order_step(record.step))

    def _harsi_input(self, event: UserEvent) -> Tuple[bool, Optional[MarketState]]:
        """(valid, state) for a HARSI answer; skip is valid with state None"""
        if self._is_skip(event):
            return True, None
        value = normalize_command(self._value(event, Tokens.HARSI)).lower()
        try:
            return True, MarketState(value)
        except ValueError:
            return False, None

    def _handle_harsi(self, record: ConversationRecord, event: UserEvent) -> WizardResult:
        valid, state = self._harsi_input(event)
        if not valid:
            return self._reject(record, "❌ Answer bullish, bearish, neutral or skip.")
        record.data.set_harsi(STEP_TIMEFRAMES[record.step], state)
        return self._advance(record, self._next_order_step(record.step))

    def _handle_entry(self, record: ConversationRecord, event: UserEvent) -> WizardResult:
        entry = parse_positive_number(event.text)
        if entry is None:
            return self._reject(record, "❌ Entry must be a positive number.")
        record.data.entry = entry
        return self._advance(record, self._next_order_step(record.step))

    def _handle_stop_loss(self, record: ConversationRecord, event: UserEvent) -> WizardResult:
        stop_loss = parse_positive_number(self._value(event, Tokens.STOP_LOSS))
        if stop_loss is None:
            return self._reject(record, "❌ Stop Loss must be a positive number.")
        record.data.stop_loss = stop_loss
        return self._advance(record, self._next_order_step(record.step))

    def _handle_take_profit(self, record: ConversationRecord, event: UserEvent) -> WizardResult:
        if self._is_skip(event):
            record.data.take_profit = None
        else:
            take_profit = parse_positive_number(self._value(event, Tokens.TAKE_PROFIT))
            if take_profit is None:
                return self._reject(record, "❌ Take Profit must be a positive number, or /skip.")
            record.data.take_profit = take_profit
        return self._advance(record, self._next_order_step(record.step))

    def _handle_quantity(self, record: ConversationRecord, event: UserEvent) -> WizardResult:
        if self._is_skip(event):
            record.data.quantity = None
        else:
            quantity = parse_positive_number(self._value(event, Tokens.QUANTITY))
            if quantity is None:
                return self._reject(record, "❌ Quantity must be a positive number, or /skip.")
            record.data.quantity = quantity
        return self._advance(record, self._next_order_step(record.step))

    def _handle_notes(self, record: ConversationRecord, event: UserEvent) -> WizardResult:
        if event.selection:
            kind, value = parse_token(event.selection)
            action, _, label = value.partition(":")
            if kind == Tokens.NOTE and action == Tokens.NOTE_ADD:
                labels = split_notes(record.data.notes)
                label = label.strip()
                if label and label not in labels:
                    labels.append(label)
                record.data.notes = ", ".join(labels) or None
                return self._stay(record)
            if kind == Tokens.NOTE and action == Tokens.NOTE_CLEAR:
                record.data.notes = None
                return self._stay(record)
            if kind == Tokens.NOTE and action == Tokens.NOTE_DONE:
                record.data.notes = record.data.notes or None
                return self._complete_order(record)
            if self._is_skip(event):
                record.data.notes = None
                return self._complete_order(record)
            return self._reject(record, "❌ Pick a note, Done or Skip, or type your notes.")

        text = (event.text or "").strip()
        if not text or self._is_skip(event):
            record.data.notes = None
        else:
            record.data.notes = text
        return self._complete_order(record)

    def _stay(self, record: ConversationRecord) -> WizardResult:
        """Persist a change that keeps the current step"""
        self.store.put(record)
        return WizardResult(WizardStatus.ADVANCED, self._prompt_for(record), step=record.step)

    def _handle_close_price(self, record: ConversationRecord, event: UserEvent) -> WizardResult:
        close_price = parse_positive_number(event.text)
        if close_price is None:
            return self._reject(record, "❌ Close Price must be a positive number.")

        order = self.order_repository.update_close_price(record.selected_order_id, close_price)
        self.store.delete(record.user_id)
        if order is None:
            logger.warning(f"User {record.user_id}: order {record.selected_order_id} vanished before closing")
            return WizardResult(
                WizardStatus.FAILED,
                Prompt(text=f"❌ Order #{record.selected_order_id} not found.", keyboard=KeyboardKind.REMOVE),
            )

        logger.info(
            f"User {record.user_id}: order {order.metadata.id} closed at {close_price} "
            f"({format_value(order.draft.order_result)})"
        )
        return WizardResult(
            WizardStatus.CLOSED,
            Prompt(text=build_close_summary(order), keyboard=KeyboardKind.REMOVE),
            order=order,
        )

    def _handle_survey(self, record: ConversationRecord, event: UserEvent) -> WizardResult:
        valid, state = self._harsi_input(event)
        if not valid:
            return self._reject(record, "❌ Answer bullish, bearish, neutral or skip.")
        record.data.set_harsi(STEP_TIMEFRAMES[record.step], state)

        index = self.survey_steps.index(record.step)
        if index + 1 < len(self.survey_steps):
            return self._advance(record, self.survey_steps[index + 1])

        trend = build_trend_record(record.data.symbol, record.data.harsi_readings())
        previous = self._claim(record)
        try:
            saved = self.trend_repository.save(trend)
        except JournalError:
            self._release(record, previous)
            raise
        self.store.delete(record.user_id)
        logger.info(f"User {record.user_id}: survey saved for {format_value(trend.symbol)}")
        text = f"✅ Survey saved!\n\n{format_trend_summary(saved or trend)}"
        return WizardResult(
            WizardStatus.COMPLETED,
            Prompt(text=text, options=[[PromptOption("🆕 New order", Tokens.NEW_ORDER)]]),
            step=ConversationStep.COMPLETED,
        )

    def _handle_finished(self, record: ConversationRecord, event: UserEvent) -> WizardResult:
        # A final save still holds this record; start() replaces it
        return self._no_session()

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def _complete_order(self, record: ConversationRecord) -> WizardResult:
        draft = record.data.copy()
        trend = self._latest_trend(draft.symbol)
        if trend is not None:
            for tf in ALL_TIMEFRAMES:
                if tf not in self.harsi_timeframes:
                    draft.set_harsi(tf, trend.reading(tf))

        draft = calculate_order_risk(draft)
        previous = self._claim(record)
        created_at = datetime.now()
        try:
            order_id = self.order_repository.save(record.user_id, draft, created_at)
        except JournalError:
            self._release(record, previous)
            raise
        order = StoredOrder(
            metadata=OrderMetadata(id=order_id, user_id=record.user_id, created_at=created_at),
            draft=draft,
        )

        try:
            self.store.delete(record.user_id)
        except JournalError as e:
            logger.error(f"Order {order_id} saved but the session of user {record.user_id} was not cleared: {e}")

        logger.info(f"User {record.user_id}: order {order_id} completed")
        return WizardResult(
            WizardStatus.COMPLETED,
            Prompt(text=build_order_summary(draft), keyboard=KeyboardKind.REMOVE),
            step=ConversationStep.COMPLETED,
            order=order,
        )

    def _claim(self, record: ConversationRecord) -> ConversationStep:
        """
        Move the session to COMPLETED before the final save.

        The put is conditional on the record version, so a second delivery
        of the last step raises StaleStateError here and saves nothing.
        Returns the step to restore if the save fails.
        """
        previous = record.step
        record.step = ConversationStep.COMPLETED
        self.store.put(record)
        return previous

    def _release(self, record: ConversationRecord, step: ConversationStep) -> None:
        record.step = step
        try:
            self.store.put(record)
        except JournalError as e:
            logger.error(f"Could not restore the session of user {record.user_id} to {step.value}: {e}")

    # ------------------------------------------------------------------
    # Collaborator lookups that degrade silently
    # ------------------------------------------------------------------

    def _latest_trend(self, symbol: Optional[TradingSymbol]) -> Optional[TrendRecord]:
        if symbol is None:
            return None
        try:
            return self.trend_repository.latest(symbol)
        except JournalError as e:
            logger.warning(f"Trend lookup failed for {symbol.value}: {e}")
            return None

    def _market_call(self, method: str, symbol: Optional[TradingSymbol]) -> Optional[float]:
        if self.market_data is None or symbol is None:
            return None
        try:
            return getattr(self.market_data, method)(symbol)
        except JournalError as e:
            logger.warning(f"Market data {method} failed for {symbol.value}: {e}")
            return None

    # ------------------------------------------------------------------
    # Prompts
    # ------------------------------------------------------------------

    def _prompt_for(self, record: ConversationRecord) -> Prompt:
        draft = record.data
        step = record.step

        if step is ConversationStep.WAITING_SYMBOL:
            return symbol_prompt("🪙 Choose the symbol:")

        if step is ConversationStep.WAITING_DIRECTION:
            summary = format_trend_summary(self._latest_trend(draft.symbol))
            text = f"🪙 Symbol: {format_value(draft.symbol)}\n\n{summary}\n\n📈 Choose the direction:"
            return Prompt(text=text, options=direction_options(draft.symbol))

        if step in SURVEY_STEPS.values():
            tf = STEP_TIMEFRAMES[step]
            position = self.survey_steps.index(step) + 1
            text = (
                f"📊 Survey {format_value(draft.symbol)} ({position}/{len(self.survey_steps)})\n"
                f"HARSI {tf.label}?"
            )
            return Prompt(text=text, options=harsi_options())

        if step in HARSI_STEPS.values():
            return Prompt(text=f"📊 HARSI {STEP_TIMEFRAMES[step].label}?", options=harsi_options())

        if step is ConversationStep.WAITING_ENTRY:
            text = "💰 Enter the entry price:"
            price = self._market_call("get_current_price", draft.symbol)
            if price:
                text += f"\n💡 Current price: {format_price_hint(price)}"
            return Prompt(text=text, keyboard=KeyboardKind.REMOVE)

        if step is ConversationStep.WAITING_STOP_LOSS:
            recent_low = self._market_call("get_lowest_price_in_closed_candles", draft.symbol)
            options = stop_loss_options(draft.entry, draft.direction, draft.symbol, recent_low)
            return Prompt(text="🛑 Enter the Stop Loss:", options=options)

        if step is ConversationStep.WAITING_TAKE_PROFIT:
            options = take_profit_options(draft.entry, draft.stop_loss, draft.direction)
            if not options:
                options = [[PromptOption("⏭️ Skip", Tokens.SKIP)]]
            return Prompt(text="🎯 Enter the Take Profit (or /skip):", options=options)

        if step is ConversationStep.WAITING_QUANTITY:
            return Prompt(text="📦 Enter the quantity (or /skip):", options=quantity_options(self.quantity_presets))

        if step is ConversationStep.WAITING_NOTES:
            labels = split_notes(draft.notes)
            text = "📝 Add notes: pick presets, type your own, or /skip."
            if labels:
                text += f"\n\nSelected:\n{format_notes(draft.notes)}"
            return Prompt(text=text, options=notes_options(self.note_presets, labels))

        if step is ConversationStep.WAITING_CLOSE_PRICE:
            return Prompt(text=f"💵 Enter the close price for order #{record.selected_order_id}:")

        return Prompt(text=NO_SESSION_TEXT)

    @staticmethod
    def _close_price_prompt(order: StoredOrder) -> Prompt:
        draft = order.draft
        text = (
            f"💵 Closing order #{order.metadata.id}: {format_value(draft.symbol)} "
            f"{format_value(draft.direction)}\n"
            f"Entry: {format_value(draft.entry)} | Stop Loss: {format_value(draft.stop_loss)}\n\n"
            "Enter the close price:"
        )
        return Prompt(text=text, keyboard=KeyboardKind.REMOVE)
