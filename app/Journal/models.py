"""
Domain models for the trade journal

Closed enumerations for symbols, directions, HARSI readings and results,
the evolving order draft, the per-user conversation record, stored order
envelopes, trend survey records, and the wizard's inbound/outbound types.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class TradingSymbol(str, Enum):
    """Symbols the journal accepts"""
    BTCUSDT = "BTCUSDT"
    ETHUSDT = "ETHUSDT"
    XAUUSD = "XAUUSD"


class Direction(str, Enum):
    """Order direction"""
    LONG = "LONG"
    SHORT = "SHORT"


class MarketState(str, Enum):
    """HARSI reading for one timeframe"""
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class OrderResult(str, Enum):
    """Outcome classification of an order"""
    WIN = "win"
    LOSS = "loss"
    BREAKEVEN = "breakeven"
    IN_PROGRESS = "in_progress"


class Timeframe(str, Enum):
    """HARSI timeframes, ordered from the largest to the smallest"""
    W1 = "1w"
    D3 = "3d"
    D2 = "2d"
    D1 = "1d"
    H8 = "8h"
    H4 = "4h"
    H2 = "2h"

    @property
    def field_name(self) -> str:
        return f"harsi{self.value}"

    @property
    def label(self) -> str:
        return self.value.upper()


ALL_TIMEFRAMES: List[Timeframe] = list(Timeframe)


class ConversationStep(str, Enum):
    """Every state a conversation record can be in"""
    WAITING_SYMBOL = "waiting_symbol"
    WAITING_DIRECTION = "waiting_direction"
    WAITING_HARSI_1W = "waiting_harsi_1w"
    WAITING_HARSI_3D = "waiting_harsi_3d"
    WAITING_HARSI_2D = "waiting_harsi_2d"
    WAITING_HARSI_1D = "waiting_harsi_1d"
    WAITING_HARSI_8H = "waiting_harsi_8h"
    WAITING_HARSI_4H = "waiting_harsi_4h"
    WAITING_HARSI_2H = "waiting_harsi_2h"
    WAITING_ENTRY = "waiting_entry"
    WAITING_STOP_LOSS = "waiting_stop_loss"
    WAITING_TAKE_PROFIT = "waiting_take_profit"
    WAITING_QUANTITY = "waiting_quantity"
    WAITING_NOTES = "waiting_notes"
    COMPLETED = "completed"
    WAITING_CLOSE_PRICE = "waiting_close_price"
    SURVEY_1W = "survey_1w"
    SURVEY_3D = "survey_3d"
    SURVEY_2D = "survey_2d"
    SURVEY_1D = "survey_1d"
    SURVEY_8H = "survey_8h"
    SURVEY_4H = "survey_4h"
    SURVEY_2H = "survey_2h"


HARSI_STEPS: Dict[Timeframe, ConversationStep] = {
    Timeframe.W1: ConversationStep.WAITING_HARSI_1W,
    Timeframe.D3: ConversationStep.WAITING_HARSI_3D,
    Timeframe.D2: ConversationStep.WAITING_HARSI_2D,
    Timeframe.D1: ConversationStep.WAITING_HARSI_1D,
    Timeframe.H8: ConversationStep.WAITING_HARSI_8H,
    Timeframe.H4: ConversationStep.WAITING_HARSI_4H,
    Timeframe.H2: ConversationStep.WAITING_HARSI_2H,
}

SURVEY_STEPS: Dict[Timeframe, ConversationStep] = {
    Timeframe.W1: ConversationStep.SURVEY_1W,
    Timeframe.D3: ConversationStep.SURVEY_3D,
    Timeframe.D2: ConversationStep.SURVEY_2D,
    Timeframe.D1: ConversationStep.SURVEY_1D,
    Timeframe.H8: ConversationStep.SURVEY_8H,
    Timeframe.H4: ConversationStep.SURVEY_4H,
    Timeframe.H2: ConversationStep.SURVEY_2H,
}

STEP_TIMEFRAMES: Dict[ConversationStep, Timeframe] = {
    **{step: tf for tf, step in HARSI_STEPS.items()},
    **{step: tf for tf, step in SURVEY_STEPS.items()},
}


# Fields the risk calculator owns; never settable from user input
DERIVED_FIELDS = (
    "potential_stop_loss",
    "potential_stop_loss_usd",
    "potential_stop_loss_percent",
    "potential_profit",
    "potential_profit_usd",
    "potential_profit_percent",
    "potential_risk_reward_ratio",
    "actual_close_price",
    "actual_realized_pnl",
    "actual_realized_pnl_usd",
    "actual_realized_pnl_percent",
    "actual_risk_reward_ratio",
    "order_result",
)

_ENUM_FIELDS = {
    "symbol": TradingSymbol,
    "direction": Direction,
    "order_result": OrderResult,
    **{tf.field_name: MarketState for tf in ALL_TIMEFRAMES},
}


@dataclass
class OrderDraft:
    """Order being built by the wizard, or a finalized order"""
    symbol: Optional[TradingSymbol] = None
    direction: Optional[Direction] = None

    harsi1w: Optional[MarketState] = None
    harsi3d: Optional[MarketState] = None
    harsi2d: Optional[MarketState] = None
    harsi1d: Optional[MarketState] = None
    harsi8h: Optional[MarketState] = None
    harsi4h: Optional[MarketState] = None
    harsi2h: Optional[MarketState] = None

    entry: Optional[float] = None
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    quantity: Optional[float] = None
    notes: Optional[str] = None

    potential_stop_loss: Optional[float] = None
    potential_stop_loss_usd: Optional[float] = None
    potential_stop_loss_percent: Optional[float] = None
    potential_profit: Optional[float] = None
    potential_profit_usd: Optional[float] = None
    potential_profit_percent: Optional[float] = None
    potential_risk_reward_ratio: Optional[float] = None

    actual_close_price: Optional[float] = None
    actual_realized_pnl: Optional[float] = None
    actual_realized_pnl_usd: Optional[float] = None
    actual_realized_pnl_percent: Optional[float] = None
    actual_risk_reward_ratio: Optional[float] = None
    order_result: Optional[OrderResult] = None

    def get_harsi(self, timeframe: Timeframe) -> Optional[MarketState]:
        return getattr(self, timeframe.field_name)

    def set_harsi(self, timeframe: Timeframe, state: Optional[MarketState]) -> None:
        setattr(self, timeframe.field_name, state)

    def harsi_readings(self) -> Dict[Timeframe, MarketState]:
        """Return the timeframes that carry a reading"""
        return {tf: self.get_harsi(tf) for tf in ALL_TIMEFRAMES if self.get_harsi(tf) is not None}

    def copy(self, **changes) -> "OrderDraft":
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dictionary, leaving out absent fields"""
        result = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            result[f.name] = value.value if isinstance(value, Enum) else value
        return result

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "OrderDraft":
        """Create from dictionary, ignoring unknown keys"""
        data = data or {}
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            if key not in known or value is None:
                continue
            enum_type = _ENUM_FIELDS.get(key)
            if enum_type is not None:
                value = enum_type(value)
            kwargs[key] = value
        return cls(**kwargs)


@dataclass
class ConversationRecord:
    """Server-held state of one user's wizard session"""
    user_id: int
    step: ConversationStep
    data: OrderDraft = field(default_factory=OrderDraft)
    created_at: datetime = field(default_factory=datetime.now)
    selected_order_id: Optional[int] = None
    version: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "step": self.step.value,
            "data": self.data.to_dict(),
            "created_at": self.created_at.isoformat(),
            "selected_order_id": self.selected_order_id,
            "version": self.version,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversationRecord":
        created_at = data.get("created_at")
        return cls(
            user_id=data["user_id"],
            step=ConversationStep(data["step"]),
            data=OrderDraft.from_dict(data.get("data")),
            created_at=datetime.fromisoformat(created_at) if created_at else datetime.now(),
            selected_order_id=data.get("selected_order_id"),
            version=data.get("version", 0),
        )


@dataclass
class OrderMetadata:
    """Storage bookkeeping for a persisted order"""
    id: int
    user_id: int
    created_at: datetime
    updated_at: Optional[datetime] = None


@dataclass
class StoredOrder:
    """A persisted order: storage metadata next to the domain draft"""
    metadata: OrderMetadata
    draft: OrderDraft

    @property
    def is_open(self) -> bool:
        return self.draft.actual_risk_reward_ratio is None


@dataclass
class TrendRecord:
    """One trend survey for a symbol"""
    symbol: Optional[TradingSymbol]
    readings: Dict[Timeframe, MarketState] = field(default_factory=dict)
    trend: Optional[MarketState] = None
    recommendation: Optional[str] = None
    surveyed_at: datetime = field(default_factory=datetime.now)
    id: Optional[int] = None

    def reading(self, timeframe: Timeframe) -> Optional[MarketState]:
        return self.readings.get(timeframe)


# --- Wizard boundary ---------------------------------------------------------

@dataclass
class UserEvent:
    """Normalized inbound event: free text or a selection token"""
    user_id: int
    chat_id: int
    text: Optional[str] = None
    selection: Optional[str] = None


class KeyboardKind(str, Enum):
    """How the presentation layer should render prompt options"""
    INLINE = "inline"
    REPLY = "reply"
    REMOVE = "remove"


@dataclass
class PromptOption:
    label: str
    token: str


@dataclass
class Prompt:
    """Outbound message: text plus optional rows of selectable options"""
    text: str
    options: List[List[PromptOption]] = field(default_factory=list)
    keyboard: KeyboardKind = KeyboardKind.INLINE


class WizardStatus(str, Enum):
    STARTED = "started"
    ADVANCED = "advanced"
    REJECTED = "rejected"
    BLOCKED = "blocked"
    CANCELLED = "cancelled"
    COMPLETED = "completed"
    CLOSED = "closed"
    NO_SESSION = "no_session"
    FAILED = "failed"
    STALE = "stale"
    SHOWN = "shown"


@dataclass
class WizardResult:
    """Outcome of one wizard operation"""
    status: WizardStatus
    prompt: Prompt
    step: Optional[ConversationStep] = None
    order: Optional[StoredOrder] = None
