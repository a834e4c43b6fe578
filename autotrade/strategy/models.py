"""Strategy data models — typed representations for bars, indicators and signals."""

from dataclasses import dataclass
from typing import Literal, Optional


@dataclass(frozen=True)
class Bar:
    """A single OHLCV bar.  ``time`` is an epoch timestamp in milliseconds."""

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class MACDValue:
    """MACD line, signal line and histogram for one bar."""

    line: float
    signal: float
    histogram: float


@dataclass(frozen=True)
class CrossSignal:
    """EMA50/EMA200 cross classification for one bar.

    ``fresh`` is ``True`` only on the bar where the cross actually happened;
    afterwards the same side is reported as a steady state.
    """

    type: Literal["golden", "death", "none"]
    strength: int  # 1-10, 0 when type is "none"
    confirmed: bool
    fresh: bool = False


NO_CROSS = CrossSignal(type="none", strength=0, confirmed=False)


@dataclass(frozen=True)
class OrderBlock:
    """A price region preceding an impulsive break."""

    top: float
    bottom: float
    side: Literal["demand", "supply"]
    creation_time: int


@dataclass(frozen=True)
class Indicators:
    """Indicator snapshot attached to a bar.

    Numeric fields are ``None`` until their warm-up has accumulated.
    """

    ema50: Optional[float]
    ema200: Optional[float]
    rsi: Optional[float]
    macd: Optional[MACDValue]
    atr: Optional[float]
    trend: Literal["bullish", "bearish", "neutral"]
    risk_zone: Literal["low", "medium", "high"]
    cross_signal: CrossSignal
    volume_trend: Literal["increasing", "decreasing", "neutral"]
    volume_ratio: float
    is_sideways: bool
    active_demand_block: Optional[OrderBlock] = None
    active_supply_block: Optional[OrderBlock] = None


@dataclass(frozen=True)
class EnrichedBar(Bar):
    """A bar with its indicator snapshot."""

    indicators: Indicators


@dataclass(frozen=True)
class Signal:
    """A trade entry signal produced by the strategy engine."""

    side: Literal["buy", "sell", "none"]
    entry_price: float
    stop_loss: float
    take_profit: float
    reason: str
    strength: int

    @property
    def is_actionable(self) -> bool:
        return self.side != "none"


NO_SIGNAL = Signal(
    side="none",
    entry_price=0.0,
    stop_loss=0.0,
    take_profit=0.0,
    reason="",
    strength=0,
)


@dataclass(frozen=True)
class StrategyParams:
    """Tunable strategy parameters, replaced by the optimizer."""

    risk_reward_ratio: float = 3.0
