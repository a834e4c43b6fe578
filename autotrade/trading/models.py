"""Trading data models — simulated positions and lifecycle intents."""

from dataclasses import dataclass
from typing import Literal, Optional

from autotrade.strategy.models import NO_SIGNAL, Signal


@dataclass(frozen=True)
class Position:
    """A simulated position.  Closing produces a new, closed copy."""

    id: str
    side: Literal["buy", "sell"]
    entry_price: float
    entry_time: int
    stop_loss: float
    initial_stop_loss: float
    take_profit: float
    amount: float  # quote currency
    status: Literal["open", "closed"]
    label: str
    exit_price: Optional[float] = None
    exit_time: Optional[int] = None
    pnl: Optional[float] = None
    exit_reason: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status == "open"


@dataclass(frozen=True)
class TradeIntent:
    """What the lifecycle manager wants the orchestrator to do this tick."""

    action: Literal["open", "close", "none"]
    position: Optional[Position] = None
    signal: Signal = NO_SIGNAL


NO_ACTION = TradeIntent(action="none")
