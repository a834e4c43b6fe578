"""Trade lifecycle manager — exits, sizing and entries for a single position.

Side-effect-free: every call returns a ``TradeIntent`` and leaves balance and
trade history to the caller.
"""

import uuid
from dataclasses import replace
from typing import Optional, Sequence

from autotrade.risk.position_sizer import (
    DEFAULT_RISK_PER_TRADE,
    calculate_position_size,
)
from autotrade.strategy.engine import StrategyEngine
from autotrade.strategy.models import EnrichedBar, StrategyParams
from autotrade.trading.models import NO_ACTION, Position, TradeIntent


def calculate_pnl(position: Position, exit_price: float) -> float:
    """P&L in quote currency for *position* exiting at *exit_price*."""
    sign = 1 if position.side == "buy" else -1
    return sign * (exit_price - position.entry_price) / position.entry_price * position.amount


def check_exit(position: Position, bar: EnrichedBar) -> Optional[tuple[float, str]]:
    """Check if *bar* triggers the stop or the target.

    Returns ``(exit_price, reason)`` or ``None``.  When both levels are
    inside the bar, the stop is taken (conservative).
    """
    if position.side == "buy":
        sl_hit = bar.low <= position.stop_loss
        tp_hit = bar.high >= position.take_profit
    else:
        sl_hit = bar.high >= position.stop_loss
        tp_hit = bar.low <= position.take_profit

    if sl_hit:
        return position.stop_loss, "Stop Loss"
    if tp_hit:
        return position.take_profit, "Take Profit"
    return None


class TradeLifecycleManager:
    """Decides, per tick, whether to close the open position or open one.

    Args:
        engine: Strategy engine queried when flat.
        risk_per_trade: Fraction of balance risked per trade.
    """

    def __init__(
        self,
        engine: StrategyEngine,
        risk_per_trade: float = DEFAULT_RISK_PER_TRADE,
    ) -> None:
        self._engine = engine
        self._risk_per_trade = risk_per_trade

    def evaluate(
        self,
        bars: Sequence[EnrichedBar],
        params: StrategyParams,
        balance: float,
        active_position: Optional[Position],
    ) -> TradeIntent:
        """Return the intent for the newest bar in *bars*."""
        if not bars:
            return NO_ACTION

        index = len(bars) - 1
        bar = bars[index]

        if active_position is not None and active_position.is_open:
            hit = check_exit(active_position, bar)
            if hit is None:
                return NO_ACTION
            exit_price, reason = hit
            closed = replace(
                active_position,
                status="closed",
                exit_price=exit_price,
                exit_time=bar.time,
                pnl=calculate_pnl(active_position, exit_price),
                exit_reason=reason,
            )
            return TradeIntent(action="close", position=closed)

        signal = self._engine.evaluate(bars, index, params)
        if not signal.is_actionable:
            return NO_ACTION

        amount = calculate_position_size(
            balance,
            signal.entry_price,
            signal.stop_loss,
            risk_per_trade=self._risk_per_trade,
        )
        position = Position(
            id=uuid.uuid4().hex[:9],
            side=signal.side,
            entry_price=signal.entry_price,
            entry_time=bar.time,
            stop_loss=signal.stop_loss,
            initial_stop_loss=signal.stop_loss,
            take_profit=signal.take_profit,
            amount=amount,
            status="open",
            label=f"{signal.reason} (strength {signal.strength}/10)",
        )
        return TradeIntent(action="open", position=position, signal=signal)
