"""Replay simulation — reveals hidden bars one tick at a time.

Owns all mutable replay state in a ``SimulationContext``: the capped visible
window, the hidden future queue, balance, strategy parameters and trade
history.  No real orders are placed.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Optional, Sequence

from autotrade.backtest.optimizer import FixedRatioOptimizer, Optimizer
from autotrade.data.bar_source import (
    DEFAULT_HISTORY_FRACTION,
    DEFAULT_MAX_HISTORY_BARS,
    split_history,
)
from autotrade.risk.position_sizer import DEFAULT_RISK_PER_TRADE
from autotrade.strategy.engine import StrategyEngine
from autotrade.strategy.models import NO_SIGNAL, Bar, EnrichedBar, Signal, StrategyParams
from autotrade.strategy.pipeline import enrich_bars
from autotrade.trading.lifecycle import TradeLifecycleManager
from autotrade.trading.models import Position

logger = logging.getLogger("autotrade.simulation")

DEFAULT_WINDOW_CAP = 2000
DEFAULT_RECALIBRATION_INTERVAL = 100
DEFAULT_RECALIBRATION_LOOKBACK = 500
DEFAULT_OPEN_FEE_RATE = 0.0005


@dataclass
class SimulationContext:
    """Everything that changes between ticks."""

    window: deque
    queue: deque
    balance: float
    params: StrategyParams
    trades: list[Position] = field(default_factory=list)
    active_position: Optional[Position] = None
    enriched: list[EnrichedBar] = field(default_factory=list)
    tick_count: int = 0
    closed_count: int = 0


@dataclass(frozen=True)
class TickResult:
    """Observable outcome of one tick."""

    tick: int
    bar: EnrichedBar
    signal: Signal = NO_SIGNAL
    opened: Optional[Position] = None
    closed: Optional[Position] = None
    params_updated: Optional[StrategyParams] = None


class ReplaySimulation:
    """Tick-driven backtest over a hidden bar queue.

    Args:
        history: Bars visible before the first tick, oldest-first.
        future: Bars revealed one per tick, oldest-first.
        engine: Strategy engine (defaults to the ``trend_rsi`` variant).
        optimizer: Chooses ``StrategyParams``; defaults to a fixed ratio.
        initial_balance: Starting virtual balance.
        params: Starting parameters.  When omitted, *optimizer* is run on
            *history*.
        window_cap: Maximum visible bars; the oldest are evicted first.
        risk_per_trade: Fraction of balance risked per trade.
        recalibration_interval: Re-optimise after this many closed trades
            (0 disables).
        recalibration_lookback: Bars handed to the optimizer.
        open_fee_rate: Fee charged on entry as ``entry_price × rate``.
    """

    def __init__(
        self,
        history: Sequence[Bar],
        future: Sequence[Bar],
        engine: Optional[StrategyEngine] = None,
        optimizer: Optional[Optimizer] = None,
        initial_balance: float = 10_000.0,
        params: Optional[StrategyParams] = None,
        window_cap: int = DEFAULT_WINDOW_CAP,
        risk_per_trade: float = DEFAULT_RISK_PER_TRADE,
        recalibration_interval: int = DEFAULT_RECALIBRATION_INTERVAL,
        recalibration_lookback: int = DEFAULT_RECALIBRATION_LOOKBACK,
        open_fee_rate: float = DEFAULT_OPEN_FEE_RATE,
    ) -> None:
        if window_cap <= 0:
            raise ValueError(f"window_cap must be positive, got {window_cap}")

        self._engine = engine or StrategyEngine()
        self._optimizer = optimizer or FixedRatioOptimizer()
        self._lifecycle = TradeLifecycleManager(self._engine, risk_per_trade)
        self._recalibration_interval = recalibration_interval
        self._recalibration_lookback = recalibration_lookback
        self._open_fee_rate = open_fee_rate
        self.initial_balance = initial_balance

        if params is None:
            params = self._optimizer.optimize(list(history))

        window = deque(history, maxlen=window_cap)
        self._ctx = SimulationContext(
            window=window,
            queue=deque(future),
            balance=initial_balance,
            params=params,
            enriched=enrich_bars(list(window)),
        )

    @classmethod
    def from_bars(
        cls,
        bars: Sequence[Bar],
        history_fraction: float = DEFAULT_HISTORY_FRACTION,
        max_history_bars: int = DEFAULT_MAX_HISTORY_BARS,
        **kwargs,
    ) -> "ReplaySimulation":
        """Split *bars* into visible history and hidden future and build a
        simulation over them.  Remaining keyword arguments go to ``__init__``.

        Raises ``ValueError`` if nothing would be left to replay.
        """
        history, future = split_history(bars, history_fraction, max_history_bars)
        logger.info(
            "Loaded %d bars: %d visible history, %d to replay",
            len(bars), len(history), len(future),
        )
        return cls(history, future, **kwargs)

    # ── Queries ──────────────────────────────────────────────────────────

    @property
    def context(self) -> SimulationContext:
        return self._ctx

    @property
    def remaining(self) -> int:
        """Bars still hidden."""
        return len(self._ctx.queue)

    @property
    def is_finished(self) -> bool:
        return not self._ctx.queue

    # ── Ticking ──────────────────────────────────────────────────────────

    def tick(self) -> Optional[TickResult]:
        """Reveal one bar and apply the lifecycle decision.

        Returns ``None`` once the hidden queue is exhausted.
        """
        ctx = self._ctx
        if not ctx.queue:
            return None

        bar = ctx.queue.popleft()
        ctx.window.append(bar)
        ctx.tick_count += 1

        ctx.enriched = enrich_bars(list(ctx.window))
        intent = self._lifecycle.evaluate(
            ctx.enriched, ctx.params, ctx.balance, ctx.active_position,
        )

        opened: Optional[Position] = None
        closed: Optional[Position] = None
        params_updated: Optional[StrategyParams] = None

        if intent.action == "open":
            opened = intent.position
            ctx.trades.append(opened)
            ctx.active_position = opened
            ctx.balance -= opened.entry_price * self._open_fee_rate
            logger.debug(
                "Tick %d: opened %s %s @ %.5f (SL %.5f, TP %.5f, amount %.2f)",
                ctx.tick_count, opened.side, opened.id, opened.entry_price,
                opened.stop_loss, opened.take_profit, opened.amount,
            )

        elif intent.action == "close":
            closed = intent.position
            ctx.trades = [closed if t.id == closed.id else t for t in ctx.trades]
            ctx.active_position = None
            ctx.balance += closed.pnl
            ctx.closed_count += 1
            logger.debug(
                "Tick %d: closed %s on %s @ %.5f, pnl %.2f, balance %.2f",
                ctx.tick_count, closed.id, closed.exit_reason,
                closed.exit_price, closed.pnl, ctx.balance,
            )
            params_updated = self._maybe_recalibrate()

        return TickResult(
            tick=ctx.tick_count,
            bar=ctx.enriched[-1],
            signal=intent.signal,
            opened=opened,
            closed=closed,
            params_updated=params_updated,
        )

    def run(self, max_ticks: Optional[int] = None) -> int:
        """Tick until the queue is empty (or *max_ticks*).  Returns ticks run."""
        ticks = 0
        while max_ticks is None or ticks < max_ticks:
            if self.tick() is None:
                break
            ticks += 1
        return ticks

    def _maybe_recalibrate(self) -> Optional[StrategyParams]:
        ctx = self._ctx
        interval = self._recalibration_interval
        if not interval or ctx.closed_count % interval != 0:
            return None

        recent = list(ctx.window)[-self._recalibration_lookback :]
        ctx.params = self._optimizer.optimize(recent)
        logger.info(
            "Recalibrated after %d closed trades: risk/reward %.2f",
            ctx.closed_count, ctx.params.risk_reward_ratio,
        )
        return ctx.params
