"""Strategy parameter optimizers.

An optimizer maps a window of historical bars to ``StrategyParams``.  The
replay loop calls it on load and then periodically on recent bars.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol, Sequence, runtime_checkable

import numpy as np

from autotrade.strategy.models import Bar, StrategyParams

logger = logging.getLogger("autotrade.optimizer")

DEFAULT_RISK_REWARD = 2.5
DEFAULT_RATIO_RANGE = (1.5, 2.0, 2.5, 3.0)


@runtime_checkable
class Optimizer(Protocol):
    """Interface that all optimizers must satisfy."""

    def optimize(self, bars: Sequence[Bar]) -> StrategyParams:
        """Return parameters chosen for *bars*."""
        ...


class FixedRatioOptimizer:
    """Always returns the same risk/reward ratio."""

    def __init__(self, risk_reward_ratio: float = DEFAULT_RISK_REWARD) -> None:
        self.risk_reward_ratio = risk_reward_ratio

    def optimize(self, bars: Sequence[Bar]) -> StrategyParams:
        return StrategyParams(risk_reward_ratio=self.risk_reward_ratio)


class GridSearchOptimizer:
    """Sweeps risk/reward ratios and keeps the best-scoring one.

    Each candidate is scored by replaying *bars* (the first
    ``warmup_bars`` as visible history, the rest as hidden future) with that
    ratio fixed and taking the net P&L.  Ties go to the earlier candidate.
    Windows too short to trade on fall back to *fallback*.

    Args:
        ratios: Candidate risk/reward ratios.
        variant: Strategy registry key used for the nested replays.
        warmup_bars: Bars revealed before the nested replay starts.
        fallback: Optimizer used when the window is too short.
    """

    def __init__(
        self,
        ratios: Sequence[float] = DEFAULT_RATIO_RANGE,
        variant: str = "trend_rsi",
        warmup_bars: int = 200,
        fallback: Optional[Optimizer] = None,
    ) -> None:
        if not ratios:
            raise ValueError("ratios must not be empty")
        self.ratios = tuple(ratios)
        self.variant = variant
        self.warmup_bars = warmup_bars
        self.fallback = fallback or FixedRatioOptimizer()

    def score(self, bars: Sequence[Bar], ratio: float) -> float:
        """Net P&L of a nested replay over *bars* at *ratio*."""
        from autotrade.backtest.simulation import ReplaySimulation
        from autotrade.backtest.stats import calculate_stats
        from autotrade.strategy.engine import StrategyEngine

        sim = ReplaySimulation(
            history=bars[: self.warmup_bars],
            future=bars[self.warmup_bars :],
            engine=StrategyEngine(self.variant),
            optimizer=FixedRatioOptimizer(ratio),
            params=StrategyParams(risk_reward_ratio=ratio),
            recalibration_interval=0,
        )
        sim.run()
        return calculate_stats(sim.context.trades)["net_pnl"]

    def optimize(self, bars: Sequence[Bar]) -> StrategyParams:
        bars = list(bars)
        if len(bars) <= self.warmup_bars:
            return self.fallback.optimize(bars)

        scores = np.array([self.score(bars, r) for r in self.ratios])
        best = self.ratios[int(np.argmax(scores))]
        logger.info(
            "Grid search over %d bars: scores=%s → risk/reward %.2f",
            len(bars), np.round(scores, 2).tolist(), best,
        )
        return StrategyParams(risk_reward_ratio=best)
