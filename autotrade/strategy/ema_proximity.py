"""EMA proximity — anticipate a cross while the averages are nearly touching."""

from dataclasses import dataclass
from typing import Optional, Sequence

from autotrade.strategy.models import EnrichedBar, Signal, StrategyParams


@dataclass(frozen=True)
class EMAProximityThresholds:
    max_gap_pct: float = 0.002
    stop_pct: float = 0.01
    target_pct: float = 0.025
    strength: int = 5


class EMAProximityStrategy:
    """Enter in the EMA50 side when |EMA50 - EMA200| <= 0.2 % of EMA200."""

    name = "ema_proximity"

    def __init__(self, thresholds: Optional[EMAProximityThresholds] = None) -> None:
        self.thresholds = thresholds or EMAProximityThresholds()

    def evaluate(
        self,
        bars: Sequence[EnrichedBar],
        index: int,
        params: StrategyParams,
    ) -> Optional[Signal]:
        t = self.thresholds
        curr = bars[index]
        ema50 = curr.indicators.ema50
        ema200 = curr.indicators.ema200
        if ema50 is None or ema200 is None:
            return None
        if abs(ema50 - ema200) > t.max_gap_pct * ema200:
            return None

        entry = curr.close
        if ema50 > ema200:
            return Signal(
                side="buy",
                entry_price=entry,
                stop_loss=entry * (1 - t.stop_pct),
                take_profit=entry * (1 + t.target_pct),
                reason="EMA50 approaching cross from above",
                strength=t.strength,
            )
        if ema50 < ema200:
            return Signal(
                side="sell",
                entry_price=entry,
                stop_loss=entry * (1 + t.stop_pct),
                take_profit=entry * (1 - t.target_pct),
                reason="EMA50 approaching cross from below",
                strength=t.strength,
            )
        return None
