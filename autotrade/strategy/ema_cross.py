"""Confirmed EMA cross — enter on the bar a golden/death cross happens."""

from dataclasses import dataclass
from typing import Optional, Sequence

from autotrade.strategy.models import EnrichedBar, Signal, StrategyParams


@dataclass(frozen=True)
class EMACrossThresholds:
    swing_lookback: int = 10
    ema200_offset_pct: float = 0.005
    strong_cross: int = 7
    strong_target_pct: float = 0.03
    target_pct: float = 0.02


class EMACrossStrategy:
    """Trade fresh, confirmed EMA50/EMA200 crosses.

    The stop sits at the recent swing extreme when that is on the losing
    side of entry, otherwise at an offset beyond EMA200.  Strong crosses get
    the wider fixed target.
    """

    name = "ema_cross"

    def __init__(self, thresholds: Optional[EMACrossThresholds] = None) -> None:
        self.thresholds = thresholds or EMACrossThresholds()

    def evaluate(
        self,
        bars: Sequence[EnrichedBar],
        index: int,
        params: StrategyParams,
    ) -> Optional[Signal]:
        t = self.thresholds
        curr = bars[index]
        cross = curr.indicators.cross_signal
        ema200 = curr.indicators.ema200
        if ema200 is None or not (cross.confirmed and cross.fresh):
            return None

        entry = curr.close
        recent = bars[max(0, index - t.swing_lookback + 1) : index + 1]
        target_pct = (
            t.strong_target_pct if cross.strength >= t.strong_cross else t.target_pct
        )

        if cross.type == "golden":
            swing_low = min(b.low for b in recent)
            stop = swing_low if swing_low < entry else ema200 * (1 - t.ema200_offset_pct)
            return Signal(
                side="buy",
                entry_price=entry,
                stop_loss=stop,
                take_profit=entry * (1 + target_pct),
                reason="Golden Cross EMA50/EMA200",
                strength=cross.strength,
            )

        if cross.type == "death":
            swing_high = max(b.high for b in recent)
            stop = swing_high if swing_high > entry else ema200 * (1 + t.ema200_offset_pct)
            return Signal(
                side="sell",
                entry_price=entry,
                stop_loss=stop,
                take_profit=entry * (1 - target_pct),
                reason="Death Cross EMA50/EMA200",
                strength=cross.strength,
            )

        return None
