"""Trend + RSI breakout — trade RSI crossing 50 in the EMA trend direction."""

from dataclasses import dataclass
from typing import Optional, Sequence

from autotrade.strategy.models import EnrichedBar, Signal, StrategyParams


@dataclass(frozen=True)
class TrendRSIThresholds:
    rsi_midline: float = 50.0
    stop_pct: float = 0.01
    target_pct: float = 0.015
    strength: int = 7


class TrendRSIStrategy:
    """Buy when EMA50 > EMA200, close > EMA50 and RSI crosses up through 50.

    Sell mirrors: EMA50 < EMA200, close < EMA50, RSI crosses down through 50.
    Stop and target are fixed percentages of entry.
    """

    name = "trend_rsi"

    def __init__(self, thresholds: Optional[TrendRSIThresholds] = None) -> None:
        self.thresholds = thresholds or TrendRSIThresholds()

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
        rsi = curr.indicators.rsi
        prev_rsi = bars[index - 1].indicators.rsi
        if ema50 is None or ema200 is None or rsi is None or prev_rsi is None:
            return None

        entry = curr.close

        if (
            ema50 > ema200
            and curr.close > ema50
            and prev_rsi < t.rsi_midline <= rsi
        ):
            return Signal(
                side="buy",
                entry_price=entry,
                stop_loss=entry * (1 - t.stop_pct),
                take_profit=entry * (1 + t.target_pct),
                reason="Trend Buy + RSI Break 50",
                strength=t.strength,
            )

        if (
            ema50 < ema200
            and curr.close < ema50
            and prev_rsi > t.rsi_midline >= rsi
        ):
            return Signal(
                side="sell",
                entry_price=entry,
                stop_loss=entry * (1 + t.stop_pct),
                take_profit=entry * (1 - t.target_pct),
                reason="Trend Sell + RSI Break 50",
                strength=t.strength,
            )

        return None
