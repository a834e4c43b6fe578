"""Strategy engine — runs the configured variant and sanitises its risk."""

import logging
from dataclasses import replace
from typing import Sequence, Union

from autotrade.risk.sl_tp import calculate_atr_fallback_levels, risk_is_acceptable
from autotrade.strategy.base import StrategyVariant
from autotrade.strategy.models import NO_SIGNAL, EnrichedBar, Signal, StrategyParams
from autotrade.strategy.registry import get_strategy

logger = logging.getLogger("autotrade.strategy")

# EMA200 needs this many earlier bars before it is meaningful to trade on.
MIN_HISTORY = 200


class StrategyEngine:
    """Evaluates exactly one rule variant per tick.

    Args:
        variant: A ``StrategyVariant`` instance or its registry key.
    """

    def __init__(self, variant: Union[StrategyVariant, str] = "trend_rsi") -> None:
        if isinstance(variant, str):
            variant = get_strategy(variant)
        self._variant = variant

    @property
    def variant_name(self) -> str:
        return self._variant.name

    def evaluate(
        self,
        bars: Sequence[EnrichedBar],
        index: int,
        params: StrategyParams,
    ) -> Signal:
        """Return the signal for bar *index*, or ``NO_SIGNAL``.

        Insufficient history or missing indicators yield ``NO_SIGNAL``.  A
        stop on the wrong side of entry or more than 10 % away is replaced
        by a 1.5 × ATR stop, with the target rebuilt from
        ``params.risk_reward_ratio``.
        """
        if index < MIN_HISTORY or index >= len(bars):
            return NO_SIGNAL

        signal = self._variant.evaluate(bars, index, params)
        if signal is None:
            return NO_SIGNAL

        if not _stop_on_losing_side(signal) or not risk_is_acceptable(
            signal.entry_price, signal.stop_loss,
        ):
            levels = calculate_atr_fallback_levels(
                signal.entry_price,
                signal.side,
                bars[index].indicators.atr,
                params.risk_reward_ratio,
            )
            logger.debug(
                "%s: stop %.5f rejected for entry %.5f, using ATR stop %.5f",
                self.variant_name, signal.stop_loss, signal.entry_price, levels.sl,
            )
            signal = replace(signal, stop_loss=levels.sl, take_profit=levels.tp)

        return signal


def _stop_on_losing_side(signal: Signal) -> bool:
    if signal.side == "buy":
        return signal.stop_loss < signal.entry_price
    return signal.stop_loss > signal.entry_price
