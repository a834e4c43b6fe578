"""Order-block retest — buy demand / sell supply revisits in trend.

When price is trending but no block is being retested, an RSI pullback
(RSI < 45 in an uptrend, RSI > 55 in a downtrend) is taken instead with an
ATR stop.  Targets are always an R-multiple of the stop distance.
"""

from dataclasses import dataclass
from typing import Optional, Sequence

from autotrade.risk.sl_tp import calculate_atr_sl, calculate_rr_target
from autotrade.strategy.models import EnrichedBar, OrderBlock, Signal, StrategyParams


@dataclass(frozen=True)
class OrderBlockRetestThresholds:
    retest_buffer_pct: float = 0.003
    stop_pad_pct: float = 0.003
    pullback_rsi_buy: float = 45.0
    pullback_rsi_sell: float = 55.0
    atr_mult: float = 1.5
    block_strength: int = 8
    pullback_strength: int = 5


def _retests_demand(bar: EnrichedBar, block: OrderBlock, buffer_pct: float) -> bool:
    return block.bottom < bar.close <= block.top * (1 + buffer_pct)


def _retests_supply(bar: EnrichedBar, block: OrderBlock, buffer_pct: float) -> bool:
    return block.bottom * (1 - buffer_pct) <= bar.close < block.top


class OrderBlockRetestStrategy:
    """Trade revisits of the active order block in the EMA200 trend."""

    name = "order_block_retest"

    def __init__(
        self, thresholds: Optional[OrderBlockRetestThresholds] = None,
    ) -> None:
        self.thresholds = thresholds or OrderBlockRetestThresholds()

    def evaluate(
        self,
        bars: Sequence[EnrichedBar],
        index: int,
        params: StrategyParams,
    ) -> Optional[Signal]:
        t = self.thresholds
        curr = bars[index]
        ind = curr.indicators
        if ind.ema200 is None:
            return None

        entry = curr.close
        rr = params.risk_reward_ratio

        if curr.close > ind.ema200:
            block = ind.active_demand_block
            if block is not None and _retests_demand(curr, block, t.retest_buffer_pct):
                stop = block.bottom * (1 - t.stop_pad_pct)
                return Signal(
                    side="buy",
                    entry_price=entry,
                    stop_loss=stop,
                    take_profit=calculate_rr_target(entry, "buy", stop, rr),
                    reason=f"Demand block retest {block.bottom:.2f}-{block.top:.2f}",
                    strength=t.block_strength,
                )
            if ind.rsi is not None and ind.rsi < t.pullback_rsi_buy:
                stop = calculate_atr_sl(entry, "buy", ind.atr, t.atr_mult)
                return Signal(
                    side="buy",
                    entry_price=entry,
                    stop_loss=stop,
                    take_profit=calculate_rr_target(entry, "buy", stop, rr),
                    reason="RSI pullback in uptrend",
                    strength=t.pullback_strength,
                )

        elif curr.close < ind.ema200:
            block = ind.active_supply_block
            if block is not None and _retests_supply(curr, block, t.retest_buffer_pct):
                stop = block.top * (1 + t.stop_pad_pct)
                return Signal(
                    side="sell",
                    entry_price=entry,
                    stop_loss=stop,
                    take_profit=calculate_rr_target(entry, "sell", stop, rr),
                    reason=f"Supply block retest {block.bottom:.2f}-{block.top:.2f}",
                    strength=t.block_strength,
                )
            if ind.rsi is not None and ind.rsi > t.pullback_rsi_sell:
                stop = calculate_atr_sl(entry, "sell", ind.atr, t.atr_mult)
                return Signal(
                    side="sell",
                    entry_price=entry,
                    stop_loss=stop,
                    take_profit=calculate_rr_target(entry, "sell", stop, rr),
                    reason="RSI pullback in downtrend",
                    strength=t.pullback_strength,
                )

        return None
