"""Order block detection — demand/supply zones left behind by impulse bars.

Pure functions.  An impulse bar is one whose body exceeds a fraction of the
current ATR and whose close breaks the previous bar's high (demand) or low
(supply), whatever the bar's colour; the previous bar's range becomes the
block.
"""

from typing import Optional, Sequence

from autotrade.strategy.models import Bar, OrderBlock

DEFAULT_IMPULSE_ATR_MULT = 0.8


def _detect_impulse(
    bars: Sequence[Bar],
    index: int,
    atr: Optional[float],
    impulse_atr_mult: float = DEFAULT_IMPULSE_ATR_MULT,
) -> Optional[OrderBlock]:
    """Return the block created by bar *index*, if it is an impulse bar."""
    if index < 1 or atr is None:
        return None

    bar = bars[index]
    prior = bars[index - 1]
    body = abs(bar.close - bar.open)
    if body <= impulse_atr_mult * atr:
        return None

    if bar.close > prior.high:
        side = "demand"
    elif bar.close < prior.low:
        side = "supply"
    else:
        return None

    return OrderBlock(
        top=prior.high,
        bottom=prior.low,
        side=side,
        creation_time=bar.time,
    )


def _still_valid(block: OrderBlock, close: float) -> bool:
    if block.side == "demand":
        return close > block.bottom
    return close < block.top


def detect_order_blocks(
    bars: Sequence[Bar],
    atr: Sequence[Optional[float]],
    impulse_atr_mult: float = DEFAULT_IMPULSE_ATR_MULT,
) -> list[tuple[Optional[OrderBlock], Optional[OrderBlock]]]:
    """Scan *bars* and report the active ``(demand, supply)`` block per bar.

    Blocks are kept only while every close since their creation stayed on
    the favourable side (above ``bottom`` for demand, below ``top`` for
    supply); once traded through, a block is discarded for good.  The active
    block of each side is the most recently created valid one, counting the
    bar that created it.

    Args:
        bars: Bar window, oldest-first.
        atr: ATR series aligned with *bars*.
        impulse_atr_mult: Minimum body size as a multiple of ATR.

    Returns:
        A list the same length as *bars* of ``(demand, supply)`` tuples.
    """
    demand: list[OrderBlock] = []
    supply: list[OrderBlock] = []
    result: list[tuple[Optional[OrderBlock], Optional[OrderBlock]]] = []

    for i, bar in enumerate(bars):
        demand = [b for b in demand if _still_valid(b, bar.close)]
        supply = [b for b in supply if _still_valid(b, bar.close)]

        block = _detect_impulse(bars, i, atr[i], impulse_atr_mult)
        if block is not None:
            if block.side == "demand":
                demand.append(block)
            else:
                supply.append(block)

        result.append((
            demand[-1] if demand else None,
            supply[-1] if supply else None,
        ))

    return result
