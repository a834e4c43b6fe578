"""Stop-loss and take-profit calculation — pure math, no I/O.

Risk-multiple targets:
    TP is placed ``rr_ratio`` × the stop distance away from entry.

ATR fallback:
    SL is placed ``1.5 × ATR`` from entry when a strategy's own stop is
    unusable (on the wrong side of entry, or further than 10 % away).
"""

from dataclasses import dataclass
from typing import Optional

DEFAULT_ATR_MULT = 1.5
MAX_RISK_FRACTION = 0.1
# ATR stand-in when the indicator is still warming up
FALLBACK_ATR_FRACTION = 0.01


@dataclass(frozen=True)
class RiskLevels:
    """Computed stop-loss and take-profit for a trade."""

    sl: float
    tp: float


def _direction_sign(direction: str) -> int:
    if direction == "buy":
        return 1
    if direction == "sell":
        return -1
    raise ValueError(f"direction must be 'buy' or 'sell', got '{direction}'")


def calculate_rr_target(
    entry_price: float,
    direction: str,
    sl_price: float,
    rr_ratio: float,
) -> float:
    """Take-profit ``rr_ratio`` × risk away from entry.

    - **Buy**:  TP = entry + rr × |entry − SL|
    - **Sell**: TP = entry − rr × |entry − SL|
    """
    sign = _direction_sign(direction)
    risk = abs(entry_price - sl_price)
    return entry_price + sign * rr_ratio * risk


def calculate_atr_sl(
    entry_price: float,
    direction: str,
    atr: Optional[float],
    atr_mult: float = DEFAULT_ATR_MULT,
) -> float:
    """Stop-loss ``atr_mult`` × ATR from entry on the losing side.

    When *atr* is unavailable, 1 % of entry is used in its place.
    """
    sign = _direction_sign(direction)
    if not atr:
        atr = entry_price * FALLBACK_ATR_FRACTION
    return entry_price - sign * atr * atr_mult


def risk_is_acceptable(
    entry_price: float,
    sl_price: float,
    max_risk_fraction: float = MAX_RISK_FRACTION,
) -> bool:
    """``False`` when the stop distance is zero or exceeds the cap."""
    risk = abs(entry_price - sl_price)
    return 0 < risk <= max_risk_fraction * entry_price


def calculate_atr_fallback_levels(
    entry_price: float,
    direction: str,
    atr: Optional[float],
    rr_ratio: float,
    atr_mult: float = DEFAULT_ATR_MULT,
) -> RiskLevels:
    """ATR-derived SL with an R-multiple TP."""
    sl = calculate_atr_sl(entry_price, direction, atr, atr_mult)
    tp = calculate_rr_target(entry_price, direction, sl, rr_ratio)
    return RiskLevels(sl=sl, tp=tp)
