"""Technical indicators — EMA, RSI, MACD, ATR, volume and market state.

Pure functions, no I/O.  Every series function returns a list with the same
length as its input; entries before the indicator's warm-up are ``None``.
"""

from typing import Literal, Optional, Sequence

from autotrade.strategy.models import Bar, CrossSignal, MACDValue, NO_CROSS

# Guards the RS division when the average loss is zero.
RSI_EPSILON = 1e-5

Series = list[Optional[float]]


def calculate_ema(bars: Sequence[Bar], period: int) -> Series:
    """Calculate an Exponential Moving Average series over closes."""
    return _ema_of_values([b.close for b in bars], period)


def _ema_of_values(values: Sequence[Optional[float]], period: int) -> Series:
    """EMA over a value series that may start with ``None`` entries.

    The seed is the SMA of the first *period* available values and sits at
    the index of the last of them.  ``k = 2 / (period + 1)``.
    """
    result: Series = [None] * len(values)
    start = next((i for i, v in enumerate(values) if v is not None), None)
    if start is None or len(values) - start < period:
        return result

    k = 2.0 / (period + 1)
    seed_index = start + period - 1
    prev = sum(values[start : seed_index + 1]) / period
    result[seed_index] = prev

    for i in range(seed_index + 1, len(values)):
        prev = values[i] * k + prev * (1 - k)
        result[i] = prev

    return result


# ── RSI ──────────────────────────────────────────────────────────────────


def calculate_rsi(bars: Sequence[Bar], period: int = 14) -> Series:
    """Calculate Wilder's Relative Strength Index.

    Algorithm (Wilder-smoothed):
        1. delta = close[i] - close[i-1]
        2. Seed average gain/loss = SMA of the first *period* deltas.
        3. Subsequent: avg = (prev_avg × (period-1) + current) / period
        4. RS = avg_gain / max(avg_loss, ε)
        5. RSI = 100 - 100 / (1 + RS)

    The first value sits at index *period*.  A window with no movement at
    all (both averages zero) reads 50.
    """
    rsi: Series = [None] * len(bars)
    if len(bars) <= period:
        return rsi

    closes = [b.close for b in bars]
    deltas = [closes[i] - closes[i - 1] for i in range(1, len(closes))]
    gains = [max(d, 0.0) for d in deltas]
    losses = [max(-d, 0.0) for d in deltas]

    avg_gain = sum(gains[:period]) / period
    avg_loss = sum(losses[:period]) / period
    rsi[period] = _rsi_from_averages(avg_gain, avg_loss)

    for i in range(period, len(deltas)):
        avg_gain = (avg_gain * (period - 1) + gains[i]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i]) / period
        # deltas are offset by one bar
        rsi[i + 1] = _rsi_from_averages(avg_gain, avg_loss)

    return rsi


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    if avg_gain == 0 and avg_loss == 0:
        return 50.0
    rs = avg_gain / max(avg_loss, RSI_EPSILON)
    return 100.0 - 100.0 / (1.0 + rs)


# ── MACD ─────────────────────────────────────────────────────────────────


def calculate_macd(
    bars: Sequence[Bar],
    fast_period: int = 12,
    slow_period: int = 26,
    signal_period: int = 9,
) -> list[Optional[MACDValue]]:
    """Calculate MACD line, signal line and histogram.

    ``line = EMA(fast) - EMA(slow)``, ``signal = EMA(line, signal_period)``
    seeded from the first *signal_period* line values,
    ``histogram = line - signal``.  A bar gets a value only when all three
    are available and *slow_period* + *signal_period* bars have accumulated,
    i.e. from index ``slow_period + signal_period - 1``.
    """
    ema_fast = calculate_ema(bars, fast_period)
    ema_slow = calculate_ema(bars, slow_period)

    line: Series = [
        f - s if f is not None and s is not None else None
        for f, s in zip(ema_fast, ema_slow)
    ]
    signal = _ema_of_values(line, signal_period)

    warmup = slow_period + signal_period - 1
    result: list[Optional[MACDValue]] = []
    for i, (m, s) in enumerate(zip(line, signal)):
        if i < warmup or m is None or s is None:
            result.append(None)
        else:
            result.append(MACDValue(line=m, signal=s, histogram=m - s))
    return result


# ── ATR ──────────────────────────────────────────────────────────────────


def true_range(bar: Bar, prev_close: Optional[float]) -> float:
    """``max(high - low, |high - prev_close|, |low - prev_close|)``."""
    if prev_close is None:
        return bar.high - bar.low
    return max(
        bar.high - bar.low,
        abs(bar.high - prev_close),
        abs(bar.low - prev_close),
    )


def calculate_atr(bars: Sequence[Bar], period: int = 14) -> Series:
    """Calculate a Wilder-smoothed Average True Range series.

    The first bar's true range is its own high-low range.  The seed is the
    mean of the first *period* true ranges (index ``period - 1``); after
    that ``atr = (prev × (period-1) + tr) / period``.
    """
    atr: Series = [None] * len(bars)
    if len(bars) < period:
        return atr

    trs = [
        true_range(bar, bars[i - 1].close if i > 0 else None)
        for i, bar in enumerate(bars)
    ]

    prev = sum(trs[:period]) / period
    atr[period - 1] = prev
    for i in range(period, len(bars)):
        prev = (prev * (period - 1) + trs[i]) / period
        atr[i] = prev

    return atr


# ── Volume ───────────────────────────────────────────────────────────────


def calculate_average_volume(bars: Sequence[Bar], period: int = 20) -> Series:
    """Simple moving average of volume."""
    result: Series = [None] * len(bars)
    for i in range(period - 1, len(bars)):
        window = bars[i - period + 1 : i + 1]
        result[i] = sum(b.volume for b in window) / period
    return result


def determine_volume_trend(
    bars: Sequence[Bar],
    index: int,
    avg_volumes: Series,
    lookback: int = 5,
) -> tuple[Literal["increasing", "decreasing", "neutral"], float]:
    """Classify volume against its average and its level *lookback* bars ago.

    Returns ``(trend, ratio)`` where ratio is current volume / average.
    """
    avg = avg_volumes[index]
    if index < lookback or not avg:
        return "neutral", 1.0

    current = bars[index].volume
    earlier = bars[index - lookback].volume
    ratio = current / avg

    if current > earlier * 1.1 and ratio > 1.2:
        return "increasing", ratio
    if current < earlier * 0.9 and ratio < 0.8:
        return "decreasing", ratio
    return "neutral", ratio


# ── Market state ─────────────────────────────────────────────────────────


def _cross_strength(ema50: float, ema200: float, scale: float) -> int:
    distance = abs(ema50 - ema200)
    raw = round(distance / (ema200 * 0.01) * scale)
    return min(10, max(1, raw))


def detect_cross(ema50: Series, ema200: Series, index: int) -> CrossSignal:
    """Classify the EMA50/EMA200 relationship at *index*.

    A transition on this bar (golden: ``prev50 <= prev200`` and
    ``curr50 > curr200``; death mirrored) wins over the steady-state reading
    and is scored with a larger distance multiplier (5 vs 2).
    """
    if index < 1:
        return NO_CROSS

    prev50, curr50 = ema50[index - 1], ema50[index]
    prev200, curr200 = ema200[index - 1], ema200[index]
    if None in (prev50, curr50, prev200, curr200):
        return NO_CROSS

    if prev50 <= prev200 and curr50 > curr200:
        return CrossSignal(
            "golden", _cross_strength(curr50, curr200, 5), True, fresh=True,
        )
    if prev50 >= prev200 and curr50 < curr200:
        return CrossSignal(
            "death", _cross_strength(curr50, curr200, 5), True, fresh=True,
        )

    if curr50 > curr200:
        return CrossSignal("golden", _cross_strength(curr50, curr200, 2), True)
    if curr50 < curr200:
        return CrossSignal("death", _cross_strength(curr50, curr200, 2), True)
    return NO_CROSS


def is_sideways(
    bars: Sequence[Bar],
    index: int,
    lookback: int = 20,
    threshold: float = 0.03,
) -> bool:
    """``True`` when the range over bars ``index-lookback..index`` is under
    *threshold* × their mean close."""
    if index < lookback:
        return False

    recent = bars[index - lookback : index + 1]
    price_range = max(b.high for b in recent) - min(b.low for b in recent)
    mean_close = sum(b.close for b in recent) / len(recent)
    return price_range < threshold * mean_close


def determine_trend(
    close: float,
    ema50: Optional[float],
    ema200: Optional[float],
) -> Literal["bullish", "bearish", "neutral"]:
    """Bullish iff ``close > ema50 > ema200``, bearish iff mirrored."""
    if ema50 is None or ema200 is None:
        return "neutral"
    if close > ema50 > ema200:
        return "bullish"
    if close < ema50 < ema200:
        return "bearish"
    return "neutral"


def determine_risk_zone(
    rsi: Optional[float],
    macd: Optional[MACDValue],
    trend: str,
) -> Literal["low", "medium", "high"]:
    """Rate entry risk from RSI extremes and MACD momentum.

    - **high**: trend-aligned overextension with fading momentum
      (bullish, RSI > 70, histogram < 0; or bearish, RSI < 30, histogram > 0).
    - **medium**: RSI beyond 75 / 25.
    - **low**: RSI in [40, 60] with histogram agreeing with the trend.
    - **medium** otherwise, including when RSI or MACD is unavailable.
    """
    if rsi is None or macd is None:
        return "medium"

    histogram = macd.histogram
    if trend == "bullish" and rsi > 70 and histogram < 0:
        return "high"
    if trend == "bearish" and rsi < 30 and histogram > 0:
        return "high"

    if rsi > 75 or rsi < 25:
        return "medium"

    if 40 <= rsi <= 60:
        if trend == "bullish" and histogram > 0:
            return "low"
        if trend == "bearish" and histogram < 0:
            return "low"

    return "medium"
