"""Indicator pipeline — turns a bar window into enriched bars.

Every series is recomputed over the whole window on each call; nothing is
carried between calls.
"""

from typing import Sequence

from autotrade.strategy.indicators import (
    calculate_atr,
    calculate_average_volume,
    calculate_ema,
    calculate_macd,
    calculate_rsi,
    detect_cross,
    determine_risk_zone,
    determine_trend,
    determine_volume_trend,
    is_sideways,
)
from autotrade.strategy.models import Bar, EnrichedBar, Indicators
from autotrade.strategy.order_blocks import detect_order_blocks

EMA_FAST_PERIOD = 50
EMA_SLOW_PERIOD = 200
RSI_PERIOD = 14
ATR_PERIOD = 14
VOLUME_PERIOD = 20
SIDEWAYS_LOOKBACK = 20


def enrich_bars(bars: Sequence[Bar]) -> list[EnrichedBar]:
    """Attach an ``Indicators`` snapshot to every bar in *bars*."""
    ema50 = calculate_ema(bars, EMA_FAST_PERIOD)
    ema200 = calculate_ema(bars, EMA_SLOW_PERIOD)
    rsi = calculate_rsi(bars, RSI_PERIOD)
    macd = calculate_macd(bars)
    atr = calculate_atr(bars, ATR_PERIOD)
    avg_volumes = calculate_average_volume(bars, VOLUME_PERIOD)
    blocks = detect_order_blocks(bars, atr)

    enriched: list[EnrichedBar] = []
    for i, bar in enumerate(bars):
        trend = determine_trend(bar.close, ema50[i], ema200[i])
        volume_trend, volume_ratio = determine_volume_trend(bars, i, avg_volumes)
        demand_block, supply_block = blocks[i]

        indicators = Indicators(
            ema50=ema50[i],
            ema200=ema200[i],
            rsi=rsi[i],
            macd=macd[i],
            atr=atr[i],
            trend=trend,
            risk_zone=determine_risk_zone(rsi[i], macd[i], trend),
            cross_signal=detect_cross(ema50, ema200, i),
            volume_trend=volume_trend,
            volume_ratio=volume_ratio,
            is_sideways=is_sideways(bars, i, SIDEWAYS_LOOKBACK),
            active_demand_block=demand_block,
            active_supply_block=supply_block,
        )
        enriched.append(EnrichedBar(
            time=bar.time,
            open=bar.open,
            high=bar.high,
            low=bar.low,
            close=bar.close,
            volume=bar.volume,
            indicators=indicators,
        ))

    return enriched
