"""Tests for the indicator pipeline."""

import math

import pytest

from autotrade.strategy.indicators import calculate_ema, calculate_rsi
from autotrade.strategy.models import Bar, EnrichedBar
from autotrade.strategy.pipeline import enrich_bars


def _make_bars(n: int, start: float = 100.0, step: float = 0.1) -> list[Bar]:
    bars = []
    for i in range(n):
        close = start + step * i
        bars.append(Bar(
            time=1_700_000_000_000 + i * 60_000,
            open=close - step / 2,
            high=close + 0.5,
            low=close - 0.5,
            close=close,
            volume=1000.0 + i,
        ))
    return bars


class TestEnrichBars:
    def test_one_enriched_bar_per_input(self):
        bars = _make_bars(250)
        enriched = enrich_bars(bars)
        assert len(enriched) == 250
        assert all(isinstance(b, EnrichedBar) for b in enriched)

    def test_ohlcv_preserved(self):
        bars = _make_bars(30)
        enriched = enrich_bars(bars)
        for raw, rich in zip(bars, enriched):
            assert (rich.time, rich.open, rich.high, rich.low, rich.close, rich.volume) == (
                raw.time, raw.open, raw.high, raw.low, raw.close, raw.volume,
            )

    def test_warmup_boundaries(self):
        enriched = enrich_bars(_make_bars(250))
        ind = [b.indicators for b in enriched]

        assert ind[48].ema50 is None and ind[49].ema50 is not None
        assert ind[198].ema200 is None and ind[199].ema200 is not None
        assert ind[13].rsi is None and ind[14].rsi is not None
        assert ind[12].atr is None and ind[13].atr is not None
        assert ind[33].macd is None and ind[34].macd is not None

    def test_values_finite_after_warmup(self):
        enriched = enrich_bars(_make_bars(250))
        ind = enriched[-1].indicators
        for value in (ind.ema50, ind.ema200, ind.rsi, ind.atr, ind.macd.line,
                      ind.macd.signal, ind.macd.histogram):
            assert math.isfinite(value)

    def test_series_match_standalone_functions(self):
        bars = _make_bars(220)
        enriched = enrich_bars(bars)
        assert enriched[-1].indicators.ema50 == pytest.approx(calculate_ema(bars, 50)[-1])
        assert enriched[-1].indicators.rsi == pytest.approx(calculate_rsi(bars, 14)[-1])

    def test_steady_uptrend_is_bullish(self):
        ind = enrich_bars(_make_bars(260))[-1].indicators
        assert ind.trend == "bullish"
        assert ind.cross_signal.type == "golden"
        assert ind.cross_signal.fresh is False

    def test_constant_prices(self):
        ind = enrich_bars(_make_bars(260, step=0.0))[-1].indicators
        assert ind.ema50 == pytest.approx(100.0)
        assert ind.ema200 == pytest.approx(100.0)
        assert ind.rsi == pytest.approx(50.0)
        assert ind.macd.histogram == pytest.approx(0.0)
        assert ind.is_sideways is True

    def test_before_warmup_defaults(self):
        ind = enrich_bars(_make_bars(5))[-1].indicators
        assert ind.trend == "neutral"
        assert ind.risk_zone == "medium"
        assert ind.cross_signal.type == "none"
        assert ind.volume_trend == "neutral"
        assert ind.active_demand_block is None
        assert ind.active_supply_block is None

    def test_empty_window(self):
        assert enrich_bars([]) == []
