"""Tests for the trade lifecycle manager.

Exits are checked against hand-built bars; entries use a stub variant so
the sizing and labelling can be asserted exactly.
"""

from dataclasses import replace
from typing import Optional

import pytest

from autotrade.strategy.engine import StrategyEngine
from autotrade.strategy.models import (
    NO_CROSS,
    EnrichedBar,
    Indicators,
    Signal,
    StrategyParams,
)
from autotrade.trading.lifecycle import TradeLifecycleManager, calculate_pnl, check_exit
from autotrade.trading.models import NO_ACTION, Position

PARAMS = StrategyParams()


# ── Helpers ──────────────────────────────────────────────────────────────


def _indicators() -> Indicators:
    return Indicators(
        ema50=None, ema200=None, rsi=None, macd=None, atr=None,
        trend="neutral", risk_zone="medium", cross_signal=NO_CROSS,
        volume_trend="neutral", volume_ratio=1.0, is_sideways=False,
    )


def _ebar(i: int, close: float = 100.0, high: Optional[float] = None,
          low: Optional[float] = None) -> EnrichedBar:
    return EnrichedBar(
        time=1_700_000_000_000 + i * 60_000,
        open=close,
        high=close + 0.5 if high is None else high,
        low=close - 0.5 if low is None else low,
        close=close,
        volume=1000.0,
        indicators=_indicators(),
    )


def _window(n: int = 210, last: Optional[EnrichedBar] = None) -> list[EnrichedBar]:
    bars = [_ebar(i) for i in range(n - 1)]
    bars.append(last or _ebar(n - 1))
    return bars


def _position(side="buy", entry=110.0, stop=100.0, target=120.0, amount=50.0) -> Position:
    return Position(
        id="abc123def",
        side=side,
        entry_price=entry,
        entry_time=0,
        stop_loss=stop,
        initial_stop_loss=stop,
        take_profit=target,
        amount=amount,
        status="open",
        label="test",
    )


class _ScriptedVariant:
    name = "scripted"

    def __init__(self, signal: Optional[Signal]) -> None:
        self.signal = signal
        self.calls = 0

    def evaluate(self, bars, index, params):
        self.calls += 1
        return self.signal


def _manager(signal: Optional[Signal] = None):
    variant = _ScriptedVariant(signal)
    return TradeLifecycleManager(StrategyEngine(variant)), variant


# ── PnL and exits ────────────────────────────────────────────────────────


class TestPnL:
    def test_long_loss(self):
        assert calculate_pnl(_position(), 100.0) == pytest.approx(-10 / 110 * 50)

    def test_long_gain(self):
        assert calculate_pnl(_position(), 120.0) == pytest.approx(10 / 110 * 50)

    def test_short_gain(self):
        pos = _position(side="sell", entry=100.0, stop=105.0, target=90.0, amount=1000.0)
        assert calculate_pnl(pos, 90.0) == pytest.approx(100.0)


class TestCheckExit:
    def test_stop_wins_when_both_hit(self):
        assert check_exit(_position(), _ebar(0, 110.0, high=121.0, low=99.0)) == (
            100.0, "Stop Loss",
        )

    def test_take_profit(self):
        assert check_exit(_position(), _ebar(0, 115.0, high=121.0, low=105.0)) == (
            120.0, "Take Profit",
        )

    def test_short_take_profit(self):
        pos = _position(side="sell", entry=100.0, stop=105.0, target=90.0)
        assert check_exit(pos, _ebar(0, 95.0, high=104.0, low=89.0)) == (
            90.0, "Take Profit",
        )

    def test_short_stop(self):
        pos = _position(side="sell", entry=100.0, stop=105.0, target=90.0)
        assert check_exit(pos, _ebar(0, 104.0, high=105.5, low=100.0)) == (
            105.0, "Stop Loss",
        )

    def test_inside_levels(self):
        assert check_exit(_position(), _ebar(0, 110.0, high=115.0, low=105.0)) is None


# ── Lifecycle decisions ──────────────────────────────────────────────────


class TestLifecycleClose:
    def test_closes_at_stop_when_both_levels_hit(self):
        manager, _ = _manager()
        bars = _window(last=_ebar(209, 110.0, high=121.0, low=99.0))
        intent = manager.evaluate(bars, PARAMS, 10_000.0, _position())

        assert intent.action == "close"
        closed = intent.position
        assert closed.status == "closed"
        assert closed.exit_price == 100.0
        assert closed.exit_reason == "Stop Loss"
        assert closed.exit_time == bars[-1].time
        assert closed.pnl == pytest.approx(-4.545, abs=1e-3)
        assert closed.id == "abc123def"

    def test_holds_when_no_level_hit(self):
        manager, variant = _manager(Signal("buy", 100.0, 99.0, 102.0, "x", 5))
        bars = _window(last=_ebar(209, 110.0, high=115.0, low=105.0))

        assert manager.evaluate(bars, PARAMS, 10_000.0, _position()) == NO_ACTION
        assert variant.calls == 0  # no new entries while a position is open

    def test_open_position_is_not_mutated(self):
        manager, _ = _manager()
        pos = _position()
        manager.evaluate(_window(last=_ebar(209, 110.0, high=121.0, low=99.0)),
                         PARAMS, 10_000.0, pos)
        assert pos.is_open


class TestLifecycleOpen:
    def test_opens_sized_position(self):
        manager, _ = _manager(Signal("buy", 100.0, 99.0, 103.0, "Test Entry", 6))
        bars = _window()
        intent = manager.evaluate(bars, PARAMS, 10_000.0, None)

        assert intent.action == "open"
        pos = intent.position
        assert pos.side == "buy"
        assert pos.status == "open"
        assert pos.entry_price == 100.0
        assert pos.entry_time == bars[-1].time
        assert pos.stop_loss == pos.initial_stop_loss == 99.0
        assert pos.take_profit == 103.0
        assert pos.amount == pytest.approx(9500.0)
        assert pos.label == "Test Entry (strength 6/10)"
        assert len(pos.id) == 9
        assert intent.signal.reason == "Test Entry"

    def test_ids_are_unique(self):
        manager, _ = _manager(Signal("sell", 100.0, 101.0, 97.0, "x", 5))
        ids = {manager.evaluate(_window(), PARAMS, 10_000.0, None).position.id
               for _ in range(20)}
        assert len(ids) == 20

    def test_custom_risk_per_trade(self):
        variant = _ScriptedVariant(Signal("buy", 100.0, 90.0, 120.0, "x", 5))
        manager = TradeLifecycleManager(StrategyEngine(variant), risk_per_trade=0.01)
        intent = manager.evaluate(_window(), PARAMS, 10_000.0, None)
        assert intent.position.amount == pytest.approx(1000.0)

    def test_no_signal(self):
        manager, _ = _manager(None)
        assert manager.evaluate(_window(), PARAMS, 10_000.0, None) == NO_ACTION

    def test_short_history(self):
        manager, variant = _manager(Signal("buy", 100.0, 99.0, 103.0, "x", 5))
        assert manager.evaluate(_window(50), PARAMS, 10_000.0, None) == NO_ACTION
        assert variant.calls == 0

    def test_empty_window(self):
        manager, _ = _manager()
        assert manager.evaluate([], PARAMS, 10_000.0, None) == NO_ACTION

    def test_closed_position_treated_as_flat(self):
        manager, _ = _manager(Signal("buy", 100.0, 99.0, 103.0, "x", 5))
        closed = replace(_position(), status="closed")
        assert manager.evaluate(_window(), PARAMS, 10_000.0, closed).action == "open"
