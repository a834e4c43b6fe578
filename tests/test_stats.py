"""Tests for backtest statistics."""

import math

import pytest

from autotrade.backtest.stats import calculate_stats
from autotrade.trading.models import Position


def _trade(pnl, status="closed", i=0) -> Position:
    return Position(
        id=f"t{i}",
        side="buy",
        entry_price=100.0,
        entry_time=i,
        stop_loss=99.0,
        initial_stop_loss=99.0,
        take_profit=102.0,
        amount=1000.0,
        status=status,
        label="test",
        exit_price=None if status == "open" else 100.0,
        pnl=pnl,
    )


def _trades(pnls):
    return [_trade(p, i=i) for i, p in enumerate(pnls)]


class TestCalculateStats:
    def test_empty(self):
        stats = calculate_stats([])
        assert stats["total_trades"] == 0
        assert stats["win_rate"] == 0.0
        assert stats["profit_factor"] is None
        assert stats["net_pnl"] == 0.0

    def test_counts_and_rates(self):
        stats = calculate_stats(_trades([30.0, -10.0, 20.0, -10.0]), initial_balance=1000.0)
        assert stats["total_trades"] == 4
        assert stats["winning_trades"] == 2
        assert stats["losing_trades"] == 2
        assert stats["win_rate"] == 0.5
        assert stats["profit_factor"] == 2.5
        assert stats["net_pnl"] == 30.0
        assert stats["return_pct"] == 3.0

    def test_open_positions_ignored(self):
        trades = _trades([10.0]) + [_trade(None, status="open", i=9)]
        assert calculate_stats(trades)["total_trades"] == 1

    def test_no_losses_profit_factor_none(self):
        assert calculate_stats(_trades([5.0, 5.0]))["profit_factor"] is None

    def test_max_drawdown(self):
        stats = calculate_stats(_trades([10.0, -5.0, -7.0, 20.0, -3.0]))
        assert stats["max_drawdown"] == pytest.approx(12.0)

    def test_sharpe(self):
        pnls = [1.0, 2.0, 3.0]
        mean = 2.0
        std = math.sqrt(sum((p - mean) ** 2 for p in pnls) / 2)
        expected = round(mean / std * math.sqrt(3), 4)
        assert calculate_stats(_trades(pnls))["sharpe_ratio"] == expected

    def test_zero_variance_sharpe(self):
        assert calculate_stats(_trades([4.0, 4.0, 4.0]))["sharpe_ratio"] == 0.0
