"""Tests for the command-line wiring."""

import logging
import sys
from dataclasses import replace

import pandas as pd

from autotrade.backtest.optimizer import GridSearchOptimizer
from autotrade.config import load_config
from autotrade.main import _run_cli, build_simulation, log_summary
from autotrade.strategy.models import Bar


def _make_bars(n: int) -> list[Bar]:
    return [
        Bar(
            time=1_700_000_000_000 + i * 60_000,
            open=100.0, high=100.5, low=99.5, close=100.0, volume=1000.0,
        )
        for i in range(n)
    ]


def _config(tmp_path, **overrides):
    cfg = load_config(str(tmp_path / "nonexistent.env"))
    return replace(cfg, **overrides)


class TestBuildSimulation:
    def test_fixed_optimizer_uses_config_ratio(self, tmp_path):
        cfg = _config(tmp_path, risk_reward_ratio=1.7)
        sim = build_simulation(_make_bars(100), cfg)
        assert sim.context.params.risk_reward_ratio == 1.7
        assert len(sim.context.window) == 15
        assert sim.remaining == 85

    def test_grid_optimizer(self, tmp_path):
        cfg = _config(tmp_path, history_fraction=0.5)
        sim = build_simulation(_make_bars(100), cfg, "grid")
        assert isinstance(sim._optimizer, GridSearchOptimizer)
        # 50 history bars are too few to search, so the fallback ratio applies
        assert sim.context.params.risk_reward_ratio == 2.5

    def test_summary(self, tmp_path, caplog):
        sim = build_simulation(_make_bars(40), _config(tmp_path))
        sim.run()
        with caplog.at_level(logging.INFO, logger="autotrade"):
            stats = log_summary(sim)
        assert stats["total_trades"] == 0
        assert "Replay complete" in caplog.text


class TestCLI:
    def test_replays_csv(self, tmp_path, monkeypatch, caplog):
        path = tmp_path / "bars.csv"
        pd.DataFrame([b.__dict__ for b in _make_bars(60)]).to_csv(path, index=False)
        monkeypatch.setattr(sys, "argv", [
            "autotrade", "--data", str(path), "--variant", "ema_cross",
            "--balance", "500", "--env", str(tmp_path / "nonexistent.env"),
        ])
        with caplog.at_level(logging.INFO, logger="autotrade"):
            _run_cli()
        assert "Replaying 51 bars with ema_cross" in caplog.text
        assert "Replay complete: 51 ticks" in caplog.text
