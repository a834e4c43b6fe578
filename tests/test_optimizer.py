"""Tests for the strategy parameter optimizers."""

import pytest

from autotrade.backtest.optimizer import (
    FixedRatioOptimizer,
    GridSearchOptimizer,
    Optimizer,
)
from autotrade.strategy.models import Bar, StrategyParams


def _make_bars(n: int) -> list[Bar]:
    return [
        Bar(
            time=1_700_000_000_000 + i * 60_000,
            open=100.0, high=100.5, low=99.5, close=100.0, volume=1000.0,
        )
        for i in range(n)
    ]


class _ScoredGrid(GridSearchOptimizer):
    """Grid search with canned scores instead of nested replays."""

    def __init__(self, scores: dict, **kwargs) -> None:
        super().__init__(ratios=tuple(scores), **kwargs)
        self.scores = scores
        self.scored: list[float] = []

    def score(self, bars, ratio):
        self.scored.append(ratio)
        return self.scores[ratio]


class TestFixedRatio:
    def test_default(self):
        assert FixedRatioOptimizer().optimize(_make_bars(10)) == StrategyParams(2.5)

    def test_custom(self):
        assert FixedRatioOptimizer(3.0).optimize([]).risk_reward_ratio == 3.0

    def test_satisfies_protocol(self):
        assert isinstance(FixedRatioOptimizer(), Optimizer)
        assert isinstance(GridSearchOptimizer(), Optimizer)


class TestGridSearch:
    def test_picks_best_score(self):
        grid = _ScoredGrid({1.5: -10.0, 2.0: 35.0, 2.5: 12.0, 3.0: 34.9})
        params = grid.optimize(_make_bars(250))
        assert params.risk_reward_ratio == 2.0
        assert grid.scored == [1.5, 2.0, 2.5, 3.0]

    def test_tie_goes_to_first_candidate(self):
        grid = _ScoredGrid({1.5: 0.0, 2.0: 5.0, 3.0: 5.0})
        assert grid.optimize(_make_bars(250)).risk_reward_ratio == 2.0

    def test_short_window_uses_fallback(self):
        grid = _ScoredGrid({1.5: 1.0, 3.0: 2.0}, fallback=FixedRatioOptimizer(1.8))
        params = grid.optimize(_make_bars(200))
        assert params.risk_reward_ratio == 1.8
        assert grid.scored == []

    def test_empty_ratios(self):
        with pytest.raises(ValueError, match="ratios"):
            GridSearchOptimizer(ratios=())

    def test_nested_replay_on_flat_market_scores_zero(self):
        """Flat prices never produce a trend_rsi entry, so every ratio nets 0."""
        grid = GridSearchOptimizer(ratios=(1.5, 2.0))
        bars = _make_bars(230)
        assert grid.score(bars, 1.5) == 0.0
        assert grid.optimize(bars).risk_reward_ratio == 1.5
