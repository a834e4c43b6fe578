"""Backtest statistics — pure functions for trade-series analysis."""

import math
from typing import Optional, Sequence

from autotrade.trading.models import Position


def calculate_stats(
    positions: Sequence[Position],
    initial_balance: Optional[float] = None,
) -> dict:
    """Compute summary statistics from a replay's trade history.

    Only closed positions are counted.  When *initial_balance* is given the
    result also carries ``return_pct``.

    Returns:
        Dict with ``total_trades``, ``winning_trades``, ``losing_trades``,
        ``win_rate``, ``profit_factor``, ``sharpe_ratio``, ``max_drawdown``,
        ``net_pnl`` and ``return_pct``.
    """
    pnls = [p.pnl for p in positions if p.status == "closed" and p.pnl is not None]

    if not pnls:
        return {
            "total_trades": 0,
            "winning_trades": 0,
            "losing_trades": 0,
            "win_rate": 0.0,
            "profit_factor": None,
            "sharpe_ratio": 0.0,
            "max_drawdown": 0.0,
            "net_pnl": 0.0,
            "return_pct": 0.0,
        }

    total = len(pnls)
    winners = [p for p in pnls if p > 0]
    losers = [p for p in pnls if p <= 0]

    gross_profit = sum(winners)
    gross_loss = abs(sum(losers))
    profit_factor: Optional[float] = (
        gross_profit / gross_loss if gross_loss > 0 else None
    )

    net_pnl = sum(pnls)
    return_pct = (
        net_pnl / initial_balance * 100.0 if initial_balance else 0.0
    )

    return {
        "total_trades": total,
        "winning_trades": len(winners),
        "losing_trades": len(losers),
        "win_rate": round(len(winners) / total, 4),
        "profit_factor": round(profit_factor, 4) if profit_factor is not None else None,
        "sharpe_ratio": round(_sharpe(pnls), 4),
        "max_drawdown": round(_max_drawdown(pnls), 4),
        "net_pnl": round(net_pnl, 2),
        "return_pct": round(return_pct, 4),
    }


# ── Helpers ──────────────────────────────────────────────────────────────


def _sharpe(pnls: list[float]) -> float:
    """Per-trade Sharpe ratio scaled by sqrt(trade count).

    Uses sample standard deviation (n − 1).  Returns 0.0 when the series
    has fewer than 2 observations or zero variance.
    """
    n = len(pnls)
    if n < 2:
        return 0.0
    mean = sum(pnls) / n
    variance = sum((p - mean) ** 2 for p in pnls) / (n - 1)
    std = math.sqrt(variance)
    if std == 0:
        return 0.0
    return (mean / std) * math.sqrt(n)


def _max_drawdown(pnls: list[float]) -> float:
    """Largest peak-to-trough decline of the cumulative P&L curve."""
    cumulative = 0.0
    peak = 0.0
    max_dd = 0.0
    for p in pnls:
        cumulative += p
        if cumulative > peak:
            peak = cumulative
        max_dd = max(max_dd, peak - cumulative)
    return max_dd
