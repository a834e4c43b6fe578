"""AutoTrade — command-line entry point.

Loads historical bars from a file and replays them through the configured
strategy, either as fast as possible or on a fixed cadence.

Usage:
    python -m autotrade.main --data bars.csv --variant trend_rsi
"""

import argparse
import asyncio
import logging
import signal
from dataclasses import replace

from autotrade.backtest.optimizer import FixedRatioOptimizer, GridSearchOptimizer
from autotrade.backtest.runner import ReplayRunner
from autotrade.backtest.simulation import ReplaySimulation, TickResult
from autotrade.backtest.stats import calculate_stats
from autotrade.config import Config, load_config
from autotrade.data.bar_source import load_bars
from autotrade.strategy.engine import StrategyEngine
from autotrade.strategy.registry import STRATEGY_REGISTRY

logger = logging.getLogger("autotrade")


def build_simulation(bars, config: Config, optimizer_name: str = "fixed") -> ReplaySimulation:
    """Wire engine, optimizer and replay settings from *config*."""
    if optimizer_name == "grid":
        optimizer = GridSearchOptimizer(variant=config.strategy_variant)
    else:
        optimizer = FixedRatioOptimizer(config.risk_reward_ratio)

    return ReplaySimulation.from_bars(
        bars,
        history_fraction=config.history_fraction,
        max_history_bars=config.max_history_bars,
        engine=StrategyEngine(config.strategy_variant),
        optimizer=optimizer,
        initial_balance=config.initial_balance,
        window_cap=config.window_cap,
        risk_per_trade=config.risk_per_trade,
        recalibration_interval=config.recalibration_interval,
        recalibration_lookback=config.recalibration_lookback,
        open_fee_rate=config.open_fee_rate,
    )


def _log_tick(result: TickResult) -> None:
    if result.opened is not None:
        p = result.opened
        logger.info(
            "OPEN  %-4s %s @ %.5f SL %.5f TP %.5f — %s",
            p.side.upper(), p.id, p.entry_price, p.stop_loss, p.take_profit, p.label,
        )
    if result.closed is not None:
        p = result.closed
        logger.info(
            "CLOSE %-4s %s @ %.5f (%s) pnl %.2f",
            p.side.upper(), p.id, p.exit_price, p.exit_reason, p.pnl,
        )
    if result.params_updated is not None:
        logger.info(
            "Strategy recalibrated: risk/reward %.2f",
            result.params_updated.risk_reward_ratio,
        )


def log_summary(sim: ReplaySimulation) -> dict:
    """Log and return run statistics."""
    ctx = sim.context
    stats = calculate_stats(ctx.trades, sim.initial_balance)
    logger.info(
        "Replay complete: %d ticks, %d trades, PnL: $%.2f (%.2f%%), "
        "Win rate: %.1f%%, balance $%.2f",
        ctx.tick_count,
        stats["total_trades"],
        stats["net_pnl"],
        stats["return_pct"],
        stats["win_rate"] * 100,
        ctx.balance,
    )
    if ctx.active_position is not None:
        logger.info("Position %s still open at end of data.", ctx.active_position.id)
    return stats


async def _run_paced(sim: ReplaySimulation, interval_ms: int) -> None:
    runner = ReplayRunner(sim, interval_ms=interval_ms, on_tick=_log_tick)

    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, runner.stop)
    except NotImplementedError:
        pass  # Windows event loops have no signal handlers

    await runner.run()


def _run_cli() -> None:
    """Parse CLI arguments and run a replay."""
    parser = argparse.ArgumentParser(description="AutoTrade replay simulator")
    parser.add_argument("--data", required=True, help="CSV or Parquet bar file")
    parser.add_argument(
        "--variant",
        choices=sorted(STRATEGY_REGISTRY.keys()),
        help="Strategy variant (default: STRATEGY_VARIANT from env)",
    )
    parser.add_argument("--balance", type=float, help="Initial balance override")
    parser.add_argument(
        "--optimizer",
        choices=["fixed", "grid"],
        default="fixed",
        help="Parameter optimizer (default: fixed)",
    )
    parser.add_argument(
        "--cadence-ms",
        type=int,
        default=0,
        help="Milliseconds between ticks; 0 replays as fast as possible",
    )
    parser.add_argument("--env", help="Path to a .env file")
    args = parser.parse_args()

    config = load_config(args.env)
    if args.variant:
        config = replace(config, strategy_variant=args.variant)
    if args.balance is not None:
        config = replace(config, initial_balance=args.balance)

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    bars = load_bars(args.data)
    sim = build_simulation(bars, config, args.optimizer)
    logger.info(
        "Replaying %d bars with %s (risk/reward %.2f)",
        sim.remaining, config.strategy_variant, sim.context.params.risk_reward_ratio,
    )

    if args.cadence_ms > 0:
        asyncio.run(_run_paced(sim, args.cadence_ms))
    else:
        while True:
            result = sim.tick()
            if result is None:
                break
            _log_tick(result)

    log_summary(sim)


if __name__ == "__main__":
    _run_cli()
