"""AutoTrade — application configuration.

Loads .env variables into a typed config object.
Validates values on startup.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from autotrade.strategy.registry import STRATEGY_REGISTRY


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    initial_balance: float
    risk_per_trade: float  # fraction of balance, e.g. 0.015
    risk_reward_ratio: float
    window_cap: int
    recalibration_interval: int  # closed trades; 0 disables
    recalibration_lookback: int  # bars
    strategy_variant: str
    tick_interval_ms: int
    open_fee_rate: float
    history_fraction: float
    max_history_bars: int
    log_level: str


def _validate(config: Config) -> None:
    if config.strategy_variant not in STRATEGY_REGISTRY:
        raise ValueError(
            f"Unknown STRATEGY_VARIANT '{config.strategy_variant}'. "
            f"Available: {', '.join(STRATEGY_REGISTRY.keys())}"
        )
    positive = {
        "INITIAL_BALANCE": config.initial_balance,
        "RISK_PER_TRADE": config.risk_per_trade,
        "RISK_REWARD_RATIO": config.risk_reward_ratio,
        "WINDOW_CAP": config.window_cap,
        "RECALIBRATION_LOOKBACK": config.recalibration_lookback,
    }
    bad = [name for name, value in positive.items() if value <= 0]
    if bad:
        raise ValueError(f"Environment variable(s) must be positive: {', '.join(bad)}")
    if config.recalibration_interval < 0 or config.tick_interval_ms < 0:
        raise ValueError(
            "RECALIBRATION_INTERVAL and TICK_INTERVAL_MS must not be negative"
        )
    if not 0 <= config.history_fraction < 1:
        raise ValueError(
            f"HISTORY_FRACTION must be in [0, 1), got {config.history_fraction}"
        )


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Every variable is optional.  Raises ``ValueError`` naming the variable
    when a value is unparseable or out of range.
    """
    load_dotenv(dotenv_path=env_path)

    try:
        config = Config(
            initial_balance=float(os.environ.get("INITIAL_BALANCE", "10000")),
            risk_per_trade=float(os.environ.get("RISK_PER_TRADE", "0.015")),
            risk_reward_ratio=float(os.environ.get("RISK_REWARD_RATIO", "3.0")),
            window_cap=int(os.environ.get("WINDOW_CAP", "2000")),
            recalibration_interval=int(os.environ.get("RECALIBRATION_INTERVAL", "100")),
            recalibration_lookback=int(os.environ.get("RECALIBRATION_LOOKBACK", "500")),
            strategy_variant=os.environ.get("STRATEGY_VARIANT", "trend_rsi"),
            tick_interval_ms=int(os.environ.get("TICK_INTERVAL_MS", "40")),
            open_fee_rate=float(os.environ.get("OPEN_FEE_RATE", "0.0005")),
            history_fraction=float(os.environ.get("HISTORY_FRACTION", "0.15")),
            max_history_bars=int(os.environ.get("MAX_HISTORY_BARS", "1000")),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
        )
    except ValueError as exc:
        raise ValueError(f"Invalid environment variable value: {exc}") from exc

    _validate(config)
    return config
