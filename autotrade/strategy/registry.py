"""Strategy registry — maps variant names to classes.

Used by ``StrategyEngine`` and the config layer to resolve
``STRATEGY_VARIANT``.
"""

from autotrade.strategy.base import StrategyVariant
from autotrade.strategy.ema_cross import EMACrossStrategy
from autotrade.strategy.ema_proximity import EMAProximityStrategy
from autotrade.strategy.order_block_retest import OrderBlockRetestStrategy
from autotrade.strategy.trend_rsi import TrendRSIStrategy


STRATEGY_REGISTRY: dict[str, type] = {
    "trend_rsi": TrendRSIStrategy,
    "ema_cross": EMACrossStrategy,
    "ema_proximity": EMAProximityStrategy,
    "order_block_retest": OrderBlockRetestStrategy,
}


def get_strategy(name: str) -> StrategyVariant:
    """Look up and instantiate a strategy variant by registry key.

    Raises ``KeyError`` if the variant name is not registered.
    """
    if name not in STRATEGY_REGISTRY:
        raise KeyError(
            f"Unknown strategy '{name}'. "
            f"Available: {', '.join(STRATEGY_REGISTRY.keys())}"
        )
    return STRATEGY_REGISTRY[name]()
