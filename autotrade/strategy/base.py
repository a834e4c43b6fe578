"""Strategy variant protocol.

Defines the interface every rule variant implements.  Variants only look at
the enriched window; risk sanity and the ``none`` signal are handled by
``StrategyEngine``.
"""

from __future__ import annotations

from typing import Optional, Protocol, Sequence, runtime_checkable

from autotrade.strategy.models import EnrichedBar, Signal, StrategyParams


@runtime_checkable
class StrategyVariant(Protocol):
    """Interface that all rule variants must satisfy."""

    name: str

    def evaluate(
        self,
        bars: Sequence[EnrichedBar],
        index: int,
        params: StrategyParams,
    ) -> Optional[Signal]:
        """Evaluate bar *index* and return a signal or None."""
        ...
