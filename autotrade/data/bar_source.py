"""Historical bar loading from CSV / Parquet files.

Expected columns (case-insensitive)::

    time,open,high,low,close,volume

``time`` may be an epoch in milliseconds or anything ``pd.to_datetime``
parses; naive timestamps are taken as UTC.  ``volume`` is optional and
defaults to 0.  Rows must already be in ascending time order: the replay
core does not reorder or repair data.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import pandas as pd

from autotrade.strategy.models import Bar

logger = logging.getLogger("autotrade.data")

REQUIRED_COLUMNS = ["time", "open", "high", "low", "close"]
DEFAULT_HISTORY_FRACTION = 0.15
DEFAULT_MAX_HISTORY_BARS = 1000


def _to_epoch_ms(column: pd.Series) -> pd.Series:
    if pd.api.types.is_numeric_dtype(column):
        return column.astype("int64")
    ts = pd.to_datetime(column, utc=True)
    return (ts - pd.Timestamp(0, tz="UTC")) // pd.Timedelta(milliseconds=1)


def bars_from_frame(df: pd.DataFrame) -> list[Bar]:
    """Convert an OHLCV DataFrame into ``Bar`` objects.

    Raises:
        ValueError: On missing columns, empty price cells, or timestamps
            that are not strictly increasing.
    """
    df = df.rename(columns=lambda c: str(c).strip().lower())

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(
            f"Missing required column(s): {', '.join(missing)}. "
            f"Found columns: {list(df.columns)}"
        )
    if df.empty:
        return []

    prices = df[["open", "high", "low", "close"]].astype(float)
    if prices.isna().any().any():
        bad = df.index[prices.isna().any(axis=1)].tolist()[:5]
        raise ValueError(f"Empty price values in rows {bad}")

    times = _to_epoch_ms(df["time"])
    if not times.is_monotonic_increasing or times.duplicated().any():
        raise ValueError("Bar timestamps must be strictly increasing")

    volumes = (
        df["volume"].astype(float).fillna(0.0)
        if "volume" in df.columns
        else pd.Series(0.0, index=df.index)
    )

    return [
        Bar(
            time=int(t),
            open=float(o),
            high=float(h),
            low=float(low),
            close=float(c),
            volume=float(v),
        )
        for t, o, h, low, c, v in zip(
            times, prices["open"], prices["high"], prices["low"],
            prices["close"], volumes,
        )
    ]


def load_bars(path: str | Path) -> list[Bar]:
    """Load bars from a ``.csv`` or ``.parquet`` file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Bar file not found: {path}")

    if path.suffix.lower() == ".parquet":
        df = pd.read_parquet(path, engine="pyarrow")
    else:
        df = pd.read_csv(path)

    bars = bars_from_frame(df)
    logger.info("Loaded %d bars from %s", len(bars), path)
    return bars


def split_history(
    bars: Sequence[Bar],
    history_fraction: float = DEFAULT_HISTORY_FRACTION,
    max_history_bars: int = DEFAULT_MAX_HISTORY_BARS,
) -> tuple[list[Bar], list[Bar]]:
    """Chronological split into visible history and the bars to replay.

    History is ``min(floor(len × history_fraction), max_history_bars)``
    bars.

    Raises ``ValueError`` if no bars are left to replay.
    """
    if not 0 <= history_fraction < 1:
        raise ValueError(
            f"history_fraction must be in [0, 1), got {history_fraction}"
        )
    count = min(int(len(bars) * history_fraction), max_history_bars)
    history = list(bars[:count])
    future = list(bars[count:])
    if not future:
        raise ValueError("Not enough bars to simulate: nothing left to replay")
    return history, future
