"""Position sizing — pure math, no I/O.

Sizes a position (in quote currency) so that hitting the stop loses a fixed
fraction of the balance.
"""

DEFAULT_RISK_PER_TRADE = 0.015
MIN_POSITION_SIZE = 10.0
MAX_BALANCE_FRACTION = 0.95


def calculate_position_size(
    balance: float,
    entry_price: float,
    sl_price: float,
    risk_per_trade: float = DEFAULT_RISK_PER_TRADE,
    min_size: float = MIN_POSITION_SIZE,
    max_balance_fraction: float = MAX_BALANCE_FRACTION,
) -> float:
    """Calculate position size in quote currency.

    Formula::

        risk_amount = balance × risk_per_trade
        stop_pct    = |entry − sl| / entry
        size        = risk_amount / stop_pct

    The result is capped at ``balance × max_balance_fraction`` and then
    raised to at least *min_size*.

    Args:
        balance: Current account balance (e.g. 10_000.0).
        entry_price: Planned entry price.
        sl_price: Stop-loss price.
        risk_per_trade: Fraction of balance to risk (e.g. 0.015 for 1.5 %).
        min_size: Smallest position ever opened.
        max_balance_fraction: Largest position as a fraction of balance.

    Returns:
        Position size (always positive).

    Raises:
        ValueError: If entry price or risk fraction is non-positive, or the
            stop equals the entry.
    """
    if entry_price <= 0:
        raise ValueError(f"entry_price must be positive, got {entry_price}")
    if risk_per_trade <= 0:
        raise ValueError(f"risk_per_trade must be positive, got {risk_per_trade}")
    stop_pct = abs(entry_price - sl_price) / entry_price
    if stop_pct == 0:
        raise ValueError(f"sl_price must differ from entry_price, got {sl_price}")

    risk_amount = balance * risk_per_trade
    size = risk_amount / stop_pct

    cap = balance * max_balance_fraction
    if size > cap:
        size = cap
    if size < min_size:
        size = min_size
    return size
