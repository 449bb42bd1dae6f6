"""Pricing formulas for derived assets. No I/O."""
from __future__ import annotations

LP_SUPPLY_DECIMALS = 18


def scale(raw: int, decimals: int) -> float:
    """Convert a raw integer amount into whole-token units."""
    return raw / (10**decimals)


def lp_unit_price(
    reserve_a: int,
    reserve_b: int,
    total_supply: int,
    decimals_a: int,
    decimals_b: int,
    price_a: float,
    price_b: float,
) -> float:
    """USD price of one LP share.

    pool_value = reserve_a * price_a + reserve_b * price_b   (scaled)
    unit_price = pool_value / (total_supply / 10^18)

    An empty pool (``total_supply == 0``) is worth 0 by convention.
    """
    if total_supply == 0:
        return 0.0
    pool_value = scale(reserve_a, decimals_a) * price_a + scale(
        reserve_b, decimals_b
    ) * price_b
    return pool_value / scale(total_supply, LP_SUPPLY_DECIMALS)


def staked_unit_price(underlying_price: float, index: int, index_decimals: int) -> float:
    """USD price of one staked share: underlying price x conversion index."""
    return underlying_price * scale(index, index_decimals)
