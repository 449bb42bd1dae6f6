"""Allocation drift and rebalance planning — pure functions, no I/O."""
from __future__ import annotations

from collections.abc import Mapping

from ..chains.starknet.codec import normalize_address
from ..models import (
    AllocationPolicy,
    AssetCategory,
    AssetHolding,
    Direction,
    PortfolioSnapshot,
    RebalanceAction,
)

DEFAULT_TOLERANCE_BAND = 5.0

# Drift is rounded before comparing with the band so float noise from the
# percentage arithmetic cannot flip a boundary decision.
_DRIFT_PRECISION = 6

_CATEGORY_ORDER = tuple(AssetCategory)


def category_of(
    holding: AssetHolding,
    categories: Mapping[str, AssetCategory],
    default: AssetCategory = AssetCategory.OTHER,
) -> AssetCategory:
    """Look up a holding's category by address, then by symbol."""
    asset = holding.asset
    by_address = categories.get(asset.address)
    if by_address is not None:
        return by_address
    if asset.symbol:
        by_symbol = categories.get(asset.symbol.upper())
        if by_symbol is not None:
            return by_symbol
    return default


def normalize_categories(raw: Mapping[str, AssetCategory]) -> dict[str, AssetCategory]:
    """Canonicalize mapping keys: hex keys as addresses, others as symbols."""
    normalized: dict[str, AssetCategory] = {}
    for key, category in raw.items():
        if key.lower().startswith("0x"):
            normalized[normalize_address(key)] = category
        else:
            normalized[key.upper()] = category
    return normalized


def classify_holdings(
    snapshot: PortfolioSnapshot,
    categories: Mapping[str, AssetCategory],
    default: AssetCategory = AssetCategory.OTHER,
) -> dict[AssetCategory, float]:
    """USD value per category; unvalued holdings are left out."""
    values = {category: 0.0 for category in _CATEGORY_ORDER}
    for holding in snapshot.holdings:
        if holding.value_usd is None:
            continue
        values[category_of(holding, categories, default)] += holding.value_usd
    return values


def realized_allocation(
    category_values: Mapping[AssetCategory, float], total_value_usd: float
) -> dict[AssetCategory, float]:
    """Percent of total value per category (all 0 for an empty portfolio)."""
    if total_value_usd <= 0:
        return {category: 0.0 for category in _CATEGORY_ORDER}
    return {
        category: category_values.get(category, 0.0) / total_value_usd * 100
        for category in _CATEGORY_ORDER
    }


def plan_rebalance(
    policy: AllocationPolicy,
    snapshot: PortfolioSnapshot,
    categories: Mapping[str, AssetCategory],
    tolerance_band: float = DEFAULT_TOLERANCE_BAND,
    default_category: AssetCategory = AssetCategory.OTHER,
) -> tuple[RebalanceAction, ...]:
    """Corrective actions that bring ``snapshot`` back to ``policy``.

    A category produces an action only when its drift exceeds the band
    (``policy.tolerance_band`` overrides the default). Sells come first,
    then buys, each group by descending ``delta_usd``.
    """
    band = policy.tolerance_band if policy.tolerance_band is not None else tolerance_band
    if band <= 0:
        raise ValueError("Tolerance band must be greater than zero")

    total = snapshot.total_value_usd
    if total <= 0:
        return ()

    values = classify_holdings(snapshot, categories, default_category)
    realized = realized_allocation(values, total)

    sells: list[RebalanceAction] = []
    buys: list[RebalanceAction] = []
    for category in _CATEGORY_ORDER:
        drift = round(realized[category] - policy.target(category), _DRIFT_PRECISION)
        if abs(drift) <= band:
            continue
        action = RebalanceAction(
            wallet_address=policy.wallet_address,
            direction=Direction.SELL if drift > 0 else Direction.BUY,
            asset_category=category,
            delta_usd=abs(drift) / 100 * total,
        )
        (sells if drift > 0 else buys).append(action)

    def order(action: RebalanceAction) -> tuple[float, int]:
        return (-action.delta_usd, _CATEGORY_ORDER.index(action.asset_category))

    return tuple(sorted(sells, key=order)) + tuple(sorted(buys, key=order))


class RebalancePlanner:
    """Category mapping and tolerance bound once, for repeated planning."""

    def __init__(
        self,
        categories: Mapping[str, AssetCategory],
        tolerance_band: float = DEFAULT_TOLERANCE_BAND,
        default_category: AssetCategory = AssetCategory.OTHER,
    ) -> None:
        if tolerance_band <= 0:
            raise ValueError("Tolerance band must be greater than zero")
        self._categories = normalize_categories(categories)
        self._tolerance_band = tolerance_band
        self._default_category = default_category

    def plan(
        self, policy: AllocationPolicy, snapshot: PortfolioSnapshot
    ) -> tuple[RebalanceAction, ...]:
        return plan_rebalance(
            policy,
            snapshot,
            self._categories,
            self._tolerance_band,
            self._default_category,
        )

    def allocation(self, snapshot: PortfolioSnapshot) -> dict[AssetCategory, float]:
        values = classify_holdings(snapshot, self._categories, self._default_category)
        return realized_allocation(values, snapshot.total_value_usd)
