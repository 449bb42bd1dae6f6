"""Data models (all frozen)."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any


class AssetKind(str, Enum):
    PLAIN = "plain"
    LIQUIDITY_PAIR = "pair"
    STAKED_POSITION = "staked"


class AssetCategory(str, Enum):
    STABLE = "stable"
    NATIVE = "native"
    OTHER = "other"


class Direction(str, Enum):
    BUY = "buy"
    SELL = "sell"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class SupportedAsset:
    """Catalog entry for something a wallet can hold.

    Pairs carry both underlyings in ``underlying_a``/``underlying_b``; staked
    positions carry ``underlying`` and the scale of their conversion index.
    """

    address: str
    name: str
    decimals: int
    kind: AssetKind = AssetKind.PLAIN
    symbol: str = ""
    underlying_a: SupportedAsset | None = None
    underlying_b: SupportedAsset | None = None
    underlying: SupportedAsset | None = None
    index_decimals: int = 18


@dataclass(frozen=True)
class PriceQuote:
    """Latest USD unit price of a plain token."""

    asset_address: str
    unit_price_usd: float
    as_of: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class PriceResult:
    """Outcome of pricing one asset. ``price is None`` means unknown."""

    asset_address: str
    price: float | None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.price is not None

    @classmethod
    def failed(cls, asset_address: str, reason: str) -> PriceResult:
        return cls(asset_address=asset_address, price=None, error=reason)


@dataclass(frozen=True)
class AssetHolding:
    asset: SupportedAsset
    quantity: Decimal
    value_usd: float | None
    error: str | None = None


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Valuation of one wallet at one point in time."""

    wallet_address: str
    total_value_usd: float
    holdings: tuple[AssetHolding, ...] = ()
    taken_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def from_holdings(
        cls, wallet_address: str, holdings: list[AssetHolding] | tuple[AssetHolding, ...]
    ) -> PortfolioSnapshot:
        total = sum(h.value_usd for h in holdings if h.value_usd is not None)
        return cls(
            wallet_address=wallet_address,
            total_value_usd=float(total),
            holdings=tuple(holdings),
        )

    @property
    def failed_holdings(self) -> tuple[AssetHolding, ...]:
        return tuple(h for h in self.holdings if h.value_usd is None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "wallet_address": self.wallet_address,
            "total_value_usd": self.total_value_usd,
            "taken_at": self.taken_at.isoformat(),
            "tokens": [
                {
                    "name": h.asset.name,
                    "symbol": h.asset.symbol,
                    "address": h.asset.address,
                    "kind": h.asset.kind.value,
                    "balance": format(h.quantity, "f"),
                    "value_usd": h.value_usd,
                    **({"error": h.error} if h.error else {}),
                }
                for h in self.holdings
            ],
        }


def filter_nonzero_holdings(snapshot: PortfolioSnapshot) -> tuple[AssetHolding, ...]:
    """Holdings worth more than zero USD, for display."""
    return tuple(
        h for h in snapshot.holdings if h.value_usd is not None and h.value_usd > 0
    )


@dataclass(frozen=True)
class AllocationPolicy:
    """Target allocation per category, in percent (sums to 100)."""

    wallet_address: str
    stable_percent: float
    native_percent: float
    other_percent: float
    label: str = ""
    tolerance_band: float | None = None

    def target(self, category: AssetCategory) -> float:
        return {
            AssetCategory.STABLE: self.stable_percent,
            AssetCategory.NATIVE: self.native_percent,
            AssetCategory.OTHER: self.other_percent,
        }[category]

    @property
    def total_percent(self) -> float:
        return self.stable_percent + self.native_percent + self.other_percent


@dataclass(frozen=True)
class RebalanceAction:
    wallet_address: str
    direction: Direction
    asset_category: AssetCategory
    delta_usd: float

    def __str__(self) -> str:
        return (
            f"{self.direction.value.upper()} {self.asset_category.value} "
            f"${self.delta_usd:,.2f}"
        )
