"""Error taxonomy for portfolio valuation."""
from __future__ import annotations


class PortfolioError(Exception):
    """Base class for valuation errors."""


class PriceUnavailable(PortfolioError):
    """The price feed has no usable point for an asset."""

    def __init__(self, asset_address: str, reason: str) -> None:
        super().__init__(f"No price for {asset_address}: {reason}")
        self.asset_address = asset_address
        self.reason = reason


class ChainReadFailure(PortfolioError):
    """A contract call failed (network fault, timeout or revert)."""

    def __init__(self, contract_address: str, entrypoint: str, reason: str) -> None:
        super().__init__(f"{entrypoint} on {contract_address} failed: {reason}")
        self.contract_address = contract_address
        self.entrypoint = entrypoint
        self.reason = reason


class CatalogLoadFailure(PortfolioError):
    """The supported-asset catalog could not be loaded."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Cannot load asset catalog from {source}: {reason}")
        self.source = source
        self.reason = reason
