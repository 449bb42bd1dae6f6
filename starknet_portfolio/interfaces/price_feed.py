"""Price feed protocol: USD unit prices for plain tokens."""
from typing import Protocol

from ..models import PriceQuote


class PriceFeed(Protocol):
    """Raises ``PriceUnavailable`` when no usable price exists."""

    async def get_unit_price(self, asset_address: str) -> float: ...

    async def get_quote(self, asset_address: str) -> PriceQuote: ...
