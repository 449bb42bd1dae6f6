"""AVNU Impulse price feed: latest USD price per token address."""
from __future__ import annotations

import logging
import math
import ssl
from datetime import datetime, timezone
from typing import Any

import aiohttp
import certifi

from ..config import PriceFeedConfig
from ..errors import PriceUnavailable
from ..models import PriceQuote

logger = logging.getLogger(__name__)


def latest_price(series: Any) -> float | None:
    """Return the value of the last point of a price series, if usable.

    The feed answers with ``[{"date": ..., "value": ...}, ...]`` in
    chronological order. Missing, non-numeric, negative or zero values are
    treated as no price.
    """
    if not isinstance(series, list) or not series:
        return None
    point = series[-1]
    if not isinstance(point, dict):
        return None
    value = point.get("value")
    if isinstance(value, bool) or value is None:
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(price) or price <= 0:
        return None
    return price


class AvnuPriceFeed:
    """Fetch token prices from the AVNU Impulse API."""

    def __init__(self, config: PriceFeedConfig) -> None:
        self.base_url = config.base_url.rstrip("/")
        self.timeout = config.timeout
        self._ssl_context = ssl.create_default_context(cafile=certifi.where())

    def _url(self, asset_address: str) -> str:
        return f"{self.base_url}/v1/tokens/{asset_address}/prices/line"

    async def get_unit_price(self, asset_address: str) -> float:
        """Latest USD price of one whole token; raises ``PriceUnavailable``."""
        connector = aiohttp.TCPConnector(ssl=self._ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    self._url(asset_address),
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        raise PriceUnavailable(
                            asset_address, f"HTTP {response.status}"
                        )
                    data = await response.json()
        except PriceUnavailable:
            raise
        except Exception as e:
            raise PriceUnavailable(asset_address, str(e) or type(e).__name__) from e

        price = latest_price(data)
        if price is None:
            raise PriceUnavailable(asset_address, "no usable price point")

        logger.debug("Price %s: $%.6f", asset_address, price)
        return price

    async def get_quote(self, asset_address: str) -> PriceQuote:
        price = await self.get_unit_price(asset_address)
        return PriceQuote(
            asset_address=asset_address,
            unit_price_usd=price,
            as_of=datetime.now(timezone.utc),
        )
