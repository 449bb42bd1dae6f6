"""Unit pricing for every catalog asset kind."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping

from ..chains.starknet.codec import read_u256
from ..errors import PortfolioError, PriceUnavailable
from ..interfaces.chain import ChainClient
from ..interfaces.price_feed import PriceFeed
from ..models import AssetKind, PriceResult, SupportedAsset
from ..utils import gather_or_raise
from . import derived

logger = logging.getLogger(__name__)


class AssetPricer:
    """Resolve a USD unit price for plain, pair and staked assets.

    Per-asset failures never propagate: they come back as a failed
    ``PriceResult`` and are logged as warnings.
    """

    def __init__(self, chain: ChainClient, feed: PriceFeed) -> None:
        self._chain = chain
        self._feed = feed

    async def price(
        self,
        asset: SupportedAsset,
        known: Mapping[str, PriceResult] | None = None,
    ) -> PriceResult:
        """Price one asset.

        ``known`` holds plain-token prices already resolved in this pass;
        underlyings found there are not requested from the feed again.
        """
        known = known or {}
        try:
            if asset.kind is AssetKind.LIQUIDITY_PAIR:
                price = await self._liquidity_pair_price(asset, known)
            elif asset.kind is AssetKind.STAKED_POSITION:
                price = await self._staked_position_price(asset, known)
            else:
                price = await self._feed.get_unit_price(asset.address)
        except (PortfolioError, ValueError) as e:
            logger.warning("Pricing %s (%s) failed: %s", asset.name, asset.address, e)
            return PriceResult.failed(asset.address, str(e))

        return PriceResult(asset_address=asset.address, price=price)

    async def price_all(self, assets: list[SupportedAsset]) -> dict[str, PriceResult]:
        """Price every asset, keyed by address.

        Plain tokens go first and concurrently; pairs and staked positions
        then reuse those prices for their underlyings.
        """
        plain = [a for a in assets if a.kind is AssetKind.PLAIN]
        derived_assets = [a for a in assets if a.kind is not AssetKind.PLAIN]

        results = await asyncio.gather(*(self.price(a) for a in plain))
        known = {r.asset_address: r for r in results}

        results = await asyncio.gather(*(self.price(a, known) for a in derived_assets))
        resolved = dict(known)
        resolved.update((r.asset_address, r) for r in results)
        return {a.address: resolved[a.address] for a in assets}

    async def _underlying_price(
        self, token: SupportedAsset, known: Mapping[str, PriceResult]
    ) -> float:
        cached = known.get(token.address)
        if cached is None:
            return await self._feed.get_unit_price(token.address)
        if cached.price is None:
            raise PriceUnavailable(token.address, "underlying not priced")
        return cached.price

    async def _liquidity_pair_price(
        self, asset: SupportedAsset, known: Mapping[str, PriceResult]
    ) -> float:
        token_a, token_b = asset.underlying_a, asset.underlying_b
        if token_a is None or token_b is None:
            raise ValueError(f"pair {asset.address} has no underlying assets")

        total_supply = read_u256(
            await self._chain.call(asset.address, "total_supply"), 0
        )
        if total_supply == 0:
            logger.info("Pool %s is empty, pricing shares at 0", asset.name)
            return 0.0

        reserves, price_a, price_b = await gather_or_raise(
            self._chain.call(asset.address, "get_reserves"),
            self._underlying_price(token_a, known),
            self._underlying_price(token_b, known),
        )

        return derived.lp_unit_price(
            read_u256(reserves, 0),
            read_u256(reserves, 2),
            total_supply,
            token_a.decimals,
            token_b.decimals,
            price_a,
            price_b,
        )

    async def _staked_position_price(
        self, asset: SupportedAsset, known: Mapping[str, PriceResult]
    ) -> float:
        underlying = asset.underlying
        if underlying is None:
            raise ValueError(f"staked asset {asset.address} has no underlying asset")

        underlying_price, index_words = await gather_or_raise(
            self._underlying_price(underlying, known),
            self._chain.call(asset.address, "token_index"),
        )

        # Older deployments return a felt, newer ones a u256.
        if len(index_words) == 1:
            index = index_words[0]
        else:
            index = read_u256(index_words, 0)

        return derived.staked_unit_price(underlying_price, index, asset.index_decimals)
