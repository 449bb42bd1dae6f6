"""Wallet balance reads for ERC20-style tokens."""
from __future__ import annotations

import logging
from decimal import Decimal

from ..chains.starknet.codec import read_u256, to_int
from ..errors import PortfolioError
from ..interfaces.chain import ChainClient
from ..models import AssetHolding, PriceResult, SupportedAsset
from ..utils import gather_or_raise

logger = logging.getLogger(__name__)

MAX_DECIMALS = 255


def to_quantity(raw_balance: int, decimals: int) -> Decimal:
    """Exact decimal amount of whole tokens for a raw balance.

    Token decimals are a u8; anything outside 0..255 is a bad read.
    """
    if not 0 <= decimals <= MAX_DECIMALS:
        raise ValueError(f"decimals out of range: {decimals}")
    if raw_balance == 0:
        return Decimal(0)
    return Decimal(raw_balance) / (Decimal(10) ** decimals)


class BalanceReader:
    """Read a wallet's balance of an asset and value it in USD."""

    def __init__(self, chain: ChainClient) -> None:
        self._chain = chain

    async def get_balance(
        self,
        asset: SupportedAsset,
        wallet_address: str,
        price: PriceResult | None = None,
    ) -> AssetHolding:
        """Balance and USD value of ``asset`` held by ``wallet_address``.

        A failed read yields quantity 0 and no value; a missing price keeps
        the correctly scaled quantity but no value.
        """
        try:
            balance_words, decimals_words = await gather_or_raise(
                self._chain.call(asset.address, "balanceOf", [to_int(wallet_address)]),
                self._chain.call(asset.address, "decimals"),
            )
            raw_balance = read_u256(balance_words, 0)
            if not decimals_words:
                raise ValueError("empty decimals result")
            quantity = to_quantity(raw_balance, decimals_words[0])
        except (PortfolioError, ValueError) as e:
            logger.warning(
                "Balance of %s for %s unavailable: %s", asset.name, wallet_address, e
            )
            return AssetHolding(
                asset=asset,
                quantity=Decimal(0),
                value_usd=None,
                error=f"balance read failed: {e}",
            )

        if price is None or price.price is None:
            reason = price.error if price is not None else "not priced"
            return AssetHolding(
                asset=asset,
                quantity=quantity,
                value_usd=None,
                error=f"price unavailable: {reason}",
            )

        return AssetHolding(
            asset=asset,
            quantity=quantity,
            value_usd=float(quantity) * price.price,
        )
