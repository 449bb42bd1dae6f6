"""Portfolio valuation — one snapshot across the whole asset catalog."""
from __future__ import annotations

import asyncio
import logging

from ..errors import CatalogLoadFailure
from ..interfaces.catalog import AssetCatalog
from ..models import PortfolioSnapshot
from ..pricing import AssetPricer
from .balance_service import BalanceReader

logger = logging.getLogger(__name__)


class PortfolioService:
    """Aggregate balances and prices for every supported asset.

    Per-asset failures show up as holdings without a USD value; only a
    catalog that cannot be loaded fails the whole call.
    """

    def __init__(
        self, catalog: AssetCatalog, pricer: AssetPricer, balances: BalanceReader
    ) -> None:
        self._catalog = catalog
        self._pricer = pricer
        self._balances = balances

    async def fetch_portfolio(self, wallet_address: str) -> PortfolioSnapshot:
        try:
            assets = await self._catalog.list_supported_assets()
        except CatalogLoadFailure as e:
            logger.error("Asset catalog unavailable: %s", e)
            raise
        except Exception as e:
            logger.error("Asset catalog unavailable: %s", e)
            raise CatalogLoadFailure(type(self._catalog).__name__, str(e)) from e

        logger.info(
            "Valuing wallet %s across %d supported assets", wallet_address, len(assets)
        )

        # All prices are resolved before any balance is valued.
        prices = await self._pricer.price_all(assets)

        holdings = await asyncio.gather(
            *(
                self._balances.get_balance(
                    asset, wallet_address, prices.get(asset.address)
                )
                for asset in assets
            )
        )

        snapshot = PortfolioSnapshot.from_holdings(wallet_address, holdings)

        failed = snapshot.failed_holdings
        logger.info(
            "Wallet %s: total $%.2f (%d holdings, %d unvalued)",
            wallet_address,
            snapshot.total_value_usd,
            len(snapshot.holdings),
            len(failed),
        )
        for holding in failed:
            logger.debug("  %s: %s", holding.asset.name, holding.error)

        return snapshot
