"""Protocol interfaces for the portfolio engine."""
from .catalog import AssetCatalog, PolicyStore
from .chain import ChainClient
from .executor import TradeExecutor
from .notifier import Notifier
from .price_feed import PriceFeed

__all__ = [
    "AssetCatalog",
    "ChainClient",
    "Notifier",
    "PolicyStore",
    "PriceFeed",
    "TradeExecutor",
]
