"""Portfolio valuation and rebalancing for Starknet wallets."""

__version__ = "0.1.0"
