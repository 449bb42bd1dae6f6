"""Service modules"""
from .balance_service import BalanceReader
from .executor import LoggingExecutor
from .portfolio_service import PortfolioService
from .rebalancer import Rebalancer, SweepResult, build_portfolio_service

__all__ = [
    "BalanceReader",
    "LoggingExecutor",
    "PortfolioService",
    "Rebalancer",
    "SweepResult",
    "build_portfolio_service",
]
