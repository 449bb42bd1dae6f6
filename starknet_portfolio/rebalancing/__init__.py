"""Allocation drift and rebalance planning."""
from .planner import (
    DEFAULT_TOLERANCE_BAND,
    RebalancePlanner,
    category_of,
    classify_holdings,
    normalize_categories,
    plan_rebalance,
    realized_allocation,
)

__all__ = [
    "DEFAULT_TOLERANCE_BAND",
    "RebalancePlanner",
    "category_of",
    "classify_holdings",
    "normalize_categories",
    "plan_rebalance",
    "realized_allocation",
]
