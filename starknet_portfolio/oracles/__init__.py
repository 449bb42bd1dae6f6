"""Price feeds."""
from .avnu import AvnuPriceFeed

__all__ = ["AvnuPriceFeed"]
