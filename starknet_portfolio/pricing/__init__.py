"""Asset pricing."""
from .pricer import AssetPricer

__all__ = ["AssetPricer"]
