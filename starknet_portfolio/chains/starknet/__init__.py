"""Starknet chain client."""
from .client import RpcError, StarknetClient

__all__ = ["RpcError", "StarknetClient"]
