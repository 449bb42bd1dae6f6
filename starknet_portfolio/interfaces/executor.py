"""Trade executor protocol: performs rebalance actions on chain."""
from typing import Protocol

from ..models import RebalanceAction


class TradeExecutor(Protocol):
    async def execute(self, action: RebalanceAction) -> bool: ...
