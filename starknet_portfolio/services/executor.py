"""Dry-run trade executor."""
from __future__ import annotations

import logging

from ..models import RebalanceAction

logger = logging.getLogger(__name__)


class LoggingExecutor:
    """Record rebalance actions without touching the chain."""

    def __init__(self) -> None:
        self.executed: list[RebalanceAction] = []

    async def execute(self, action: RebalanceAction) -> bool:
        logger.info("[dry-run] %s for %s", action, action.wallet_address)
        self.executed.append(action)
        return True
