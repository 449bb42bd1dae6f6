"""Periodic rebalancing sweep — iterates allocation policies."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone

from ..chains.starknet import StarknetClient
from ..config import AppConfig
from ..errors import PortfolioError
from ..interfaces.catalog import PolicyStore
from ..interfaces.executor import TradeExecutor
from ..interfaces.notifier import Notifier
from ..models import (
    AllocationPolicy,
    Direction,
    PortfolioSnapshot,
    RebalanceAction,
)
from ..notifications import TelegramNotifier
from ..oracles import AvnuPriceFeed
from ..pricing import AssetPricer
from ..rebalancing import RebalancePlanner
from ..stores import YamlAssetCatalog, YamlPolicyStore
from .balance_service import BalanceReader
from .executor import LoggingExecutor
from .portfolio_service import PortfolioService

logger = logging.getLogger(__name__)


def build_portfolio_service(
    config: AppConfig, chain: StarknetClient | None = None
) -> PortfolioService:
    """Wire the valuation stack from configuration."""
    chain = chain or StarknetClient(config.chain)
    feed = AvnuPriceFeed(config.price_feed)
    return PortfolioService(
        catalog=YamlAssetCatalog(config.catalog.path),
        pricer=AssetPricer(chain, feed),
        balances=BalanceReader(chain),
    )


@dataclass(frozen=True)
class SweepResult:
    """Outcome of one wallet in a sweep."""

    policy: AllocationPolicy
    snapshot: PortfolioSnapshot | None = None
    actions: tuple[RebalanceAction, ...] = ()
    executed: tuple[RebalanceAction, ...] = ()
    error: str | None = None


class Rebalancer:
    """Value every policy wallet, plan corrective trades, hand them off."""

    def __init__(
        self,
        config: AppConfig,
        executor: TradeExecutor | None = None,
        portfolio: PortfolioService | None = None,
        policies: PolicyStore | None = None,
        notifiers: list[Notifier] | None = None,
    ) -> None:
        """Collaborators left as ``None`` are built from ``config``."""
        self._config = config

        if portfolio is None:
            portfolio = build_portfolio_service(config)
        if policies is None:
            policies = YamlPolicyStore(config.policies.path)
        self._portfolio = portfolio
        self._policies: PolicyStore = policies
        self._planner = RebalancePlanner(
            config.rebalancer.categories,
            config.rebalancer.tolerance_band,
            config.rebalancer.default_category,
        )
        self._executor: TradeExecutor = executor or LoggingExecutor()

        if notifiers is None:
            notifiers = []
            if config.telegram.enabled:
                notifiers.append(TelegramNotifier(config.telegram))
        self._notifiers: list[Notifier] = notifiers

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _format_wallet(address: str) -> str:
        if len(address) > 16:
            return f"{address[:10]}...{address[-6:]}"
        return address

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    def _build_summary(self, results: list[SweepResult]) -> str:
        lines: list[str] = []
        for result in results:
            name = result.policy.label or self._format_wallet(
                result.policy.wallet_address
            )
            if result.error:
                lines.append(f"{name}: ERROR — {result.error}")
                continue
            total = result.snapshot.total_value_usd if result.snapshot else 0.0
            if not result.actions:
                lines.append(f"{name}: ${total:,.2f} · within tolerance")
                continue
            actions = ", ".join(str(a) for a in result.actions)
            lines.append(
                f"{name}: ${total:,.2f} · {actions} "
                f"({len(result.executed)}/{len(result.actions)} executed)"
            )

        body = "\n".join(lines) if lines else "No allocation policies configured."
        return f"Rebalance sweep\n\n{body}\n\n{self._now_str()} UTC"

    # ------------------------------------------------------------------
    # Notification dispatch
    # ------------------------------------------------------------------

    async def _send_log(self, message: str) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_log(message, silent=True)
            except Exception as e:
                logger.error("Notifier send_log failed: %s", e)

    async def _send_alert(self, message: str, subject: str = "") -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_alert(message, subject=subject)
            except Exception as e:
                logger.error("Notifier send_alert failed: %s", e)

    # ------------------------------------------------------------------
    # Core workflows
    # ------------------------------------------------------------------

    async def _execute(
        self, actions: tuple[RebalanceAction, ...]
    ) -> tuple[RebalanceAction, ...]:
        """Hand actions over in order; stop if a sell does not go through."""
        executed: list[RebalanceAction] = []
        for action in actions:
            try:
                ok = await self._executor.execute(action)
            except Exception as e:
                logger.error("Executing %s failed: %s", action, e)
                ok = False

            if ok:
                executed.append(action)
            elif action.direction is Direction.SELL:
                logger.warning(
                    "Sell %s failed for %s, skipping remaining actions",
                    action,
                    action.wallet_address,
                )
                break
        return tuple(executed)

    async def rebalance_wallet(self, policy: AllocationPolicy) -> SweepResult:
        """Value one wallet, plan against its policy and execute the plan."""
        try:
            snapshot = await self._portfolio.fetch_portfolio(policy.wallet_address)
        except PortfolioError as e:
            logger.error("Skipping %s: %s", policy.wallet_address, e)
            return SweepResult(policy=policy, error=str(e))

        actions = self._planner.plan(policy, snapshot)
        allocation = self._planner.allocation(snapshot)
        logger.info(
            "Wallet %s allocation: %s",
            policy.wallet_address,
            ", ".join(f"{c.value} {p:.2f}%" for c, p in allocation.items()),
        )
        if not actions:
            logger.info("Wallet %s is within tolerance", policy.wallet_address)
            return SweepResult(policy=policy, snapshot=snapshot)

        for action in actions:
            logger.info("Planned %s for %s", action, policy.wallet_address)

        executed = await self._execute(actions)
        return SweepResult(
            policy=policy, snapshot=snapshot, actions=actions, executed=executed
        )

    async def sweep(self) -> list[SweepResult]:
        """Rebalance every policy wallet; wallets run concurrently."""
        policies = await self._policies.list_policies()
        logger.info("Starting rebalance sweep over %d wallets", len(policies))

        results = list(
            await asyncio.gather(*(self.rebalance_wallet(p) for p in policies))
        )

        await self._send_log(self._build_summary(results))

        failures = [r for r in results if r.error]
        if failures:
            await self._send_alert(
                "\n".join(
                    f"{self._format_wallet(r.policy.wallet_address)}: {r.error}"
                    for r in failures
                ),
                subject="Rebalance sweep errors",
            )
        return results

    async def run_continuous(self, interval_minutes: int | None = None) -> None:
        """Run the sweep on a fixed cadence."""
        interval = interval_minutes or self._config.rebalancer.interval_minutes
        logger.info("Starting rebalance loop (sweeping every %d minutes)", interval)

        while True:
            try:
                await self.sweep()
                await asyncio.sleep(interval * 60)
            except Exception as e:
                logger.error("Error in rebalance loop: %s", e)
                await asyncio.sleep(60)
