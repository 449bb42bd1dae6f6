"""Integration tests for the rebalance sweep: full flow with fake I/O."""
from __future__ import annotations

import asyncio
from typing import Any, Callable
from unittest.mock import AsyncMock, patch

import pytest

from starknet_portfolio.config import AppConfig
from starknet_portfolio.errors import ChainReadFailure
from starknet_portfolio.models import (
    AllocationPolicy,
    AssetCategory,
    Direction,
    RebalanceAction,
    SupportedAsset,
)
from starknet_portfolio.notifications import TelegramNotifier
from starknet_portfolio.pricing import AssetPricer
from starknet_portfolio.services import (
    BalanceReader,
    LoggingExecutor,
    PortfolioService,
    Rebalancer,
)
from starknet_portfolio.stores import YamlPolicyStore

from ..fakes import (
    ETH_ADDR,
    PAIR_ADDR,
    STRK_ADDR,
    USDC_ADDR,
    WALLET,
    FakeChain,
    FakeFeed,
    StaticCatalog,
    StaticPolicies,
    u256,
)

POLICY = AllocationPolicy(
    wallet_address=WALLET,
    stable_percent=30,
    native_percent=50,
    other_percent=20,
    label="treasury",
)


@pytest.fixture()
def drifted_chain() -> FakeChain:
    """Wallet worth $1000: 45% stable, 40% native, 15% other."""
    chain = FakeChain()
    chain.set_token(USDC_ADDR, 450 * 10**6, 6)
    chain.set_token(STRK_ADDR, 800 * 10**18, 18)
    chain.set_token(PAIR_ADDR, 75 * 10**17, 18)
    chain.set(PAIR_ADDR, "get_reserves", u256(1000 * 10**6) + u256(500 * 10**18))
    chain.set(PAIR_ADDR, "total_supply", u256(100 * 10**18))
    return chain


@pytest.fixture()
def portfolio(
    drifted_chain: FakeChain,
    usdc: SupportedAsset,
    strk: SupportedAsset,
    lp_pair: SupportedAsset,
) -> PortfolioService:
    feed = FakeFeed({USDC_ADDR: 1.0, STRK_ADDR: 0.5, ETH_ADDR: 2.0})
    return PortfolioService(
        catalog=StaticCatalog([usdc, strk, lp_pair]),
        pricer=AssetPricer(drifted_chain, feed),
        balances=BalanceReader(drifted_chain),
    )


@pytest.fixture()
def notifier() -> AsyncMock:
    return AsyncMock()


@pytest.fixture()
def executor() -> LoggingExecutor:
    return LoggingExecutor()


@pytest.fixture()
def make_rebalancer(
    sample_app_config: AppConfig,
    portfolio: PortfolioService,
    notifier: AsyncMock,
    executor: LoggingExecutor,
) -> Callable[..., Rebalancer]:
    """Build a Rebalancer wired to fakes; keyword overrides replace them."""

    def build(**overrides: Any) -> Rebalancer:
        kwargs: dict[str, Any] = {
            "executor": executor,
            "portfolio": portfolio,
            "policies": StaticPolicies([POLICY]),
            "notifiers": [notifier],
        }
        kwargs.update(overrides)
        return Rebalancer(sample_app_config, **kwargs)

    return build


@pytest.fixture()
def rebalancer(make_rebalancer: Callable[..., Rebalancer]) -> Rebalancer:
    return make_rebalancer()


class TestRebalancerSetup:
    def test_defaults_built_from_config(self, sample_app_config: AppConfig) -> None:
        rebalancer = Rebalancer(sample_app_config)
        assert len(rebalancer._notifiers) == 1
        assert isinstance(rebalancer._notifiers[0], TelegramNotifier)
        assert isinstance(rebalancer._policies, YamlPolicyStore)
        assert isinstance(rebalancer._portfolio, PortfolioService)

    def test_injected_collaborators_are_used(
        self, sample_app_config: AppConfig, portfolio: PortfolioService
    ) -> None:
        policies = StaticPolicies([POLICY])
        rebalancer = Rebalancer(
            sample_app_config, portfolio=portfolio, policies=policies, notifiers=[]
        )
        assert rebalancer._portfolio is portfolio
        assert rebalancer._policies is policies
        assert rebalancer._notifiers == []


class TestSweep:
    @pytest.mark.asyncio
    async def test_plans_and_executes_drifted_wallet(
        self, rebalancer: Rebalancer, executor: LoggingExecutor
    ) -> None:
        results = await rebalancer.sweep()

        assert len(results) == 1
        result = results[0]
        assert result.error is None
        assert result.snapshot.total_value_usd == pytest.approx(1000.0)
        assert [(a.direction, a.asset_category) for a in result.actions] == [
            (Direction.SELL, AssetCategory.STABLE),
            (Direction.BUY, AssetCategory.NATIVE),
        ]
        assert result.actions[0].delta_usd == pytest.approx(150.0)
        assert result.actions[1].delta_usd == pytest.approx(100.0)
        assert result.executed == result.actions
        assert executor.executed == list(result.actions)

    @pytest.mark.asyncio
    async def test_summary_sent_to_log_bot(
        self, rebalancer: Rebalancer, notifier: AsyncMock
    ) -> None:
        await rebalancer.sweep()

        notifier.send_log.assert_called_once()
        summary = notifier.send_log.call_args[0][0]
        assert "Rebalance sweep" in summary
        assert "treasury" in summary
        assert "SELL stable $150.00" in summary
        assert "(2/2 executed)" in summary
        notifier.send_alert.assert_not_called()

    @pytest.mark.asyncio
    async def test_within_tolerance(
        self,
        make_rebalancer: Callable[..., Rebalancer],
        executor: LoggingExecutor,
        notifier: AsyncMock,
    ) -> None:
        balanced = AllocationPolicy(
            wallet_address=WALLET, stable_percent=45, native_percent=40, other_percent=15
        )
        rebalancer = make_rebalancer(policies=StaticPolicies([balanced]))

        results = await rebalancer.sweep()

        assert results[0].actions == ()
        assert executor.executed == []
        assert "within tolerance" in notifier.send_log.call_args[0][0]

    @pytest.mark.asyncio
    async def test_valuation_failure_reported(
        self, make_rebalancer: Callable[..., Rebalancer], notifier: AsyncMock
    ) -> None:
        broken = AsyncMock()
        broken.fetch_portfolio.side_effect = ChainReadFailure(
            USDC_ADDR, "balanceOf", "node down"
        )
        rebalancer = make_rebalancer(portfolio=broken)

        results = await rebalancer.sweep()

        assert results[0].snapshot is None
        assert "node down" in results[0].error
        notifier.send_alert.assert_called_once()
        assert notifier.send_alert.call_args.kwargs["subject"] == "Rebalance sweep errors"
        assert "ERROR" in notifier.send_log.call_args[0][0]

    @pytest.mark.asyncio
    async def test_failed_sell_stops_execution(
        self, make_rebalancer: Callable[..., Rebalancer]
    ) -> None:
        executor = AsyncMock()
        executor.execute.return_value = False
        rebalancer = make_rebalancer(executor=executor)

        results = await rebalancer.sweep()

        assert executor.execute.await_count == 1
        assert results[0].executed == ()
        assert len(results[0].actions) == 2

    @pytest.mark.asyncio
    async def test_failed_buy_does_not_stop_execution(
        self, make_rebalancer: Callable[..., Rebalancer]
    ) -> None:
        async def execute(action: RebalanceAction) -> bool:
            if action.direction is Direction.BUY:
                raise RuntimeError("router unavailable")
            return True

        executor = AsyncMock()
        executor.execute.side_effect = execute
        rebalancer = make_rebalancer(executor=executor)

        results = await rebalancer.sweep()

        assert [a.direction for a in results[0].executed] == [Direction.SELL]

    @pytest.mark.asyncio
    async def test_notifier_failure_is_logged(
        self, rebalancer: Rebalancer, notifier: AsyncMock
    ) -> None:
        notifier.send_log.side_effect = RuntimeError("telegram down")
        results = await rebalancer.sweep()
        assert results[0].error is None

    @pytest.mark.asyncio
    async def test_no_policies(
        self, make_rebalancer: Callable[..., Rebalancer], notifier: AsyncMock
    ) -> None:
        rebalancer = make_rebalancer(policies=StaticPolicies([]))
        assert await rebalancer.sweep() == []
        summary = notifier.send_log.call_args[0][0]
        assert "No allocation policies configured." in summary

    @pytest.mark.asyncio
    async def test_bad_token_decimals_do_not_abort_sweep(
        self, rebalancer: Rebalancer, drifted_chain: FakeChain
    ) -> None:
        drifted_chain.set(STRK_ADDR, "decimals", (10**7,))

        results = await rebalancer.sweep()

        assert results[0].error is None
        assert results[0].snapshot.total_value_usd == pytest.approx(600.0)
        assert len(results[0].snapshot.failed_holdings) == 1


class TestRunContinuous:
    @pytest.mark.asyncio
    async def test_sleeps_for_interval(self, rebalancer: Rebalancer) -> None:
        rebalancer.sweep = AsyncMock(return_value=[])
        sleep = AsyncMock(side_effect=[None, asyncio.CancelledError()])

        with patch("starknet_portfolio.services.rebalancer.asyncio.sleep", sleep):
            with pytest.raises(asyncio.CancelledError):
                await rebalancer.run_continuous(15)

        assert rebalancer.sweep.await_count == 2
        sleep.assert_any_await(15 * 60)

    @pytest.mark.asyncio
    async def test_backs_off_after_error(self, rebalancer: Rebalancer) -> None:
        rebalancer.sweep = AsyncMock(side_effect=RuntimeError("boom"))
        sleep = AsyncMock(side_effect=asyncio.CancelledError())

        with patch("starknet_portfolio.services.rebalancer.asyncio.sleep", sleep):
            with pytest.raises(asyncio.CancelledError):
                await rebalancer.run_continuous()

        sleep.assert_awaited_once_with(60)


class TestFormatHelpers:
    def test_format_wallet_long(self) -> None:
        assert Rebalancer._format_wallet("0x1234567890abcdef1234567890") == "0x12345678...567890"

    def test_format_wallet_short(self) -> None:
        assert Rebalancer._format_wallet("0x123") == "0x123"
