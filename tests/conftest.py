"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from starknet_portfolio.config import (
    AppConfig,
    CatalogConfig,
    ChainConfig,
    PoliciesConfig,
    PriceFeedConfig,
    RebalancerConfig,
    TelegramConfig,
)
from starknet_portfolio.models import AssetCategory, AssetKind, SupportedAsset

from .fakes import (
    ETH_ADDR,
    PAIR_ADDR,
    STAKED_ADDR,
    STRK_ADDR,
    USDC_ADDR,
    FakeChain,
    FakeFeed,
)

# ---------------------------------------------------------------------------
# Fake collaborator fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_chain() -> FakeChain:
    return FakeChain()


@pytest.fixture()
def fake_feed() -> FakeFeed:
    return FakeFeed()


# ---------------------------------------------------------------------------
# Asset fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def usdc() -> SupportedAsset:
    return SupportedAsset(address=USDC_ADDR, name="USD Coin", symbol="USDC", decimals=6)


@pytest.fixture()
def strk() -> SupportedAsset:
    return SupportedAsset(
        address=STRK_ADDR, name="Starknet Token", symbol="STRK", decimals=18
    )


@pytest.fixture()
def eth() -> SupportedAsset:
    return SupportedAsset(address=ETH_ADDR, name="Ether", symbol="ETH", decimals=18)


@pytest.fixture()
def lp_pair(usdc: SupportedAsset, eth: SupportedAsset) -> SupportedAsset:
    return SupportedAsset(
        address=PAIR_ADDR,
        name="USDC/ETH LP",
        symbol="USDC/ETH",
        decimals=18,
        kind=AssetKind.LIQUIDITY_PAIR,
        underlying_a=usdc,
        underlying_b=eth,
    )


@pytest.fixture()
def staked_strk(strk: SupportedAsset) -> SupportedAsset:
    return SupportedAsset(
        address=STAKED_ADDR,
        name="Nostra staked STRK",
        symbol="nstSTRK",
        decimals=18,
        kind=AssetKind.STAKED_POSITION,
        underlying=strk,
        index_decimals=18,
    )


@pytest.fixture()
def sample_categories() -> dict[str, AssetCategory]:
    return {
        "USDC": AssetCategory.STABLE,
        "STRK": AssetCategory.NATIVE,
        "ETH": AssetCategory.NATIVE,
    }


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_chain_config() -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=("https://rpc1.example.com", "https://rpc2.example.com"),
        rpc_timeout=10,
    )


@pytest.fixture()
def sample_app_config(
    tmp_path: Path,
    sample_chain_config: ChainConfig,
    sample_categories: dict[str, AssetCategory],
) -> AppConfig:
    return AppConfig(
        chain=sample_chain_config,
        price_feed=PriceFeedConfig(base_url="https://prices.example.com", timeout=5),
        catalog=CatalogConfig(path=str(tmp_path / "assets.yaml")),
        policies=PoliciesConfig(path=str(tmp_path / "policies.yaml")),
        rebalancer=RebalancerConfig(
            interval_minutes=60,
            tolerance_band=5.0,
            categories=sample_categories,
        ),
        telegram=TelegramConfig(
            enabled=True,
            alert_bot_token="fake-alert-token",
            log_bot_token="fake-log-token",
            chat_id="12345",
        ),
    )


# ---------------------------------------------------------------------------
# YAML fixtures
# ---------------------------------------------------------------------------

SAMPLE_CONFIG_YAML = textwrap.dedent("""\
    chain:
      rpc_endpoints: ["https://rpc.example.com"]
      rpc_timeout: 10
    price_feed:
      base_url: "https://prices.example.com/"
      timeout: 7
    catalog:
      path: assets.yaml
    policies:
      path: policies.yaml
    rebalancer:
      interval_minutes: 120
      tolerance_band: 4.0
      categories:
        USDC: stable
        STRK: native
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: 999
""")

SAMPLE_ASSETS_YAML = textwrap.dedent(f"""\
    assets:
      - symbol: USDC
        name: USD Coin
        address: "{USDC_ADDR}"
        decimals: 6
      - symbol: ETH
        name: Ether
        address: "{ETH_ADDR}"
        decimals: 18
      - symbol: STRK
        name: Starknet Token
        address: "{STRK_ADDR}"
        decimals: 18
      - symbol: USDC/ETH
        name: USDC/ETH LP
        address: "{PAIR_ADDR}"
        decimals: 18
        kind: pair
        underlying_a: USDC
        underlying_b: "{ETH_ADDR}"
      - symbol: nstSTRK
        name: Nostra staked STRK
        address: "{STAKED_ADDR}"
        kind: staked
        underlying: STRK
        index_decimals: 18
""")


@pytest.fixture()
def sample_config_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_CONFIG_YAML)
    return cfg_file


@pytest.fixture()
def sample_assets_path(tmp_path: Path) -> Path:
    path = tmp_path / "assets.yaml"
    path.write_text(SAMPLE_ASSETS_YAML)
    return path
