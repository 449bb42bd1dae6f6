"""Configuration loader — reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from .models import AssetCategory

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChainConfig:
    rpc_endpoints: tuple[str, ...] = ()
    rpc_timeout: int = 30


@dataclass(frozen=True)
class PriceFeedConfig:
    base_url: str = "https://starknet.impulse.avnu.fi"
    timeout: int = 15


@dataclass(frozen=True)
class CatalogConfig:
    path: str = "assets.yaml"


@dataclass(frozen=True)
class PoliciesConfig:
    path: str = "policies.yaml"


@dataclass(frozen=True)
class RebalancerConfig:
    interval_minutes: int = 360
    tolerance_band: float = 5.0
    categories: dict[str, AssetCategory] = field(default_factory=dict)
    default_category: AssetCategory = AssetCategory.OTHER


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class AppConfig:
    chain: ChainConfig = field(default_factory=ChainConfig)
    price_feed: PriceFeedConfig = field(default_factory=PriceFeedConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    policies: PoliciesConfig = field(default_factory=PoliciesConfig)
    rebalancer: RebalancerConfig = field(default_factory=RebalancerConfig)
    telegram: TelegramConfig = field(default_factory=TelegramConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _resolve_path(raw_path: str, base_dir: Path) -> str:
    if not raw_path:
        return ""
    path = Path(raw_path)
    if not path.is_absolute():
        path = base_dir / path
    return str(path)


def _build_chain(raw: dict[str, Any]) -> ChainConfig:
    return ChainConfig(
        rpc_endpoints=tuple(e for e in raw.get("rpc_endpoints", []) if e),
        rpc_timeout=int(raw.get("rpc_timeout", 30)),
    )


def _build_price_feed(raw: dict[str, Any]) -> PriceFeedConfig:
    return PriceFeedConfig(
        base_url=str(raw.get("base_url", PriceFeedConfig.base_url)).rstrip("/"),
        timeout=int(raw.get("timeout", 15)),
    )


def _parse_category(value: Any) -> AssetCategory:
    try:
        return AssetCategory(str(value).lower())
    except ValueError:
        raise ValueError(f"Unknown asset category '{value}'") from None


def _build_rebalancer(raw: dict[str, Any]) -> RebalancerConfig:
    categories: dict[str, AssetCategory] = {}
    for key, value in (raw.get("categories") or {}).items():
        categories[str(key)] = _parse_category(value)
    return RebalancerConfig(
        interval_minutes=int(raw.get("interval_minutes", 360)),
        tolerance_band=float(raw.get("tolerance_band", 5.0)),
        categories=categories,
        default_category=_parse_category(raw.get("default_category", "other")),
    )


def _build_telegram(raw: dict[str, Any]) -> TelegramConfig:
    return TelegramConfig(
        enabled=bool(raw.get("enabled", False)),
        alert_bot_token=raw.get("alert_bot_token", ""),
        log_bot_token=raw.get("log_bot_token", ""),
        chat_id=str(raw.get("chat_id", "")),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root. Relative catalog and policy paths are resolved
            against the directory holding this file.
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)
    base_dir = config_path.resolve().parent

    cfg = AppConfig(
        chain=_build_chain(raw.get("chain", {})),
        price_feed=_build_price_feed(raw.get("price_feed", {})),
        catalog=CatalogConfig(
            path=_resolve_path(raw.get("catalog", {}).get("path", "assets.yaml"), base_dir)
        ),
        policies=PoliciesConfig(
            path=_resolve_path(
                raw.get("policies", {}).get("path", "policies.yaml"), base_dir
            )
        ),
        rebalancer=_build_rebalancer(raw.get("rebalancer", {})),
        telegram=_build_telegram(raw.get("notifications", {}).get("telegram", {})),
    )

    _validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def _validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.chain.rpc_endpoints:
        raise ValueError("At least one RPC endpoint must be configured")
    if not cfg.catalog.path:
        raise ValueError("Asset catalog path is empty")
    if cfg.rebalancer.tolerance_band <= 0:
        raise ValueError("Tolerance band must be greater than zero")
    if cfg.rebalancer.interval_minutes <= 0:
        raise ValueError("Rebalance interval must be a positive number of minutes")
