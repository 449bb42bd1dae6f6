"""YAML-backed asset catalog and allocation policy stores."""
from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any

import yaml

from ..chains.starknet.codec import normalize_address
from ..errors import CatalogLoadFailure
from ..models import AllocationPolicy, AssetKind, SupportedAsset

logger = logging.getLogger(__name__)

PERCENT_TOLERANCE = 0.01


def _read_yaml(path: Path) -> dict[str, Any]:
    with open(path) as f:
        raw = yaml.safe_load(f)
    return raw or {}


def _parse_entry(entry: dict[str, Any]) -> SupportedAsset:
    """Parse one catalog entry; underlying references stay unresolved."""
    return SupportedAsset(
        address=normalize_address(str(entry["address"])),
        name=str(entry.get("name") or entry.get("symbol") or entry["address"]),
        symbol=str(entry.get("symbol", "")),
        decimals=int(entry.get("decimals", 18)),
        kind=AssetKind(str(entry.get("kind", "plain")).lower()),
        index_decimals=int(entry.get("index_decimals", 18)),
    )


class YamlAssetCatalog:
    """Supported-asset catalog read from ``assets:`` in a YAML file.

    Pairs name their underlyings with ``underlying_a``/``underlying_b`` and
    staked positions with ``underlying``; each reference is the address or
    symbol of a plain asset in the same file.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    async def list_supported_assets(self) -> list[SupportedAsset]:
        try:
            raw = _read_yaml(self._path)
        except (OSError, yaml.YAMLError) as e:
            raise CatalogLoadFailure(str(self._path), str(e)) from e
        entries = raw.get("assets")
        if not isinstance(entries, list):
            raise CatalogLoadFailure(str(self._path), "missing 'assets' list")
        return self._build(entries)

    def _build(self, entries: list[Any]) -> list[SupportedAsset]:
        source = str(self._path)
        parsed: list[tuple[SupportedAsset, dict[str, Any]]] = []
        by_address: dict[str, SupportedAsset] = {}

        for i, entry in enumerate(entries):
            if not isinstance(entry, dict):
                raise CatalogLoadFailure(source, f"entry {i} is not a mapping")
            try:
                asset = _parse_entry(entry)
            except (KeyError, TypeError, ValueError) as e:
                raise CatalogLoadFailure(source, f"entry {i} is invalid: {e}") from e
            if asset.decimals < 0:
                raise CatalogLoadFailure(source, f"{asset.address} has negative decimals")
            if asset.address in by_address:
                raise CatalogLoadFailure(source, f"duplicate address {asset.address}")
            by_address[asset.address] = asset
            parsed.append((asset, entry))

        by_symbol = {
            a.symbol.upper(): a
            for a in by_address.values()
            if a.symbol and a.kind is AssetKind.PLAIN
        }

        def resolve(ref: Any, owner: SupportedAsset) -> SupportedAsset:
            target = None
            if ref is not None:
                text = str(ref)
                if text.lower().startswith("0x"):
                    target = by_address.get(normalize_address(text))
                else:
                    target = by_symbol.get(text.upper())
            if target is None or target.kind is not AssetKind.PLAIN:
                raise CatalogLoadFailure(
                    source, f"{owner.address} references unknown plain asset {ref!r}"
                )
            return target

        assets: list[SupportedAsset] = []
        for asset, entry in parsed:
            if asset.kind is AssetKind.LIQUIDITY_PAIR:
                asset = replace(
                    asset,
                    underlying_a=resolve(entry.get("underlying_a"), asset),
                    underlying_b=resolve(entry.get("underlying_b"), asset),
                )
            elif asset.kind is AssetKind.STAKED_POSITION:
                asset = replace(asset, underlying=resolve(entry.get("underlying"), asset))
            assets.append(asset)

        logger.debug("Loaded %d supported assets from %s", len(assets), source)
        return assets


class YamlPolicyStore:
    """Allocation policies read from ``policies:`` in a YAML file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    async def list_policies(self) -> list[AllocationPolicy]:
        raw = _read_yaml(self._path)
        policies: list[AllocationPolicy] = []

        for entry in raw.get("policies") or []:
            try:
                band = entry.get("tolerance_band")
                policy = AllocationPolicy(
                    wallet_address=normalize_address(str(entry["wallet_address"])),
                    stable_percent=float(entry.get("stable_percent", 0)),
                    native_percent=float(entry.get("native_percent", 0)),
                    other_percent=float(entry.get("other_percent", 0)),
                    label=str(entry.get("label", "")),
                    tolerance_band=float(band) if band is not None else None,
                )
            except (KeyError, TypeError, ValueError, AttributeError) as e:
                logger.warning("Skipping malformed policy %r: %s", entry, e)
                continue

            if abs(policy.total_percent - 100) > PERCENT_TOLERANCE:
                logger.warning(
                    "Skipping policy for %s: targets sum to %.2f%%, not 100%%",
                    policy.wallet_address,
                    policy.total_percent,
                )
                continue
            if policy.tolerance_band is not None and policy.tolerance_band <= 0:
                logger.warning(
                    "Skipping policy for %s: tolerance band must be positive",
                    policy.wallet_address,
                )
                continue
            policies.append(policy)

        return policies
