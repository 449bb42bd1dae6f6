"""Catalog and policy store protocols: read-only persistence."""
from typing import Protocol

from ..models import AllocationPolicy, SupportedAsset


class AssetCatalog(Protocol):
    """Raises ``CatalogLoadFailure`` when the catalog cannot be read."""

    async def list_supported_assets(self) -> list[SupportedAsset]: ...


class PolicyStore(Protocol):
    async def list_policies(self) -> list[AllocationPolicy]: ...
