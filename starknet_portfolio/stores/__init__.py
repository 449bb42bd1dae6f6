"""Read-only persistence for the asset catalog and allocation policies."""
from .yaml_store import YamlAssetCatalog, YamlPolicyStore

__all__ = ["YamlAssetCatalog", "YamlPolicyStore"]
