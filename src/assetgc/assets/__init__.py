"""AssetStore and reference implementations: the storage the sweep deletes from."""

from assetgc.assets._file import FileAssetStore
from assetgc.assets._memory import InMemoryAssetStore
from assetgc.assets._store import AssetEntry, AssetStore, SweepReport

__all__ = [
    "AssetEntry",
    "AssetStore",
    "FileAssetStore",
    "InMemoryAssetStore",
    "SweepReport",
]
