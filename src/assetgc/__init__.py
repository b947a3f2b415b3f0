"""assetgc: reachability-based garbage collection for chat attachment blobs."""

import importlib.metadata as importlib_metadata

from assetgc.app import AssetGC
from assetgc.assets import AssetEntry, AssetStore, FileAssetStore, InMemoryAssetStore, SweepReport
from assetgc.config import SweepConfig
from assetgc.errors import (
    AssetGCError,
    AssetIntegrityError,
    AssetNotFoundError,
    ScanError,
    StorageError,
)
from assetgc.overlay import ConversationOverlayRegistry, Fusion, OverlayHandler, OverlayStore, Ray
from assetgc.roots import RootRegistry
from assetgc.scan import collect_fragment_asset_ids, scan_fragments
from assetgc.stores import ConversationStore, InMemoryConversationStore
from assetgc.sweep import SweepOrchestrator
from assetgc.types import (
    AssetRefPart,
    Conversation,
    DataRef,
    ErrorPart,
    Fragment,
    ImageRefPart,
    Message,
    TextPart,
)


def _detect_version() -> str:
    """Return installed package version or a local fallback when metadata is unavailable."""
    try:
        return importlib_metadata.version("assetgc")
    except importlib_metadata.PackageNotFoundError:
        return "0.0.0+unknown"


__version__ = _detect_version()

__all__ = [
    "AssetEntry",
    "AssetGC",
    "AssetGCError",
    "AssetIntegrityError",
    "AssetNotFoundError",
    "AssetRefPart",
    "AssetStore",
    "Conversation",
    "ConversationOverlayRegistry",
    "ConversationStore",
    "DataRef",
    "ErrorPart",
    "FileAssetStore",
    "Fragment",
    "Fusion",
    "ImageRefPart",
    "InMemoryAssetStore",
    "InMemoryConversationStore",
    "Message",
    "OverlayHandler",
    "OverlayStore",
    "Ray",
    "RootRegistry",
    "ScanError",
    "StorageError",
    "SweepConfig",
    "SweepOrchestrator",
    "SweepReport",
    "TextPart",
    "collect_fragment_asset_ids",
    "scan_fragments",
]
