"""AssetGC: composition root owning the registries and the sweep."""

from __future__ import annotations

from typing import TYPE_CHECKING

from assetgc.overlay import ConversationOverlayRegistry
from assetgc.roots import RootRegistry
from assetgc.sweep import SweepOrchestrator

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from assetgc.assets import AssetStore, SweepReport
    from assetgc.config import SweepConfig
    from assetgc.overlay import OverlayHandler
    from assetgc.stores import ConversationStore
    from assetgc.types import BlobAssetId, Conversation, ConversationId, RootProvider


class AssetGC:
    """Everything an application needs to keep chat assets tidy.

    Construct one per application and pass it to whatever needs it: lifecycle hooks
    call ``run_gc``, generation code calls ``get_overlay_handler``, and any other
    subsystem holding asset references calls ``register_root_provider``.
    """

    def __init__(
        self,
        conversation_store: ConversationStore,
        asset_store: AssetStore,
        config: SweepConfig | None = None,
    ) -> None:
        """Wire a root registry, an overlay registry and a sweep orchestrator together."""
        self.roots = RootRegistry()
        self.overlays = ConversationOverlayRegistry(self.roots)
        self.orchestrator = SweepOrchestrator(conversation_store, asset_store, self.roots, config)

    def register_root_provider(self, provider: RootProvider) -> Callable[[], None]:
        """Protect the assets ``provider`` reports; call the returned function to stop."""
        return self.roots.register(provider)

    def get_overlay_handler(self, conversation_id: ConversationId) -> OverlayHandler:
        """Return the (never evicted) overlay handler for a conversation."""
        return self.overlays.get_handler(conversation_id)

    def compute_keep_set(self, conversations: Sequence[Conversation] | None = None) -> frozenset[BlobAssetId]:
        """Return the asset IDs a sweep would keep right now."""
        return self.orchestrator.compute_keep_set(conversations)

    async def run_gc(self, conversations: Sequence[Conversation] | None = None) -> SweepReport | None:
        """Sweep unreferenced assets; ``StorageError`` propagates."""
        return await self.orchestrator.run_gc(conversations)

    async def run_gc_quietly(self, conversations: Sequence[Conversation] | None = None) -> SweepReport | None:
        """Sweep unreferenced assets, logging instead of raising storage failures."""
        return await self.orchestrator.run_gc_quietly(conversations)
