"""SweepOrchestrator: compute the keep-set and delete every other asset in the partition."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from assetgc.config import SweepConfig
from assetgc.errors import StorageError
from assetgc.scan import scan_conversations

if TYPE_CHECKING:
    from collections.abc import Sequence

    from assetgc.assets import AssetStore, SweepReport
    from assetgc.roots import RootRegistry
    from assetgc.stores import ConversationStore
    from assetgc.types import BlobAssetId, Conversation

logger = logging.getLogger(__name__)


class SweepOrchestrator:
    """Mark-and-sweep over chat assets.

    The keep-set is every blob referenced by persisted conversations plus every blob a
    registered root provider reports as live. It may hold more than is truly live,
    never less. Building it never awaits, so it reflects a single consistent moment;
    the only suspension point is the asset store's deletion call.
    """

    def __init__(
        self,
        conversation_store: ConversationStore,
        asset_store: AssetStore,
        root_registry: RootRegistry,
        config: SweepConfig | None = None,
    ) -> None:
        """Initialize with the stores to read and sweep, and the roots to honor."""
        self._conversation_store = conversation_store
        self._asset_store = asset_store
        self._root_registry = root_registry
        self._config = config or SweepConfig()

    @property
    def config(self) -> SweepConfig:
        """Return the sweep configuration."""
        return self._config

    def compute_keep_set(self, conversations: Sequence[Conversation] | None = None) -> frozenset[BlobAssetId]:
        """Return every asset ID that must survive a sweep right now."""
        keep_ids, _ = self._build_keep_set(conversations)
        return keep_ids

    def _build_keep_set(self, conversations: Sequence[Conversation] | None) -> tuple[frozenset[BlobAssetId], bool]:
        """Return the keep-set and whether every root provider answered."""
        if conversations is None:
            conversations = self._conversation_store.get_all_conversations()
        keep_ids = scan_conversations(conversations)
        roots = self._root_registry.collect()
        keep_ids.update(roots.asset_ids)
        return frozenset(keep_ids), roots.complete

    async def run_gc(self, conversations: Sequence[Conversation] | None = None) -> SweepReport | None:
        """Delete every asset in the configured partition that nothing references.

        ``conversations`` overrides the store's current contents (e.g. the state just
        rehydrated). Return ``None`` when the sweep was skipped. ``StorageError`` from the
        asset store propagates; nothing here needs undoing, so the next run simply retries.
        A root provider that fails suspends the sweep for that pass.
        """
        keep_ids, roots_complete = self._build_keep_set(conversations)
        namespace, partition = self._config.namespace, self._config.partition

        # An empty keep-set most likely means the store has not loaded yet.
        if not keep_ids:
            logger.warning("Skipping asset sweep of %s/%s: no referenced assets found", namespace, partition)
            return None
        if not roots_complete:
            logger.warning("Skipping asset sweep of %s/%s: a root provider failed", namespace, partition)
            return None

        logger.debug("Sweeping %s/%s keeping %d assets", namespace, partition, len(keep_ids))
        report = await self._asset_store.delete_assets_not_in(
            namespace,
            partition,
            keep_ids,
            dry_run=self._config.dry_run,
        )
        logger.info(
            "Asset sweep of %s/%s %s %d of %d assets (%d bytes)",
            namespace,
            partition,
            "would delete" if report.dry_run else "deleted",
            len(report.deleted),
            report.examined,
            report.bytes_freed,
        )
        return report

    async def run_gc_quietly(self, conversations: Sequence[Conversation] | None = None) -> SweepReport | None:
        """Run ``run_gc`` as background maintenance: storage failures are logged, not raised."""
        try:
            return await self.run_gc(conversations)
        except StorageError as exc:
            logger.warning("Asset sweep failed; will retry on next trigger: %s", exc)
            return None
