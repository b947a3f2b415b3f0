"""InMemoryAssetStore: dict-based asset storage for development and testing."""

from __future__ import annotations

import hashlib
import threading
import uuid
from typing import TYPE_CHECKING

from assetgc.assets._store import (
    AssetEntry,
    AssetKey,
    SweepReport,
    asset_key,
    entry_matches_scope,
    select_unreferenced,
    sort_entries,
    utc_now,
)
from assetgc.config import DEFAULT_NAMESPACE, DEFAULT_PARTITION
from assetgc.errors import AssetIntegrityError, AssetNotFoundError

if TYPE_CHECKING:
    from collections.abc import Set

    from assetgc.types import BlobAssetId


class InMemoryAssetStore:
    """In-memory asset store for development and testing.

    Assets are addressed by ``(namespace, partition, asset_id)``; the same ID may exist
    independently in several partitions.
    """

    def __init__(self) -> None:
        """Initialize an empty in-memory store."""
        self._data: dict[AssetKey, bytes] = {}
        self._entries: dict[AssetKey, AssetEntry] = {}
        self._lock = threading.Lock()

    def put_asset(
        self,
        data: bytes,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        partition: str = DEFAULT_PARTITION,
        mime_type: str | None = None,
        asset_id: BlobAssetId | None = None,
    ) -> AssetEntry:
        """Store bytes and return the new AssetEntry."""
        entry = AssetEntry(
            asset_id=asset_id or uuid.uuid4().hex,
            namespace=namespace,
            partition=partition,
            sha256=hashlib.sha256(data).hexdigest(),
            size=len(data),
            mime_type=mime_type,
            created_at=utc_now(),
        )
        key = asset_key(entry)
        with self._lock:
            self._data[key] = data
            self._entries[key] = entry
        return entry

    def get_asset(
        self,
        asset_id: BlobAssetId,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        partition: str = DEFAULT_PARTITION,
    ) -> bytes:
        """Retrieve bytes and verify SHA-256 integrity."""
        key = (namespace, partition, asset_id)
        with self._lock:
            data = self._data.get(key)
            entry = self._entries.get(key)
        if data is None or entry is None:
            raise AssetNotFoundError(asset_id)
        actual = hashlib.sha256(data).hexdigest()
        if actual != entry.sha256:
            raise AssetIntegrityError(asset_id, entry.sha256, actual)
        return data

    def has_asset(
        self,
        asset_id: BlobAssetId,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        partition: str = DEFAULT_PARTITION,
    ) -> bool:
        """Check whether an asset exists."""
        with self._lock:
            return (namespace, partition, asset_id) in self._data

    def delete_asset(
        self,
        asset_id: BlobAssetId,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        partition: str = DEFAULT_PARTITION,
    ) -> bool:
        """Delete an asset. Return ``True`` when deleted."""
        key = (namespace, partition, asset_id)
        with self._lock:
            removed = self._data.pop(key, None)
            self._entries.pop(key, None)
        return removed is not None

    def list_assets(self, *, namespace: str | None = None, partition: str | None = None) -> tuple[AssetEntry, ...]:
        """List stored assets, optionally limited to one namespace/partition."""
        with self._lock:
            entries = tuple(self._entries.values())
        return sort_entries(
            entry for entry in entries if entry_matches_scope(entry, namespace=namespace, partition=partition)
        )

    async def delete_assets_not_in(
        self,
        namespace: str,
        partition: str,
        keep_ids: Set[BlobAssetId],
        *,
        dry_run: bool = False,
    ) -> SweepReport:
        """Delete every asset in the partition whose ID is absent from ``keep_ids``."""
        entries = self.list_assets(namespace=namespace, partition=partition)
        deleted = select_unreferenced(entries, keep_ids)
        if not dry_run:
            for entry in deleted:
                self.delete_asset(entry.asset_id, namespace=namespace, partition=partition)

        with self._lock:
            total = len(self._entries)
        return SweepReport(
            namespace=namespace,
            partition=partition,
            deleted=deleted,
            kept=len(entries) - len(deleted),
            bytes_freed=sum(entry.size for entry in deleted),
            examined=len(entries),
            remaining=total if not dry_run else total - len(deleted),
            dry_run=dry_run,
        )
