"""AssetStore: protocol for asset storage backends that can be swept."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Set

    from assetgc.types import BlobAssetId


def utc_now() -> datetime:
    """Return the current timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class AssetEntry:
    """One stored asset and its store-side metadata."""

    asset_id: BlobAssetId
    namespace: str
    partition: str
    sha256: str
    size: int
    mime_type: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class SweepReport:
    """Result of one delete-everything-not-kept pass over a partition."""

    namespace: str
    partition: str
    deleted: tuple[AssetEntry, ...]
    kept: int
    bytes_freed: int
    examined: int
    remaining: int
    dry_run: bool

    @property
    def deleted_ids(self) -> tuple[BlobAssetId, ...]:
        """Return IDs of deleted (or, in dry-run, deletable) assets."""
        return tuple(entry.asset_id for entry in self.deleted)


AssetKey = tuple[str, str, str]


def asset_key(entry: AssetEntry) -> AssetKey:
    """Return the ``(namespace, partition, asset_id)`` key that addresses an entry."""
    return (entry.namespace, entry.partition, entry.asset_id)


def entry_matches_scope(entry: AssetEntry, *, namespace: str | None = None, partition: str | None = None) -> bool:
    """Return whether an entry lives in the given namespace/partition (``None`` matches any)."""
    if namespace is not None and entry.namespace != namespace:
        return False
    return partition is None or entry.partition == partition


def sort_entries(entries: Iterable[AssetEntry]) -> tuple[AssetEntry, ...]:
    """Order entries oldest first, then by ID, so listings and reports are deterministic."""
    epoch = datetime.min.replace(tzinfo=timezone.utc)
    return tuple(sorted(entries, key=lambda entry: (entry.created_at or epoch, entry.asset_id)))


def select_unreferenced(entries: Iterable[AssetEntry], keep_ids: Set[BlobAssetId]) -> tuple[AssetEntry, ...]:
    """Select the entries whose IDs are absent from ``keep_ids``."""
    return tuple(entry for entry in sort_entries(entries) if entry.asset_id not in keep_ids)


@runtime_checkable
class AssetStore(Protocol):
    """Asset storage as seen by the sweep.

    Implementations delete, inside one namespace/partition, every asset whose ID is not
    in ``keep_ids``, and raise ``StorageError`` when they cannot.
    """

    async def delete_assets_not_in(
        self,
        namespace: str,
        partition: str,
        keep_ids: Set[BlobAssetId],
        *,
        dry_run: bool = False,
    ) -> SweepReport:
        """Delete unkept assets in the partition and return a report."""
        ...
