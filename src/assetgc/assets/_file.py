"""FileAssetStore: file-system-based asset storage."""

from __future__ import annotations

import asyncio
import hashlib
import json
import logging
import threading
import uuid
from datetime import datetime
from pathlib import Path
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
from assetgc.errors import AssetIntegrityError, AssetNotFoundError, StorageError

if TYPE_CHECKING:
    from collections.abc import Set

    from assetgc.types import BlobAssetId

logger = logging.getLogger(__name__)

_PAYLOAD_SUFFIX = ".blob"
_META_SUFFIX = ".meta.json"


class FileAssetStore:
    """File-system-based asset store.

    Store each asset as ``<root>/<namespace>/<partition>/<id>.blob`` with its metadata in
    ``<id>.meta.json`` next to it.
    """

    def __init__(self, root: str | Path) -> None:
        """Initialize with a root directory, creating it if needed."""
        self._root = Path(root)
        self._root.mkdir(parents=True, exist_ok=True)
        self._entries: dict[AssetKey, AssetEntry] = {}
        self._lock = threading.Lock()
        self._load_entries()

    @property
    def root(self) -> Path:
        """Return the root directory path."""
        return self._root

    def _resolve_path(self, namespace: str, partition: str, name: str) -> Path | None:
        """Resolve a path and ensure it stays under the store root."""
        root = self._root.resolve()
        candidate = (self._root / namespace / partition / name).resolve()
        try:
            candidate.relative_to(root)
        except ValueError:
            return None
        return candidate

    def _payload_path(self, entry: AssetEntry) -> Path | None:
        """Resolve payload path for an entry."""
        return self._resolve_path(entry.namespace, entry.partition, f"{entry.asset_id}{_PAYLOAD_SUFFIX}")

    def _meta_path(self, entry: AssetEntry) -> Path | None:
        """Resolve metadata path for an entry."""
        return self._resolve_path(entry.namespace, entry.partition, f"{entry.asset_id}{_META_SUFFIX}")

    def _entry_to_payload(self, entry: AssetEntry) -> dict[str, object]:
        """Serialize an AssetEntry for sidecar metadata."""
        return {
            "asset_id": entry.asset_id,
            "namespace": entry.namespace,
            "partition": entry.partition,
            "sha256": entry.sha256,
            "size": entry.size,
            "mime_type": entry.mime_type,
            "created_at": entry.created_at.isoformat() if entry.created_at is not None else None,
        }

    def _entry_from_payload(self, payload: object, *, asset_id: str) -> AssetEntry | None:
        """Deserialize one metadata sidecar payload; return ``None`` when it is unusable."""
        if not isinstance(payload, dict):
            return None
        data = {str(key): value for key, value in payload.items()}

        payload_id = data.get("asset_id")
        namespace = data.get("namespace")
        partition = data.get("partition")
        sha256 = data.get("sha256")
        size = data.get("size")
        mime_type = data.get("mime_type")
        created_at_raw = data.get("created_at")

        if (
            not isinstance(payload_id, str)
            or payload_id != asset_id
            or not isinstance(namespace, str)
            or not namespace
            or not isinstance(partition, str)
            or not partition
            or not isinstance(sha256, str)
            or not sha256
            or not isinstance(size, int)
            or (mime_type is not None and not isinstance(mime_type, str))
        ):
            return None

        created_at: datetime | None = None
        if isinstance(created_at_raw, str):
            try:
                created_at = datetime.fromisoformat(created_at_raw)
            except ValueError:
                return None

        return AssetEntry(
            asset_id=payload_id,
            namespace=namespace,
            partition=partition,
            sha256=sha256,
            size=size,
            mime_type=mime_type,
            created_at=created_at,
        )

    def _load_entries(self) -> None:
        """Load metadata sidecars into the in-memory index."""
        for meta_path in self._root.glob(f"*/*/*{_META_SUFFIX}"):
            asset_id = meta_path.name[: -len(_META_SUFFIX)]
            try:
                raw = json.loads(meta_path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError):
                logger.warning("Ignoring unreadable asset metadata at %s", meta_path)
                continue

            entry = self._entry_from_payload(raw, asset_id=asset_id)
            if entry is None:
                logger.warning("Ignoring malformed asset metadata at %s", meta_path)
                continue
            if meta_path.parent.resolve() != self._resolve_path(entry.namespace, entry.partition, ""):
                logger.warning("Ignoring asset metadata stored outside its partition at %s", meta_path)
                continue
            payload_path = self._payload_path(entry)
            if payload_path is None or not payload_path.exists():
                continue
            self._entries[asset_key(entry)] = entry

    def _lookup(self, namespace: str, partition: str, asset_id: BlobAssetId) -> AssetEntry | None:
        with self._lock:
            return self._entries.get((namespace, partition, asset_id))

    def put_asset(
        self,
        data: bytes,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        partition: str = DEFAULT_PARTITION,
        mime_type: str | None = None,
        asset_id: BlobAssetId | None = None,
    ) -> AssetEntry:
        """Write bytes to a file and return the new AssetEntry."""
        entry = AssetEntry(
            asset_id=asset_id or uuid.uuid4().hex,
            namespace=namespace,
            partition=partition,
            sha256=hashlib.sha256(data).hexdigest(),
            size=len(data),
            mime_type=mime_type,
            created_at=utc_now(),
        )
        payload_path = self._payload_path(entry)
        meta_path = self._meta_path(entry)
        if payload_path is None or meta_path is None:
            msg = f"Asset {entry.asset_id!r} resolves outside store root."
            raise StorageError(msg, namespace=namespace, partition=partition)

        try:
            payload_path.parent.mkdir(parents=True, exist_ok=True)
            payload_path.write_bytes(data)
            meta_path.write_text(json.dumps(self._entry_to_payload(entry), ensure_ascii=False), encoding="utf-8")
        except OSError as exc:
            msg = f"Cannot write asset {entry.asset_id!r}: {exc}"
            raise StorageError(msg, namespace=namespace, partition=partition) from exc

        with self._lock:
            self._entries[asset_key(entry)] = entry
        return entry

    def get_asset(
        self,
        asset_id: BlobAssetId,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        partition: str = DEFAULT_PARTITION,
    ) -> bytes:
        """Read an asset file and verify SHA-256 integrity."""
        entry = self._lookup(namespace, partition, asset_id)
        path = self._payload_path(entry) if entry is not None else None
        if entry is None or path is None or not path.exists():
            raise AssetNotFoundError(asset_id)
        data = path.read_bytes()
        actual = hashlib.sha256(data).hexdigest()
        if actual != entry.sha256:
            raise AssetIntegrityError(asset_id, entry.sha256, actual)
        return data

    def _payload_exists(self, entry: AssetEntry) -> bool:
        path = self._payload_path(entry)
        return path is not None and path.exists()

    def has_asset(
        self,
        asset_id: BlobAssetId,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        partition: str = DEFAULT_PARTITION,
    ) -> bool:
        """Check whether an asset file exists."""
        entry = self._lookup(namespace, partition, asset_id)
        return entry is not None and self._payload_exists(entry)

    def delete_asset(
        self,
        asset_id: BlobAssetId,
        *,
        namespace: str = DEFAULT_NAMESPACE,
        partition: str = DEFAULT_PARTITION,
    ) -> bool:
        """Delete an asset payload and metadata sidecar.

        The index entry is dropped only once both files are gone, so a failed unlink
        leaves the asset visible to the next sweep.
        """
        entry = self._lookup(namespace, partition, asset_id)
        if entry is None:
            return False

        deleted = False
        for path in (self._payload_path(entry), self._meta_path(entry)):
            if path is not None and path.exists():
                path.unlink()
                deleted = True

        with self._lock:
            if self._entries.get(asset_key(entry)) is entry:
                del self._entries[asset_key(entry)]
        return deleted

    def list_assets(self, *, namespace: str | None = None, partition: str | None = None) -> tuple[AssetEntry, ...]:
        """List stored assets, optionally limited to one namespace/partition."""
        with self._lock:
            entries = tuple(self._entries.values())

        live: list[AssetEntry] = []
        for entry in entries:
            if not entry_matches_scope(entry, namespace=namespace, partition=partition):
                continue
            if self._payload_exists(entry):
                live.append(entry)
                continue
            with self._lock:
                if self._entries.get(asset_key(entry)) is entry:
                    del self._entries[asset_key(entry)]
        return sort_entries(live)

    def _delete_assets_not_in(
        self,
        namespace: str,
        partition: str,
        keep_ids: Set[BlobAssetId],
        *,
        dry_run: bool,
    ) -> SweepReport:
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

    async def delete_assets_not_in(
        self,
        namespace: str,
        partition: str,
        keep_ids: Set[BlobAssetId],
        *,
        dry_run: bool = False,
    ) -> SweepReport:
        """Delete every asset in the partition whose ID is absent from ``keep_ids``.

        File I/O runs in a worker thread. Any ``OSError`` surfaces as ``StorageError``.
        """
        try:
            return await asyncio.to_thread(
                self._delete_assets_not_in,
                namespace,
                partition,
                frozenset(keep_ids),
                dry_run=dry_run,
            )
        except OSError as exc:
            msg = f"Cannot sweep assets in {namespace}/{partition}: {exc}"
            raise StorageError(msg, namespace=namespace, partition=partition) from exc
