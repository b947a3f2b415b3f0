"""Asset reference scanner: which blob assets does a piece of chat content reach?"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from assetgc.errors import ScanError
from assetgc.types import (
    SCANNED_FRAGMENT_KINDS,
    AssetRefPart,
    DataRef,
    ErrorPart,
    Fragment,
    ImageRefPart,
    TextPart,
)

if TYPE_CHECKING:
    from collections.abc import Iterable

    from assetgc.types import BlobAssetId, Conversation, Message

logger = logging.getLogger(__name__)


def _blob_asset_id(data_ref: DataRef | None, *, fragment_id: str) -> BlobAssetId | None:
    """Return the local blob ID behind a DataRef, or ``None`` for absent and non-blob refs."""
    if data_ref is None:
        return None
    if not isinstance(data_ref, DataRef):
        msg = f"data_ref must be a DataRef; got {type(data_ref).__name__}"
        raise ScanError(msg, fragment_id=fragment_id)
    if not data_ref.is_blob:
        return None
    if not isinstance(data_ref.asset_id, str) or not data_ref.asset_id:
        msg = "blob data_ref has no asset_id"
        raise ScanError(msg, fragment_id=fragment_id)
    return data_ref.asset_id


def fragment_asset_ids(fragment: Fragment) -> tuple[BlobAssetId, ...]:
    """Return the blob asset IDs reachable from one fragment.

    Only ``content`` and ``attachment`` fragments are considered. Raises ``ScanError``
    when the fragment does not have the expected shape.
    """
    if not isinstance(fragment, Fragment):
        msg = f"expected a Fragment; got {type(fragment).__name__}"
        raise ScanError(msg)
    if fragment.kind not in SCANNED_FRAGMENT_KINDS:
        return ()

    match fragment.part:
        # Asset references keep the pre-migration image part for blob compatibility.
        case AssetRefPart(legacy_image_ref=ImageRefPart(data_ref=data_ref)) | ImageRefPart(data_ref=data_ref):
            asset_id = _blob_asset_id(data_ref, fragment_id=fragment.fragment_id)
            return () if asset_id is None else (asset_id,)
        case AssetRefPart() | TextPart() | ErrorPart():
            return ()
        case part:
            msg = f"unexpected part {type(part).__name__}"
            raise ScanError(msg, fragment_id=fragment.fragment_id)


def collect_fragment_asset_ids(fragments: Iterable[Fragment], asset_ids: set[BlobAssetId]) -> None:
    """Add the blob asset IDs referenced by ``fragments`` into ``asset_ids``.

    Malformed fragments are skipped; a scan never aborts part-way.
    """
    for fragment in fragments:
        try:
            asset_ids.update(fragment_asset_ids(fragment))
        except ScanError as exc:
            logger.debug("Skipping fragment during asset scan: %s", exc)


def scan_fragments(fragments: Iterable[Fragment]) -> set[BlobAssetId]:
    """Return the set of blob asset IDs referenced by ``fragments``."""
    asset_ids: set[BlobAssetId] = set()
    collect_fragment_asset_ids(fragments, asset_ids)
    return asset_ids


def scan_messages(messages: Iterable[Message]) -> set[BlobAssetId]:
    """Return the set of blob asset IDs referenced by any of ``messages``."""
    asset_ids: set[BlobAssetId] = set()
    for message in messages:
        collect_fragment_asset_ids(message.fragments, asset_ids)
    return asset_ids


def scan_conversations(conversations: Iterable[Conversation]) -> set[BlobAssetId]:
    """Return the set of blob asset IDs referenced by any message of any conversation."""
    asset_ids: set[BlobAssetId] = set()
    for conversation in conversations:
        for message in conversation.messages:
            collect_fragment_asset_ids(message.fragments, asset_ids)
    return asset_ids
