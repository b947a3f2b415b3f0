"""Per-conversation overlay state: in-progress rays and fusions layered on persisted history."""

from __future__ import annotations

import threading
import uuid
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Literal

from assetgc.scan import collect_fragment_asset_ids

if TYPE_CHECKING:
    from collections.abc import Iterable

    from assetgc.roots import RootRegistry
    from assetgc.types import BlobAssetId, ConversationId, Message

RayStatus = Literal["empty", "scattering", "success", "stopped", "error"]
FusionStatus = Literal["idle", "fusing", "success", "stopped", "error"]


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True, slots=True)
class Ray:
    """One candidate generation attempt."""

    message: Message
    ray_id: str = field(default_factory=_new_id)
    status: RayStatus = "empty"
    follow_up_messages: tuple[Message, ...] = ()

    def __post_init__(self) -> None:
        """Normalize follow-ups container to tuple."""
        object.__setattr__(self, "follow_up_messages", tuple(self.follow_up_messages))


@dataclass(frozen=True, slots=True)
class Fusion:
    """A merge of several rays; ``output_message`` is set once the merge produced something."""

    factory_id: str
    output_message: Message | None = None
    fusion_id: str = field(default_factory=_new_id)
    status: FusionStatus = "idle"
    follow_up_messages: tuple[Message, ...] = ()

    def __post_init__(self) -> None:
        """Normalize follow-ups container to tuple."""
        object.__setattr__(self, "follow_up_messages", tuple(self.follow_up_messages))


@dataclass(frozen=True, slots=True)
class OverlaySnapshot:
    """Point-in-time copy of an OverlayStore."""

    rays: tuple[Ray, ...] = ()
    fusions: tuple[Fusion, ...] = ()


class OverlayStore:
    """Ephemeral rays and fusions for one conversation.

    Written by the generation subsystem; read by the sweep through ``snapshot()``.
    Nothing here is persisted.
    """

    def __init__(self) -> None:
        """Initialize an empty store."""
        self._rays: list[Ray] = []
        self._fusions: list[Fusion] = []
        self._lock = threading.Lock()

    def snapshot(self) -> OverlaySnapshot:
        """Return the current rays and fusions."""
        with self._lock:
            return OverlaySnapshot(rays=tuple(self._rays), fusions=tuple(self._fusions))

    @property
    def rays(self) -> tuple[Ray, ...]:
        """Return the current rays."""
        return self.snapshot().rays

    @property
    def fusions(self) -> tuple[Fusion, ...]:
        """Return the current fusions."""
        return self.snapshot().fusions

    # --- Rays ---

    def set_rays(self, rays: Iterable[Ray]) -> None:
        """Replace all rays."""
        new_rays = list(rays)
        with self._lock:
            self._rays = new_rays

    def add_ray(self, ray: Ray) -> Ray:
        """Append one ray and return it."""
        with self._lock:
            self._rays.append(ray)
        return ray

    def update_ray(
        self,
        ray_id: str,
        *,
        message: Message | None = None,
        status: RayStatus | None = None,
        follow_up_messages: Iterable[Message] | None = None,
    ) -> Ray:
        """Replace fields of one ray. Raise ``KeyError`` for an unknown ray ID."""
        with self._lock:
            index = self._index_of_ray(ray_id)
            current = self._rays[index]
            updated = replace(
                current,
                message=current.message if message is None else message,
                status=current.status if status is None else status,
                follow_up_messages=(
                    current.follow_up_messages if follow_up_messages is None else tuple(follow_up_messages)
                ),
            )
            self._rays[index] = updated
        return updated

    def remove_ray(self, ray_id: str) -> bool:
        """Remove one ray. Return ``True`` when it existed."""
        with self._lock:
            before = len(self._rays)
            self._rays = [ray for ray in self._rays if ray.ray_id != ray_id]
            return len(self._rays) != before

    # --- Fusions ---

    def add_fusion(self, fusion: Fusion) -> Fusion:
        """Append one fusion and return it."""
        with self._lock:
            self._fusions.append(fusion)
        return fusion

    def update_fusion(
        self,
        fusion_id: str,
        *,
        output_message: Message | None = None,
        status: FusionStatus | None = None,
        follow_up_messages: Iterable[Message] | None = None,
    ) -> Fusion:
        """Replace fields of one fusion. Raise ``KeyError`` for an unknown fusion ID."""
        with self._lock:
            index = self._index_of_fusion(fusion_id)
            current = self._fusions[index]
            updated = replace(
                current,
                output_message=current.output_message if output_message is None else output_message,
                status=current.status if status is None else status,
                follow_up_messages=(
                    current.follow_up_messages if follow_up_messages is None else tuple(follow_up_messages)
                ),
            )
            self._fusions[index] = updated
        return updated

    def remove_fusion(self, fusion_id: str) -> bool:
        """Remove one fusion. Return ``True`` when it existed."""
        with self._lock:
            before = len(self._fusions)
            self._fusions = [fusion for fusion in self._fusions if fusion.fusion_id != fusion_id]
            return len(self._fusions) != before

    def clear(self) -> None:
        """Drop every ray and fusion."""
        with self._lock:
            self._rays = []
            self._fusions = []

    def _index_of_ray(self, ray_id: str) -> int:
        for index, ray in enumerate(self._rays):
            if ray.ray_id == ray_id:
                return index
        raise KeyError(ray_id)

    def _index_of_fusion(self, fusion_id: str) -> int:
        for index, fusion in enumerate(self._fusions):
            if fusion.fusion_id == fusion_id:
                return index
        raise KeyError(fusion_id)


class OverlayHandler:
    """Transitory state layered on top of one persisted conversation."""

    def __init__(self, conversation_id: ConversationId) -> None:
        """Initialize with the conversation this handler overlays."""
        self._conversation_id = conversation_id
        self._store = OverlayStore()

    @property
    def conversation_id(self) -> ConversationId:
        """Return the overlaid conversation's ID."""
        return self._conversation_id

    @property
    def store(self) -> OverlayStore:
        """Return the overlay store owned by this handler."""
        return self._store

    def collect_asset_ids(self, asset_ids: set[BlobAssetId]) -> None:
        """Add blob asset IDs referenced by rays, fusion outputs and their follow-ups."""
        snapshot = self._store.snapshot()
        for ray in snapshot.rays:
            collect_fragment_asset_ids(ray.message.fragments, asset_ids)
            for message in ray.follow_up_messages:
                collect_fragment_asset_ids(message.fragments, asset_ids)
        for fusion in snapshot.fusions:
            if fusion.output_message is not None:
                collect_fragment_asset_ids(fusion.output_message.fragments, asset_ids)
            for message in fusion.follow_up_messages:
                collect_fragment_asset_ids(message.fragments, asset_ids)

    def __repr__(self) -> str:
        """Return a debug representation."""
        return f"OverlayHandler(conversation_id={self._conversation_id!r})"


class ConversationOverlayRegistry:
    """One OverlayHandler per conversation ID, created on first request.

    Handlers are never evicted: callers may hold on to a handler indefinitely and
    there is no lifecycle tracking that would make removal safe.
    On construction the registry registers itself, once, as a root provider so that
    assets shown only in overlays survive a sweep.
    """

    def __init__(self, root_registry: RootRegistry) -> None:
        """Initialize an empty registry and register it as a root provider."""
        self._handlers: dict[ConversationId, OverlayHandler] = {}
        self._lock = threading.Lock()
        root_registry.register(self.collect_asset_ids)

    def __len__(self) -> int:
        """Return the number of handlers created so far."""
        with self._lock:
            return len(self._handlers)

    def __contains__(self, conversation_id: object) -> bool:
        """Return whether a handler exists for ``conversation_id``."""
        with self._lock:
            return conversation_id in self._handlers

    @property
    def conversation_ids(self) -> tuple[ConversationId, ...]:
        """Return IDs of conversations that have a handler, in creation order."""
        with self._lock:
            return tuple(self._handlers)

    def get_handler(self, conversation_id: ConversationId) -> OverlayHandler:
        """Return the handler for ``conversation_id``, creating it on first use."""
        with self._lock:
            handler = self._handlers.get(conversation_id)
            if handler is None:
                handler = OverlayHandler(conversation_id)
                self._handlers[conversation_id] = handler
            return handler

    def collect_asset_ids(self) -> list[BlobAssetId]:
        """Return blob asset IDs referenced by every handler's overlay store."""
        with self._lock:
            handlers = tuple(self._handlers.values())
        asset_ids: set[BlobAssetId] = set()
        for handler in handlers:
            handler.collect_asset_ids(asset_ids)
        return sorted(asset_ids)
