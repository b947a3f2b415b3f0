"""RootRegistry: extra live asset IDs contributed by subsystems outside persisted history."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from assetgc.types import BlobAssetId, RootProvider

logger = logging.getLogger(__name__)


class RootRegistry:
    """Ordered list of root providers.

    A root provider is a zero-argument callable returning asset IDs that some subsystem
    (e.g. in-progress generation overlays) still needs. Subsystems register themselves
    here so the sweep never has to import them.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._providers: list[RootProvider] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        """Return the number of registered providers."""
        with self._lock:
            return len(self._providers)

    @property
    def providers(self) -> tuple[RootProvider, ...]:
        """Return a point-in-time copy of the registered providers, in registration order."""
        with self._lock:
            return tuple(self._providers)

    def register(self, provider: RootProvider) -> Callable[[], None]:
        """Append ``provider`` and return a function that removes exactly this provider.

        Calling the returned function more than once, or after the provider was removed
        some other way, does nothing.
        """
        with self._lock:
            self._providers.append(provider)

        def unregister() -> None:
            self.unregister(provider)

        return unregister

    def unregister(self, provider: RootProvider) -> bool:
        """Remove the most recent registration of ``provider`` (by identity).

        Return ``True`` when a registration was removed; unknown providers are ignored.
        """
        with self._lock:
            for index in range(len(self._providers) - 1, -1, -1):
                if self._providers[index] is provider:
                    del self._providers[index]
                    return True
        return False

    def collect(self) -> RootCollection:
        """Invoke every provider and return the union of their asset IDs plus any failures.

        A provider that raises is logged and skipped; the rest still run and the
        registry itself is left untouched.
        """
        asset_ids: set[BlobAssetId] = set()
        failed: list[RootProvider] = []
        for provider in self.providers:
            try:
                asset_ids.update(provider())
            except Exception:
                logger.exception("Root provider %r failed", provider)
                failed.append(provider)
        return RootCollection(asset_ids=frozenset(asset_ids), failed=tuple(failed))

    def collect_all(self) -> set[BlobAssetId]:
        """Invoke every provider and return the union of their asset IDs."""
        return set(self.collect().asset_ids)


@dataclass(frozen=True, slots=True)
class RootCollection:
    """Result of one pass over the root providers."""

    asset_ids: frozenset[BlobAssetId]
    failed: tuple[RootProvider, ...] = ()

    @property
    def complete(self) -> bool:
        """Return whether every provider answered."""
        return not self.failed
