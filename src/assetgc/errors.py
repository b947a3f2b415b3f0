"""Typed errors for assetgc."""


class AssetGCError(Exception):
    """Base exception for all assetgc errors."""


class ScanError(AssetGCError):
    """Raised when a message fragment has a malformed or unexpected shape.

    The scanner catches this per fragment and moves on; it never escapes a scan.
    """

    def __init__(self, reason: str, *, fragment_id: str | None = None) -> None:
        """Initialize with a reason and the offending fragment's ID when known."""
        self.reason = reason
        self.fragment_id = fragment_id
        where = f" in fragment {fragment_id}" if fragment_id else ""
        super().__init__(f"Cannot scan fragment{where}: {reason}")


class StorageError(AssetGCError):
    """Raised when the asset store fails to read, write, or delete assets."""

    def __init__(self, message: str, *, namespace: str | None = None, partition: str | None = None) -> None:
        """Initialize with a message and the storage scope that failed."""
        self.namespace = namespace
        self.partition = partition
        super().__init__(message)


class AssetNotFoundError(StorageError):
    """Raised when an asset ID cannot be resolved in an AssetStore."""

    def __init__(self, asset_id: str) -> None:
        """Initialize with the missing asset's ID."""
        self.asset_id = asset_id
        super().__init__(f"Asset not found: {asset_id}")


class AssetIntegrityError(StorageError):
    """Raised when asset data does not match its expected SHA-256 digest."""

    def __init__(self, asset_id: str, expected: str, actual: str) -> None:
        """Initialize with the asset ID and mismatched digests."""
        self.asset_id = asset_id
        self.expected = expected
        self.actual = actual
        super().__init__(f"Asset integrity check failed for {asset_id}: expected sha256={expected}, got {actual}")
