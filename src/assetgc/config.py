"""SweepConfig: where the sweep deletes and how."""

from collections.abc import Mapping
from dataclasses import dataclass

from assetgc.serde import optional_bool, optional_string

DEFAULT_NAMESPACE = "global"
DEFAULT_PARTITION = "app-chat"


@dataclass(frozen=True, slots=True)
class SweepConfig:
    """Storage scope and options for a sweep.

    Only assets stored under ``namespace``/``partition`` are ever considered for deletion.
    With ``dry_run`` the asset store reports what it would delete without deleting.
    """

    namespace: str = DEFAULT_NAMESPACE
    partition: str = DEFAULT_PARTITION
    dry_run: bool = False

    def __post_init__(self) -> None:
        """Reject empty scope names."""
        for name in ("namespace", "partition"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value:
                msg = f"SweepConfig.{name} must be a non-empty string."
                raise ValueError(msg)

    def to_dict(self) -> dict[str, object]:
        """Serialize SweepConfig to a plain dictionary."""
        return {
            "namespace": self.namespace,
            "partition": self.partition,
            "dry_run": self.dry_run,
        }

    @classmethod
    def from_dict(cls, value: Mapping[str, object]) -> "SweepConfig":
        """Deserialize SweepConfig from a plain dictionary, defaulting absent fields."""
        namespace = optional_string(value.get("namespace"), field_name="SweepConfig.namespace")
        partition = optional_string(value.get("partition"), field_name="SweepConfig.partition")
        return cls(
            namespace=DEFAULT_NAMESPACE if namespace is None else namespace,
            partition=DEFAULT_PARTITION if partition is None else partition,
            dry_run=optional_bool(value.get("dry_run"), field_name="SweepConfig.dry_run"),
        )
