"""Shared validation utilities for to_dict / from_dict codecs."""

from collections.abc import Mapping
from datetime import datetime, timezone


def as_str_object_dict(value: object, *, field_name: str) -> dict[str, object]:
    """Validate and normalize a mapping value into ``dict[str, object]``."""
    if not isinstance(value, Mapping):
        msg = f"{field_name} must be a mapping."
        raise TypeError(msg)
    return {str(key): item for key, item in value.items()}


def require_string(value: object, *, field_name: str) -> str:
    """Validate a required non-empty string field."""
    if not isinstance(value, str) or not value:
        msg = f"{field_name} must be a non-empty string."
        raise TypeError(msg)
    return value


def optional_string(value: object, *, field_name: str) -> str | None:
    """Validate an optional string field."""
    if value is None:
        return None
    if not isinstance(value, str):
        msg = f"{field_name} must be a string or None."
        raise TypeError(msg)
    return value


def optional_int(value: object, *, field_name: str) -> int | None:
    """Validate an optional integer field (rejects booleans)."""
    if value is None:
        return None
    if not isinstance(value, int) or isinstance(value, bool):
        msg = f"{field_name} must be an int or None."
        raise TypeError(msg)
    return value


def optional_bool(value: object, *, field_name: str, default: bool = False) -> bool:
    """Validate an optional boolean field, falling back to ``default`` when absent."""
    if value is None:
        return default
    if not isinstance(value, bool):
        msg = f"{field_name} must be a bool or None."
        raise TypeError(msg)
    return value


def sequence_items(value: object, *, field_name: str) -> tuple[object, ...]:
    """Validate an optional list/tuple field and return its items (empty when absent)."""
    if value is None:
        return ()
    if not isinstance(value, list | tuple):
        msg = f"{field_name} must be a sequence."
        raise TypeError(msg)
    return tuple(value)


def optional_timestamp(value: object, *, field_name: str) -> datetime | None:
    """Parse an optional ISO-8601 timestamp, assuming UTC when it carries no offset."""
    if value is None:
        return None
    if not isinstance(value, str):
        msg = f"{field_name} must be a string or None."
        raise TypeError(msg)
    try:
        timestamp = datetime.fromisoformat(value)
    except ValueError as exc:
        msg = f"{field_name} must be an ISO-8601 datetime string."
        raise ValueError(msg) from exc
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return timestamp
