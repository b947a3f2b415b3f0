"""Core data types: DataRef, fragment parts, Fragment, Message, Conversation."""

from __future__ import annotations

import uuid
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, TypeAlias

from assetgc.serde import (
    as_str_object_dict,
    optional_int,
    optional_string,
    optional_timestamp,
    require_string,
    sequence_items,
)

BlobAssetId: TypeAlias = str
ConversationId: TypeAlias = str
RootProvider: TypeAlias = Callable[[], Iterable[BlobAssetId]]

FragmentKind = Literal["content", "attachment", "void"]
MessageRole = Literal["user", "assistant", "system"]

BLOB_REFTYPE = "blob"
SCANNED_FRAGMENT_KINDS: frozenset[str] = frozenset({"content", "attachment"})
_FRAGMENT_KINDS = frozenset({"content", "attachment", "void"})
_ROLE_VALUES = frozenset({"user", "assistant", "system"})


def _new_id() -> str:
    return uuid.uuid4().hex


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class DataRef:
    """Where the bytes of an asset live, tagged by ``reftype``.

    Only ``reftype == "blob"`` points into the local asset store (``asset_id``).
    Every other reftype (``"url"``, ``"cloud"``, ...) points elsewhere through ``url``.
    """

    reftype: str
    asset_id: BlobAssetId | None = None
    url: str | None = None
    mime_type: str | None = None
    byte_size: int | None = None

    @classmethod
    def blob(cls, asset_id: BlobAssetId, *, mime_type: str | None = None, byte_size: int | None = None) -> DataRef:
        """Build a reference to a locally stored blob asset."""
        return cls(reftype=BLOB_REFTYPE, asset_id=asset_id, mime_type=mime_type, byte_size=byte_size)

    @classmethod
    def remote(cls, url: str, *, reftype: str = "url", mime_type: str | None = None) -> DataRef:
        """Build a reference to an asset hosted outside the local store."""
        return cls(reftype=reftype, url=url, mime_type=mime_type)

    @property
    def is_blob(self) -> bool:
        """Return whether this reference points into the local asset store."""
        return self.reftype == BLOB_REFTYPE

    def to_dict(self) -> dict[str, object]:
        """Serialize DataRef to a plain dictionary."""
        payload: dict[str, object] = {"reftype": self.reftype}
        if self.asset_id is not None:
            payload["asset_id"] = self.asset_id
        if self.url is not None:
            payload["url"] = self.url
        if self.mime_type is not None:
            payload["mime_type"] = self.mime_type
        if self.byte_size is not None:
            payload["byte_size"] = self.byte_size
        return payload

    @classmethod
    def from_dict(cls, value: object, *, field_name: str = "DataRef") -> DataRef:
        """Deserialize DataRef from a plain dictionary. Unknown reftypes are kept as-is."""
        data = as_str_object_dict(value, field_name=field_name)
        return cls(
            reftype=require_string(data.get("reftype"), field_name=f"{field_name}.reftype"),
            asset_id=optional_string(data.get("asset_id"), field_name=f"{field_name}.asset_id"),
            url=optional_string(data.get("url"), field_name=f"{field_name}.url"),
            mime_type=optional_string(data.get("mime_type"), field_name=f"{field_name}.mime_type"),
            byte_size=optional_int(data.get("byte_size"), field_name=f"{field_name}.byte_size"),
        )


@dataclass(frozen=True, slots=True)
class TextPart:
    """Plain text content."""

    text: str
    pt: Literal["text"] = field(default="text", init=False)

    def to_dict(self) -> dict[str, object]:
        """Serialize TextPart to a plain dictionary."""
        return {"pt": self.pt, "text": self.text}

    @classmethod
    def from_dict(cls, data: Mapping[str, object], *, field_name: str) -> TextPart:
        """Deserialize TextPart from a validated dictionary."""
        text = data.get("text")
        if not isinstance(text, str):
            msg = f"{field_name}.text must be a string."
            raise TypeError(msg)
        return cls(text=text)


@dataclass(frozen=True, slots=True)
class ImageRefPart:
    """Legacy image part holding its DataRef directly."""

    data_ref: DataRef | None
    alt_text: str | None = None
    width: int | None = None
    height: int | None = None
    pt: Literal["image_ref"] = field(default="image_ref", init=False)

    def to_dict(self) -> dict[str, object]:
        """Serialize ImageRefPart to a plain dictionary."""
        return {
            "pt": self.pt,
            "data_ref": self.data_ref.to_dict() if self.data_ref is not None else None,
            "alt_text": self.alt_text,
            "width": self.width,
            "height": self.height,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object], *, field_name: str) -> ImageRefPart:
        """Deserialize ImageRefPart from a validated dictionary."""
        data_ref_value = data.get("data_ref")
        return cls(
            data_ref=(
                DataRef.from_dict(data_ref_value, field_name=f"{field_name}.data_ref")
                if data_ref_value is not None
                else None
            ),
            alt_text=optional_string(data.get("alt_text"), field_name=f"{field_name}.alt_text"),
            width=optional_int(data.get("width"), field_name=f"{field_name}.width"),
            height=optional_int(data.get("height"), field_name=f"{field_name}.height"),
        )


@dataclass(frozen=True, slots=True)
class AssetRefPart:
    """Reference to a managed asset.

    ``legacy_image_ref`` carries the pre-migration image part so that clients (and the
    sweep) still reach the local blob while the asset itself may live elsewhere.
    """

    asset_id: str
    asset_type: str = "image"
    legacy_image_ref: ImageRefPart | None = None
    pt: Literal["asset_ref"] = field(default="asset_ref", init=False)

    def to_dict(self) -> dict[str, object]:
        """Serialize AssetRefPart to a plain dictionary."""
        return {
            "pt": self.pt,
            "asset_id": self.asset_id,
            "asset_type": self.asset_type,
            "legacy_image_ref": self.legacy_image_ref.to_dict() if self.legacy_image_ref is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object], *, field_name: str) -> AssetRefPart:
        """Deserialize AssetRefPart from a validated dictionary."""
        legacy_value = data.get("legacy_image_ref")
        legacy: ImageRefPart | None = None
        if legacy_value is not None:
            legacy_data = as_str_object_dict(legacy_value, field_name=f"{field_name}.legacy_image_ref")
            legacy = ImageRefPart.from_dict(legacy_data, field_name=f"{field_name}.legacy_image_ref")
        return cls(
            asset_id=require_string(data.get("asset_id"), field_name=f"{field_name}.asset_id"),
            asset_type=optional_string(data.get("asset_type"), field_name=f"{field_name}.asset_type") or "image",
            legacy_image_ref=legacy,
        )


@dataclass(frozen=True, slots=True)
class ErrorPart:
    """A placeholder left where generation failed."""

    error: str
    pt: Literal["error"] = field(default="error", init=False)

    def to_dict(self) -> dict[str, object]:
        """Serialize ErrorPart to a plain dictionary."""
        return {"pt": self.pt, "error": self.error}

    @classmethod
    def from_dict(cls, data: Mapping[str, object], *, field_name: str) -> ErrorPart:
        """Deserialize ErrorPart from a validated dictionary."""
        error = data.get("error")
        if not isinstance(error, str):
            msg = f"{field_name}.error must be a string."
            raise TypeError(msg)
        return cls(error=error)


FragmentPart: TypeAlias = TextPart | ImageRefPart | AssetRefPart | ErrorPart

_PART_TYPES: dict[str, type[TextPart] | type[ImageRefPart] | type[AssetRefPart] | type[ErrorPart]] = {
    "text": TextPart,
    "image_ref": ImageRefPart,
    "asset_ref": AssetRefPart,
    "error": ErrorPart,
}


def part_from_dict(value: object, *, field_name: str = "Part") -> FragmentPart:
    """Deserialize any fragment part, dispatching on its ``pt`` tag."""
    data = as_str_object_dict(value, field_name=field_name)
    tag = data.get("pt")
    part_type = _PART_TYPES.get(tag) if isinstance(tag, str) else None
    if part_type is None:
        msg = f"{field_name}.pt must be one of {sorted(_PART_TYPES)!r}; got {tag!r}."
        raise TypeError(msg)
    return part_type.from_dict(data, field_name=field_name)


@dataclass(frozen=True, slots=True)
class Fragment:
    """One piece of a message: a kind plus its part payload."""

    kind: FragmentKind
    part: FragmentPart
    fragment_id: str = field(default_factory=_new_id)

    @classmethod
    def content(cls, part: FragmentPart) -> Fragment:
        """Build a content fragment."""
        return cls(kind="content", part=part)

    @classmethod
    def attachment(cls, part: FragmentPart) -> Fragment:
        """Build an attachment fragment."""
        return cls(kind="attachment", part=part)

    def to_dict(self) -> dict[str, object]:
        """Serialize Fragment to a plain dictionary."""
        return {"kind": self.kind, "fragment_id": self.fragment_id, "part": self.part.to_dict()}

    @classmethod
    def from_dict(cls, value: object, *, field_name: str = "Fragment") -> Fragment:
        """Deserialize Fragment from a plain dictionary."""
        data = as_str_object_dict(value, field_name=field_name)
        kind = data.get("kind")
        if not isinstance(kind, str) or kind not in _FRAGMENT_KINDS:
            msg = f"{field_name}.kind must be one of {sorted(_FRAGMENT_KINDS)!r}."
            raise TypeError(msg)
        fragment_id = optional_string(data.get("fragment_id"), field_name=f"{field_name}.fragment_id")
        return cls(
            kind=kind,  # type: ignore[arg-type]
            part=part_from_dict(data.get("part"), field_name=f"{field_name}.part"),
            fragment_id=fragment_id or _new_id(),
        )


@dataclass(frozen=True, slots=True)
class Message:
    """A single chat message: an ordered sequence of fragments."""

    fragments: tuple[Fragment, ...]
    role: MessageRole = "user"
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_utc_now)

    def __post_init__(self) -> None:
        """Normalize fragments container to tuple for runtime safety."""
        object.__setattr__(self, "fragments", tuple(self.fragments))

    def to_dict(self) -> dict[str, object]:
        """Serialize Message to a plain dictionary."""
        return {
            "id": self.id,
            "role": self.role,
            "created_at": self.created_at.isoformat(),
            "fragments": [fragment.to_dict() for fragment in self.fragments],
        }

    @classmethod
    def from_dict(cls, value: object, *, field_name: str = "Message") -> Message:
        """Deserialize Message from a plain dictionary."""
        data = as_str_object_dict(value, field_name=field_name)

        role = data.get("role", "user")
        if not isinstance(role, str) or role not in _ROLE_VALUES:
            msg = f"{field_name}.role must be one of {sorted(_ROLE_VALUES)!r}."
            raise TypeError(msg)

        fragments = tuple(
            Fragment.from_dict(item, field_name=f"{field_name}.fragments[{index}]")
            for index, item in enumerate(sequence_items(data.get("fragments"), field_name=f"{field_name}.fragments"))
        )
        message_id = optional_string(data.get("id"), field_name=f"{field_name}.id")
        created_at = optional_timestamp(data.get("created_at"), field_name=f"{field_name}.created_at")
        return cls(
            fragments=fragments,
            role=role,  # type: ignore[arg-type]
            id=message_id or _new_id(),
            created_at=created_at or _utc_now(),
        )


@dataclass(frozen=True, slots=True)
class Conversation:
    """A persisted conversation: an ID and its ordered message history."""

    id: ConversationId
    messages: tuple[Message, ...] = ()
    title: str | None = None

    def __post_init__(self) -> None:
        """Normalize messages container to tuple for runtime safety."""
        object.__setattr__(self, "messages", tuple(self.messages))

    def to_dict(self) -> dict[str, object]:
        """Serialize Conversation to a plain dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "messages": [message.to_dict() for message in self.messages],
        }

    @classmethod
    def from_dict(cls, value: object, *, field_name: str = "Conversation") -> Conversation:
        """Deserialize Conversation from a plain dictionary."""
        data = as_str_object_dict(value, field_name=field_name)
        messages = tuple(
            Message.from_dict(item, field_name=f"{field_name}.messages[{index}]")
            for index, item in enumerate(sequence_items(data.get("messages"), field_name=f"{field_name}.messages"))
        )
        return cls(
            id=require_string(data.get("id"), field_name=f"{field_name}.id"),
            messages=messages,
            title=optional_string(data.get("title"), field_name=f"{field_name}.title"),
        )
