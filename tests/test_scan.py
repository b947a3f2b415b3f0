"""Tests for assetgc.scan."""

import logging

import pytest

from assetgc.errors import ScanError
from assetgc.scan import (
    collect_fragment_asset_ids,
    fragment_asset_ids,
    scan_conversations,
    scan_fragments,
    scan_messages,
)
from assetgc.types import (
    AssetRefPart,
    Conversation,
    DataRef,
    ErrorPart,
    Fragment,
    ImageRefPart,
    Message,
    TextPart,
)


def _image(asset_id: str, *, kind: str = "content") -> Fragment:
    return Fragment(kind=kind, part=ImageRefPart(data_ref=DataRef.blob(asset_id)))  # type: ignore[arg-type]


def _asset_ref(asset_id: str, *, legacy_blob_id: str | None = None) -> Fragment:
    legacy = ImageRefPart(data_ref=DataRef.blob(legacy_blob_id)) if legacy_blob_id is not None else None
    return Fragment.content(AssetRefPart(asset_id=asset_id, legacy_image_ref=legacy))


def test_image_ref_content_fragment_is_found() -> None:
    assert scan_fragments([_image("b1")]) == {"b1"}


def test_image_ref_attachment_fragment_is_found() -> None:
    assert scan_fragments([_image("b1", kind="attachment")]) == {"b1"}


def test_void_fragments_are_skipped() -> None:
    assert scan_fragments([_image("b1", kind="void")]) == set()


def test_asset_ref_with_legacy_blob_is_found() -> None:
    assert scan_fragments([_asset_ref("zync-1", legacy_blob_id="b2")]) == {"b2"}


def test_asset_ref_without_legacy_part_contributes_nothing() -> None:
    assert scan_fragments([_asset_ref("zync-1")]) == set()


def test_asset_ref_own_id_is_not_a_blob_id() -> None:
    assert "zync-1" not in scan_fragments([_asset_ref("zync-1", legacy_blob_id="b2")])


def test_non_blob_data_refs_contribute_nothing() -> None:
    fragments = [
        Fragment.content(ImageRefPart(data_ref=DataRef(reftype="cloud", asset_id="b4"))),
        Fragment.content(ImageRefPart(data_ref=DataRef.remote("https://example.com/a.png"))),
        Fragment.content(
            AssetRefPart(asset_id="z", legacy_image_ref=ImageRefPart(data_ref=DataRef(reftype="cloud", asset_id="b4")))
        ),
    ]
    assert scan_fragments(fragments) == set()


def test_absent_data_ref_contributes_nothing() -> None:
    assert scan_fragments([Fragment.content(ImageRefPart(data_ref=None))]) == set()


def test_text_and_error_parts_contribute_nothing() -> None:
    fragments = [Fragment.content(TextPart("hello")), Fragment.content(ErrorPart("boom"))]
    assert scan_fragments(fragments) == set()


def test_unknown_part_raises_scan_error_and_is_skipped() -> None:
    odd = Fragment.content("plain string part")  # type: ignore[arg-type]
    with pytest.raises(ScanError, match="unexpected part str"):
        fragment_asset_ids(odd)
    assert scan_fragments([odd, _image("b1")]) == {"b1"}


def test_duplicates_collapse() -> None:
    assert scan_fragments([_image("b1"), _image("b1"), _asset_ref("z", legacy_blob_id="b1")]) == {"b1"}


def test_scan_is_order_independent() -> None:
    fragments = [_image("b1"), _asset_ref("z", legacy_blob_id="b2"), _image("b3", kind="attachment")]
    assert scan_fragments(fragments) == scan_fragments(list(reversed(fragments))) == {"b1", "b2", "b3"}


def test_scan_union_is_idempotent() -> None:
    fragments = [_image("b1"), _image("b2")]
    once = scan_fragments(fragments)
    assert once == once | scan_fragments(fragments)


def test_collect_accumulates_into_existing_set() -> None:
    asset_ids = {"existing"}
    collect_fragment_asset_ids([_image("b1")], asset_ids)
    assert asset_ids == {"existing", "b1"}


def test_malformed_fragment_raises_scan_error_from_extractor() -> None:
    bad = Fragment.content(ImageRefPart(data_ref=DataRef(reftype="blob", asset_id=None)))
    with pytest.raises(ScanError) as exc_info:
        fragment_asset_ids(bad)
    assert exc_info.value.fragment_id == bad.fragment_id


def test_non_fragment_item_raises_scan_error_from_extractor() -> None:
    with pytest.raises(ScanError):
        fragment_asset_ids("not a fragment")  # type: ignore[arg-type]


def test_malformed_fragments_are_skipped_and_scan_continues(caplog: pytest.LogCaptureFixture) -> None:
    fragments = [
        Fragment.content(ImageRefPart(data_ref=DataRef(reftype="blob", asset_id=""))),
        "garbage",
        _image("b1"),
    ]
    with caplog.at_level(logging.DEBUG, logger="assetgc.scan"):
        assert scan_fragments(fragments) == {"b1"}  # type: ignore[arg-type]
    assert "Skipping fragment" in caplog.text


def test_scan_messages_and_conversations() -> None:
    first = Message(fragments=(_image("b1"),))
    second = Message(fragments=(_asset_ref("z", legacy_blob_id="b2"),), role="assistant")
    assert scan_messages([first, second]) == {"b1", "b2"}

    conversations = [Conversation(id="c-1", messages=(first,)), Conversation(id="c-2", messages=(second,))]
    assert scan_conversations(conversations) == {"b1", "b2"}


def test_scan_of_nothing_is_empty() -> None:
    assert scan_fragments([]) == set()
    assert scan_conversations([]) == set()
