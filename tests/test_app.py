"""End-to-end tests for the AssetGC composition root."""

import pytest

from assetgc import (
    AssetGC,
    Conversation,
    DataRef,
    Fragment,
    Fusion,
    ImageRefPart,
    InMemoryAssetStore,
    InMemoryConversationStore,
    Message,
    Ray,
)
from assetgc.config import SweepConfig


def _image_message(asset_id: str, *, reftype: str = "blob") -> Message:
    return Message(fragments=(Fragment.content(ImageRefPart(data_ref=DataRef(reftype=reftype, asset_id=asset_id))),))


def _app(*conversations: Conversation) -> tuple[AssetGC, InMemoryConversationStore, InMemoryAssetStore]:
    conversation_store = InMemoryConversationStore(conversations)
    asset_store = InMemoryAssetStore()
    return AssetGC(conversation_store, asset_store), conversation_store, asset_store


@pytest.mark.asyncio
async def test_nothing_referenced_deletes_nothing() -> None:
    gc, _, assets = _app()
    assets.put_asset(b"loading", asset_id="b0")

    assert gc.compute_keep_set() == frozenset()
    assert await gc.run_gc() is None
    assert assets.has_asset("b0")


@pytest.mark.asyncio
async def test_persisted_reference_survives_and_orphan_is_deleted() -> None:
    gc, _, assets = _app(Conversation(id="c-1", messages=(_image_message("b1"),)))
    assets.put_asset(b"one", asset_id="b1")
    assets.put_asset(b"orphan", asset_id="b9")

    report = await gc.run_gc()

    assert report is not None
    assert report.deleted_ids == ("b9",)
    assert assets.has_asset("b1")
    assert not assets.has_asset("b9")


@pytest.mark.asyncio
async def test_registered_root_survives() -> None:
    gc, _, assets = _app()
    assets.put_asset(b"scratch", asset_id="b2")
    assets.put_asset(b"orphan", asset_id="b9")
    unregister = gc.register_root_provider(lambda: ["b2"])

    await gc.run_gc()
    assert assets.has_asset("b2")
    assert not assets.has_asset("b9")

    unregister()
    assert "b2" not in gc.compute_keep_set()


@pytest.mark.asyncio
async def test_overlay_ray_protects_unpersisted_asset() -> None:
    gc, _, assets = _app(Conversation(id="c-1"))
    assets.put_asset(b"ray image", asset_id="b3")
    handler = gc.get_overlay_handler("c-1")
    handler.store.add_ray(Ray(message=_image_message("b3")))

    report = await gc.run_gc()

    assert report is not None
    assert "b3" in gc.compute_keep_set()
    assert assets.has_asset("b3")


@pytest.mark.asyncio
async def test_overlay_fusion_survives_history_replacement() -> None:
    gc, conversations, assets = _app(Conversation(id="c-1", messages=(_image_message("b1"),)))
    assets.put_asset(b"old", asset_id="b1")
    assets.put_asset(b"fused", asset_id="f1")
    gc.get_overlay_handler("c-1").store.add_fusion(Fusion(factory_id="fuse", output_message=_image_message("f1")))

    conversations.replace_messages("c-1", [])
    await gc.run_gc()

    assert not assets.has_asset("b1")
    assert assets.has_asset("f1")


@pytest.mark.asyncio
async def test_cloud_reference_is_never_kept() -> None:
    gc, _, assets = _app(
        Conversation(id="c-1", messages=(_image_message("b4", reftype="cloud"), _image_message("b1"))),
    )
    assets.put_asset(b"cloud copy", asset_id="b4")
    assets.put_asset(b"local", asset_id="b1")

    await gc.run_gc()

    assert "b4" not in gc.compute_keep_set()
    assert not assets.has_asset("b4")


@pytest.mark.asyncio
async def test_other_partitions_are_untouched() -> None:
    gc, _, assets = _app(Conversation(id="c-1", messages=(_image_message("b1"),)))
    assets.put_asset(b"local", asset_id="b1")
    assets.put_asset(b"elsewhere", asset_id="p1", partition="app-draw")

    await gc.run_gc()

    assert assets.has_asset("p1", partition="app-draw")


def test_overlay_handlers_are_shared_through_the_app() -> None:
    gc, _, _ = _app()
    assert gc.get_overlay_handler("c-1") is gc.overlays.get_handler("c-1")
    assert len(gc.roots) == 1


def test_app_forwards_config() -> None:
    config = SweepConfig(partition="scratch")
    gc = AssetGC(InMemoryConversationStore(), InMemoryAssetStore(), config)
    assert gc.orchestrator.config is config


def test_separate_apps_do_not_share_registries() -> None:
    first, _, _ = _app()
    second, _, _ = _app()
    first.register_root_provider(lambda: ["b1"])
    assert second.compute_keep_set() == frozenset()
