"""Sweep unreferenced chat images while an in-progress generation still shows one."""

import asyncio
import logging
import tempfile
from pathlib import Path

from assetgc import (
    AssetGC,
    Conversation,
    DataRef,
    FileAssetStore,
    Fragment,
    ImageRefPart,
    InMemoryConversationStore,
    Message,
    Ray,
    TextPart,
)


def image_message(asset_id: str, caption: str) -> Message:
    return Message(
        fragments=(
            Fragment.content(TextPart(caption)),
            Fragment.attachment(ImageRefPart(data_ref=DataRef.blob(asset_id, mime_type="image/png"))),
        ),
    )


async def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    with tempfile.TemporaryDirectory() as tmpdir:
        assets = FileAssetStore(Path(tmpdir) / "assets")
        persisted = assets.put_asset(b"\x89PNG persisted", mime_type="image/png")
        candidate = assets.put_asset(b"\x89PNG candidate", mime_type="image/png")
        orphan = assets.put_asset(b"\x89PNG orphan", mime_type="image/png")

        conversations = InMemoryConversationStore(
            [Conversation(id="c-1", messages=(image_message(persisted.asset_id, "a cat"),))],
        )
        gc = AssetGC(conversations, assets)

        # A candidate response that has not been committed to history yet.
        handler = gc.get_overlay_handler("c-1")
        handler.store.add_ray(Ray(message=image_message(candidate.asset_id, "another cat"), status="success"))

        # Some other subsystem (e.g. a scratch pad) protecting its own assets.
        unregister = gc.register_root_provider(lambda: [])

        report = await gc.run_gc()
        if report is not None:
            print(f"deleted={list(report.deleted_ids)} kept={report.kept} examined={report.examined}")
        print(f"orphan still stored: {assets.has_asset(orphan.asset_id)}")
        print(f"candidate still stored: {assets.has_asset(candidate.asset_id)}")

        unregister()


if __name__ == "__main__":
    asyncio.run(main())
