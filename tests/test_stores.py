"""Tests for assetgc.stores."""

import json

import pytest

from assetgc.stores import ConversationStore, InMemoryConversationStore
from assetgc.types import Conversation, DataRef, Fragment, ImageRefPart, Message


def _conversation(conversation_id: str, asset_id: str) -> Conversation:
    message = Message(fragments=(Fragment.content(ImageRefPart(data_ref=DataRef.blob(asset_id))),))
    return Conversation(id=conversation_id, messages=(message,))


def test_satisfies_protocol() -> None:
    assert isinstance(InMemoryConversationStore(), ConversationStore)


def test_preloaded_order_is_kept() -> None:
    store = InMemoryConversationStore([_conversation("c-2", "b2"), _conversation("c-1", "b1")])
    assert [conversation.id for conversation in store.get_all_conversations()] == ["c-2", "c-1"]
    assert len(store) == 2


def test_put_get_delete() -> None:
    store = InMemoryConversationStore()
    conversation = _conversation("c-1", "b1")
    store.put(conversation)
    assert store.get("c-1") is conversation
    assert store.delete("c-1") is True
    assert store.delete("c-1") is False
    assert store.get("c-1") is None


def test_replace_messages() -> None:
    store = InMemoryConversationStore([_conversation("c-1", "b1")])
    updated = store.replace_messages("c-1", [])
    assert updated.messages == ()
    assert store.get("c-1") == updated


def test_replace_messages_unknown_conversation_raises() -> None:
    store = InMemoryConversationStore()
    with pytest.raises(KeyError):
        store.replace_messages("missing", [])


def test_get_all_is_a_snapshot() -> None:
    store = InMemoryConversationStore([_conversation("c-1", "b1")])
    snapshot = store.get_all_conversations()
    store.put(_conversation("c-2", "b2"))
    assert len(snapshot) == 1


def test_rehydrates_from_json() -> None:
    store = InMemoryConversationStore([_conversation("c-1", "b1"), _conversation("c-2", "b2")])
    restored = InMemoryConversationStore.from_dict(json.loads(json.dumps(store.to_dict())))
    assert restored.get_all_conversations() == store.get_all_conversations()


def test_from_dict_rejects_bad_payload() -> None:
    with pytest.raises(TypeError, match=r"ConversationStore\.conversations\[0\]"):
        InMemoryConversationStore.from_dict({"conversations": ["nope"]})
