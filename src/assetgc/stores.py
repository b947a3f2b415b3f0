"""ConversationStore: the persisted conversation history the sweep reads."""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import replace
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from assetgc.serde import sequence_items
from assetgc.types import Conversation

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from assetgc.types import ConversationId, Message


@runtime_checkable
class ConversationStore(Protocol):
    """Read access to every persisted conversation."""

    def get_all_conversations(self) -> Sequence[Conversation]:
        """Return all persisted conversations, in store order."""
        ...


class InMemoryConversationStore:
    """Dict-backed conversation store for development and testing."""

    def __init__(self, conversations: Iterable[Conversation] = ()) -> None:
        """Initialize, optionally preloaded with conversations."""
        self._conversations: dict[ConversationId, Conversation] = {}
        self._lock = threading.Lock()
        for conversation in conversations:
            self._conversations[conversation.id] = conversation

    def __len__(self) -> int:
        """Return the number of stored conversations."""
        with self._lock:
            return len(self._conversations)

    def get_all_conversations(self) -> tuple[Conversation, ...]:
        """Return a point-in-time copy of all conversations."""
        with self._lock:
            return tuple(self._conversations.values())

    def get(self, conversation_id: ConversationId) -> Conversation | None:
        """Return one conversation, or ``None`` when unknown."""
        with self._lock:
            return self._conversations.get(conversation_id)

    def put(self, conversation: Conversation) -> None:
        """Insert or replace a conversation."""
        with self._lock:
            self._conversations[conversation.id] = conversation

    def delete(self, conversation_id: ConversationId) -> bool:
        """Remove a conversation. Return ``True`` when it existed."""
        with self._lock:
            return self._conversations.pop(conversation_id, None) is not None

    def replace_messages(self, conversation_id: ConversationId, messages: Iterable[Message]) -> Conversation:
        """Replace a conversation's message history. Raise ``KeyError`` for an unknown ID."""
        with self._lock:
            current = self._conversations[conversation_id]
            updated = replace(current, messages=tuple(messages))
            self._conversations[conversation_id] = updated
            return updated

    def to_dict(self) -> dict[str, object]:
        """Serialize the store to a plain dictionary."""
        return {"conversations": [conversation.to_dict() for conversation in self.get_all_conversations()]}

    @classmethod
    def from_dict(cls, value: Mapping[str, object]) -> InMemoryConversationStore:
        """Rehydrate a store from a plain dictionary."""
        items = sequence_items(value.get("conversations"), field_name="ConversationStore.conversations")
        return cls(
            Conversation.from_dict(item, field_name=f"ConversationStore.conversations[{index}]")
            for index, item in enumerate(items)
        )
