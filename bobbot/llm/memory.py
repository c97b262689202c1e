"""
Per-conversation message history.

Each conversation (one Discord channel) gets a bounded window of OpenAI-style
message dicts. The window is enforced on every append: oldest messages are
dropped first, and a tool result left at the front without the assistant
message that requested it is dropped as well, since providers reject a
history that starts with an orphaned tool message.

Locking is per conversation. Each memory guards its own list with a thread
lock, and exposes an asyncio lock the orchestrator holds for a whole turn so
two turns in the same channel never interleave while unrelated channels
proceed in parallel.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Iterable
from typing import Any

Message = dict[str, Any]


class ConversationMemory:
    """
    Bounded, ordered history for one conversation.

    Args:
        key: Conversation identifier (channel id)
        max_messages: Window size; oldest messages are evicted beyond it
    """

    def __init__(self, key: str, max_messages: int = 20):
        if max_messages < 1:
            raise ValueError("max_messages must be at least 1")
        self.key = key
        self.max_messages = max_messages
        self._messages: list[Message] = []
        self._lock = threading.Lock()
        self.turn_lock = asyncio.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

    def messages(self) -> list[Message]:
        """Return a copy of the current window, oldest first."""
        with self._lock:
            return [dict(m) for m in self._messages]

    def append(self, message: Message) -> None:
        self.extend([message])

    def extend(self, messages: Iterable[Message]) -> None:
        with self._lock:
            self._messages.extend(dict(m) for m in messages)
            self._evict()

    def clear(self) -> None:
        with self._lock:
            self._messages.clear()

    def _evict(self) -> None:
        overflow = len(self._messages) - self.max_messages
        if overflow > 0:
            del self._messages[:overflow]
        while self._messages and self._messages[0].get("role") == "tool":
            del self._messages[0]


class ConversationStore:
    """
    Process-lifetime map of conversation key to ConversationMemory.

    Memories are created on first use and never expire; only the per-memory
    window bounds their size.

    Args:
        max_messages: Window size applied to every new memory
    """

    def __init__(self, max_messages: int = 20):
        self.max_messages = max_messages
        self._memories: dict[str, ConversationMemory] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._memories)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._memories

    def get_or_create(self, key: str) -> ConversationMemory:
        with self._lock:
            memory = self._memories.get(key)
            if memory is None:
                memory = ConversationMemory(key, self.max_messages)
                self._memories[key] = memory
            return memory

    def append(self, key: str, message: Message) -> None:
        self.get_or_create(key).append(message)
