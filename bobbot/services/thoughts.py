"""
Cache of recent reasoning, keyed by the id of the message that showed the answer.

Lets a user ask "what were you thinking?" about an earlier answer without
re-running the model. Bounded LRU: every hit refreshes recency, and inserting
past capacity drops the least recently accessed entry.
"""

from __future__ import annotations

import threading
from collections import OrderedDict

from pydantic import BaseModel, ConfigDict


class ThoughtCacheEntry(BaseModel):
    """Reasoning captured for one displayed answer."""

    prompt: str
    reasoning: str
    author_id: str

    model_config = ConfigDict(frozen=True)


class ThoughtCache:
    """
    Thread-safe LRU of ThoughtCacheEntry.

    Args:
        capacity: Maximum entries kept (default 100)
    """

    def __init__(self, capacity: int = 100):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._entries: OrderedDict[str, ThoughtCacheEntry] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, message_id: str) -> bool:
        with self._lock:
            return message_id in self._entries

    def put(self, message_id: str, prompt: str, reasoning: str | None, author_id: str) -> None:
        """Store reasoning for a message. Blank reasoning is ignored."""
        if not message_id or reasoning is None or not reasoning.strip():
            return
        entry = ThoughtCacheEntry(prompt=prompt, reasoning=reasoning, author_id=author_id)
        with self._lock:
            self._entries[message_id] = entry
            self._entries.move_to_end(message_id)
            while len(self._entries) > self.capacity:
                self._entries.popitem(last=False)

    def get(self, message_id: str) -> ThoughtCacheEntry | None:
        with self._lock:
            entry = self._entries.get(message_id)
            if entry is not None:
                self._entries.move_to_end(message_id)
            return entry
