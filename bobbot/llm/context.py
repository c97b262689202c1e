"""
Call-scoped identity visible to tools.

A CallContext is created by the orchestrator for exactly one generation call.
It is installed in a ContextVar while the call runs and is explicitly
re-installed inside whichever worker thread executes a tool (see
ToolRegistry.call), so tools never depend on implicit thread inheritance.

The context also carries the one piece of state a tool may hand back to the
orchestrator: the id of a paged session opened during the call.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import TypeVar

T = TypeVar("T")

_current: ContextVar[CallContext | None] = ContextVar("bobbot_call_context", default=None)


@dataclass
class CallContext:
    """Identity of the caller for one generation call."""

    caller_id: str
    community_id: str | None = None
    channel_id: str | None = None
    _pagination_id: str | None = field(default=None, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def attach_pagination(self, session_id: str) -> None:
        """Record the paged session a tool opened; the latest one wins."""
        with self._lock:
            self._pagination_id = session_id

    @property
    def pagination_id(self) -> str | None:
        with self._lock:
            return self._pagination_id


def current_call_context() -> CallContext | None:
    """Return the active context, or None outside a generation call."""
    return _current.get()


@contextmanager
def call_context(context: CallContext | None) -> Iterator[CallContext | None]:
    """Install ``context`` for the duration of the block and restore the prior value."""
    token = _current.set(context)
    try:
        yield context
    finally:
        _current.reset(token)


def with_context(
    caller_id: str,
    community_id: str | None,
    fn: Callable[[], T],
) -> T:
    """Run ``fn`` with a fresh CallContext installed, restoring on every exit path."""
    with call_context(CallContext(caller_id=caller_id, community_id=community_id)):
        return fn()
