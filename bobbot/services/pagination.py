"""
Paginated sessions for long tool results.

A tool that wants to show more than fits in one message opens a session here
and attaches its id to the current CallContext; the chat layer renders the
first page and navigates with prev/next buttons afterwards.

Sessions are immutable snapshots replaced on every page change. The map is
bounded: beyond ``max_sessions`` the session touched least recently is
dropped, and the bot answers a click on it with an "expired" notice.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import OrderedDict
from collections.abc import Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class PagedSession(BaseModel):
    """A titled, paged view over a list of text items."""

    title: str
    natural_response: str = Field(default="", description="Chat text shown above the page")
    pages: tuple[str, ...] = Field(min_length=1)
    current_page: int = Field(default=0, ge=0)
    metadata: Mapping[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def current_text(self) -> str:
        return self.pages[self.current_page]

    @property
    def is_first(self) -> bool:
        return self.current_page == 0

    @property
    def is_last(self) -> bool:
        return self.current_page == len(self.pages) - 1


def paginate(items: Sequence[str], page_size: int) -> tuple[str, ...]:
    """
    Group items into pages of ``page_size``, one item per line.

    An empty item list still yields one (empty) page.
    """
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    if not items:
        return ("",)
    return tuple(
        "".join(f"{item}\n" for item in items[i:i + page_size])
        for i in range(0, len(items), page_size)
    )


class PaginationService:
    """
    Thread-safe store of PagedSessions keyed by a random id.

    Args:
        max_sessions: Sessions kept before the least recently used is dropped
    """

    def __init__(self, max_sessions: int = 500):
        if max_sessions < 1:
            raise ValueError("max_sessions must be at least 1")
        self.max_sessions = max_sessions
        self._sessions: OrderedDict[str, PagedSession] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def open(
        self,
        title: str,
        natural_response: str,
        items: Sequence[str],
        page_size: int,
        metadata: Mapping[str, str] | None = None,
    ) -> str:
        """
        Create a session positioned on the first page.

        Returns:
            The new session id
        """
        session = PagedSession(
            title=title,
            natural_response=natural_response or "",
            pages=paginate(list(items), page_size),
            metadata=dict(metadata or {}),
        )
        session_id = str(uuid.uuid4())
        with self._lock:
            self._sessions[session_id] = session
            while len(self._sessions) > self.max_sessions:
                evicted, _ = self._sessions.popitem(last=False)
                logger.debug(f"Evicted pagination session {evicted}")
        logger.debug(f"Created pagination session {session_id} with {session.page_count} pages")
        return session_id

    def get(self, session_id: str) -> PagedSession | None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                self._sessions.move_to_end(session_id)
            return session

    def page(self, session_id: str, delta: int) -> PagedSession | None:
        """
        Move the session cursor by ``delta`` pages.

        A move that would leave ``[0, page_count - 1]`` is a no-op and the
        unchanged session is returned, so repeated clicks at either end are
        harmless.

        Returns:
            The (possibly unchanged) session, or None if the id is unknown
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            self._sessions.move_to_end(session_id)
            target = session.current_page + delta
            if delta == 0 or target < 0 or target >= session.page_count:
                return session
            updated = session.model_copy(update={"current_page": target})
            self._sessions[session_id] = updated
            return updated

    def update_response(self, session_id: str, natural_response: str) -> PagedSession | None:
        """Replace the chat text shown above the page (e.g. with the model's final answer)."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            updated = session.model_copy(update={"natural_response": natural_response})
            self._sessions[session_id] = updated
            return updated
