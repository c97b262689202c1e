"""
Shared services used by the orchestrator and the bot layer.

- PaginationService: server-held cursors over long tool results
- ThoughtCache: reasoning of recent answers, for on-demand lookup
- AdminPolicy: who counts as an admin, and who receives reasoning DMs
"""

from bobbot.services.admin import AdminPolicy
from bobbot.services.pagination import PagedSession, PaginationService
from bobbot.services.thoughts import ThoughtCache, ThoughtCacheEntry

__all__ = [
    "AdminPolicy",
    "PagedSession",
    "PaginationService",
    "ThoughtCache",
    "ThoughtCacheEntry",
]
