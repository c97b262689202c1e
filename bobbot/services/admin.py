"""
Admin predicate and reasoning-DM recipients.

Admins are the configured superuser plus the ids stored in runtime settings.
The predicate is evaluated against a fresh settings snapshot every time, so
a demoted admin loses access immediately, including to reasoning DMs they
opted into earlier.
"""

from __future__ import annotations

import logging

from bobbot.storage import JsonStorage

logger = logging.getLogger(__name__)


class AdminPolicy:
    """
    Args:
        storage: Runtime settings store
        superuser_id: Operator id; always an admin
    """

    def __init__(self, storage: JsonStorage, superuser_id: str | None = None):
        self._storage = storage
        self._superuser_id = superuser_id or ""

    @property
    def superuser_id(self) -> str:
        return self._superuser_id

    def is_superuser(self, user_id: str | None) -> bool:
        return bool(user_id) and bool(self._superuser_id) and user_id == self._superuser_id

    def is_admin(self, user_id: str | None) -> bool:
        if not user_id:
            return False
        if self.is_superuser(user_id):
            return True
        return user_id in self._storage.load_settings().admin_user_ids

    def add_admin(self, user_id: str) -> bool:
        """Return True if added, False if already an admin."""
        current = self._storage.load_settings().admin_user_ids
        if user_id in current:
            return False
        self._storage.update_settings(
            lambda s: s.with_admin_user_ids(s.admin_user_ids | {user_id})
        )
        logger.info(f"Added admin {user_id}")
        return True

    def remove_admin(self, user_id: str) -> bool:
        """Return True if removed, False if the user was not in the list."""
        current = self._storage.load_settings().admin_user_ids
        if user_id not in current:
            return False
        self._storage.update_settings(
            lambda s: s.with_admin_user_ids(s.admin_user_ids - {user_id})
        )
        logger.info(f"Removed admin {user_id}")
        return True

    def toggle_thoughts(self, user_id: str) -> bool:
        """
        Flip a user's reasoning-DM opt-in.

        Returns:
            True if now enabled, False if now disabled
        """
        enabled = False

        def change(settings):
            nonlocal enabled
            recipients = set(settings.thought_recipient_ids)
            if user_id in recipients:
                recipients.discard(user_id)
                enabled = False
            else:
                recipients.add(user_id)
                enabled = True
            return settings.with_thought_recipient_ids(recipients)

        self._storage.update_settings(change)
        return enabled

    def thought_recipients(self) -> list[str]:
        """
        Ids that should receive reasoning DMs right now.

        Opted-in ids, falling back to the superuser when nobody opted in;
        anyone who no longer passes the admin predicate is filtered out.
        """
        recipients = set(self._storage.load_settings().thought_recipient_ids)
        if not recipients and self._superuser_id:
            recipients.add(self._superuser_id)
        return sorted(uid for uid in recipients if self.is_admin(uid))
