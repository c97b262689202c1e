"""
JSON file storage for runtime settings.

The settings record is small, read on every generation call and written
rarely (admin commands, admin-gated tools). Reads return a frozen snapshot;
writers build a new snapshot with one of the ``with_*`` helpers and save it.
The file is written to a temporary sibling and then moved into place, so a
crash mid-write never leaves a truncated settings.json behind.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from collections.abc import Callable
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

logger = logging.getLogger(__name__)

SETTINGS_FILE = "settings.json"


class RuntimeSettings(BaseModel):
    """Operator-mutable settings, persisted as settings.json."""

    ai_url: str | None = Field(None, description="Base URL of the OpenAI-compatible endpoint")
    ai_model: str | None = Field(None, description="Model name sent to the endpoint")
    chat_channel_id: str | None = Field(None, description="Channel where the bot chats freely")
    admin_user_ids: frozenset[str] = Field(
        default_factory=frozenset, description="Users granted admin rights besides the superuser"
    )
    thought_recipient_ids: frozenset[str] = Field(
        default_factory=frozenset, description="Admins who opted in to reasoning DMs"
    )

    model_config = ConfigDict(frozen=True, extra="ignore")

    def with_ai_url(self, url: str | None) -> RuntimeSettings:
        return self.model_copy(update={"ai_url": url})

    def with_ai_model(self, model: str | None) -> RuntimeSettings:
        return self.model_copy(update={"ai_model": model})

    def with_chat_channel_id(self, channel_id: str | None) -> RuntimeSettings:
        return self.model_copy(update={"chat_channel_id": channel_id})

    def with_admin_user_ids(self, user_ids: set[str] | frozenset[str]) -> RuntimeSettings:
        return self.model_copy(update={"admin_user_ids": frozenset(user_ids)})

    def with_thought_recipient_ids(self, user_ids: set[str] | frozenset[str]) -> RuntimeSettings:
        return self.model_copy(update={"thought_recipient_ids": frozenset(user_ids)})


class JsonStorage:
    """
    JSON file store rooted at a data directory.

    Thread-safe: all file access happens under one lock, and ``update``
    performs its read-modify-write under that lock so two concurrent updates
    never lose each other's changes.

    Args:
        data_dir: Directory holding settings.json (created on first write)
    """

    def __init__(self, data_dir: Path | str):
        self._data_dir = Path(data_dir)
        self._lock = threading.RLock()

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def load_settings(self) -> RuntimeSettings:
        """Load the current snapshot; missing or unreadable files yield defaults."""
        path = self._data_dir / SETTINGS_FILE
        with self._lock:
            if not path.exists():
                return RuntimeSettings()
            try:
                return RuntimeSettings.model_validate_json(path.read_text(encoding="utf-8"))
            except (OSError, ValidationError) as e:
                logger.warning(f"Could not read {path}, using default settings: {e}")
                return RuntimeSettings()

    def save_settings(self, settings: RuntimeSettings) -> None:
        """Persist a snapshot atomically."""
        with self._lock:
            self._data_dir.mkdir(parents=True, exist_ok=True)
            payload = settings.model_dump_json(indent=2)
            fd, tmp_name = tempfile.mkstemp(
                prefix=".settings-", suffix=".json", dir=self._data_dir
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, self._data_dir / SETTINGS_FILE)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise

    def update_settings(
        self, change: Callable[[RuntimeSettings], RuntimeSettings]
    ) -> RuntimeSettings:
        """
        Apply ``change`` to the current snapshot and persist the result.

        Returns:
            The newly saved snapshot
        """
        with self._lock:
            updated = change(self.load_settings())
            self.save_settings(updated)
            return updated
