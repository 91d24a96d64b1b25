"""Recent-entries feed with optimistic removal.

The local list is a cache of the store, never the source of truth: a
failed delete is compensated by re-reading the feed.
"""

from __future__ import annotations

import uuid
from typing import Protocol

from mindstream.config import settings
from mindstream.errors import MindstreamError
from mindstream.models import Entry
from mindstream.notify import LogNotifier, Notifier
from mindstream.utils.logging import get_logger

log = get_logger(__name__)


class FeedStore(Protocol):
    async def list_recent_entries(
        self, user_id: uuid.UUID | None, limit: int = 50
    ) -> list[Entry]: ...

    async def delete_entry(
        self, entry_id: uuid.UUID, user_id: uuid.UUID | None
    ) -> bool: ...


class EntryFeed:
    def __init__(
        self,
        store: FeedStore,
        user_id: uuid.UUID | None,
        notifier: Notifier | None = None,
        limit: int | None = None,
    ) -> None:
        self._store = store
        self.user_id = user_id
        self._notifier = notifier or LogNotifier()
        self._limit = limit or settings.feed_limit
        self.entries: list[Entry] = []

    async def refresh(self) -> list[Entry]:
        try:
            self.entries = await self._store.list_recent_entries(
                self.user_id, self._limit
            )
        except MindstreamError as exc:
            log.warning("feed_refresh_failed", error=str(exc))
            self._notifier.notify(f"Error loading entries: {exc}", "error")
        return self.entries

    def add(self, entry: Entry) -> None:
        self.entries = [entry] + [e for e in self.entries if e.id != entry.id]
        del self.entries[self._limit:]

    async def remove(self, entry_id: uuid.UUID) -> bool:
        self.entries = [e for e in self.entries if e.id != entry_id]
        try:
            await self._store.delete_entry(entry_id, self.user_id)
        except MindstreamError as exc:
            log.warning("feed_delete_failed", entry_id=str(entry_id), error=str(exc))
            self._notifier.notify(f"Could not delete entry: {exc}", "error")
            await self.refresh()
            return False
        return True
