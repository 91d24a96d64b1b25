"""The single editable entry draft, fed by typing or by voice capture."""

from __future__ import annotations

import uuid
from typing import Protocol

from mindstream.errors import AuthError, WriteError
from mindstream.models import Entry
from mindstream.notify import LogNotifier, Notifier
from mindstream.utils.logging import get_logger

log = get_logger(__name__)


class EntryStore(Protocol):
    async def insert_entry(
        self, content: str, source: str, user_id: uuid.UUID | None
    ) -> Entry: ...


class DraftBuffer:
    def __init__(
        self,
        store: EntryStore,
        user_id: uuid.UUID | None,
        notifier: Notifier | None = None,
    ) -> None:
        self._store = store
        self.user_id = user_id
        self._notifier = notifier or LogNotifier()
        self.text = ""
        self.source = "text"
        self.saving = False

    def set_text(self, text: str) -> None:
        self.text = text
        if not text.strip():
            self.source = "text"

    def receive_transcript(self, text: str) -> None:
        """Replace the draft with one finished recording."""
        if not text:
            return
        self.text = text
        self.source = "voice"

    async def commit(self, source: str | None = None) -> Entry | None:
        """Persist the draft. The text is cleared only once the write is acknowledged."""
        content = self.text.strip()
        if not content:
            self._notifier.notify("Cannot save an empty entry", "info")
            return None
        if self.user_id is None:
            self._notifier.notify("Sign in to save entries", "error")
            return None
        if self.saving:
            log.info("draft_commit_rejected", reason="save_in_flight")
            return None

        source = source or self.source
        self.saving = True
        try:
            entry = await self._store.insert_entry(content, source, self.user_id)
        except (AuthError, WriteError) as exc:
            log.warning("draft_commit_failed", error=str(exc))
            self._notifier.notify(f"Error saving entry: {exc}", "error")
            return None
        finally:
            self.saving = False

        # Only clear if nothing was typed while the insert was pending.
        if self.text.strip() == content:
            self.text = ""
            self.source = "text"
        self._notifier.notify("Entry saved", "success")
        return entry

    def discard(self) -> None:
        self.text = ""
        self.source = "text"
        self._notifier.notify("Discarded", "info")
