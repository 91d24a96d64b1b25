"""One connected page: owns its capture session, draft, summary lifecycle and feed.

Exactly one of each exists per connection; there is no process-wide guard.
Capture events are handled inline so fragment order is preserved.
Network-bound actions run as tasks so the page can keep sending input
while they are pending.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import Any, Coroutine

from mindstream.capture.recognizer import PageRecognizer
from mindstream.capture.session import SpeechCaptureSession
from mindstream.db.gateway import Gateway
from mindstream.draft import DraftBuffer
from mindstream.entries import EntryFeed
from mindstream.errors import MindstreamError
from mindstream.models import TranscriptFragment
from mindstream.notify import OutboxNotifier
from mindstream.summaries.lifecycle import SummaryLifecycle, SummaryState, Summarize
from mindstream.utils.logging import get_logger

log = get_logger(__name__)


def _parse_uuid(value: Any) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


class PageConnection:
    def __init__(
        self,
        store: Gateway,
        summarize: Summarize | None = None,
        session_options: dict[str, Any] | None = None,
    ) -> None:
        self.outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self.notifier = OutboxNotifier(self.outbox)
        self.recognizer: PageRecognizer | None = None
        self.session = SpeechCaptureSession(
            None, self.notifier, **(session_options or {})
        )
        self.draft = DraftBuffer(store, None, self.notifier)
        self._store = store
        self.lifecycle = SummaryLifecycle(
            store, None, self.notifier, summarize, on_streak=self.send_stats
        )
        self.feed = EntryFeed(store, None, self.notifier)
        self.user_id: uuid.UUID | None = None
        self._tasks: set[asyncio.Task] = set()
        self._handlers = {
            "hello": self._on_hello,
            "press": self._on_press,
            "release": self._on_release,
            "speech_result": self._on_speech_result,
            "speech_end": self._on_speech_end,
            "speech_error": self._on_speech_error,
            "draft": self._on_draft,
            "save": self._on_save,
            "discard": self._on_discard,
            "generate": self._on_generate,
            "rate": self._on_rate,
            "commit_summary": self._on_commit_summary,
            "discard_summary": self._on_discard_summary,
            "delete_entry": self._on_delete_entry,
            "refresh": self._on_refresh,
        }

    async def handle(self, message: dict[str, Any]) -> None:
        kind = message.get("type")
        handler = self._handlers.get(kind) if isinstance(kind, str) else None
        if handler is None:
            log.warning("page_message_unknown", type=kind)
            self.notifier.notify(f"Unknown message type: {kind}", "error")
            return
        await handler(message)

    async def close(self) -> None:
        if self.recognizer is not None:
            self.recognizer.close()
        await self.session.close()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self.lifecycle.reset()
        await self.lifecycle.wait_for_background()
        log.info("page_closed", user_id=str(self.user_id))

    # -- state snapshots -----------------------------------------------------

    def send(self, payload: dict[str, Any]) -> None:
        self.outbox.put_nowait(payload)

    def send_capture(self) -> None:
        self.send(
            {
                "type": "capture",
                "state": self.session.state.value,
                "final": self.session.final_text,
                "interim": self.session.interim_text,
            }
        )

    def send_draft(self) -> None:
        self.send(
            {"type": "draft", "text": self.draft.text, "saving": self.draft.saving}
        )

    def send_summary(self, state: str | None = None) -> None:
        draft = self.lifecycle.draft
        self.send(
            {
                "type": "summary",
                "state": state or self.lifecycle.state.value,
                "draft": draft.to_dict() if draft else None,
                "candidate_rating": self.lifecycle.candidate_rating,
            }
        )

    def send_stats(self, streak_count: int) -> None:
        self.send({"type": "stats", "streak_count": streak_count})

    def send_entries(self) -> None:
        self.send(
            {"type": "entries", "entries": [e.to_dict() for e in self.feed.entries]}
        )

    # -- handlers ------------------------------------------------------------

    async def _on_hello(self, message: dict[str, Any]) -> None:
        self.user_id = _parse_uuid(message.get("user_id"))
        if self.user_id is None:
            self.notifier.notify("Sign in to save entries", "error")
        for component in (self.draft, self.lifecycle, self.feed):
            component.user_id = self.user_id

        if message.get("speech_supported"):
            self.recognizer = PageRecognizer(self.outbox)
            self.session.recognizer = self.recognizer
        log.info(
            "page_hello",
            user_id=str(self.user_id),
            speech_supported=self.session.supported,
        )
        self.send_capture()
        self.send_draft()
        self.send_summary()
        if self.user_id is not None:
            self._spawn(self._refresh())
            self._spawn(self._load_stats())

    async def _on_press(self, message: dict[str, Any]) -> None:
        await self.session.start()
        self.send_capture()

    async def _on_release(self, message: dict[str, Any]) -> None:
        text = await self.session.stop()
        self.draft.receive_transcript(text)
        self.send_capture()
        self.send_draft()

    async def _on_speech_result(self, message: dict[str, Any]) -> None:
        fragment = TranscriptFragment(
            text=str(message.get("text", "")),
            is_final=bool(message.get("is_final", False)),
        )
        self.session.on_fragment(fragment)
        self.send_capture()

    async def _on_speech_end(self, message: dict[str, Any]) -> None:
        self.session.on_end()
        self.send_capture()

    async def _on_speech_error(self, message: dict[str, Any]) -> None:
        self.session.on_error(str(message.get("error", "unknown")))
        self.send_capture()

    async def _on_draft(self, message: dict[str, Any]) -> None:
        self.draft.set_text(str(message.get("text", "")))

    async def _on_save(self, message: dict[str, Any]) -> None:
        self._spawn(self._save())

    async def _on_discard(self, message: dict[str, Any]) -> None:
        self.draft.discard()
        self.send_draft()

    async def _on_generate(self, message: dict[str, Any]) -> None:
        self._spawn(self._generate())

    async def _on_rate(self, message: dict[str, Any]) -> None:
        self.lifecycle.set_candidate_rating(message.get("rating"))
        self.send_summary()

    async def _on_commit_summary(self, message: dict[str, Any]) -> None:
        rating = message.get("rating", self.lifecycle.candidate_rating)
        self._spawn(self._commit_summary(rating))

    async def _on_discard_summary(self, message: dict[str, Any]) -> None:
        self.lifecycle.discard()
        self.send_summary()

    async def _on_delete_entry(self, message: dict[str, Any]) -> None:
        entry_id = _parse_uuid(message.get("id"))
        if entry_id is None:
            self.notifier.notify("Unknown entry", "error")
            return
        self._spawn(self._delete_entry(entry_id))

    async def _on_refresh(self, message: dict[str, Any]) -> None:
        self._spawn(self._refresh())

    # -- network-bound work --------------------------------------------------

    async def _save(self) -> None:
        entry = await self.draft.commit()
        if entry is not None:
            self.feed.add(entry)
            self.send_entries()
        self.send_draft()

    async def _generate(self) -> None:
        if self.lifecycle.state is SummaryState.EMPTY:
            self.send_summary(SummaryState.GENERATING.value)
        await self.lifecycle.generate()
        self.send_summary()

    async def _commit_summary(self, rating: Any) -> None:
        await self.lifecycle.commit(rating)
        self.send_summary()

    async def _delete_entry(self, entry_id: uuid.UUID) -> None:
        await self.feed.remove(entry_id)
        self.send_entries()

    async def _load_stats(self) -> None:
        try:
            stats = await self._store.get_user_stats(self.user_id)
        except MindstreamError as exc:
            log.warning("stats_load_failed", error=str(exc))
            return
        self.send_stats(stats.streak_count)

    async def _refresh(self) -> None:
        await self.feed.refresh()
        self.send_entries()

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(self._guard(coro))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _guard(self, coro: Coroutine[Any, Any, None]) -> None:
        try:
            await coro
        except Exception:
            log.exception("page_task_failed", user_id=str(self.user_id))
            self.notifier.notify("Something went wrong, please try again", "error")
