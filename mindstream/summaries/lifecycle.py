"""Generate → preview → rate-or-discard → commit protocol for AI digests.

A generated draft lives only in memory until the user rates it. It is
written exactly once, together with its rating, and a discarded draft
leaves nothing behind. Generation is never re-entrant: while a draft is
being generated or previewed, another ``generate()`` is rejected.
"""

from __future__ import annotations

import asyncio
import enum
import uuid
from datetime import date, datetime, timedelta, timezone
from typing import Awaitable, Callable, Protocol
from zoneinfo import ZoneInfo

from mindstream.config import settings
from mindstream.models import Entry, GeneratedSummaryDraft, SavedSummary
from mindstream.notify import LogNotifier, Notifier
from mindstream.summaries import summarizer
from mindstream.summaries.streak import StatsStore, update_streak
from mindstream.utils.logging import get_logger

log = get_logger(__name__)

Summarize = Callable[[list[Entry]], Awaitable[str]]


class SummaryStore(StatsStore, Protocol):
    async def list_entries_since(
        self, since: datetime, user_id: uuid.UUID | None
    ) -> list[Entry]: ...

    async def insert_summary(
        self,
        text: str,
        range_start: datetime,
        range_end: datetime,
        for_date: date,
        rating: int,
        user_id: uuid.UUID | None,
    ) -> SavedSummary: ...


class SummaryState(str, enum.Enum):
    EMPTY = "empty"
    GENERATING = "generating"
    PREVIEWING = "previewing"
    COMMITTING = "committing"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_valid_rating(rating: object) -> bool:
    return isinstance(rating, int) and not isinstance(rating, bool) and 1 <= rating <= 5


class SummaryLifecycle:
    def __init__(
        self,
        store: SummaryStore,
        user_id: uuid.UUID | None,
        notifier: Notifier | None = None,
        summarize: Summarize | None = None,
        window: timedelta | None = None,
        tz: str | None = None,
        clock: Callable[[], datetime] = _utcnow,
        on_streak: Callable[[int], None] | None = None,
    ) -> None:
        self._store = store
        self.user_id = user_id
        self._notifier = notifier or LogNotifier()
        self._summarize = summarize or summarizer.generate_summary
        self._window = window or timedelta(hours=settings.summary_window_hours)
        self._tz = ZoneInfo(tz or settings.summary_timezone)
        self._clock = clock
        self._on_streak = on_streak
        self._generation = 0
        self._background: set[asyncio.Task] = set()
        self.state = SummaryState.EMPTY
        self.draft: GeneratedSummaryDraft | None = None
        self.candidate_rating: int | None = None

    async def generate(self) -> GeneratedSummaryDraft | None:
        if self.state is not SummaryState.EMPTY:
            log.info("summary_generate_rejected", state=self.state.value)
            self._notifier.notify("A reflection is already in progress", "info")
            return None

        self.state = SummaryState.GENERATING
        self._generation += 1
        generation = self._generation
        range_end = self._clock()
        range_start = range_end - self._window

        try:
            entries = await self._store.list_entries_since(range_start, self.user_id)
        except Exception as exc:
            log.warning("summary_source_read_failed", error=str(exc))
            self._settle_failed(generation, f"Could not load entries: {exc}")
            return None

        if not entries:
            if self._is_current(generation):
                self.state = SummaryState.EMPTY
                hours = int(self._window.total_seconds() // 3600)
                self._notifier.notify(f"No entries in the last {hours} hours", "info")
            return None

        log.info("summary_generating", entries=len(entries), generation=generation)
        try:
            text = await self._summarize(entries)
        except Exception as exc:
            log.warning("summary_generation_failed", error=str(exc))
            self._settle_failed(generation, f"Could not generate reflection: {exc}")
            return None

        if not self._is_current(generation):
            log.info("summary_result_dropped", generation=generation)
            return None

        self.draft = GeneratedSummaryDraft(
            text=text,
            generated_at=self._clock(),
            range_start=range_start,
            range_end=range_end,
        )
        self.candidate_rating = None
        self.state = SummaryState.PREVIEWING
        return self.draft

    def set_candidate_rating(self, rating: int | None) -> None:
        """Exploratory selection while previewing; no side effects."""
        if self.state is not SummaryState.PREVIEWING:
            return
        self.candidate_rating = rating if is_valid_rating(rating) else None

    async def commit(self, rating: int) -> SavedSummary | None:
        if self.state is not SummaryState.PREVIEWING or self.draft is None:
            log.info("summary_commit_rejected", state=self.state.value)
            return None
        if not is_valid_rating(rating):
            self._notifier.notify("Pick a rating from 1 to 5 before saving", "error")
            return None

        self.state = SummaryState.COMMITTING
        draft = self.draft
        for_date = self._clock().astimezone(self._tz).date()
        try:
            saved = await self._store.insert_summary(
                draft.text,
                draft.range_start,
                draft.range_end,
                for_date,
                rating,
                self.user_id,
            )
        except Exception as exc:
            log.warning("summary_commit_failed", error=str(exc))
            if self.draft is draft:
                self.state = SummaryState.PREVIEWING
            self._notifier.notify(f"Could not save reflection: {exc}", "error")
            return None

        self.draft = None
        self.candidate_rating = None
        self.state = SummaryState.EMPTY
        self._notifier.notify("Reflection saved", "success")

        task = asyncio.create_task(self._update_streak_background(for_date))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return saved

    def discard(self) -> bool:
        if self.state is not SummaryState.PREVIEWING:
            return False
        self.draft = None
        self.candidate_rating = None
        self.state = SummaryState.EMPTY
        self._notifier.notify("Reflection discarded", "info")
        return True

    def reset(self) -> None:
        """Forget everything; an in-flight generation result will be dropped."""
        self._generation += 1
        self.draft = None
        self.candidate_rating = None
        self.state = SummaryState.EMPTY

    async def wait_for_background(self) -> None:
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation and self.state is SummaryState.GENERATING

    def _settle_failed(self, generation: int, message: str) -> None:
        if self._is_current(generation):
            self.state = SummaryState.EMPTY
            self._notifier.notify(message, "error")

    async def _update_streak_background(self, for_date: date) -> None:
        try:
            count = await update_streak(self._store, self.user_id, for_date)
        except Exception:
            log.exception("streak_update_failed", user_id=str(self.user_id))
            self._notifier.notify("Saved, but your streak could not be updated", "info")
            return
        if self._on_streak is not None:
            self._on_streak(count)
