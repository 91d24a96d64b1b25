"""Shared fakes for the gateway's collaborators."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

import pytest

from mindstream.errors import ReadError, WriteError
from mindstream.models import Entry, SavedSummary, UserStats


class RecordingNotifier:
    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def notify(self, message: str, severity: str = "info") -> None:
        self.messages.append((message, severity))

    @property
    def severities(self) -> list[str]:
        return [s for _, s in self.messages]


class FakeRecognizer:
    def __init__(self, fail_start: bool = False) -> None:
        self.starts = 0
        self.stops = 0
        self.fail_start = fail_start

    async def start(self) -> None:
        if self.fail_start:
            raise PermissionError("microphone permission denied")
        self.starts += 1

    async def stop(self) -> None:
        self.stops += 1


class FakeStore:
    """In-memory stand-in for the persistence gateway."""

    def __init__(self) -> None:
        self.entries: list[Entry] = []
        self.summaries: list[SavedSummary] = []
        self.stats: dict[uuid.UUID, UserStats] = {}
        self.fail_writes = False
        self.fail_reads = False
        self.fail_deletes = False
        self.fail_stats = False
        self.insert_calls = 0
        self.read_calls = 0

    def add_entry(self, content: str, created_at: datetime, user_id=None, source="text") -> Entry:
        entry = Entry(
            id=uuid.uuid4(),
            content=content,
            source=source,
            created_at=created_at,
            user_id=user_id,
        )
        self.entries.append(entry)
        return entry

    async def insert_entry(self, content, source, user_id) -> Entry:
        self.insert_calls += 1
        if self.fail_writes:
            raise WriteError("database unavailable")
        return self.add_entry(content, datetime.now(timezone.utc), user_id, source)

    async def list_entries_since(self, since, user_id) -> list[Entry]:
        self.read_calls += 1
        if self.fail_reads:
            raise ReadError("database unavailable")
        found = [e for e in self.entries if e.created_at >= since]
        return sorted(found, key=lambda e: e.created_at)

    async def list_recent_entries(self, user_id, limit=50) -> list[Entry]:
        self.read_calls += 1
        if self.fail_reads:
            raise ReadError("database unavailable")
        return sorted(self.entries, key=lambda e: e.created_at, reverse=True)[:limit]

    async def delete_entry(self, entry_id, user_id) -> bool:
        if self.fail_deletes:
            raise WriteError("delete failed")
        before = len(self.entries)
        self.entries = [e for e in self.entries if e.id != entry_id]
        return len(self.entries) != before

    async def insert_summary(
        self, text, range_start, range_end, for_date, rating, user_id
    ) -> SavedSummary:
        self.insert_calls += 1
        if self.fail_writes:
            raise WriteError("database unavailable")
        saved = SavedSummary(
            id=uuid.uuid4(),
            summary_text=text,
            rating=rating,
            for_date=for_date,
            range_start=range_start,
            range_end=range_end,
            user_id=user_id,
            created_at=datetime.now(timezone.utc),
        )
        self.summaries.append(saved)
        return saved

    async def get_user_stats(self, user_id) -> UserStats:
        if self.fail_stats:
            raise ReadError("stats unavailable")
        return self.stats.get(user_id, UserStats(user_id=user_id))

    async def upsert_user_stats(self, stats: UserStats) -> None:
        if self.fail_stats:
            raise WriteError("stats unavailable")
        self.stats[stats.user_id] = stats


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def user_id() -> uuid.UUID:
    return uuid.UUID("8f14e45f-ceea-467a-9b55-8a1f1d3c2e01")


@pytest.fixture
def today() -> date:
    return date(2026, 10, 19)


@pytest.fixture
def recognizer() -> FakeRecognizer:
    return FakeRecognizer()
