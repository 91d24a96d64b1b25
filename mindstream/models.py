"""Records exchanged between the core and its collaborators."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Literal

EntrySource = Literal["text", "voice"]


@dataclass(frozen=True)
class TranscriptFragment:
    """A span of recognized speech; interim fragments are provisional."""

    text: str
    is_final: bool = False


@dataclass(frozen=True)
class Entry:
    id: uuid.UUID
    content: str
    source: EntrySource
    created_at: datetime
    user_id: uuid.UUID | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Entry:
        return cls(
            id=row["id"],
            content=row["content"],
            source=row["source"],
            created_at=row["created_at"],
            user_id=row.get("user_id"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "content": self.content,
            "source": self.source,
            "created_at": self.created_at.isoformat(),
            "user_id": str(self.user_id) if self.user_id else None,
        }


@dataclass(frozen=True)
class GeneratedSummaryDraft:
    """An unrated digest awaiting the user's rate-or-discard decision."""

    text: str
    generated_at: datetime
    range_start: datetime
    range_end: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "generated_at": self.generated_at.isoformat(),
            "range_start": self.range_start.isoformat(),
            "range_end": self.range_end.isoformat(),
        }


@dataclass(frozen=True)
class SavedSummary:
    id: uuid.UUID
    summary_text: str
    rating: int
    for_date: date
    range_start: datetime
    range_end: datetime
    user_id: uuid.UUID
    created_at: datetime

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> SavedSummary:
        return cls(
            id=row["id"],
            summary_text=row["summary_text"],
            rating=row["rating"],
            for_date=row["for_date"],
            range_start=row["range_start"],
            range_end=row["range_end"],
            user_id=row["user_id"],
            created_at=row["created_at"],
        )


@dataclass(frozen=True)
class UserStats:
    user_id: uuid.UUID
    streak_count: int = 0
    last_summary_date: date | None = None
