"""Persistence gateway — the storage contract the core depends on.

Wraps the raw SQL in ``mindstream.db.models`` behind a pool, returns typed
records and maps driver failures onto ``AuthError`` / ``WriteError`` /
``ReadError`` so callers never see asyncpg exceptions.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime

import asyncpg

from mindstream.db import models
from mindstream.errors import AuthError, ReadError, WriteError
from mindstream.models import Entry, SavedSummary, UserStats
from mindstream.utils.logging import get_logger

log = get_logger(__name__)

_DB_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


def _require_user(user_id: uuid.UUID | None) -> uuid.UUID:
    if user_id is None:
        raise AuthError("no authenticated user")
    return user_id


class Gateway:
    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool

    # -- entries -------------------------------------------------------------

    async def insert_entry(
        self, content: str, source: str, user_id: uuid.UUID | None
    ) -> Entry:
        user_id = _require_user(user_id)
        try:
            row = await models.insert_entry(self._pool, user_id, content, source)
        except _DB_ERRORS as exc:
            log.warning("entry_insert_failed", user_id=str(user_id), error=str(exc))
            raise WriteError(str(exc)) from exc
        log.info("entry_inserted", entry_id=str(row["id"]), source=source)
        return Entry.from_row(row)

    async def list_entries_since(
        self, since: datetime, user_id: uuid.UUID | None
    ) -> list[Entry]:
        user_id = _require_user(user_id)
        try:
            rows = await models.list_entries_since(self._pool, user_id, since)
        except _DB_ERRORS as exc:
            raise ReadError(str(exc)) from exc
        return [Entry.from_row(r) for r in rows]

    async def list_recent_entries(
        self, user_id: uuid.UUID | None, limit: int = 50
    ) -> list[Entry]:
        user_id = _require_user(user_id)
        try:
            rows = await models.list_recent_entries(self._pool, user_id, limit)
        except _DB_ERRORS as exc:
            raise ReadError(str(exc)) from exc
        return [Entry.from_row(r) for r in rows]

    async def delete_entry(
        self, entry_id: uuid.UUID, user_id: uuid.UUID | None
    ) -> bool:
        user_id = _require_user(user_id)
        try:
            deleted = await models.delete_entry(self._pool, user_id, entry_id)
        except _DB_ERRORS as exc:
            raise WriteError(str(exc)) from exc
        log.info("entry_deleted", entry_id=str(entry_id), existed=deleted)
        return deleted

    # -- summaries -----------------------------------------------------------

    async def insert_summary(
        self,
        text: str,
        range_start: datetime,
        range_end: datetime,
        for_date: date,
        rating: int,
        user_id: uuid.UUID | None,
    ) -> SavedSummary:
        user_id = _require_user(user_id)
        try:
            row = await models.insert_summary(
                self._pool,
                user_id=user_id,
                summary_text=text,
                rating=rating,
                for_date=for_date,
                range_start=range_start,
                range_end=range_end,
            )
        except _DB_ERRORS as exc:
            log.warning("summary_insert_failed", user_id=str(user_id), error=str(exc))
            raise WriteError(str(exc)) from exc
        log.info("summary_inserted", summary_id=str(row["id"]), rating=rating)
        return SavedSummary.from_row(row)

    async def delete_summary(
        self, summary_id: uuid.UUID, user_id: uuid.UUID | None
    ) -> bool:
        user_id = _require_user(user_id)
        try:
            deleted = await models.delete_summary(self._pool, user_id, summary_id)
        except _DB_ERRORS as exc:
            raise WriteError(str(exc)) from exc
        log.info("summary_deleted", summary_id=str(summary_id), existed=deleted)
        return deleted

    # -- user stats ----------------------------------------------------------

    async def get_user_stats(self, user_id: uuid.UUID | None) -> UserStats:
        user_id = _require_user(user_id)
        try:
            row = await models.get_user_stats(self._pool, user_id)
        except _DB_ERRORS as exc:
            raise ReadError(str(exc)) from exc
        if row is None:
            return UserStats(user_id=user_id)
        return UserStats(
            user_id=user_id,
            streak_count=row["streak_count"],
            last_summary_date=row["last_summary_date"],
        )

    async def upsert_user_stats(self, stats: UserStats) -> None:
        try:
            await models.upsert_user_stats(
                self._pool,
                stats.user_id,
                stats.streak_count,
                stats.last_summary_date,
            )
        except _DB_ERRORS as exc:
            raise WriteError(str(exc)) from exc
