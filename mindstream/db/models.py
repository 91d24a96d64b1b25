"""Database operations using asyncpg directly.

All functions take a connection (or pool) as the first argument and return
plain dicts.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

import asyncpg


# ---------------------------------------------------------------------------
# Entries
# ---------------------------------------------------------------------------

async def insert_entry(
    conn: asyncpg.Connection | asyncpg.Pool,
    user_id: uuid.UUID,
    content: str,
    source: str,
) -> dict[str, Any]:
    entry_id = uuid.uuid4()
    row = await conn.fetchrow(
        """INSERT INTO entries (id, user_id, content, source)
           VALUES ($1, $2, $3, $4) RETURNING *""",
        entry_id,
        user_id,
        content,
        source,
    )
    return dict(row)


async def list_entries_since(
    conn: asyncpg.Connection | asyncpg.Pool,
    user_id: uuid.UUID,
    since: datetime,
) -> list[dict[str, Any]]:
    """Entries created at or after ``since``, oldest first."""
    rows = await conn.fetch(
        """SELECT * FROM entries
           WHERE user_id = $1 AND created_at >= $2
           ORDER BY created_at ASC""",
        user_id,
        since,
    )
    return [dict(r) for r in rows]


async def list_recent_entries(
    conn: asyncpg.Connection | asyncpg.Pool,
    user_id: uuid.UUID,
    limit: int = 50,
) -> list[dict[str, Any]]:
    rows = await conn.fetch(
        """SELECT * FROM entries WHERE user_id = $1
           ORDER BY created_at DESC LIMIT $2""",
        user_id,
        limit,
    )
    return [dict(r) for r in rows]


async def delete_entry(
    conn: asyncpg.Connection | asyncpg.Pool,
    user_id: uuid.UUID,
    entry_id: uuid.UUID,
) -> bool:
    """Delete an entry. Returns False if it was already gone."""
    status = await conn.execute(
        "DELETE FROM entries WHERE id = $1 AND user_id = $2",
        entry_id,
        user_id,
    )
    return status != "DELETE 0"


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------

async def insert_summary(
    conn: asyncpg.Connection | asyncpg.Pool,
    user_id: uuid.UUID,
    summary_text: str,
    rating: int,
    for_date: date,
    range_start: datetime,
    range_end: datetime,
) -> dict[str, Any]:
    summary_id = uuid.uuid4()
    row = await conn.fetchrow(
        """INSERT INTO summaries
           (id, user_id, summary_text, rating, for_date, range_start, range_end)
           VALUES ($1, $2, $3, $4, $5, $6, $7) RETURNING *""",
        summary_id,
        user_id,
        summary_text,
        rating,
        for_date,
        range_start,
        range_end,
    )
    return dict(row)


async def delete_summary(
    conn: asyncpg.Connection | asyncpg.Pool,
    user_id: uuid.UUID,
    summary_id: uuid.UUID,
) -> bool:
    status = await conn.execute(
        "DELETE FROM summaries WHERE id = $1 AND user_id = $2",
        summary_id,
        user_id,
    )
    return status != "DELETE 0"


# ---------------------------------------------------------------------------
# User stats
# ---------------------------------------------------------------------------

async def get_user_stats(
    conn: asyncpg.Connection | asyncpg.Pool,
    user_id: uuid.UUID,
) -> dict[str, Any] | None:
    row = await conn.fetchrow(
        "SELECT * FROM user_stats WHERE user_id = $1", user_id
    )
    return dict(row) if row else None


async def upsert_user_stats(
    conn: asyncpg.Connection | asyncpg.Pool,
    user_id: uuid.UUID,
    streak_count: int,
    last_summary_date: date,
) -> dict[str, Any]:
    row = await conn.fetchrow(
        """INSERT INTO user_stats (user_id, streak_count, last_summary_date)
           VALUES ($1, $2, $3)
           ON CONFLICT (user_id) DO UPDATE
             SET streak_count = EXCLUDED.streak_count,
                 last_summary_date = EXCLUDED.last_summary_date,
                 updated_at = NOW()
           RETURNING *""",
        user_id,
        streak_count,
        last_summary_date,
    )
    return dict(row)
