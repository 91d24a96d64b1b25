"""Daily streak — consecutive days with a saved summary."""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from typing import Protocol

from mindstream.models import UserStats
from mindstream.utils.logging import get_logger

log = get_logger(__name__)


class StatsStore(Protocol):
    async def get_user_stats(self, user_id: uuid.UUID | None) -> UserStats: ...

    async def upsert_user_stats(self, stats: UserStats) -> None: ...


def compute_streak(last_date: date | None, current_count: int, for_date: date) -> int:
    if last_date is None:
        return 1
    if for_date - last_date == timedelta(days=1):
        return current_count + 1
    if for_date == last_date:
        return current_count or 1
    return 1


async def update_streak(store: StatsStore, user_id: uuid.UUID, for_date: date) -> int:
    existing = await store.get_user_stats(user_id)
    count = compute_streak(existing.last_summary_date, existing.streak_count, for_date)
    await store.upsert_user_stats(
        UserStats(user_id=user_id, streak_count=count, last_summary_date=for_date)
    )
    log.info("streak_updated", user_id=str(user_id), streak=count)
    return count
