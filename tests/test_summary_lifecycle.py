"""Tests for the generate → preview → rate → commit lifecycle."""

import asyncio
from datetime import date, datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from mindstream.errors import GenerationError
from mindstream.summaries.lifecycle import SummaryLifecycle, SummaryState

NOW = datetime(2026, 10, 19, 21, 30, tzinfo=timezone.utc)


def make_lifecycle(store, user_id, notifier, summarize=None, tz="UTC"):
    if summarize is None:
        summarize = AsyncMock(return_value="A calm, productive day.")
    return SummaryLifecycle(
        store,
        user_id,
        notifier,
        summarize=summarize,
        tz=tz,
        clock=lambda: NOW,
    )


@pytest.mark.asyncio
async def test_generate_rate_commit_scenario(store, notifier, user_id):
    store.add_entry("ok", NOW - timedelta(hours=2), user_id)
    lifecycle = make_lifecycle(store, user_id, notifier)

    draft = await lifecycle.generate()
    assert lifecycle.state is SummaryState.PREVIEWING
    assert draft.text == "A calm, productive day."
    assert draft.range_end == NOW
    assert draft.range_start == NOW - timedelta(hours=24)

    saved = await lifecycle.commit(4)
    assert len(store.summaries) == 1
    assert saved.rating == 4
    assert saved.range_end == NOW
    assert saved.range_start == NOW - timedelta(hours=24)
    assert saved.for_date == date(2026, 10, 19)
    assert saved.user_id == user_id
    assert lifecycle.state is SummaryState.EMPTY
    assert lifecycle.draft is None

    await lifecycle.wait_for_background()
    assert store.stats[user_id].streak_count == 1


@pytest.mark.asyncio
async def test_summarizer_receives_entries_oldest_first(store, notifier, user_id):
    store.add_entry("later", NOW - timedelta(hours=1), user_id)
    store.add_entry("earlier", NOW - timedelta(hours=3), user_id)
    store.add_entry("too old", NOW - timedelta(hours=30), user_id)
    summarize = AsyncMock(return_value="digest")
    lifecycle = make_lifecycle(store, user_id, notifier, summarize)

    await lifecycle.generate()
    (entries,), _ = summarize.call_args
    assert [e.content for e in entries] == ["earlier", "later"]


@pytest.mark.asyncio
async def test_no_entries_skips_summarizer(store, notifier, user_id):
    summarize = AsyncMock(return_value="unused")
    lifecycle = make_lifecycle(store, user_id, notifier, summarize)

    assert await lifecycle.generate() is None
    assert lifecycle.state is SummaryState.EMPTY
    summarize.assert_not_called()
    assert notifier.messages == [("No entries in the last 24 hours", "info")]


@pytest.mark.asyncio
async def test_generate_is_not_reentrant(store, notifier, user_id):
    store.add_entry("ok", NOW - timedelta(hours=2), user_id)
    release = asyncio.Event()
    calls = 0

    async def slow_summarize(entries):
        nonlocal calls
        calls += 1
        await release.wait()
        return "digest"

    lifecycle = make_lifecycle(store, user_id, notifier, slow_summarize)
    first = asyncio.create_task(lifecycle.generate())
    await asyncio.sleep(0.01)
    assert lifecycle.state is SummaryState.GENERATING

    assert await lifecycle.generate() is None
    release.set()
    await first
    assert lifecycle.state is SummaryState.PREVIEWING

    assert await lifecycle.generate() is None
    assert calls == 1
    assert store.read_calls == 1


@pytest.mark.parametrize("rating", [0, 6, -1, True, "4", 4.0, None])
@pytest.mark.asyncio
async def test_out_of_range_rating_rejected_locally(store, notifier, user_id, rating):
    store.add_entry("ok", NOW - timedelta(hours=2), user_id)
    lifecycle = make_lifecycle(store, user_id, notifier)
    await lifecycle.generate()

    assert await lifecycle.commit(rating) is None
    assert store.insert_calls == 0
    assert store.summaries == []
    assert lifecycle.state is SummaryState.PREVIEWING
    assert notifier.severities == ["error"]


@pytest.mark.asyncio
async def test_failed_commit_leaves_no_summary_and_keeps_draft(store, notifier, user_id):
    store.add_entry("ok", NOW - timedelta(hours=2), user_id)
    lifecycle = make_lifecycle(store, user_id, notifier)
    draft = await lifecycle.generate()
    store.fail_writes = True

    assert await lifecycle.commit(3) is None
    assert store.summaries == []
    assert lifecycle.state is SummaryState.PREVIEWING
    assert lifecycle.draft == draft

    store.fail_writes = False
    saved = await lifecycle.commit(3)
    assert saved.rating == 3
    assert len(store.summaries) == 1


@pytest.mark.asyncio
async def test_generation_failure_returns_to_empty(store, notifier, user_id):
    store.add_entry("ok", NOW - timedelta(hours=2), user_id)
    summarize = AsyncMock(side_effect=GenerationError("quota exceeded"))
    lifecycle = make_lifecycle(store, user_id, notifier, summarize)

    assert await lifecycle.generate() is None
    assert lifecycle.state is SummaryState.EMPTY
    assert lifecycle.draft is None
    assert notifier.severities == ["error"]


@pytest.mark.asyncio
async def test_source_read_failure_returns_to_empty(store, notifier, user_id):
    store.fail_reads = True
    summarize = AsyncMock(return_value="unused")
    lifecycle = make_lifecycle(store, user_id, notifier, summarize)

    assert await lifecycle.generate() is None
    assert lifecycle.state is SummaryState.EMPTY
    summarize.assert_not_called()


@pytest.mark.asyncio
async def test_discard_is_final_and_allows_regenerate(store, notifier, user_id):
    store.add_entry("ok", NOW - timedelta(hours=2), user_id)
    summarize = AsyncMock(side_effect=["first digest", "second digest"])
    lifecycle = make_lifecycle(store, user_id, notifier, summarize)

    await lifecycle.generate()
    assert lifecycle.discard() is True
    assert lifecycle.state is SummaryState.EMPTY
    assert lifecycle.draft is None
    assert store.insert_calls == 0

    draft = await lifecycle.generate()
    assert draft.text == "second digest"


@pytest.mark.asyncio
async def test_commit_and_discard_outside_preview_are_rejected(store, notifier, user_id):
    lifecycle = make_lifecycle(store, user_id, notifier)
    assert await lifecycle.commit(5) is None
    assert lifecycle.discard() is False
    assert store.insert_calls == 0


@pytest.mark.asyncio
async def test_streak_failure_does_not_roll_back_summary(store, notifier, user_id):
    store.add_entry("ok", NOW - timedelta(hours=2), user_id)
    store.fail_stats = True
    lifecycle = make_lifecycle(store, user_id, notifier)
    await lifecycle.generate()

    saved = await lifecycle.commit(5)
    await lifecycle.wait_for_background()
    assert saved is not None
    assert len(store.summaries) == 1
    assert lifecycle.state is SummaryState.EMPTY
    assert notifier.messages[-1] == ("Saved, but your streak could not be updated", "info")


@pytest.mark.asyncio
async def test_result_after_reset_is_dropped(store, notifier, user_id):
    store.add_entry("ok", NOW - timedelta(hours=2), user_id)
    release = asyncio.Event()

    async def slow_summarize(entries):
        await release.wait()
        return "late digest"

    lifecycle = make_lifecycle(store, user_id, notifier, slow_summarize)
    pending = asyncio.create_task(lifecycle.generate())
    await asyncio.sleep(0.01)
    lifecycle.reset()
    release.set()

    assert await pending is None
    assert lifecycle.state is SummaryState.EMPTY
    assert lifecycle.draft is None


@pytest.mark.asyncio
async def test_candidate_rating_has_no_side_effects(store, notifier, user_id):
    store.add_entry("ok", NOW - timedelta(hours=2), user_id)
    lifecycle = make_lifecycle(store, user_id, notifier)
    lifecycle.set_candidate_rating(3)
    assert lifecycle.candidate_rating is None

    await lifecycle.generate()
    lifecycle.set_candidate_rating(3)
    assert lifecycle.candidate_rating == 3
    lifecycle.set_candidate_rating(9)
    assert lifecycle.candidate_rating is None
    assert store.insert_calls == 0


@pytest.mark.asyncio
async def test_for_date_uses_configured_timezone(store, notifier, user_id):
    store.add_entry("ok", NOW - timedelta(hours=2), user_id)
    lifecycle = make_lifecycle(store, user_id, notifier, tz="Asia/Tokyo")
    await lifecycle.generate()
    saved = await lifecycle.commit(2)
    # 21:30 UTC is already the next morning in Tokyo.
    assert saved.for_date == date(2026, 10, 20)


@pytest.mark.asyncio
async def test_unexpected_commit_error_returns_to_preview(store, notifier, user_id):
    store.add_entry("ok", NOW - timedelta(hours=2), user_id)
    lifecycle = make_lifecycle(store, user_id, notifier)
    draft = await lifecycle.generate()
    real_insert = store.insert_summary
    store.insert_summary = AsyncMock(side_effect=asyncio.TimeoutError())

    assert await lifecycle.commit(4) is None
    assert lifecycle.state is SummaryState.PREVIEWING
    assert lifecycle.draft == draft
    assert store.summaries == []
    assert notifier.severities == ["error"]

    store.insert_summary = real_insert
    saved = await lifecycle.commit(4)
    assert saved.rating == 4


@pytest.mark.asyncio
async def test_unexpected_read_error_returns_to_empty(store, notifier, user_id):
    store.add_entry("ok", NOW - timedelta(hours=2), user_id)
    real_list = store.list_entries_since
    store.list_entries_since = AsyncMock(side_effect=RuntimeError("pool closed"))
    lifecycle = make_lifecycle(store, user_id, notifier)

    assert await lifecycle.generate() is None
    assert lifecycle.state is SummaryState.EMPTY
    assert notifier.severities == ["error"]

    store.list_entries_since = real_list
    draft = await lifecycle.generate()
    assert lifecycle.state is SummaryState.PREVIEWING
    assert draft is not None


@pytest.mark.asyncio
async def test_streak_count_is_reported(store, notifier, user_id):
    store.add_entry("ok", NOW - timedelta(hours=2), user_id)
    reported = []
    lifecycle = SummaryLifecycle(
        store,
        user_id,
        notifier,
        summarize=AsyncMock(return_value="digest"),
        tz="UTC",
        clock=lambda: NOW,
        on_streak=reported.append,
    )
    await lifecycle.generate()
    await lifecycle.commit(5)
    await lifecycle.wait_for_background()
    assert reported == [1]
