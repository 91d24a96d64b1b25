"""Tests for the entry feed — optimistic delete with compensating re-fetch."""

from datetime import datetime, timedelta, timezone

import pytest

from mindstream.entries import EntryFeed

NOW = datetime(2026, 10, 19, 20, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_refresh_lists_newest_first(store, notifier, user_id):
    older = store.add_entry("morning", NOW - timedelta(hours=5), user_id)
    newer = store.add_entry("evening", NOW, user_id)
    feed = EntryFeed(store, user_id, notifier)
    entries = await feed.refresh()
    assert [e.id for e in entries] == [newer.id, older.id]


@pytest.mark.asyncio
async def test_remove_deletes_in_store(store, notifier, user_id):
    entry = store.add_entry("bye", NOW, user_id)
    feed = EntryFeed(store, user_id, notifier)
    await feed.refresh()
    assert await feed.remove(entry.id) is True
    assert feed.entries == []
    assert store.entries == []


@pytest.mark.asyncio
async def test_failed_remove_restores_from_store(store, notifier, user_id):
    entry = store.add_entry("stay", NOW, user_id)
    feed = EntryFeed(store, user_id, notifier)
    await feed.refresh()
    store.fail_deletes = True

    assert await feed.remove(entry.id) is False
    assert [e.id for e in feed.entries] == [entry.id]
    assert notifier.severities == ["error"]


@pytest.mark.asyncio
async def test_remove_is_idempotent(store, notifier, user_id):
    entry = store.add_entry("once", NOW, user_id)
    feed = EntryFeed(store, user_id, notifier)
    await feed.refresh()
    assert await feed.remove(entry.id) is True
    assert await feed.remove(entry.id) is True
    assert notifier.messages == []


@pytest.mark.asyncio
async def test_refresh_failure_keeps_current_list(store, notifier, user_id):
    store.add_entry("cached", NOW, user_id)
    feed = EntryFeed(store, user_id, notifier)
    await feed.refresh()
    store.fail_reads = True
    entries = await feed.refresh()
    assert len(entries) == 1
    assert notifier.severities == ["error"]


def test_add_prepends_and_caps(store, notifier, user_id):
    feed = EntryFeed(store, user_id, notifier, limit=2)
    first = store.add_entry("1", NOW, user_id)
    second = store.add_entry("2", NOW, user_id)
    third = store.add_entry("3", NOW, user_id)
    for entry in (first, second, third):
        feed.add(entry)
    assert [e.content for e in feed.entries] == ["3", "2"]
