"""Tests for the page socket's outbox writer."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from mindstream.web.routes import _write_outbox


def make_ws(send_json):
    ws = MagicMock()
    ws.closed = False
    ws.send_json = send_json
    return ws


@pytest.mark.asyncio
async def test_writer_forwards_queued_messages():
    ws = make_ws(AsyncMock())
    outbox = asyncio.Queue()
    outbox.put_nowait({"type": "draft", "text": "hi"})
    writer = asyncio.create_task(_write_outbox(ws, outbox))
    await asyncio.sleep(0.01)
    writer.cancel()
    with pytest.raises(asyncio.CancelledError):
        await writer
    ws.send_json.assert_awaited_once_with({"type": "draft", "text": "hi"})


@pytest.mark.asyncio
async def test_send_failure_stops_writer_quietly():
    ws = make_ws(AsyncMock(side_effect=ConnectionResetError("peer gone")))
    outbox = asyncio.Queue()
    outbox.put_nowait({"type": "notify", "message": "x", "severity": "info"})
    outbox.put_nowait({"type": "draft", "text": ""})

    assert await asyncio.wait_for(_write_outbox(ws, outbox), timeout=1) is None
    assert ws.send_json.await_count == 1
