"""HTTP and WebSocket handlers."""

from __future__ import annotations

import asyncio
import json

import aiohttp
from aiohttp import web

from mindstream.db.connection import get_pool
from mindstream.db.gateway import Gateway
from mindstream.utils.logging import get_logger
from mindstream.web.connection import PageConnection

log = get_logger(__name__)


async def health_check(request: web.Request) -> web.Response:
    return web.Response(text="ok")


async def handle_page_socket(request: web.Request) -> web.WebSocketResponse:
    """WS /ws — one connected page.

    Inbound messages are dispatched to the page's PageConnection; everything
    it queues in its outbox is written back to the socket.
    """
    ws = web.WebSocketResponse(heartbeat=30)
    await ws.prepare(request)

    pool = await get_pool()
    page = PageConnection(Gateway(pool))
    writer = asyncio.create_task(_write_outbox(ws, page.outbox))
    log.info("page_connected", remote=request.remote)

    try:
        async for msg in ws:
            if msg.type == aiohttp.WSMsgType.TEXT:
                try:
                    message = json.loads(msg.data)
                except json.JSONDecodeError:
                    log.warning("page_message_invalid_json")
                    page.notifier.notify("Malformed message", "error")
                    continue
                if not isinstance(message, dict):
                    page.notifier.notify("Malformed message", "error")
                    continue
                await page.handle(message)
            elif msg.type == aiohttp.WSMsgType.ERROR:
                log.warning("page_socket_error", error=str(ws.exception()))
                break
    except Exception:
        log.exception("page_socket_failed")
    finally:
        await page.close()
        writer.cancel()
        try:
            await writer
        except asyncio.CancelledError:
            pass
        log.info("page_disconnected", user_id=str(page.user_id))

    return ws


async def _write_outbox(ws: web.WebSocketResponse, outbox: asyncio.Queue) -> None:
    while True:
        payload = await outbox.get()
        if ws.closed:
            continue
        try:
            await ws.send_json(payload)
        except Exception:
            # The read loop notices the dead socket and closes the page.
            log.exception("page_send_failed", type=payload.get("type"))
            return
