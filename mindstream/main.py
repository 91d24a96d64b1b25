"""Entry point — starts the aiohttp journal server."""

from __future__ import annotations

from aiohttp import web

from mindstream.config import settings
from mindstream.db.connection import close_pool, get_pool
from mindstream.utils.logging import get_logger, setup_logging
from mindstream.web.routes import handle_page_socket, health_check


async def on_startup(app: web.Application) -> None:
    log = get_logger(__name__)
    await get_pool()
    log.info("mindstream_started", port=settings.gateway_port)


async def on_shutdown(app: web.Application) -> None:
    log = get_logger(__name__)
    await close_pool()
    log.info("mindstream_stopped")


def create_app() -> web.Application:
    setup_logging()
    app = web.Application()

    # Lifecycle
    app.on_startup.append(on_startup)
    app.on_shutdown.append(on_shutdown)

    # Routes
    app.router.add_get("/health", health_check)
    app.router.add_get("/ws", handle_page_socket)

    return app


def main() -> None:
    app = create_app()
    web.run_app(app, host=settings.gateway_host, port=settings.gateway_port)


if __name__ == "__main__":
    main()
