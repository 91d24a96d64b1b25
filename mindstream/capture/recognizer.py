"""Platform recognizer adapters.

The speech recognizer runs in the page. The server drives it by queueing
``recognizer`` commands; the page reports fragments, end-of-session and
errors back as ``speech_*`` messages, which the page connection feeds into
the capture session.
"""

from __future__ import annotations

import asyncio
from typing import Any, Protocol

from mindstream.errors import RecognizerError
from mindstream.utils.logging import get_logger

log = get_logger(__name__)


class Recognizer(Protocol):
    async def start(self) -> None:
        """Ask the platform recognizer to begin listening."""

    async def stop(self) -> None:
        """Ask the platform recognizer to stop. Completion is reported later."""


class PageRecognizer:
    """Drives the page's recognizer through the connection's outbox."""

    def __init__(self, outbox: asyncio.Queue[dict[str, Any]]) -> None:
        self._outbox = outbox
        self.closed = False

    async def start(self) -> None:
        self._send("start")

    async def stop(self) -> None:
        self._send("stop")

    def close(self) -> None:
        self.closed = True

    def _send(self, command: str) -> None:
        if self.closed:
            raise RecognizerError(f"page disconnected, cannot {command} recognizer")
        log.debug("recognizer_command", command=command)
        self._outbox.put_nowait({"type": "recognizer", "command": command})
