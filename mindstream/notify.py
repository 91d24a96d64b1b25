"""Notification sinks — transient status and error messages for the user."""

from __future__ import annotations

import asyncio
from typing import Any, Literal, Protocol

from mindstream.utils.logging import get_logger

log = get_logger(__name__)

Severity = Literal["info", "success", "error"]


class Notifier(Protocol):
    def notify(self, message: str, severity: Severity = "info") -> None:
        """Surface a message to the user. Fire-and-forget."""


class LogNotifier:
    """Writes notifications to the structured log only."""

    def notify(self, message: str, severity: Severity = "info") -> None:
        if severity == "error":
            log.warning("user_notified", message=message, severity=severity)
        else:
            log.info("user_notified", message=message, severity=severity)


class OutboxNotifier:
    """Queues notifications as outbound page messages."""

    def __init__(self, outbox: asyncio.Queue[dict[str, Any]]) -> None:
        self._outbox = outbox

    def notify(self, message: str, severity: Severity = "info") -> None:
        log.debug("user_notified", message=message, severity=severity)
        self._outbox.put_nowait(
            {"type": "notify", "message": message, "severity": severity}
        )
