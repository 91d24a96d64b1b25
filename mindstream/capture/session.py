"""Hold-to-record capture session on top of an unreliable platform recognizer.

The recognizer stops itself after a short silence even while the user is
still holding the record control. The session keeps the user's intent
(``intent``) separate from the recognizer's running state and reconciles
the two only when the recognizer reports that it ended: if the user is
still holding, the recognizer is restarted and the session stays in
``RECORDING``; otherwise the session goes ``IDLE``.
"""

from __future__ import annotations

import asyncio
import enum
import time
from typing import Callable

from mindstream.capture.merger import TranscriptMerger
from mindstream.capture.recognizer import Recognizer
from mindstream.config import settings
from mindstream.models import TranscriptFragment
from mindstream.notify import LogNotifier, Notifier
from mindstream.utils.logging import get_logger

log = get_logger(__name__)

UNSUPPORTED_MESSAGE = "Voice capture is not supported in this browser"
NO_SPEECH_MESSAGE = "No speech captured"


class CaptureState(str, enum.Enum):
    IDLE = "idle"
    RECORDING = "recording"


class SpeechCaptureSession:
    def __init__(
        self,
        recognizer: Recognizer | None,
        notifier: Notifier | None = None,
        restart_delay: float | None = None,
        min_restart_interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.recognizer = recognizer
        self._notifier = notifier or LogNotifier()
        self._restart_delay = (
            settings.capture_restart_delay_ms / 1000
            if restart_delay is None
            else restart_delay
        )
        self._min_restart_interval = (
            settings.capture_min_restart_interval_s
            if min_restart_interval is None
            else min_restart_interval
        )
        self._clock = clock
        self._merger = TranscriptMerger()
        self._restart_task: asyncio.Task | None = None
        self._last_start: float | None = None
        self.state = CaptureState.IDLE
        self.intent = False
        self.restarts = 0

    @property
    def supported(self) -> bool:
        return self.recognizer is not None

    @property
    def final_text(self) -> str:
        return self._merger.final_text

    @property
    def interim_text(self) -> str:
        return self._merger.interim_text

    async def start(self) -> bool:
        """Begin a hold-to-record cycle. Returns False if nothing started."""
        if self.state is CaptureState.RECORDING:
            log.info("capture_start_ignored", reason="already_recording")
            return False
        if self.recognizer is None:
            self._notifier.notify(UNSUPPORTED_MESSAGE, "error")
            return False

        self.intent = True
        self._merger.reset()
        self._last_start = self._clock()
        try:
            await self.recognizer.start()
        except Exception as exc:
            # Permission denied and similar capability failures.
            log.warning("capture_start_failed", error=str(exc))
            self.intent = False
            self._notifier.notify(f"Could not start voice capture: {exc}", "error")
            return False
        self.state = CaptureState.RECORDING
        self.restarts = 0
        log.info("capture_started")
        return True

    async def stop(self) -> str:
        """End the cycle and return everything heard. No-op when idle."""
        if self.state is CaptureState.IDLE:
            return ""
        self.intent = False
        self._cancel_restart()
        self.state = CaptureState.IDLE
        text = self._merger.combined()
        self._merger.reset()
        try:
            await self.recognizer.stop()
        except Exception as exc:
            log.warning("capture_stop_failed", error=str(exc))

        log.info("capture_stopped", text_len=len(text), restarts=self.restarts)
        if not text:
            self._notifier.notify(NO_SPEECH_MESSAGE, "info")
        return text

    def on_fragment(self, fragment: TranscriptFragment) -> None:
        if self.state is not CaptureState.RECORDING:
            log.debug("capture_fragment_dropped", is_final=fragment.is_final)
            return
        self._merger.add(fragment.text, fragment.is_final)

    def on_end(self) -> None:
        """The recognizer stopped on its own (usually after a pause)."""
        if self.state is not CaptureState.RECORDING:
            return
        if not self.intent:
            self.state = CaptureState.IDLE
            return
        if self._restart_task is not None and not self._restart_task.done():
            return
        delay = self.next_restart_delay()
        log.debug("capture_restart_scheduled", delay=delay)
        self._restart_task = asyncio.create_task(self._restart_after(delay))

    def on_error(self, error: str) -> None:
        """Recognizer failure: fail safe to idle, never retried."""
        log.warning("capture_recognizer_error", error=error, state=self.state.value)
        self.intent = False
        self._cancel_restart()
        self.state = CaptureState.IDLE
        self._merger.reset()
        self._notifier.notify(f"Voice capture error: {error}", "error")

    def next_restart_delay(self) -> float:
        """Delay before the next restart, never sooner than the debounce window."""
        if self._last_start is None:
            return self._restart_delay
        elapsed = self._clock() - self._last_start
        return max(self._restart_delay, self._min_restart_interval - elapsed)

    async def close(self) -> None:
        self.intent = False
        self._cancel_restart()
        self.state = CaptureState.IDLE
        self._merger.reset()

    async def _restart_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        if not self.intent or self.state is not CaptureState.RECORDING:
            return
        self._restart_task = None
        self._last_start = self._clock()
        self.restarts += 1
        try:
            await self.recognizer.start()
        except Exception as exc:
            self.on_error(str(exc))
            return
        log.debug("capture_restarted", restarts=self.restarts)

    def _cancel_restart(self) -> None:
        if self._restart_task is not None and not self._restart_task.done():
            self._restart_task.cancel()
        self._restart_task = None
