"""Scripted recognition engine for tests and dry runs.

Replays event sequences on demand instead of listening to audio. Calls to
``start()`` and ``stop()`` are counted so callers can assert how the
engine was driven.

Script steps are tuples::

    ("start",)
    ("result", ["I have", " a cough"])
    ("error", "no-speech")
    ("end",)
"""

import logging
from collections.abc import Iterable, Sequence

from src.core.exceptions import RecognitionError
from src.core.models import RecognitionSegment
from src.services.recognition.base import RecognitionPort

logger = logging.getLogger(__name__)


class ScriptedRecognition(RecognitionPort):
    """In-memory engine double.

    Args:
        emit_start_on_start: Fire ``on_start`` synchronously from ``start()``.
        emit_end_on_stop: Fire ``on_end`` synchronously from ``stop()`` when
            a span is active, as a real engine does after an explicit stop.
    """

    def __init__(
        self,
        emit_start_on_start: bool = True,
        emit_end_on_stop: bool = True,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._emit_start_on_start = emit_start_on_start
        self._emit_end_on_stop = emit_end_on_stop
        self.running = False
        self.start_calls = 0
        self.stop_calls = 0
        self.fail_next_start: str | None = None

    def start(self) -> None:
        self.start_calls += 1
        if self.fail_next_start is not None:
            error, self.fail_next_start = self.fail_next_start, None
            raise RecognitionError(detail=f"Engine refused to start: {error}", error=error)
        if self.running:
            raise RecognitionError(detail="Recognition has already started", error="invalid-state")
        self.running = True
        if self._emit_start_on_start:
            self._emit_start()

    def stop(self) -> None:
        self.stop_calls += 1
        if self.running and self._emit_end_on_stop:
            self.emit_end()

    # -- scripted events --

    def emit_start(self) -> None:
        self.running = True
        self._emit_start()

    def emit_result(self, segments: Sequence[str | RecognitionSegment]) -> None:
        self._emit_result(
            [s if isinstance(s, RecognitionSegment) else RecognitionSegment(text=s) for s in segments]
        )

    def emit_error(self, error: str, message: str = "") -> None:
        self._emit_error(error, message)

    def emit_end(self) -> None:
        """End the span on the engine's own initiative (e.g. after silence)."""
        self.running = False
        self._emit_end()

    def play(self, script: Iterable[tuple]) -> None:
        """Replay a sequence of script steps in order."""
        for step in script:
            kind, *args = step
            logger.debug("Scripted recognition event: %s %s", kind, args)
            if kind == "start":
                self.emit_start()
            elif kind == "result":
                self.emit_result(*args)
            elif kind == "error":
                self.emit_error(*args)
            elif kind == "end":
                self.emit_end()
            else:
                raise ValueError(f"Unknown script step: {kind}")
