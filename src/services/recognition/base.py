"""
Abstract base class for speech recognition engines.

Mirrors the contract of a browser-style recognizer: configure
``continuous`` / ``interim_results`` / ``lang``, call ``start()`` and
``stop()``, and receive ``on_start``, ``on_result``, ``on_end`` and
``on_error`` events. Every event for a given engine is delivered on the
event loop thread, in temporal order.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from src.core.exceptions import RecognitionError
from src.core.models import RecognitionErrorInfo, RecognitionSegment


@dataclass(frozen=True)
class RecognitionHandlers:
    """The four event channels of a recognition engine."""

    on_start: Callable[[], None] | None = None
    on_result: Callable[[list[RecognitionSegment]], None] | None = None
    on_end: Callable[[], None] | None = None
    on_error: Callable[[RecognitionErrorInfo], None] | None = None


class RecognitionPort(ABC):
    """Interface that every speech engine adapter must implement.

    Each ``on_result`` event carries the engine's current best guess for the
    whole active span (every segment so far, interim ones included), not a
    delta. An engine may end a span on its own, e.g. after a pause in speech,
    even in continuous mode; it then fires ``on_end``.

    Handlers are bound once with :meth:`bind` and never reassigned.
    """

    def __init__(
        self,
        continuous: bool = False,
        interim_results: bool = False,
        lang: str = "en-US",
    ) -> None:
        self.continuous = continuous
        self.interim_results = interim_results
        self.lang = lang
        self._handlers: RecognitionHandlers | None = None

    def bind(self, handlers: RecognitionHandlers) -> None:
        """Register the event handlers.

        Raises:
            RecognitionError: If handlers were already bound.
        """
        if self._handlers is not None:
            raise RecognitionError(
                detail="Recognition handlers are already bound", error="invalid-state"
            )
        self._handlers = handlers

    @abstractmethod
    def start(self) -> None:
        """Begin a listening span.

        Raises:
            RecognitionError: If a span is already active or the engine
                cannot start.
        """

    @abstractmethod
    def stop(self) -> None:
        """Ask the engine to end the active span; ``on_end`` follows."""

    # -- event emission (for subclasses) --

    def _emit_start(self) -> None:
        if self._handlers and self._handlers.on_start:
            self._handlers.on_start()

    def _emit_result(self, segments: Sequence[RecognitionSegment]) -> None:
        if self._handlers and self._handlers.on_result:
            self._handlers.on_result(list(segments))

    def _emit_end(self) -> None:
        if self._handlers and self._handlers.on_end:
            self._handlers.on_end()

    def _emit_error(self, error: str, message: str = "") -> None:
        if self._handlers and self._handlers.on_error:
            self._handlers.on_error(RecognitionErrorInfo(error=error, message=message))
