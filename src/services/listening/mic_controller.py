"""Listening state machine driving the recognition engine.

States: idle <-> listening

Recognition engines stop by themselves after a pause in speech, even in
continuous mode. ``MicController`` keeps dictation going by restarting the
engine from ``on_end`` whenever the user still wants to listen. The restart
decision reads the live ``state`` attribute; the handlers are bound once at
construction and never replaced.
"""

import logging
from collections.abc import Callable

from src.core.exceptions import RecognitionError
from src.core.models import ListeningState, RecognitionErrorInfo, RecognitionSegment
from src.services.listening.utterance import UtteranceBuffer
from src.services.recognition.base import RecognitionHandlers, RecognitionPort

logger = logging.getLogger(__name__)


class MicController:
    """Owns the recognition engine and the user's desired listening state.

    Args:
        recognition: The session's only engine. Nothing else may call its
            ``start()`` / ``stop()``.
        utterance: Buffer receiving every result event.
        language: Locale tag configured on the engine.
        on_error: Optional callback receiving every ``RecognitionError``
            (engine-reported or restart failure).
    """

    def __init__(
        self,
        recognition: RecognitionPort,
        utterance: UtteranceBuffer,
        language: str = "en-US",
        on_error: Callable[[RecognitionError], None] | None = None,
    ) -> None:
        self._recognition = recognition
        self._utterance = utterance
        self._on_error = on_error
        self.state = ListeningState.idle
        self.restarts = 0
        self._span_open = False
        self._discard_span = False

        recognition.continuous = True
        recognition.interim_results = True
        recognition.lang = language
        recognition.bind(
            RecognitionHandlers(
                on_start=self._handle_start,
                on_result=self._handle_result,
                on_end=self._handle_end,
                on_error=self._handle_error,
            )
        )

    @property
    def is_listening(self) -> bool:
        return self.state is ListeningState.listening

    @property
    def span_open(self) -> bool:
        """True between the engine's ``on_start`` and ``on_end``.

        A stopped engine may still deliver results until its span ends.
        """
        return self._span_open

    def discard_open_span(self) -> None:
        """Ignore further results from the span that is currently open.

        Results carry the whole span, so once its text has been confirmed a
        later event from the same span would bring that text back.
        """
        if self._span_open:
            self._discard_span = True

    def toggle_listening(self) -> ListeningState:
        """Flip between idle and listening, starting or stopping the engine.

        Raises:
            RecognitionError: If the engine refuses to start; the state is
                left idle.
        """
        if self.is_listening:
            self.stop_listening()
        else:
            self.start_listening()
        return self.state

    def start_listening(self) -> None:
        if self.is_listening:
            return
        self.state = ListeningState.listening
        try:
            self._recognition.start()
        except RecognitionError:
            self.state = ListeningState.idle
            raise
        logger.info("Listening started (lang=%s)", self._recognition.lang)

    def stop_listening(self) -> None:
        if not self.is_listening:
            return
        # State flips first so the on_end that follows stop() is terminal.
        self.state = ListeningState.idle
        self._recognition.stop()
        logger.info("Listening stopped")

    # -- engine event handlers --

    def _handle_start(self) -> None:
        self._span_open = True
        self._discard_span = False
        logger.debug("Microphone on")

    def _handle_result(self, segments: list[RecognitionSegment]) -> None:
        if self._discard_span:
            logger.debug("Dropping result from an already confirmed span")
            return
        self._utterance.on_recognition_result(segments)

    def _handle_end(self) -> None:
        self._span_open = False
        self._discard_span = False
        if not self.is_listening:
            logger.debug("Recognition ended after explicit stop")
            return

        logger.debug("Recognition ended on its own; continuing to listen")
        try:
            self._recognition.start()
        except RecognitionError as exc:
            logger.error("Failed to resume listening: %s", exc.detail)
            self._report(exc)
            return
        self.restarts += 1

    def _handle_error(self, info: RecognitionErrorInfo) -> None:
        logger.warning("Recognition error: %s %s", info.error, info.message)
        self._report(
            RecognitionError(detail=info.message or f"Recognition error: {info.error}", error=info.error)
        )

    def _report(self, exc: RecognitionError) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(exc)
        except Exception:
            logger.exception("Recognition error callback failed")
