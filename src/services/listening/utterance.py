"""Current-utterance buffer fed by recognition result events."""

import logging
from collections.abc import Sequence

from src.core.models import RecognitionSegment

logger = logging.getLogger(__name__)


class UtteranceBuffer:
    """Holds the unconfirmed, possibly partial text of the current utterance.

    Every recognition event carries the engine's full result set for the
    active span, so the buffer is overwritten on each event rather than
    appended to.
    """

    def __init__(self) -> None:
        self._current = ""
        self._has_result = False

    @property
    def current(self) -> str:
        return self._current

    @property
    def has_result(self) -> bool:
        """True once any result arrived since the buffer was last cleared."""
        return self._has_result

    def on_recognition_result(self, segments: Sequence[RecognitionSegment]) -> str:
        """Replace the current utterance with the in-order join of ``segments``.

        Interim and final segments are treated alike; no separator is added
        and nothing is trimmed.
        """
        self._current = "".join(segment.text for segment in segments)
        self._has_result = True
        logger.debug("Utterance updated: %r", self._current)
        return self._current

    def take(self) -> str:
        """Return the current utterance and clear the buffer."""
        value = self._current
        self.clear()
        return value

    def clear(self) -> None:
        self._current = ""
        self._has_result = False
