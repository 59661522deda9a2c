"""Append-only log of the answers the user confirmed during this session."""

import logging
from collections.abc import Iterator

from src.services.listening.utterance import UtteranceBuffer

logger = logging.getLogger(__name__)


class SessionLog:
    """Ordered, append-only sequence of confirmed utterances.

    The committed log is an immutable tuple that is replaced on every
    append, so a snapshot handed to a submission can never change under it.
    """

    def __init__(self) -> None:
        self._entries: tuple[str, ...] = ()

    @property
    def entries(self) -> tuple[str, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def append(self, entry: str) -> tuple[str, ...]:
        """Append to the latest committed log and return the new log."""
        self._entries = (*self._entries, entry)
        return self._entries

    def confirm(self, utterance: UtteranceBuffer) -> tuple[str, ...]:
        """Move the buffer's current utterance into the log.

        Returns:
            The committed log including the confirmed utterance.
        """
        log = self.append(utterance.take())
        logger.info("Confirmed answer #%d: %r", len(log), log[-1])
        return log
