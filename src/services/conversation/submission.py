"""Posts the transcript history to the conversation endpoint."""

import logging
from collections.abc import Sequence

from src.core.exceptions import SubmissionError
from src.core.models import ConversationReply, ConversationRequest
from src.services.conversation.backend_client import BackendClient

logger = logging.getLogger(__name__)


class SubmissionClient:
    """Sends the full session log and keeps the latest backend reply.

    The backend is stateless from this client's point of view, so every
    submission carries the entire history, never a delta.

    Args:
        backend: Shared HTTP client.
        path: Conversation endpoint path.
    """

    def __init__(self, backend: BackendClient, path: str = "/send-data") -> None:
        self._backend = backend
        self._path = path
        self.response = ""

    async def submit(self, log: Sequence[str]) -> str:
        """POST ``{"data": log}`` and store the reply as the current response.

        Raises:
            SubmissionError: On transport failure, non-success status or a
                reply without a ``response`` string. ``response`` keeps its
                previous value; nothing is retried.
        """
        payload = ConversationRequest(data=list(log))
        logger.info("Submitting %d answer(s) to %s", len(payload.data), self._path)

        resp = await self._backend.request(
            "post", self._path, error_cls=SubmissionError, json=payload.model_dump()
        )
        try:
            reply = ConversationReply.model_validate(resp.json())
        except ValueError as exc:
            raise SubmissionError(
                f"Malformed conversation reply: {exc}", category="payload"
            ) from None

        self.response = reply.response
        logger.info("Response received: %r", reply.response)
        return reply.response
