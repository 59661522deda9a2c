"""Triggers server-side report generation."""

import logging

from src.core.exceptions import ReportError
from src.core.models import ReportHandle
from src.services.conversation.backend_client import BackendClient

logger = logging.getLogger(__name__)


class ReportRequester:
    """Asks the backend to build the screening report.

    The request has no body and does not depend on the session log; what an
    empty conversation produces is up to the backend.
    """

    def __init__(
        self,
        backend: BackendClient,
        path: str = "/report",
        timeout: float | None = None,
    ) -> None:
        self._backend = backend
        self._path = path
        self._timeout = timeout
        self.last_report: ReportHandle | None = None

    async def request_report(self) -> ReportHandle:
        """POST to the report endpoint and return the artifact identifier.

        Raises:
            ReportError: On transport failure or non-success status.
        """
        kwargs = {"timeout": self._timeout} if self._timeout is not None else {}
        resp = await self._backend.request("post", self._path, error_cls=ReportError, **kwargs)

        handle = ReportHandle(filename=resp.text)
        self.last_report = handle
        logger.info("Report generated: %s", handle.filename)
        return handle
