"""Screening session orchestrator.

Wires the listening pipeline and the backend requests together for one
page/process lifetime. Confirming an answer commits it to the log
immediately and submits the log in a background ``asyncio.Task``, so a
slow backend never holds up listening or further confirmations.

Usage::

    from src.services.session import ScreeningSession

    session = ScreeningSession.from_settings()
    session.toggle_listening()
    ...
    session.confirm_answer()
    handle = await session.request_report()
    await session.aclose()
"""

import asyncio
import logging
from collections.abc import Callable

import httpx

from src.core.config import Settings, get_settings
from src.core.exceptions import (
    RecognitionError,
    ReportError,
    SubmissionError,
    VoiceIntakeError,
)
from src.core.models import ListeningState, ReportHandle
from src.services.conversation import BackendClient, ReportRequester, SessionLog, SubmissionClient
from src.services.listening import MicController, UtteranceBuffer
from src.services.recognition import RecognitionPort, create_audio_source, create_recognition

logger = logging.getLogger(__name__)

GREETING = "Hello! Tell me about yourself and if you have any TB symptoms."


class ScreeningSession:
    """One user's screening conversation.

    Args:
        recognition: Speech engine, owned by the session's MicController.
        backend: HTTP client shared by submissions and report requests.
        language: Locale tag for the engine.
        on_response: Called with each successful conversation reply.
        on_error: Called with every surfaced error (recognition,
            submission or report).
    """

    def __init__(
        self,
        recognition: RecognitionPort,
        backend: BackendClient,
        language: str = "en-US",
        conversation_path: str = "/send-data",
        report_path: str = "/report",
        report_timeout: float | None = None,
        on_response: Callable[[str], None] | None = None,
        on_error: Callable[[VoiceIntakeError], None] | None = None,
    ) -> None:
        self.utterance = UtteranceBuffer()
        self.log = SessionLog()
        self.mic = MicController(
            recognition, self.utterance, language=language, on_error=self._record_error
        )
        self.submissions = SubmissionClient(backend, path=conversation_path)
        self.reports = ReportRequester(backend, path=report_path, timeout=report_timeout)
        self._backend = backend
        self._on_response = on_response
        self._on_error = on_error
        self._pending: set[asyncio.Task] = set()
        self.last_error: VoiceIntakeError | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        recognition: RecognitionPort | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        **kwargs,
    ) -> "ScreeningSession":
        """Build a session from configuration.

        Args:
            settings: Defaults to ``get_settings()``.
            recognition: Engine to use instead of the configured provider.
            transport: Optional httpx transport for the backend client.
            **kwargs: Forwarded to the constructor (callbacks).
        """
        settings = settings or get_settings()
        if recognition is None:
            recognition = _engine_from_settings(settings)
        backend = BackendClient(
            base_url=settings.backend_url,
            timeout=settings.request_timeout,
            transport=transport,
        )
        return cls(
            recognition=recognition,
            backend=backend,
            language=settings.recognition_language,
            conversation_path=settings.conversation_path,
            report_path=settings.report_path,
            report_timeout=settings.report_timeout,
            **kwargs,
        )

    # -- state --

    @property
    def state(self) -> ListeningState:
        return self.mic.state

    @property
    def response(self) -> str:
        return self.submissions.response

    @property
    def display_response(self) -> str:
        """The latest reply, or the opening greeting before the first one."""
        return self.response or GREETING

    @property
    def can_confirm(self) -> bool:
        """Answers are offered once the mic is off and the engine has finished."""
        return (
            not self.mic.is_listening
            and not self.mic.span_open
            and self.utterance.has_result
        )

    @property
    def can_request_report(self) -> bool:
        return self.can_confirm

    @property
    def pending_submissions(self) -> int:
        return len(self._pending)

    # -- actions --

    def toggle_listening(self) -> ListeningState:
        """Start or stop listening.

        Raises:
            RecognitionError: If the engine refuses to start.
        """
        try:
            return self.mic.toggle_listening()
        except RecognitionError as exc:
            self._record_error(exc)
            raise

    def confirm_answer(self) -> tuple[str, ...]:
        """Commit the current utterance and submit the whole log in the background.

        Must be called from inside a running event loop. If the engine's span
        is still open, its remaining results are dropped so confirmed text
        never returns to the utterance.

        Returns:
            The committed log, including the confirmed answer.
        """
        log = self.log.confirm(self.utterance)
        self.mic.discard_open_span()
        task = asyncio.get_running_loop().create_task(self._submit(log))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return log

    async def request_report(self) -> ReportHandle:
        """Ask the backend for the screening report.

        Raises:
            ReportError: Also recorded as ``last_error``.
        """
        try:
            return await self.reports.request_report()
        except ReportError as exc:
            self._record_error(exc)
            raise

    async def drain(self) -> None:
        """Wait until every in-flight submission has completed or failed."""
        while self._pending:
            await asyncio.gather(*list(self._pending))

    async def aclose(self) -> None:
        """Stop listening, let submissions finish, and close the HTTP client."""
        self.mic.stop_listening()
        await self.drain()
        await self._backend.aclose()
        logger.info("Screening session closed with %d answer(s)", len(self.log))

    # -- internals --

    async def _submit(self, log: tuple[str, ...]) -> None:
        try:
            response = await self.submissions.submit(log)
        except SubmissionError as exc:
            logger.error("Error sending data (%s): %s", exc.category, exc.detail)
            self._record_error(exc)
            return

        if self._on_response is not None:
            try:
                self._on_response(response)
            except Exception:
                logger.exception("Response callback failed")

    def _record_error(self, exc: VoiceIntakeError) -> None:
        self.last_error = exc
        if self._on_error is None:
            return
        try:
            self._on_error(exc)
        except Exception:
            logger.exception("Error callback failed")


def _engine_from_settings(settings: Settings) -> RecognitionPort:
    """Create the configured recognition engine (and its audio source)."""
    if settings.recognition_provider == "whisper":
        source = create_audio_source(
            settings.audio_source,
            device=settings.audio_device,
            path=settings.audio_file,
        )
        return create_recognition("whisper", source=source, settings=settings)
    return create_recognition(settings.recognition_provider)
