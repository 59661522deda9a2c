"""
VoiceIntake exception hierarchy.

All application-specific exceptions inherit from VoiceIntakeError. Each
error is terminal for the operation that raised it only: nothing in the
listening loop or the session log is rolled back or retried.
"""

from datetime import UTC, datetime


class VoiceIntakeError(Exception):
    """Base exception for all VoiceIntake errors."""

    def __init__(
        self,
        detail: str = "An unexpected error occurred",
        code: str = "VOICE_INTAKE_ERROR",
    ) -> None:
        self.detail = detail
        self.code = code
        self.timestamp = datetime.now(UTC).isoformat()
        super().__init__(detail)


class RecognitionError(VoiceIntakeError):
    """Raised or reported when the speech engine fails or refuses to start."""

    def __init__(self, detail: str = "Speech recognition failed", error: str = "unknown") -> None:
        self.error = error
        super().__init__(detail=detail, code="RECOGNITION_ERROR")


class BackendRequestError(VoiceIntakeError):
    """A request to the screening backend failed.

    Categories: "connection", "timeout", "http", "network", "payload".
    """

    def __init__(
        self,
        detail: str,
        category: str = "unknown",
        code: str = "BACKEND_ERROR",
        status_code: int | None = None,
    ) -> None:
        self.category = category
        self.status_code = status_code
        super().__init__(detail=detail, code=code)


class SubmissionError(BackendRequestError):
    """Raised when posting the transcript log to the conversation endpoint fails."""

    def __init__(
        self,
        detail: str = "Submission failed",
        category: str = "unknown",
        status_code: int | None = None,
    ) -> None:
        super().__init__(
            detail=detail,
            category=category,
            code="SUBMISSION_ERROR",
            status_code=status_code,
        )


class ReportError(BackendRequestError):
    """Raised when the report endpoint fails."""

    def __init__(
        self,
        detail: str = "Report generation failed",
        category: str = "unknown",
        status_code: int | None = None,
    ) -> None:
        super().__init__(
            detail=detail,
            category=category,
            code="REPORT_ERROR",
            status_code=status_code,
        )
