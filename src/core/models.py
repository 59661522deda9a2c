"""
Pydantic v2 models shared by the listening pipeline and the backend client.
"""

from enum import StrEnum

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Listening
# ---------------------------------------------------------------------------


class ListeningState(StrEnum):
    """Desired microphone state, as last requested by the user."""

    idle = "idle"
    listening = "listening"


# ---------------------------------------------------------------------------
# Recognition events
# ---------------------------------------------------------------------------


class RecognitionSegment(BaseModel):
    """One recognized fragment of the current listening span."""

    text: str
    is_final: bool = False
    confidence: float = 0.0


class RecognitionErrorInfo(BaseModel):
    """Payload of an engine ``on_error`` event.

    ``error`` is an engine error code such as "no-speech", "audio-capture",
    "transcription" or "aborted".
    """

    error: str
    message: str = ""


# ---------------------------------------------------------------------------
# Backend wire format
# ---------------------------------------------------------------------------


class ConversationRequest(BaseModel):
    """POST /send-data request body: the full ordered transcript history."""

    data: list[str] = Field(default_factory=list)


class ConversationReply(BaseModel):
    """POST /send-data success body."""

    response: str


class ReportHandle(BaseModel):
    """Artifact identifier returned as plain text by POST /report."""

    filename: str
