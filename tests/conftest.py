"""Shared pytest fixtures for the VoiceIntake test suite.

Provides a scripted recognition engine, an in-memory screening backend
served through ``httpx.MockTransport``, and PCM audio samples.
"""

import json
import math
import struct

import httpx
import pytest

from src.core.config import Settings
from src.services.conversation import BackendClient
from src.services.recognition.scripted import ScriptedRecognition

# ---------------------------------------------------------------------------
# Recognition Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine():
    """A scripted engine that emits on_start / on_end like a real one."""
    return ScriptedRecognition()


# ---------------------------------------------------------------------------
# Backend Fixtures
# ---------------------------------------------------------------------------


class FakeBackend:
    """Stand-in for the screening backend behind ``httpx.MockTransport``.

    Replies are served from per-path queues; a queued ``Exception`` is
    raised instead of answering. With an empty queue the conversation
    endpoint answers ``{"response": "Noted."}`` and the report endpoint
    answers ``report.pdf``.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._queued: dict[str, list] = {}

    def queue(self, path: str, reply) -> None:
        self._queued.setdefault(path, []).append(reply)

    def bodies(self, path: str = "/send-data") -> list:
        return [json.loads(r.content) for r in self.requests if r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        pending = self._queued.get(request.url.path)
        if pending:
            reply = pending.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return reply
        if request.url.path == "/send-data":
            return httpx.Response(200, json={"response": "Noted."})
        if request.url.path == "/report":
            return httpx.Response(200, text="report.pdf")
        return httpx.Response(404, text="Not Found")


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
async def backend(fake_backend):
    """BackendClient wired to the fake backend."""
    client = BackendClient(
        base_url="http://backend.test",
        transport=httpx.MockTransport(fake_backend),
    )
    yield client
    await client.aclose()


@pytest.fixture
def settings():
    """Settings isolated from the developer's environment and .env file."""
    return Settings(
        _env_file=None,
        backend_url="http://backend.test",
        recognition_provider="scripted",
    )


# ---------------------------------------------------------------------------
# Audio Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_pcm_bytes():
    """Generate 1 second of 440Hz sine-wave PCM audio (16kHz, 16-bit, mono)."""
    sample_rate = 16000
    amplitude = 16000  # ~50% of max int16
    samples = [
        struct.pack("<h", int(amplitude * math.sin(2 * math.pi * 440.0 * i / sample_rate)))
        for i in range(sample_rate)
    ]
    return b"".join(samples)


@pytest.fixture
def silent_pcm_bytes():
    """Generate 1 second of silence as PCM audio (16kHz, 16-bit, mono)."""
    return b"\x00\x00" * 16000
