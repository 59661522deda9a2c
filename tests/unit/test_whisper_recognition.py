"""Tests for WhisperRecognition (mocked WhisperModel, in-memory audio source).

Validates the browser-style span contract: one start event, cumulative
result events, an automatic end after silence, a no-speech error when
nothing was said, and error reporting when transcription fails.
"""

import asyncio
from dataclasses import replace
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

import src.services.recognition.whisper as whisper_module
from src.core.exceptions import RecognitionError
from src.services.audio.sources import AudioSource
from src.services.recognition.base import RecognitionHandlers
from src.services.recognition.whisper import WhisperRecognition

BLOCK_BYTES = 3200  # 0.1 s of 16 kHz 16-bit mono


def _make_segment(text="Hello world", avg_logprob=-0.3):
    """Create a mock faster-whisper segment object."""
    return SimpleNamespace(text=text, start=0.0, end=1.0, avg_logprob=avg_logprob)


def _blocks(pcm: bytes) -> list[bytes]:
    return [pcm[i : i + BLOCK_BYTES] for i in range(0, len(pcm), BLOCK_BYTES)]


class ListSource(AudioSource):
    """Yields a fixed list of PCM blocks, counting opens and closes."""

    def __init__(self, blocks: list[bytes]) -> None:
        self.blocks = blocks
        self.opened = 0
        self.closed = 0

    async def chunks(self):
        self.opened += 1
        try:
            for block in self.blocks:
                yield block
                await asyncio.sleep(0)
        finally:
            self.closed += 1


class EventLog:
    """Records every engine event in order."""

    def __init__(self) -> None:
        self.events: list[tuple] = []

    def handlers(self) -> RecognitionHandlers:
        return RecognitionHandlers(
            on_start=lambda: self.events.append(("start",)),
            on_result=lambda segments: self.events.append(("result", segments)),
            on_end=lambda: self.events.append(("end",)),
            on_error=lambda info: self.events.append(("error", info.error)),
        )

    def kinds(self) -> list[str]:
        return [event[0] for event in self.events]

    def results(self) -> list:
        return [event[1] for event in self.events if event[0] == "result"]


@pytest.fixture(autouse=True)
def _clear_model_cache():
    """Ensure module-level model cache is cleared before each test."""
    original = whisper_module._model_cache
    whisper_module._model_cache = None
    yield
    whisper_module._model_cache = original


@pytest.fixture
def mock_whisper_model():
    """A WhisperModel double returning one 'Hello world' segment per call."""
    model = MagicMock()
    model.transcribe.side_effect = lambda *args, **kwargs: (
        iter([_make_segment()]),
        SimpleNamespace(language="en", language_probability=0.95, duration=1.0),
    )
    return model


@pytest.fixture
def make_engine(mock_whisper_model, settings):
    def _make(blocks, **kwargs):
        source = ListSource(blocks)
        engine = WhisperRecognition(
            source,
            chunk_duration=1.0,
            end_silence_seconds=0.5,
            silence_threshold=0.01,
            interim_interval=0.5,
            settings=settings,
            **kwargs,
        )
        engine._get_model = MagicMock(return_value=mock_whisper_model)
        events = EventLog()
        engine.bind(events.handlers())
        return engine, source, events

    return _make


async def _run_span(engine):
    engine.start()
    await engine.wait_closed()


class TestSpan:
    async def test_results_accumulate_and_span_ends_on_silence(
        self, make_engine, sample_pcm_bytes, silent_pcm_bytes
    ):
        engine, source, events = make_engine(
            _blocks(sample_pcm_bytes * 2 + silent_pcm_bytes), continuous=True
        )
        await _run_span(engine)

        assert events.kinds() == ["start", "result", "result", "end"]
        first, second = events.results()
        assert [s.text for s in first] == ["Hello world"]
        assert [s.text for s in second] == ["Hello world", " Hello world"]
        assert all(s.is_final for s in second)
        assert source.closed == 1
        assert engine.active is False

    async def test_non_continuous_ends_after_first_final(self, make_engine, sample_pcm_bytes):
        engine, _, events = make_engine(_blocks(sample_pcm_bytes * 3), continuous=False)
        await _run_span(engine)

        assert events.kinds() == ["start", "result", "end"]

    async def test_interim_results_precede_finals(self, make_engine, sample_pcm_bytes):
        engine, _, events = make_engine(
            _blocks(sample_pcm_bytes * 2), continuous=True, interim_results=True
        )
        await _run_span(engine)

        results = events.results()
        assert results[0][-1].is_final is False
        assert any(all(s.is_final for s in r) for r in results)

    async def test_silence_only_reports_no_speech(self, make_engine, silent_pcm_bytes):
        engine, _, events = make_engine(_blocks(silent_pcm_bytes * 3), continuous=True)
        await _run_span(engine)

        assert events.kinds() == ["start", "error", "end"]
        assert events.events[1] == ("error", "no-speech")

    async def test_confidence_from_logprob(self, make_engine, sample_pcm_bytes):
        engine, _, events = make_engine(_blocks(sample_pcm_bytes), continuous=True)
        await _run_span(engine)

        confidence = events.results()[0][0].confidence
        assert 0.0 < confidence < 1.0


class TestStartStop:
    async def test_stop_ends_span_without_no_speech(self, make_engine, sample_pcm_bytes):
        engine, _, events = make_engine(_blocks(sample_pcm_bytes * 5), continuous=True)
        original = engine._handlers.on_result

        def stop_after_first(segments):
            original(segments)
            engine.stop()

        engine._handlers = replace(engine._handlers, on_result=stop_after_first)
        await _run_span(engine)

        assert events.kinds() == ["start", "result", "end"]

    async def test_double_start_rejected(self, make_engine, sample_pcm_bytes):
        engine, _, _ = make_engine(_blocks(sample_pcm_bytes), continuous=True)
        engine.start()
        with pytest.raises(RecognitionError) as exc_info:
            engine.start()
        assert exc_info.value.error == "invalid-state"
        await engine.wait_closed()

    async def test_restart_from_end_handler(self, make_engine, sample_pcm_bytes):
        """on_end fires after the engine is inactive, so it can be restarted."""
        engine, source, events = make_engine(_blocks(sample_pcm_bytes), continuous=True)
        restarted = []

        def restart_once():
            events.events.append(("end",))
            if not restarted:
                engine.start()
                restarted.append(True)

        engine._handlers = replace(engine._handlers, on_end=restart_once)
        await _run_span(engine)
        await engine.wait_closed()

        assert source.opened == 2
        assert events.kinds().count("start") == 2

    def test_language_from_locale(self, make_engine):
        engine, _, _ = make_engine([])
        engine.lang = "en-US"
        assert engine.language == "en"


class TestFailures:
    async def test_transcription_failure_reported(
        self, make_engine, mock_whisper_model, sample_pcm_bytes
    ):
        mock_whisper_model.transcribe.side_effect = RuntimeError("CUDA out of memory")
        engine, source, events = make_engine(_blocks(sample_pcm_bytes * 2), continuous=True)
        await _run_span(engine)

        assert events.kinds() == ["start", "error", "end"]
        assert events.events[1] == ("error", "transcription")
        assert source.closed == 1

    async def test_source_failure_reported(self, make_engine):
        engine, _, events = make_engine([])

        class BrokenSource(AudioSource):
            async def chunks(self):
                raise RecognitionError("no microphone", error="audio-capture")
                yield b""  # makes this an async generator

        engine._source = BrokenSource()
        await _run_span(engine)

        assert events.events[1] == ("error", "audio-capture")
        assert events.kinds()[-1] == "end"


class TestGetModel:
    def test_lazy_loading(self, settings):
        """Model is loaded on first _get_model() call and cached afterwards."""
        with patch("src.services.recognition.whisper.WhisperModel") as MockModel:
            mock_instance = MagicMock()
            MockModel.return_value = mock_instance

            engine = WhisperRecognition(ListSource([]), model_size="tiny", settings=settings)
            assert engine._get_model() is mock_instance
            assert engine._get_model() is mock_instance
            MockModel.assert_called_once()
