"""Whisper recognition engine using faster-whisper.

Implements the browser-style ``RecognitionPort`` contract on top of an
``AudioSource``: each ``start()`` opens one listening span that transcribes
fixed-size chunks as they fill up and reports the accumulated segments after
every pass. Like a browser recognizer, the span ends on its own after a
stretch of silence, so continuous dictation relies on the caller restarting
it from ``on_end``.

The WhisperModel is loaded lazily and cached at module level to avoid
repeated initialization overhead.
"""

import asyncio
import logging
import math
from contextlib import aclosing

import numpy as np
from faster_whisper import WhisperModel

from src.core.config import get_settings
from src.core.exceptions import RecognitionError
from src.core.models import RecognitionSegment
from src.services.audio.processor import AudioProcessor
from src.services.audio.recorder import AudioBuffer
from src.services.audio.sources import AudioSource
from src.services.recognition.base import RecognitionPort

logger = logging.getLogger(__name__)

_model_cache: WhisperModel | None = None


class WhisperRecognition(RecognitionPort):
    """Speech recognition engine backed by faster-whisper (CTranslate2).

    Args:
        source: Where PCM audio is read from; opened once per span.
        model_size: Whisper model size (tiny, base, small, medium, large-v3).
        device: Computation device ("cpu" or "cuda").
        compute_type: CTranslate2 compute type ("int8", "float16", etc.).
        chunk_duration: Seconds of audio per final transcription pass.
        end_silence_seconds: Silence after which the span ends by itself.
        silence_threshold: RMS below which audio counts as silence.
        interim_interval: Seconds of new audio between interim passes.
        settings: Optional Settings instance (defaults to get_settings()).
    """

    def __init__(
        self,
        source: AudioSource,
        model_size: str | None = None,
        device: str | None = None,
        compute_type: str | None = None,
        chunk_duration: float | None = None,
        end_silence_seconds: float | None = None,
        silence_threshold: float | None = None,
        interim_interval: float = 1.0,
        settings=None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self._settings = settings or get_settings()
        self._source = source
        self._model_size = model_size or self._settings.whisper_model
        self._device = device or self._settings.whisper_device
        self._compute_type = compute_type or self._settings.whisper_compute_type
        self._chunk_duration = chunk_duration or self._settings.chunk_duration
        self._end_silence = end_silence_seconds or self._settings.end_silence_seconds
        self._silence_threshold = silence_threshold or self._settings.silence_threshold
        self._interim_interval = interim_interval
        self._processor = AudioProcessor()
        self._task: asyncio.Task | None = None
        self._active = False
        self._stop_requested = False

    @property
    def active(self) -> bool:
        return self._active

    @property
    def language(self) -> str | None:
        """ISO 639-1 code for Whisper, derived from the locale tag ("en-US" -> "en")."""
        return self.lang.split("-")[0].lower() if self.lang else None

    # -- RecognitionPort --

    def start(self) -> None:
        if self._active and self._stop_requested:
            # Restarted before the stopping span noticed; keep it alive.
            self._stop_requested = False
            return
        if self._active:
            raise RecognitionError(detail="Recognition has already started", error="invalid-state")
        loop = asyncio.get_running_loop()
        self._active = True
        self._stop_requested = False
        self._task = loop.create_task(self._run_span())

    def stop(self) -> None:
        if self._active:
            self._stop_requested = True

    async def wait_closed(self) -> None:
        """Wait for the current span task (if any) to finish."""
        if self._task is not None:
            await asyncio.shield(self._task)

    # -- model --

    def _get_model(self) -> WhisperModel:
        """Return the cached WhisperModel, loading it on first use."""
        global _model_cache  # noqa: PLW0603
        if _model_cache is None:
            logger.info(
                "Loading Whisper model: %s (device=%s, compute=%s)",
                self._model_size,
                self._device,
                self._compute_type,
            )
            _model_cache = WhisperModel(
                self._model_size,
                device=self._device,
                compute_type=self._compute_type,
            )
        return _model_cache

    def _run_transcription(self, audio: np.ndarray) -> list:
        """Run synchronous transcription (CPU-bound).

        Must be called via asyncio.to_thread(). The segment iterator is
        materialized inside this function to avoid CTranslate2
        thread-safety issues.
        """
        model = self._get_model()
        segments_iter, _info = model.transcribe(
            audio,
            language=self.language,
            beam_size=1,
            vad_filter=False,
        )
        return list(segments_iter)

    @staticmethod
    def _logprob_to_confidence(avg_logprob: float) -> float:
        """Convert average log probability to a 0-1 confidence score."""
        return max(0.0, min(1.0, math.exp(avg_logprob)))

    async def _transcribe(
        self, audio: np.ndarray, is_final: bool, leading_space: bool
    ) -> RecognitionSegment | None:
        """Transcribe one stretch of audio into a single span segment.

        Segment texts are concatenated without a separator downstream, so
        every segment after the first in a span carries its own leading space.
        """
        try:
            raw_segments = await asyncio.to_thread(self._run_transcription, audio)
        except Exception as exc:
            raise RecognitionError(
                detail=f"Whisper transcription failed: {exc}", error="transcription"
            ) from exc

        pieces = [seg for seg in raw_segments if seg.text.strip()]
        if not pieces:
            return None

        text = " ".join(seg.text.strip() for seg in pieces)
        avg_logprob = sum(seg.avg_logprob for seg in pieces) / len(pieces)
        return RecognitionSegment(
            text=f" {text}" if leading_space else text,
            is_final=is_final,
            confidence=self._logprob_to_confidence(avg_logprob),
        )

    # -- span loop --

    async def _run_span(self) -> None:
        """One listening span: start event, results, then exactly one end event."""
        self._emit_start()
        finals: list[RecognitionSegment] = []
        buffer = AudioBuffer(chunk_duration=self._chunk_duration)
        heard_speech = False
        silent_for = 0.0
        since_interim = 0.0

        try:
            async with aclosing(self._source.chunks()) as blocks:
                async for block in blocks:
                    if self._stop_requested:
                        break

                    samples = self._processor.pcm_to_ndarray(block)
                    block_duration = len(samples) / self._processor.sample_rate
                    if self._processor.is_silent(samples, self._silence_threshold):
                        silent_for += block_duration
                    else:
                        silent_for = 0.0
                        heard_speech = True
                    buffer.add_bytes(block)
                    since_interim += block_duration

                    if buffer.has_chunk():
                        chunk = buffer.get_chunk()
                        since_interim = 0.0
                        if not self._processor.is_silent(chunk, self._silence_threshold):
                            segment = await self._transcribe(chunk, True, bool(finals))
                            if segment is not None:
                                finals.append(segment)
                                self._emit_result(finals)
                                if not self.continuous:
                                    break
                    elif self.interim_results and since_interim >= self._interim_interval:
                        since_interim = 0.0
                        pending = buffer.peek()
                        if pending is not None and not self._processor.is_silent(
                            pending, self._silence_threshold
                        ):
                            interim = await self._transcribe(pending, False, bool(finals))
                            if interim is not None:
                                self._emit_result([*finals, interim])

                    if heard_speech and silent_for >= self._end_silence:
                        logger.debug("Ending span after %.1fs of silence", silent_for)
                        break
                    if not heard_speech and silent_for >= self._end_silence * 4:
                        break

            remaining = buffer.get_remaining()
            if remaining is not None and not self._processor.is_silent(
                remaining, self._silence_threshold
            ):
                segment = await self._transcribe(remaining, True, bool(finals))
                if segment is not None:
                    finals.append(segment)
                    self._emit_result(finals)

            if not heard_speech and not self._stop_requested:
                self._emit_error("no-speech", "No speech was detected")

        except RecognitionError as exc:
            logger.warning("Recognition span failed: %s", exc.detail)
            self._emit_error(exc.error, exc.detail)
        except Exception as exc:
            logger.exception("Recognition span crashed")
            self._emit_error("aborted", str(exc))
        finally:
            self._active = False
            self._emit_end()
