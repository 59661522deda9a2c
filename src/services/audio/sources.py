"""PCM audio sources for the whisper recognition engine.

A source is opened once per listening span: ``chunks()`` returns a fresh
async generator yielding 16-bit, 16 kHz mono PCM blocks, and closing the
generator releases the underlying device or file handle.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

import soundfile as sf

from src.core.exceptions import RecognitionError
from src.services.audio.processor import TARGET_SAMPLE_RATE, AudioProcessor

logger = logging.getLogger(__name__)


class AudioSource(ABC):
    """Interface every PCM audio source must implement."""

    @abstractmethod
    def chunks(self) -> AsyncIterator[bytes]:
        """Open the source and yield PCM blocks until closed or exhausted.

        Raises:
            RecognitionError: With ``error="audio-capture"`` if the source
                cannot be opened.
        """


class MicrophoneSource(AudioSource):
    """Streams PCM from a sounddevice input device.

    The PortAudio callback runs on a driver thread; blocks are handed to the
    event loop with ``call_soon_threadsafe`` so consumers stay single-threaded.

    Args:
        device: sounddevice input index, or None for the system default.
        block_duration: Seconds of audio per yielded block.
    """

    def __init__(self, device: int | None = None, block_duration: float = 0.1) -> None:
        self._device = device
        self._block_samples = int(TARGET_SAMPLE_RATE * block_duration)

    async def chunks(self) -> AsyncIterator[bytes]:
        try:
            import sounddevice as sd
        except OSError as exc:  # PortAudio library missing
            raise RecognitionError(
                detail=f"Microphone support unavailable: {exc}", error="audio-capture"
            ) from exc

        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[bytes] = asyncio.Queue()

        def _callback(indata, frames, time_info, status) -> None:  # noqa: ANN001
            if status:
                logger.warning("Microphone input status: %s", status)
            loop.call_soon_threadsafe(queue.put_nowait, bytes(indata))

        try:
            stream = sd.RawInputStream(
                samplerate=TARGET_SAMPLE_RATE,
                device=self._device,
                channels=1,
                dtype="int16",
                blocksize=self._block_samples,
                callback=_callback,
            )
            stream.start()
        except sd.PortAudioError as exc:
            raise RecognitionError(
                detail=f"Could not open microphone: {exc}", error="audio-capture"
            ) from exc

        logger.debug("Microphone stream opened (device=%s)", self._device)
        try:
            while True:
                yield await queue.get()
        finally:
            stream.stop()
            stream.close()
            logger.debug("Microphone stream closed")


class WavFileSource(AudioSource):
    """Replays an audio file as if it were being spoken into a microphone.

    The read position survives across spans, so an engine restart continues
    where the previous span stopped. Once the file is exhausted the source
    behaves like a quiet room and keeps yielding paced silence, so an engine
    restarted on it still waits out its silence timeout between spans.

    Args:
        path: Any format libsndfile reads (WAV, FLAC, OGG).
        block_duration: Seconds of audio per yielded block.
        realtime: Pace the file's blocks at the speed they would be spoken.
    """

    def __init__(self, path: str, block_duration: float = 0.1, realtime: bool = True) -> None:
        self._path = path
        self._block_bytes = int(TARGET_SAMPLE_RATE * block_duration) * 2
        self._block_duration = block_duration
        self._realtime = realtime
        self._pcm: bytes | None = None
        self._offset = 0

    def _load(self) -> bytes:
        if self._pcm is None:
            try:
                data, sample_rate = sf.read(self._path, dtype="float32")
            except (sf.LibsndfileError, OSError) as exc:
                raise RecognitionError(
                    detail=f"Could not read audio file {self._path}: {exc}",
                    error="audio-capture",
                ) from exc
            self._pcm = AudioProcessor.ndarray_to_pcm(data, sample_rate)
            logger.info(
                "Loaded %s (%.1fs of audio)",
                self._path,
                len(self._pcm) / (TARGET_SAMPLE_RATE * 2),
            )
        return self._pcm

    @property
    def exhausted(self) -> bool:
        return self._pcm is not None and self._offset >= len(self._pcm)

    async def chunks(self) -> AsyncIterator[bytes]:
        pcm = self._load()
        while self._offset < len(pcm):
            block = pcm[self._offset : self._offset + self._block_bytes]
            self._offset += len(block)
            yield block
            await asyncio.sleep(self._block_duration if self._realtime else 0)

        silence = b"\x00" * self._block_bytes
        while True:
            await asyncio.sleep(self._block_duration)
            yield silence
