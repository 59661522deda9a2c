"""Audio buffering for the whisper recognition engine.

Accumulates incoming PCM bytes for one listening span and hands out
fixed-duration chunks for transcription, plus a non-consuming snapshot
of the pending tail for interim results.
"""

import numpy as np

from src.services.audio.processor import AudioProcessor


class AudioBuffer:
    """Accumulates PCM audio bytes and yields chunks for transcription.

    Chunks do not overlap: each recognized segment in a span must map to a
    distinct stretch of audio, otherwise words at a boundary are reported
    twice when the span's segments are concatenated.
    """

    def __init__(
        self,
        chunk_duration: float = 3.0,
        sample_rate: int = 16000,
        sample_width: int = 2,
        channels: int = 1,
    ) -> None:
        self._chunk_duration = chunk_duration
        self._sample_rate = sample_rate
        self._sample_width = sample_width
        self._channels = channels
        self._buffer = bytearray()
        self._processor = AudioProcessor(sample_rate, sample_width, channels)

    @property
    def _frame_size(self) -> int:
        return self._sample_width * self._channels

    @property
    def chunk_size_bytes(self) -> int:
        """Number of bytes required for one full chunk."""
        return int(self._chunk_duration * self._sample_rate) * self._frame_size

    @property
    def buffered_duration(self) -> float:
        """Duration of currently buffered audio in seconds."""
        return len(self._buffer) / (self._sample_rate * self._frame_size)

    def add_bytes(self, data: bytes) -> None:
        self._buffer.extend(data)

    def has_chunk(self) -> bool:
        return len(self._buffer) >= self.chunk_size_bytes

    def get_chunk(self) -> np.ndarray | None:
        """Remove and return one full chunk, or None if not enough data."""
        if not self.has_chunk():
            return None

        chunk_bytes = bytes(self._buffer[: self.chunk_size_bytes])
        del self._buffer[: self.chunk_size_bytes]
        return self._processor.pcm_to_ndarray(chunk_bytes)

    def _aligned_tail(self) -> bytes:
        usable = len(self._buffer) - (len(self._buffer) % self._frame_size)
        return bytes(self._buffer[:usable])

    def peek(self) -> np.ndarray | None:
        """Return the buffered audio without consuming it (None if empty)."""
        data = self._aligned_tail()
        if not data:
            return None
        return self._processor.pcm_to_ndarray(data)

    def get_remaining(self, min_duration: float = 0.5) -> np.ndarray | None:
        """Flush the buffer, returning its audio unless shorter than ``min_duration``."""
        data = self._aligned_tail()
        self._buffer.clear()
        min_bytes = int(min_duration * self._sample_rate) * self._frame_size
        if not data or len(data) < min_bytes:
            return None
        return self._processor.pcm_to_ndarray(data)

    def reset(self) -> None:
        self._buffer.clear()
