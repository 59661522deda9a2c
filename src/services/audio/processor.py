"""PCM conversion helpers shared by the audio sources and the whisper engine.

Everything downstream of an ``AudioSource`` speaks 16-bit signed mono PCM
at 16 kHz; this module converts to and from that format and measures
signal energy for silence detection.
"""

import numpy as np

TARGET_SAMPLE_RATE = 16000


class AudioProcessor:
    """Converts between PCM bytes and float32 arrays and detects silence.

    Args:
        sample_rate: Audio sample rate in Hz (default: 16 kHz).
        sample_width: Bytes per sample (2 = 16-bit signed PCM).
        channels: Number of audio channels (1 = mono).
    """

    def __init__(
        self,
        sample_rate: int = TARGET_SAMPLE_RATE,
        sample_width: int = 2,
        channels: int = 1,
    ) -> None:
        self.sample_rate = sample_rate
        self.sample_width = sample_width
        self.channels = channels

    def pcm_to_ndarray(self, pcm_data: bytes) -> np.ndarray:
        """Convert raw 16-bit PCM bytes to a float32 array in [-1.0, 1.0].

        Raises:
            ValueError: If data length is not aligned to the frame size.
        """
        frame_size = self.sample_width * self.channels
        if len(pcm_data) % frame_size != 0:
            raise ValueError(
                f"PCM data length ({len(pcm_data)}) is not aligned to frame size ({frame_size})"
            )
        return np.frombuffer(pcm_data, dtype=np.int16).astype(np.float32) / 32768.0

    @staticmethod
    def ndarray_to_pcm(samples: np.ndarray, sample_rate: int) -> bytes:
        """Downmix, resample to 16 kHz and encode float samples as int16 PCM.

        Args:
            samples: Float array shaped ``(frames,)`` or ``(frames, channels)``.
            sample_rate: Rate the samples were captured at.
        """
        data = np.asarray(samples, dtype=np.float32)
        if data.ndim > 1:
            data = data.mean(axis=1)

        if sample_rate != TARGET_SAMPLE_RATE and len(data):
            num_samples = int(len(data) / sample_rate * TARGET_SAMPLE_RATE)
            indices = np.linspace(0, len(data) - 1, num_samples)
            data = np.interp(indices, np.arange(len(data)), data)

        pcm = (data * 32767).clip(-32768, 32767).astype(np.int16)
        return pcm.tobytes()

    @staticmethod
    def rms(audio: np.ndarray) -> float:
        if len(audio) == 0:
            return 0.0
        return float(np.sqrt(np.mean(audio**2)))

    def is_silent(self, audio: np.ndarray, threshold: float = 0.01) -> bool:
        """Return True when the RMS energy of ``audio`` is below ``threshold``."""
        return self.rms(audio) < threshold
