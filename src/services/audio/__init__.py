"""
Audio module - PCM conversion, buffering and input sources.
"""

from .processor import AudioProcessor
from .recorder import AudioBuffer
from .sources import AudioSource, MicrophoneSource, WavFileSource

__all__ = ["AudioProcessor", "AudioBuffer", "AudioSource", "MicrophoneSource", "WavFileSource"]
