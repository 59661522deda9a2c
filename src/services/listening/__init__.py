"""
Listening module - microphone state machine and current-utterance buffer.
"""

from .mic_controller import MicController
from .utterance import UtteranceBuffer

__all__ = ["MicController", "UtteranceBuffer"]
