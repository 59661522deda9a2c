"""
Recognition module - speech engine abstraction layer.

Factory function for creating recognition engines based on provider configuration.
"""

from .base import RecognitionHandlers, RecognitionPort

__all__ = ["RecognitionHandlers", "RecognitionPort", "create_audio_source", "create_recognition"]


def create_audio_source(kind: str, **kwargs):
    """
    Factory function to create the PCM source the whisper engine listens to.

    Args:
        kind: "microphone" or "file"
        **kwargs: Source-specific options (device, path, realtime)

    Raises:
        ValueError: If kind is unknown or a file source has no path
    """
    from src.services.audio.sources import MicrophoneSource, WavFileSource

    if kind == "microphone":
        return MicrophoneSource(device=kwargs.get("device"))
    elif kind == "file":
        path = kwargs.get("path")
        if not path:
            raise ValueError("A file audio source requires a path")
        return WavFileSource(path, realtime=kwargs.get("realtime", True))
    else:
        raise ValueError(f"Unknown audio source: {kind}")


def create_recognition(provider: str, **kwargs) -> RecognitionPort:
    """
    Factory function to create a recognition engine based on provider.

    Args:
        provider: Engine name ("whisper", "scripted")
        **kwargs: Engine-specific configuration

    Returns:
        RecognitionPort implementation instance

    Raises:
        ValueError: If provider is unknown
    """
    if provider == "whisper":
        from .whisper import WhisperRecognition
        return WhisperRecognition(**kwargs)
    elif provider == "scripted":
        from .scripted import ScriptedRecognition
        return ScriptedRecognition(**kwargs)
    else:
        raise ValueError(f"Unknown recognition provider: {provider}")
