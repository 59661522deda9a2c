"""
Application configuration via pydantic-settings.

Loads values from .env file with sensible defaults for local development.
Use ``get_settings()`` to obtain the cached singleton instance.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """VoiceIntake settings loaded from environment / .env file.

    All settings can be overridden via environment variables or a `.env` file.
    Field names map directly to env var names (case-insensitive).

    Attributes:
        backend_url: Base URL of the screening backend (conversation + report).
        recognition_provider: Speech engine adapter ("whisper" or "scripted").
        recognition_language: Locale tag handed to the engine (e.g. "en-US").
        audio_source: Where the whisper engine reads PCM from ("microphone" or "file").
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Silently ignore unrecognized env vars
    )

    # --- Backend ---
    backend_url: str = "http://localhost:5000"
    conversation_path: str = "/send-data"
    report_path: str = "/report"
    request_timeout: float = 30.0
    report_timeout: float = 120.0  # Report generation renders a PDF server-side

    # --- Recognition engine ---
    recognition_provider: str = "whisper"
    recognition_language: str = "en-US"

    # faster-whisper model options (used when recognition_provider="whisper")
    whisper_model: str = "base"  # tiny, base, small, medium, large-v3
    whisper_device: str = "cpu"
    whisper_compute_type: str = "int8"

    # --- Audio input ---
    audio_source: str = "microphone"
    audio_file: str = ""  # WAV path when audio_source="file"
    audio_device: int | None = None  # sounddevice input index; None = system default
    chunk_duration: float = 3.0  # Seconds of audio per transcription pass
    end_silence_seconds: float = 2.0  # Engine ends a span after this much silence
    silence_threshold: float = 0.01  # RMS below this counts as silence

    # --- Application ---
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings singleton.

    Uses ``functools.lru_cache`` so the .env file is read only once.
    """
    return Settings()
