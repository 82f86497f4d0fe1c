"""Configuration management for API keys and pipeline settings."""

import os
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv

# config.py is in pitchcoach/, .env is in project root
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(env_path, override=False)


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except ValueError:
        return default


class Config:
    """Application configuration from environment variables."""

    # Analyzer settings
    ANALYZER_TYPE: str = os.getenv("ANALYZER_TYPE", "gemini")  # "gemini" or "openai"
    REQUEST_TIMEOUT_SECONDS: float = _float_env("REQUEST_TIMEOUT_SECONDS", 90.0)

    # Gemini settings
    GEMINI_API_KEY: Optional[str] = os.getenv("GEMINI_API_KEY")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-2.0-flash")
    GEMINI_BASE_URL: str = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com")

    # OpenAI-compatible settings
    OPENAI_API_KEY: Optional[str] = os.getenv("OPENAI_API_KEY")
    OPENAI_BASE_URL: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    OPENAI_MODEL: str = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
    OPENAI_TRANSCRIBE_MODEL: str = os.getenv("OPENAI_TRANSCRIBE_MODEL", "whisper-1")

    # Coaching settings
    COACH_MODE: str = os.getenv("COACH_MODE", "tech")  # "science", "tech" or "business"
    COACH_CUSTOM_INSTRUCTIONS: str = os.getenv("COACH_CUSTOM_INSTRUCTIONS", "")

    # Audio capture
    AUDIO_DEVICE: Optional[str] = os.getenv("AUDIO_DEVICE") or None
    SAMPLE_RATE: int = _int_env("SAMPLE_RATE", 24000)
    AUDIO_BLOCKSIZE: int = _int_env("AUDIO_BLOCKSIZE", 4096)

    # Pipeline tuning (hand-tuned; service and environment dependent)
    CYCLE_MS: int = _int_env("CYCLE_MS", 2000)
    MIN_AUDIO_SAMPLES: int = _int_env("MIN_AUDIO_SAMPLES", 2400)  # ~100ms at 24kHz
    SILENCE_RMS: float = _float_env("SILENCE_RMS", 0.0)  # 0 disables the RMS gate
    MAX_INFLIGHT: int = _int_env("MAX_INFLIGHT", 3)
    PACE_INTERVAL_MS: int = _int_env("PACE_INTERVAL_MS", 100)
    CONTEXT_MAX_CHARS: int = _int_env("CONTEXT_MAX_CHARS", 1200)
    MIN_TRANSCRIPT_CHARS: int = _int_env("MIN_TRANSCRIPT_CHARS", 12)

    # Tip sanitizer
    TIP_MAX_WORDS: int = _int_env("TIP_MAX_WORDS", 12)
    TIP_HISTORY_SIZE: int = _int_env("TIP_HISTORY_SIZE", 6)

    # Server
    HOST: str = os.getenv("HOST", "127.0.0.1")
    PORT: int = _int_env("PORT", 8010)
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def validate(cls) -> list[str]:
        """Validate configuration and return list of missing required settings."""
        missing = []

        analyzer_type = cls.ANALYZER_TYPE.lower()
        if analyzer_type == "gemini" and not cls.GEMINI_API_KEY:
            missing.append("GEMINI_API_KEY (required when ANALYZER_TYPE=gemini)")
        if analyzer_type == "openai" and not cls.OPENAI_API_KEY:
            missing.append("OPENAI_API_KEY (required when ANALYZER_TYPE=openai)")

        if cls.MAX_INFLIGHT < 1:
            missing.append("MAX_INFLIGHT (must be at least 1)")

        return missing
