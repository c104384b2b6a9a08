"""Configuration helpers for the voice assistant pipeline."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


def _env_float(name: str, *, default: float) -> float:
    """Return the float value stored in an environment variable or fallback."""

    raw = os.getenv(name)
    if raw is None:
        return default

    try:
        return float(raw.strip())
    except (TypeError, ValueError):
        return default


@dataclass
class Settings:
    """Centralized environment-driven configuration.

    The credential is only read here for standalone runs; callers going through
    the foreign boundary pass their own key with every invocation.
    """

    openai_api_key: Optional[str] = os.getenv("OPENAI_API_KEY")
    openai_base_url: str = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    transcription_model: str = os.getenv("TRANSCRIPTION_MODEL", "whisper-1")
    chat_model: str = os.getenv("CHAT_MODEL", "gpt-4o")
    request_timeout: float = _env_float("REQUEST_TIMEOUT", default=120.0)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def transcription_url(self) -> str:
        return f"{self.openai_base_url.rstrip('/')}/audio/transcriptions"

    @property
    def completion_url(self) -> str:
        return f"{self.openai_base_url.rstrip('/')}/chat/completions"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance to avoid repeated environment reads."""

    return Settings()


settings = get_settings()
