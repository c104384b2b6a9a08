"""Speech-to-text client for the Whisper-style transcription endpoint."""
from __future__ import annotations

import asyncio
import mimetypes
from pathlib import Path
from typing import Optional

import httpx

from ..config import settings
from ..exceptions import LocalIOError
from ..models.schemas import TranscriptionResponse
from .http import parse_response, post


class TranscriptionService:
    """Uploads one audio file and returns the transcript text."""

    def __init__(
        self,
        api_key: str,
        *,
        url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._url = url or settings.transcription_url
        self._model = model or settings.transcription_model
        self._timeout = timeout if timeout is not None else settings.request_timeout
        self._transport = transport

    async def transcribe(self, audio_path: str) -> str:
        """Convert the audio file at ``audio_path`` into a text transcript."""

        path = Path(audio_path)
        try:
            audio_bytes = await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            raise LocalIOError(audio_path, exc) from exc

        audio_mime, _ = mimetypes.guess_type(path.name)
        if not audio_mime or not audio_mime.startswith("audio/"):
            audio_mime = "audio/wav"
        files = {"file": (path.name or "audio.wav", audio_bytes, audio_mime)}

        resp = await post(
            self._url,
            api_key=self._api_key,
            timeout=self._timeout,
            transport=self._transport,
            files=files,
            data={"model": self._model},
        )
        return parse_response(TranscriptionResponse, resp, "transcription").text
