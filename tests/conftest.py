from __future__ import annotations

from typing import Any, Optional

import httpx
import pytest


class FakeOpenAI:
    """In-memory stand-in for the transcription and chat-completion endpoints."""

    def __init__(
        self,
        *,
        transcript: str = "hello world",
        reply: str = "Hi there!",
        transcription_status: int = 200,
        completion_status: int = 200,
        transcription_body: Optional[Any] = None,
        completion_body: Optional[Any] = None,
    ) -> None:
        self.transcript = transcript
        self.reply = reply
        self.transcription_status = transcription_status
        self.completion_status = completion_status
        self.transcription_body = transcription_body
        self.completion_body = completion_body
        self.requests: list[httpx.Request] = []

    @property
    def transcription_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/audio/transcriptions")]

    @property
    def completion_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/chat/completions")]

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @staticmethod
    def _respond(status: int, body: Any) -> httpx.Response:
        if isinstance(body, (bytes, str)):
            return httpx.Response(status, content=body)
        return httpx.Response(status, json=body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path.endswith("/audio/transcriptions"):
            body = self.transcription_body
            if body is None:
                body = {"text": self.transcript}
            return self._respond(self.transcription_status, body)
        if request.url.path.endswith("/chat/completions"):
            body = self.completion_body
            if body is None:
                body = {"choices": [{"message": {"role": "assistant", "content": self.reply}}]}
            return self._respond(self.completion_status, body)
        return httpx.Response(404, text="unknown endpoint")


@pytest.fixture
def fake_openai() -> FakeOpenAI:
    return FakeOpenAI()


@pytest.fixture
def sample_wav(tmp_path):
    path = tmp_path / "sample.wav"
    path.write_bytes(b"RIFF\x24\x00\x00\x00WAVEfmt " + b"\x00" * 32)
    return path
