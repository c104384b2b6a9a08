"""Chat-completion client that turns a transcript into a reply."""
from __future__ import annotations

from typing import Optional

import httpx

from ..config import settings
from ..exceptions import ResponseContractError
from ..models.schemas import ChatCompletionRequest, ChatCompletionResponse, ChatMessage
from .http import parse_response, post


class CompletionService:
    """Sends a single user message and returns the first choice's content."""

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
        self._url = url or settings.completion_url
        self._model = model or settings.chat_model
        self._timeout = timeout if timeout is not None else settings.request_timeout
        self._transport = transport

    async def complete(self, prompt: str) -> str:
        request = ChatCompletionRequest(
            model=self._model,
            messages=[ChatMessage(role="user", content=prompt)],
        )
        resp = await post(
            self._url,
            api_key=self._api_key,
            timeout=self._timeout,
            transport=self._transport,
            json=request.model_dump(),
        )
        completion = parse_response(ChatCompletionResponse, resp, "completion")
        if not completion.choices:
            raise ResponseContractError("completion", "choices array is empty")
        return completion.choices[0].message.content
