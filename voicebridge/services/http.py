"""Shared HTTP plumbing for the OpenAI-style endpoints."""
from __future__ import annotations

import logging
from typing import Any, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..exceptions import BoundaryInputError, RemoteServiceError, ResponseContractError

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def bearer_headers(api_key: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {api_key}"}


async def post(
    url: str,
    *,
    api_key: str,
    timeout: float,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    **request_kwargs: Any,
) -> httpx.Response:
    """POST once and return the response, raising ``RemoteServiceError`` unless it is 2xx."""

    try:
        async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
            resp = await client.post(url, headers=bearer_headers(api_key), **request_kwargs)
    except UnicodeEncodeError as exc:
        # httpx only accepts ASCII header values.
        raise BoundaryInputError("API key", "not encodable as an HTTP header") from exc
    except httpx.HTTPError as exc:
        logger.warning("Request to %s failed: %s", url, exc)
        raise RemoteServiceError(str(exc) or exc.__class__.__name__) from exc

    if not resp.is_success:
        logger.warning("Request to %s returned HTTP %s", url, resp.status_code)
        raise RemoteServiceError(resp.text, status_code=resp.status_code)
    return resp


def parse_response(model: Type[ModelT], resp: httpx.Response, endpoint: str) -> ModelT:
    """Validate a JSON body against ``model`` or raise ``ResponseContractError``."""

    try:
        return model.model_validate_json(resp.content)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'body'}: {error['msg']}"
            for error in exc.errors()
        )
        raise ResponseContractError(endpoint, problems) from exc
