"""Custom exceptions for the voice assistant pipeline."""
from __future__ import annotations

from typing import Optional


class VoiceBridgeError(Exception):
    """Base class for every failure a pipeline run can report."""


class BoundaryInputError(VoiceBridgeError):
    """Raised when a foreign caller hands over a null, empty or undecodable argument."""

    def __init__(self, field: str, problem: str):
        self.field = field
        self.problem = problem
        super().__init__(f"{field} is {problem}")


class LocalIOError(VoiceBridgeError):
    """Raised when reading the audio input or writing the reply fails."""

    def __init__(self, path: str, cause: Exception):
        self.path = path
        self.cause = cause
        super().__init__(str(cause))


class RemoteServiceError(VoiceBridgeError):
    """Raised when a remote endpoint answers with a non-2xx status or cannot be reached."""

    def __init__(self, body: str, status_code: Optional[int] = None):
        self.body = body
        self.status_code = status_code
        super().__init__(f"API error: {body}")


class ResponseContractError(VoiceBridgeError):
    """Raised when a 2xx response does not carry the fields the pipeline needs."""

    def __init__(self, endpoint: str, detail: str):
        self.endpoint = endpoint
        self.detail = detail
        super().__init__(f"Unexpected {endpoint} response: {detail}")
