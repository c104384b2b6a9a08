"""Pydantic models describing remote payloads and pipeline results."""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class TranscriptionResponse(BaseModel):
    """Body returned by the speech-to-text endpoint."""

    text: str


class ChatMessage(BaseModel):
    role: str
    content: str


class ReplyMessage(BaseModel):
    role: Optional[str] = None
    content: str


class ChatCompletionRequest(BaseModel):
    """JSON body posted to the chat-completion endpoint."""

    model: str
    messages: List[ChatMessage]


class ChatCompletionChoice(BaseModel):
    message: ReplyMessage


class ChatCompletionResponse(BaseModel):
    """Subset of the chat-completion body the pipeline relies on."""

    choices: List[ChatCompletionChoice] = Field(..., description="Candidate replies; the first one is used")


class PipelineStage(str, Enum):
    """Stages a single pipeline run moves through."""

    TRANSCRIBING = "transcribing"
    GENERATING = "generating"
    WRITING = "writing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    FAILURE = "failure"
    UNIMPLEMENTED = "unimplemented"


class PipelineOutcome(BaseModel, frozen=True):
    """Result handed back to whichever caller started a run."""

    status: OutcomeStatus
    message: Optional[str] = None
    stage: Optional[PipelineStage] = None

    @classmethod
    def success(cls) -> "PipelineOutcome":
        return cls(status=OutcomeStatus.SUCCESS, stage=PipelineStage.SUCCEEDED)

    @classmethod
    def failure(cls, message: str, *, stage: Optional[PipelineStage] = None) -> "PipelineOutcome":
        return cls(status=OutcomeStatus.FAILURE, message=message, stage=stage)

    @classmethod
    def unimplemented(cls, feature: str) -> "PipelineOutcome":
        return cls(status=OutcomeStatus.UNIMPLEMENTED, message=f"{feature} not implemented yet")

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    def render(self) -> str:
        """Return the human-readable form delivered across the foreign boundary."""

        if self.status is OutcomeStatus.SUCCESS:
            return "Success"
        if self.status is OutcomeStatus.FAILURE:
            return f"Error: {self.message}"
        return self.message or "Not implemented"
