"""High-level orchestration of the transcribe, reply and save pipeline."""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import httpx

from ..exceptions import LocalIOError, VoiceBridgeError
from ..models.schemas import PipelineOutcome, PipelineStage
from .completion import CompletionService
from .transcription import TranscriptionService

logger = logging.getLogger(__name__)


class PipelineOrchestrator:
    """Facade that runs one audio file through transcription and chat completion.

    An orchestrator tracks the stage of a single run, so build a fresh one per
    invocation (``for_credential`` does exactly that). Every failure is terminal:
    nothing is retried and a partially written output file is left in place.
    """

    def __init__(self, transcriber: TranscriptionService, completer: CompletionService) -> None:
        self._transcriber = transcriber
        self._completer = completer
        self._stage: Optional[PipelineStage] = None

    @classmethod
    def for_credential(
        cls,
        api_key: str,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "PipelineOrchestrator":
        return cls(
            TranscriptionService(api_key, transport=transport),
            CompletionService(api_key, transport=transport),
        )

    @property
    def stage(self) -> Optional[PipelineStage]:
        return self._stage

    def _set_stage(self, stage: PipelineStage) -> None:
        old_stage = self._stage
        self._stage = stage
        logger.info("Pipeline stage: %s -> %s", old_stage.value if old_stage else "idle", stage.value)

    async def run(self, audio_path: str, output_path: str) -> PipelineOutcome:
        """Execute the pipeline and report the outcome instead of raising."""

        try:
            self._set_stage(PipelineStage.TRANSCRIBING)
            transcript = await self._transcriber.transcribe(audio_path)
            logger.info("Transcription received (%d chars)", len(transcript))

            self._set_stage(PipelineStage.GENERATING)
            reply = await self._completer.complete(transcript)
            logger.info("Reply received (%d chars)", len(reply))

            self._set_stage(PipelineStage.WRITING)
            await self._write_reply(output_path, reply)
        except VoiceBridgeError as exc:
            failed_stage = self._stage
            self._set_stage(PipelineStage.FAILED)
            logger.warning("Pipeline failed while %s: %s", failed_stage.value if failed_stage else "idle", exc)
            return PipelineOutcome.failure(str(exc), stage=failed_stage)
        except Exception as exc:
            failed_stage = self._stage
            self._set_stage(PipelineStage.FAILED)
            logger.exception("Pipeline crashed while %s", failed_stage.value if failed_stage else "idle")
            return PipelineOutcome.failure(str(exc) or exc.__class__.__name__, stage=failed_stage)

        self._set_stage(PipelineStage.SUCCEEDED)
        logger.info("Response saved to %s", output_path)
        return PipelineOutcome.success()

    @staticmethod
    async def _write_reply(output_path: str, reply: str) -> None:
        # Create or truncate; the reply bytes are written as-is with no trailing newline.
        try:
            await asyncio.to_thread(Path(output_path).write_bytes, reply.encode("utf-8"))
        except OSError as exc:
            raise LocalIOError(output_path, exc) from exc


async def run_pipeline(
    api_key: str,
    audio_path: str,
    output_path: str,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PipelineOutcome:
    """Run one independent pipeline invocation for ``api_key``."""

    orchestrator = PipelineOrchestrator.for_credential(api_key, transport=transport)
    return await orchestrator.run(audio_path, output_path)
