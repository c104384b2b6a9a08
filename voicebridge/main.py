"""Standalone entrypoint: run one pipeline invocation from the command line."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from .config import get_settings
from .services.orchestration import run_pipeline

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_PIPELINE_FAILED = 1
EXIT_MISSING_CREDENTIAL = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voicebridge",
        description="Transcribe an audio file, ask the chat model about it and save the reply.",
    )
    parser.add_argument("--audio", default="audio.wav", help="Path to the input audio file.")
    parser.add_argument("--output", default="response.txt", help="Where to write the model reply.")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    if not settings.openai_api_key:
        logger.error("OPENAI_API_KEY environment variable must be set")
        return EXIT_MISSING_CREDENTIAL

    outcome = asyncio.run(run_pipeline(settings.openai_api_key, args.audio, args.output))
    if not outcome.ok:
        print(outcome.render(), file=sys.stderr)
        return EXIT_PIPELINE_FAILED
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
