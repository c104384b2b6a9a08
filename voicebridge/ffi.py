"""C-callable entry points for embedding the pipeline in a mobile shell.

Ownership contract:

* Inbound ``char *`` arguments stay owned by the caller. They are copied into
  Python strings before any work starts and never retained.
* Every ``char *`` returned by this module is owned by the boundary until the
  caller hands it back to ``free_string`` exactly once. Passing NULL is a
  no-op. Releasing the same pointer twice, or a pointer that did not come from
  this module, is a caller bug with undefined behaviour from C (Python callers
  get a ``KeyError``).

Results are delivered by direct return: ``process_audio`` blocks its calling
thread until the run finishes on the shared runtime loop, so hosts should call
it from a background thread or isolate.
"""
from __future__ import annotations

import ctypes
import logging
import threading
from typing import Dict, Optional, Union

from .exceptions import BoundaryInputError
from .models.schemas import PipelineOutcome
from .runtime import get_runtime, shutdown_runtime
from .services.orchestration import run_pipeline

logger = logging.getLogger(__name__)

RawArg = Union[bytes, str, None]

PROCESS_AUDIO_FUNC = ctypes.CFUNCTYPE(ctypes.c_void_p, ctypes.c_char_p, ctypes.c_char_p, ctypes.c_char_p)
RECOGNIZE_IMAGE_FUNC = ctypes.CFUNCTYPE(ctypes.c_void_p, ctypes.c_char_p, ctypes.c_char_p)
FREE_STRING_FUNC = ctypes.CFUNCTYPE(None, ctypes.c_void_p)
STRING_FUNC = ctypes.CFUNCTYPE(ctypes.c_void_p)
LIFECYCLE_FUNC = ctypes.CFUNCTYPE(None)

HELLO_MESSAGE = "Hello from voicebridge!"

_allocations: Dict[int, ctypes.Array] = {}
_allocations_lock = threading.Lock()
_exported: Optional[Dict[str, object]] = None


def _allocate(text: str) -> int:
    """Copy ``text`` into a boundary-owned NUL-terminated buffer and return its address."""

    buffer = ctypes.create_string_buffer(text.encode("utf-8"))
    address = ctypes.addressof(buffer)
    with _allocations_lock:
        _allocations[address] = buffer
    return address


def _decode_argument(raw: RawArg, field: str) -> str:
    if raw is None:
        raise BoundaryInputError(field, "null")
    if isinstance(raw, str):
        value = raw
    else:
        try:
            value = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise BoundaryInputError(field, "not valid UTF-8") from exc
    if not value:
        raise BoundaryInputError(field, "empty")
    return value


def run_process_audio(api_key: RawArg, audio_path: RawArg, output_path: RawArg) -> PipelineOutcome:
    """Validate boundary arguments and run the pipeline on the shared runtime."""

    try:
        key = _decode_argument(api_key, "API key")
        audio = _decode_argument(audio_path, "Audio path")
        output = _decode_argument(output_path, "Output path")
    except BoundaryInputError as exc:
        logger.warning("Rejected process_audio call: %s", exc)
        return PipelineOutcome.failure(str(exc))

    try:
        return get_runtime().run(run_pipeline(key, audio, output))
    except Exception as exc:
        # Nothing may propagate into the foreign caller's stack.
        logger.exception("process_audio crashed outside the pipeline")
        return PipelineOutcome.failure(f"Internal error: {str(exc) or exc.__class__.__name__}")


def process_audio(api_key: RawArg, audio_path: RawArg, output_path: RawArg) -> int:
    """Run the pipeline and return the address of the rendered outcome string."""

    return _allocate(run_process_audio(api_key, audio_path, output_path).render())


def recognize_image(api_key: RawArg, image_path: RawArg) -> int:
    """Placeholder entry point; reports that image recognition is not available."""

    return _allocate(PipelineOutcome.unimplemented("Image recognition").render())


def hello() -> int:
    return _allocate(HELLO_MESSAGE)


def free_string(address: Optional[int]) -> None:
    """Release a string previously returned by this module."""

    if not address:
        return
    with _allocations_lock:
        buffer = _allocations.pop(address)
    ctypes.memset(buffer, 0, ctypes.sizeof(buffer))


def read_string(address: int) -> str:
    """Decode a string returned by this module without releasing it."""

    return ctypes.string_at(address).decode("utf-8")


def live_allocations() -> int:
    with _allocations_lock:
        return len(_allocations)


def initialize() -> None:
    """Start the shared runtime ahead of the first call."""

    get_runtime()


def shutdown() -> None:
    shutdown_runtime()


def export_symbols() -> Dict[str, object]:
    """Return C function pointers for every entry point, keyed by symbol name.

    The pointers stay valid for the life of the process; hosts resolve them with
    ``ctypes.cast(fn, ctypes.c_void_p).value``.
    """

    global _exported
    if _exported is None:
        _exported = {
            "process_audio": PROCESS_AUDIO_FUNC(process_audio),
            "recognize_image": RECOGNIZE_IMAGE_FUNC(recognize_image),
            "free_string": FREE_STRING_FUNC(free_string),
            "hello": STRING_FUNC(hello),
            "voicebridge_init": LIFECYCLE_FUNC(initialize),
            "voicebridge_shutdown": LIFECYCLE_FUNC(shutdown),
        }
    return _exported


def symbol_addresses() -> Dict[str, int]:
    return {name: ctypes.cast(fn, ctypes.c_void_p).value for name, fn in export_symbols().items()}
