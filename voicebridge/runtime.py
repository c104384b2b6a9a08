"""Process-wide event loop used to run pipelines on behalf of blocking callers."""
from __future__ import annotations

import asyncio
import atexit
import concurrent.futures
import logging
import threading
from typing import Any, Coroutine, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncRuntime:
    """Owns one asyncio loop running on a dedicated daemon thread.

    Callers on any thread hand coroutines to ``submit``/``run``; each one becomes
    a task on the shared loop, so no caller thread ever drives network I/O itself.
    There is no backpressure: every submitted run is scheduled immediately.
    """

    def __init__(self, name: str = "voicebridge-runtime") -> None:
        self._name = name
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._loop is not None and self._loop.is_running()

    def start(self) -> None:
        """Spin up the loop thread; calling it on a started runtime is a no-op."""

        with self._lock:
            if self._thread is not None:
                return
            ready = threading.Event()
            loop = asyncio.new_event_loop()

            def _serve() -> None:
                asyncio.set_event_loop(loop)
                loop.call_soon(ready.set)
                loop.run_forever()

            self._loop = loop
            self._thread = threading.Thread(target=_serve, name=self._name, daemon=True)
            self._thread.start()
            ready.wait()
            logger.debug("Async runtime %s started", self._name)

    def submit(self, coro: Coroutine[Any, Any, T]) -> "concurrent.futures.Future[T]":
        if self._loop is None:
            coro.close()
            raise RuntimeError("Async runtime is not running; call start() first")
        return asyncio.run_coroutine_threadsafe(coro, self._loop)

    def run(self, coro: Coroutine[Any, Any, T], timeout: Optional[float] = None) -> T:
        """Block the calling thread until ``coro`` finishes on the runtime loop."""

        return self.submit(coro).result(timeout=timeout)

    def shutdown(self, timeout: float = 5.0) -> None:
        """Cancel outstanding work, stop the loop and join its thread."""

        with self._lock:
            loop, thread = self._loop, self._thread
            if loop is None or thread is None:
                return
            self._loop = None
            self._thread = None

        async def _cancel_pending() -> None:
            current = asyncio.current_task()
            pending = [task for task in asyncio.all_tasks() if task is not current]
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        try:
            asyncio.run_coroutine_threadsafe(_cancel_pending(), loop).result(timeout=timeout)
        except concurrent.futures.TimeoutError:
            logger.warning("Timed out cancelling pending runs on %s", self._name)
        loop.call_soon_threadsafe(loop.stop)
        thread.join(timeout=timeout)
        if not thread.is_alive():
            loop.close()
        logger.debug("Async runtime %s stopped", self._name)


_default_runtime: Optional[AsyncRuntime] = None
_default_lock = threading.Lock()


def get_runtime() -> AsyncRuntime:
    """Return the process-wide runtime, starting it on first use."""

    global _default_runtime
    with _default_lock:
        if _default_runtime is None:
            _default_runtime = AsyncRuntime()
        runtime = _default_runtime
    runtime.start()
    return runtime


def shutdown_runtime() -> None:
    """Tear down the process-wide runtime if it was ever started."""

    global _default_runtime
    with _default_lock:
        runtime, _default_runtime = _default_runtime, None
    if runtime is not None:
        runtime.shutdown()


atexit.register(shutdown_runtime)
