import asyncio
import atexit
import logging
import threading
from concurrent.futures import Future
from typing import Any, Awaitable, Coroutine, TypeVar

T = TypeVar("T")


class SyncRuntime:
    """
    Runs coroutines on a dedicated event loop thread, so that plain
    synchronous code can drive asyncio components with blocking calls.

    The loop thread is a daemon and is stopped at interpreter exit if
    `shutdown()` was not called before.
    """

    def __init__(self, name: str = "gensocket-sync-runtime") -> None:
        self.loop = asyncio.new_event_loop()
        self._closed = threading.Event()
        self._thread = threading.Thread(target=self._run_loop, name=name, daemon=True)
        self._thread.start()
        self._logger = logging.getLogger("sync.runtime")
        atexit.register(self.shutdown)

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def _run_loop(self) -> None:
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    def run(self, awaitable: Awaitable[T]) -> T:
        """Execute a coroutine on the loop thread and block until it returns."""
        if self._closed.is_set():
            raise RuntimeError("SyncRuntime has been shut down")

        coroutine: Coroutine[Any, Any, T]
        if asyncio.iscoroutine(awaitable):
            coroutine = awaitable
        else:
            async def _wrap() -> T:
                return await awaitable

            coroutine = _wrap()

        future: Future[T] = asyncio.run_coroutine_threadsafe(coroutine, self.loop)
        return future.result()

    def shutdown(self) -> None:
        """Stop the loop thread and release resources. Safe to call twice."""
        if self._closed.is_set():
            return
        self._closed.set()
        atexit.unregister(self.shutdown)

        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout=5)
        if self._thread.is_alive():
            self._logger.warning("Event loop thread did not stop in time")
            return

        if not self.loop.is_closed():
            self.loop.close()
