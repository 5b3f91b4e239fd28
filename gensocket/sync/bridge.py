from typing import Any

from gensocket.core.helpers.mailbox import Mailbox
from gensocket.core.models.result import ConnectStatus, Error, Ok
from gensocket.core.ports.serializer import Serializer
from gensocket.core.ports.transport import Transport
from gensocket.core.socket.bridge import DEFAULT_TIMEOUT, ChannelBridge
from gensocket.sync.runtime import SyncRuntime


class SyncChannelBridge:
    """
    ChannelBridge for synchronous callers.

    The bridge and its client live on the event loop of a SyncRuntime;
    every operation blocks the calling thread until the awaited result
    is available or the timeout expires. Transports may report events
    from any thread.
    """
    def __init__(self, bridge: ChannelBridge, runtime: SyncRuntime, owns_runtime: bool) -> None:
        self.bridge = bridge
        self._runtime = runtime
        self._owns_runtime = owns_runtime

    @classmethod
    def start(
        cls,
        transport: Transport,
        serializer: Serializer,
        url: str,
        query_params: dict[str, str] | None = None,
        auto_connect: bool = True,
        runtime: SyncRuntime | None = None,
    ) -> "SyncChannelBridge":
        owns_runtime = runtime is None
        runtime = runtime or SyncRuntime()

        async def _start() -> ChannelBridge:
            # the mailbox and the client must be created on the runtime loop
            return ChannelBridge.start(
                transport,
                serializer,
                url,
                query_params,
                auto_connect,
                mailbox=Mailbox(),
                loop=runtime.loop,
            )

        return cls(runtime.run(_start()), runtime, owns_runtime)

    @property
    def id(self) -> str:
        return self.bridge.id

    def stop(self) -> None:
        if self._runtime.closed:
            return

        self._runtime.run(self.bridge.stop())
        if self._owns_runtime:
            self._runtime.shutdown()

    def connect(self, url: str | None = None, query_params: dict[str, str] | None = None) -> None:
        self.bridge.connect(url, query_params)

    def wait_connect_status(self, timeout: float = DEFAULT_TIMEOUT) -> ConnectStatus:
        return self._runtime.run(self.bridge.wait_connect_status(timeout))

    def join(self, topic: str, payload: Any = None, timeout: float = DEFAULT_TIMEOUT) -> Ok[tuple[str, Any]] | Error:
        return self._runtime.run(self.bridge.join(topic, payload, timeout))

    def leave(self, topic: str, payload: Any = None, timeout: float = DEFAULT_TIMEOUT) -> Ok[Any] | Error:
        return self._runtime.run(self.bridge.leave(topic, payload, timeout))

    def push(self, topic: str, event: str, payload: Any = None, timeout: float = DEFAULT_TIMEOUT) -> Ok[str] | Error:
        return self._runtime.run(self.bridge.push(topic, event, payload, timeout))

    def push_sync(self, topic: str, event: str, payload: Any = None, timeout: float = DEFAULT_TIMEOUT) -> Ok[Any] | Error:
        return self._runtime.run(self.bridge.push_sync(topic, event, payload, timeout))

    def await_message(self, timeout: float = DEFAULT_TIMEOUT) -> Ok[tuple[str, str, Any]] | Error:
        return self._runtime.run(self.bridge.await_message(timeout))

    def joined(self, topic: str, timeout: float = DEFAULT_TIMEOUT) -> bool:
        return self._runtime.run(self.bridge.joined(topic, timeout))
