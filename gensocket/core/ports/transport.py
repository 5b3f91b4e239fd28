from typing import Any, Protocol

from gensocket.core.models.message import Frame


class TransportListener(Protocol):
    """
    Receives connection events from a Transport.

    The methods mirror asyncio.Protocol and may be called from any
    thread; implementations must not block.
    """

    def connection_made(self) -> None:
        ...

    def frame_received(self, frame: Frame) -> None:
        ...

    def connection_lost(self, reason: Any) -> None:
        ...


class Transport(Protocol):
    """
    Wire transport used by the SocketClient (websocket or anything
    exchanging whole frames).

    `open()` and `write()` are non-blocking: the outcome of `open()` is
    reported later through `listener.connection_made()` or
    `listener.connection_lost(reason)`.
    """

    def open(self, url: str, listener: TransportListener) -> None:
        ...

    def write(self, frame: Frame) -> None:
        ...

    def close(self) -> None:
        ...
