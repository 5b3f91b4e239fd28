from typing import Any, Protocol

from gensocket.core.models.control import ConnectRequest, SocketInit
from gensocket.core.models.result import Error, Ok


class ChannelClient(Protocol):
    """
    Channel operations offered by the protocol client to its handler.

    Every operation returns immediately: the server's answer arrives
    later through the handler callbacks.
    """

    def join(self, topic: str, payload: Any) -> Ok[str] | Error:
        """Send a join request for `topic`, returning its ref."""

    def leave(self, topic: str, payload: Any) -> Ok[str] | Error:
        """Send a leave request for `topic`, returning its ref."""

    def push(self, topic: str, event: str, payload: Any) -> Ok[str] | Error:
        """Push `event` on a joined topic, returning its ref."""

    def joined(self, topic: str) -> bool:
        """Return True once the server has accepted the join for `topic`."""


class SocketHandler(Protocol):
    """
    Callback interface a SocketClient drives.

    All callbacks run inside the client's task, one at a time, in the
    order the underlying events happened. They must return quickly:
    the client cannot process anything else while a callback runs.
    """

    def init(self) -> SocketInit:
        ...

    def on_connected(self, channels: ChannelClient) -> None:
        ...

    def on_disconnected(self, reason: Any) -> None:
        ...

    def on_joined(self, topic: str, payload: Any, channels: ChannelClient) -> None:
        ...

    def on_join_error(self, topic: str, payload: Any, channels: ChannelClient) -> None:
        ...

    def on_channel_closed(self, topic: str, payload: Any, channels: ChannelClient) -> None:
        ...

    def on_message(self, topic: str, event: str, payload: Any, channels: ChannelClient) -> None:
        ...

    def on_reply(self, topic: str, ref: str, payload: Any, channels: ChannelClient) -> None:
        ...

    def on_control(self, message: Any, channels: ChannelClient) -> ConnectRequest | None:
        """
        Handle a message posted with `SocketClient.send()`.
        Returning a ConnectRequest makes the client (re)connect.
        """

    def on_query(self, message: Any, channels: ChannelClient) -> Any:
        """
        Answer a message posted with `SocketClient.call()`. The returned
        value is handed back to the caller.
        """
