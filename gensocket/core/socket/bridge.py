import asyncio
import logging
import uuid
from typing import Any

from gensocket.core.helpers.mailbox import Mailbox
from gensocket.core.helpers.spawn import TaskSpawner
from gensocket.core.models.control import (
    Connect,
    ConnectRequest,
    IsJoined,
    Join,
    Leave,
    Push,
    SocketInit,
)
from gensocket.core.models.notification import Notification, NotificationKind
from gensocket.core.models.result import (
    TIMEOUT,
    Connected,
    ConnectStatus,
    Disconnected,
    Error,
    Ok,
)
from gensocket.core.ports.handler import ChannelClient, SocketHandler
from gensocket.core.ports.serializer import Serializer
from gensocket.core.ports.transport import Transport
from gensocket.core.socket.client import SocketClient

DEFAULT_TIMEOUT = 5.0


class ChannelBridge(SocketHandler):
    """
    Blocking facade over a SocketClient, meant for tests and scripts.

    The bridge is the handler of its own SocketClient. Every callback is
    forwarded right away as a Notification tagged with the bridge id into
    the owner's Mailbox. The public operations post a request to the client
    and then wait on the mailbox for the notification answering it:

        caller -> join() -> client.send(Join) -> on_control -> channels.join
        server reply -> on_joined -> mailbox.put(JOIN_OK) -> join() returns

    Waits only consume notifications coming from this bridge and having the
    expected kind (and topic/ref where one is known); anything else stays in
    the mailbox for a later call. A wait that times out does not cancel the
    request: its answer is still delivered to the mailbox and may satisfy a
    later call with the same pattern.

    Several bridges may share one mailbox. Protocol failures are returned
    as Error values; the bridge keeps running until `stop()`.

    The bridge is simple on purpose and not suited for production traffic.
    """
    def __init__(
        self,
        transport: Transport,
        serializer: Serializer,
        url: str,
        query_params: dict[str, str] | None = None,
        auto_connect: bool = True,
        mailbox: Mailbox | None = None,
        spawner: TaskSpawner | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self.id = f"bridge-{uuid.uuid4().hex[:12]}"
        self.mailbox = mailbox if mailbox is not None else Mailbox()

        self._url = url
        self._query_params = dict(query_params or {})
        self._auto_connect = auto_connect
        self._client = SocketClient(
            handler=self,
            transport=transport,
            serializer=serializer,
            spawner=spawner,
            loop=loop,
        )

        self._logger = logging.getLogger("core.socket.bridge")

    def __repr__(self) -> str:
        return f"<ChannelBridge {self.id} {self._url}>"

    @classmethod
    def start(
        cls,
        transport: Transport,
        serializer: Serializer,
        url: str,
        query_params: dict[str, str] | None = None,
        auto_connect: bool = True,
        **kwargs: Any,
    ) -> "ChannelBridge":
        """Create a bridge and start its client."""
        bridge = cls(transport, serializer, url, query_params, auto_connect, **kwargs)
        bridge._client.start()
        return bridge

    async def stop(self) -> None:
        await self._client.stop()

    @property
    def client(self) -> SocketClient:
        return self._client

    def connect(self, url: str | None = None, query_params: dict[str, str] | None = None) -> None:
        """
        Ask the client to connect, optionally replacing the url and query
        params given at start. Returns immediately; use
        `wait_connect_status()` to learn the outcome.
        """
        self._client.send(Connect(url, query_params))

    async def wait_connect_status(self, timeout: float = DEFAULT_TIMEOUT) -> ConnectStatus:
        notification = await self._receive(
            lambda n: n.kind in (NotificationKind.CONNECTED, NotificationKind.DISCONNECTED),
            timeout,
        )
        if notification is None:
            return Error(TIMEOUT)

        if notification.kind is NotificationKind.CONNECTED:
            return Connected()

        return Disconnected(notification.payload)

    async def join(
        self,
        topic: str,
        payload: Any = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> Ok[tuple[str, Any]] | Error:
        """
        Join `topic` and wait for the server's answer.

        Returns Ok((topic, response)) when the join is accepted and
        Error(reason) when it is refused, by the server
        (`("server_rejected", topic, response)`) or by the client.
        """
        self._client.send(Join(topic, {} if payload is None else payload))

        notification = await self._receive(
            lambda n: n.kind in (NotificationKind.JOIN_OK, NotificationKind.JOIN_ERROR),
            timeout,
        )
        if notification is None:
            return Error(TIMEOUT)

        if notification.kind is NotificationKind.JOIN_OK:
            return Ok(notification.payload)

        return Error(notification.payload)

    async def leave(
        self,
        topic: str,
        payload: Any = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> Ok[Any] | Error:
        """
        Leave `topic`. Waits for the client to accept the request, then
        for the channel to be closed; `timeout` applies to each wait.
        """
        self._client.send(Leave(topic, {} if payload is None else payload))

        notification = await self._receive(
            lambda n: n.kind in (NotificationKind.LEAVE_REF, NotificationKind.LEAVE_ERROR),
            timeout,
        )
        if notification is None:
            return Error(TIMEOUT)

        if notification.kind is NotificationKind.LEAVE_ERROR:
            return Error(notification.payload)

        closed = await self._receive(
            lambda n: n.kind is NotificationKind.CHANNEL_CLOSED and n.payload[0] == topic,
            timeout,
        )
        if closed is None:
            return Error(TIMEOUT)

        return Ok(closed.payload[1])

    async def push(
        self,
        topic: str,
        event: str,
        payload: Any = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> Ok[str] | Error:
        """Push a message and return its ref, without waiting for a reply."""
        try:
            return await self._client.call(
                Push(topic, event, {} if payload is None else payload),
                timeout,
            )
        except asyncio.TimeoutError:
            return Error(TIMEOUT)

    async def push_sync(
        self,
        topic: str,
        event: str,
        payload: Any = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> Ok[Any] | Error:
        """Push a message and wait for the server reply carrying its ref."""
        result = await self.push(topic, event, payload, timeout)
        if isinstance(result, Error):
            return result

        ref = result.value
        notification = await self._receive(
            lambda n: (
                n.kind is NotificationKind.REPLY
                and n.payload[0] == topic
                and n.payload[1] == ref
            ),
            timeout,
        )
        if notification is None:
            return Error(TIMEOUT)

        return Ok(notification.payload[2])

    async def await_message(self, timeout: float = DEFAULT_TIMEOUT) -> Ok[tuple[str, str, Any]] | Error:
        """Wait for the next message pushed by the server, on any topic."""
        notification = await self._receive(lambda n: n.kind is NotificationKind.MESSAGE, timeout)
        if notification is None:
            return Error(TIMEOUT)

        return Ok(notification.payload)

    async def joined(self, topic: str, timeout: float = DEFAULT_TIMEOUT) -> bool:
        """Whether `topic` is joined. An unanswered query counts as not joined."""
        try:
            return await self._client.call(IsJoined(topic), timeout)
        except asyncio.TimeoutError:
            self._logger.warning(f"{self.id} - joined query for {topic} timed out")
            return False

    # SocketHandler
    def init(self) -> SocketInit:
        return SocketInit(self._auto_connect, self._url, self._query_params)

    def on_connected(self, channels: ChannelClient) -> None:
        self._notify(NotificationKind.CONNECTED)

    def on_disconnected(self, reason: Any) -> None:
        self._notify(NotificationKind.DISCONNECTED, reason)

    def on_joined(self, topic: str, payload: Any, channels: ChannelClient) -> None:
        self._notify(NotificationKind.JOIN_OK, (topic, payload))

    def on_join_error(self, topic: str, payload: Any, channels: ChannelClient) -> None:
        self._notify(NotificationKind.JOIN_ERROR, ("server_rejected", topic, payload))

    def on_channel_closed(self, topic: str, payload: Any, channels: ChannelClient) -> None:
        self._notify(NotificationKind.CHANNEL_CLOSED, (topic, payload))

    def on_message(self, topic: str, event: str, payload: Any, channels: ChannelClient) -> None:
        self._notify(NotificationKind.MESSAGE, (topic, event, payload))

    def on_reply(self, topic: str, ref: str, payload: Any, channels: ChannelClient) -> None:
        self._notify(NotificationKind.REPLY, (topic, ref, payload))

    def on_control(self, message: Any, channels: ChannelClient) -> ConnectRequest | None:
        if isinstance(message, Connect):
            return ConnectRequest(message.url, message.query_params)

        if isinstance(message, Join):
            result = channels.join(message.topic, message.payload)
            if isinstance(result, Error):
                self._notify(NotificationKind.JOIN_ERROR, result.reason)

        elif isinstance(message, Leave):
            result = channels.leave(message.topic, message.payload)
            if isinstance(result, Error):
                self._notify(NotificationKind.LEAVE_ERROR, result.reason)
            else:
                self._notify(NotificationKind.LEAVE_REF, result.value)

        else:
            self._logger.warning(f"{self.id} - Unknown control message {message}")

        return None

    def on_query(self, message: Any, channels: ChannelClient) -> Any:
        if isinstance(message, Push):
            return channels.push(message.topic, message.event, message.payload)

        if isinstance(message, IsJoined):
            return channels.joined(message.topic)

        raise ValueError(f"Unknown query {message}")

    def _notify(self, kind: NotificationKind, payload: Any = None) -> None:
        self._logger.debug(f"{self.id} - {kind.value}: {payload}")
        self.mailbox.put(Notification(self.id, kind, payload))

    async def _receive(self, match, timeout: float | None) -> Notification | None:
        return await self.mailbox.receive(
            lambda n: n.source == self.id and match(n),
            timeout,
        )
