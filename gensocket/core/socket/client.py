import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from gensocket.core.helpers.spawn import TaskSpawner
from gensocket.core.helpers.utils import build_url
from gensocket.core.models.control import ConnectRequest
from gensocket.core.models.message import Frame, Message
from gensocket.core.models.result import Error, Ok
from gensocket.core.ports.handler import ChannelClient, SocketHandler
from gensocket.core.ports.serializer import Serializer
from gensocket.core.ports.transport import Transport, TransportListener


class ChannelStatus(str, Enum):
    JOINING = "joining"
    JOINED = "joined"
    LEAVING = "leaving"


@dataclass
class _Channel:
    join_ref: str
    status: ChannelStatus = ChannelStatus.JOINING
    leave_ref: str | None = None


@dataclass
class _Opened:
    pass


@dataclass
class _Closed:
    reason: Any


@dataclass
class _Received:
    frame: Frame


@dataclass
class _Control:
    message: Any


@dataclass
class _Query:
    message: Any
    future: asyncio.Future[Any] = field(repr=False)


class SocketClient(TransportListener, ChannelClient):
    """
    Hosts a SocketHandler and drives it from a single asyncio task.

    Every input of the client goes through one inbox queue and is handled
    strictly in arrival order:
    - transport events (connection made/lost, incoming frames)
    - control messages posted with `send()`
    - queries posted with `call()`, whose answer is returned to the caller

    Incoming frames are decoded with the configured Serializer and routed
    to the handler: replies to a pending join become `on_joined` or
    `on_join_error`, replies to a pending leave and server-side closes
    become `on_channel_closed`, other replies become `on_reply`, anything
    else is an `on_message`.

    The client keeps track of joined topics and mints one ref per outgoing
    message. It does not reconnect, send heartbeats or retry anything: the
    handler decides when to connect again.

    A frame that cannot be decoded is fatal: the exception ends the client
    task and is logged by the TaskSpawner.
    """
    def __init__(
        self,
        handler: SocketHandler,
        transport: Transport,
        serializer: Serializer,
        spawner: TaskSpawner | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._loop = loop or asyncio.get_running_loop()
        self._handler = handler
        self._transport = transport
        self._serializer = serializer
        self._spawner = spawner or TaskSpawner(self._loop)

        self._inbox: asyncio.Queue[Any] = asyncio.Queue()
        self._channels: dict[str, _Channel] = {}
        self._refs = itertools.count(1)
        self._task: asyncio.Task[None] | None = None

        self._url = ""
        self._query_params: dict[str, str] = {}
        self.connected = False

        self._logger = logging.getLogger("core.socket.client")

    @property
    def url(self) -> str:
        return self._url

    @property
    def query_params(self) -> dict[str, str]:
        return dict(self._query_params)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task[None]:
        """
        Initialize the handler and start processing events.

        The connection is requested right away when the handler's
        `init()` asks for it.
        """
        if self._task is not None:
            raise RuntimeError("Socket client already started")

        init = self._handler.init()
        self._url = init.url
        self._query_params = dict(init.query_params)

        self._task = self._spawner.spawn(self._run(), name=f"socket-client:{self._url}")
        if init.connect:
            self._connect()

        return self._task

    async def stop(self) -> None:
        """
        Stop the event loop task and close the transport.
        Safe to call multiple times.
        """
        if self._task is not None and not self._task.done():
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)

        self._transport.close()
        self.connected = False
        self._channels.clear()

    def send(self, message: Any) -> None:
        """Post a control message, handled later by `handler.on_control()`."""
        self._post(_Control(message))

    async def call(self, message: Any, timeout: float | None = None) -> Any:
        """
        Post a query handled by `handler.on_query()` and wait for its answer.

        Raises asyncio.TimeoutError if no answer comes within `timeout`
        seconds. The query is still handled later in that case, only the
        answer is dropped.
        """
        future: asyncio.Future[Any] = self._loop.create_future()
        self._post(_Query(message, future))
        return await asyncio.wait_for(future, timeout)

    # TransportListener. Transports may report from another thread.
    def connection_made(self) -> None:
        self._post(_Opened())

    def frame_received(self, frame: Frame) -> None:
        self._post(_Received(frame))

    def connection_lost(self, reason: Any) -> None:
        self._post(_Closed(reason))

    # ChannelClient
    def join(self, topic: str, payload: Any) -> Ok[str] | Error:
        if not self.connected:
            return Error("not_connected")

        if topic in self._channels:
            return Error("already_joined")

        ref = self._next_ref()
        result = self._write(Message(topic, "phx_join", payload, ref=ref, join_ref=ref))
        if isinstance(result, Ok):
            self._channels[topic] = _Channel(join_ref=ref)

        return result

    def leave(self, topic: str, payload: Any) -> Ok[str] | Error:
        channel = self._channels.get(topic)
        if channel is None:
            return Error("not_joined")

        if not self.connected:
            return Error("not_connected")

        ref = self._next_ref()
        result = self._write(
            Message(topic, "phx_leave", payload, ref=ref, join_ref=channel.join_ref)
        )
        if isinstance(result, Ok):
            channel.status = ChannelStatus.LEAVING
            channel.leave_ref = ref

        return result

    def push(self, topic: str, event: str, payload: Any) -> Ok[str] | Error:
        if not self.connected:
            return Error("not_connected")

        channel = self._channels.get(topic)
        if channel is None or channel.status is not ChannelStatus.JOINED:
            return Error("not_joined")

        ref = self._next_ref()
        return self._write(Message(topic, event, payload, ref=ref, join_ref=channel.join_ref))

    def joined(self, topic: str) -> bool:
        channel = self._channels.get(topic)
        return channel is not None and channel.status is ChannelStatus.JOINED

    async def _run(self) -> None:
        while True:
            event = await self._inbox.get()
            self._dispatch(event)

    def _dispatch(self, event: Any) -> None:
        if isinstance(event, _Opened):
            self.connected = True
            self._logger.info(f"Connected to {self._url}")
            self._handler.on_connected(self)

        elif isinstance(event, _Closed):
            self.connected = False
            self._channels.clear()
            self._logger.info(f"Disconnected from {self._url}: {event.reason}")
            self._handler.on_disconnected(event.reason)

        elif isinstance(event, _Received):
            data = self._serializer.decode_message(event.frame)
            self._route(Message.from_wire(data))

        elif isinstance(event, _Control):
            request = self._handler.on_control(event.message, self)
            if isinstance(request, ConnectRequest):
                if request.url is not None:
                    self._url = request.url
                if request.query_params is not None:
                    self._query_params = dict(request.query_params)
                self._connect()

        elif isinstance(event, _Query):
            self._answer(event)

        else:
            self._logger.warning(f"Unexpected event dropped: {event}")

    def _answer(self, query: _Query) -> None:
        try:
            result = self._handler.on_query(query.message, self)
        except Exception as ex:
            if not query.future.done():
                query.future.set_exception(ex)
            return

        if not query.future.done():
            query.future.set_result(result)
        else:
            self._logger.debug(f"Answer to {query.message} dropped, caller gave up")

    def _route(self, message: Message) -> None:
        topic, event, payload = message.topic, message.event, message.payload
        channel = self._channels.get(topic)

        if event == "phx_reply":
            status = payload.get("status") if isinstance(payload, dict) else None
            response = payload.get("response", {}) if isinstance(payload, dict) else payload

            if (
                channel is not None
                and channel.status is ChannelStatus.JOINING
                and message.ref == channel.join_ref
            ):
                if status == "ok":
                    channel.status = ChannelStatus.JOINED
                    self._handler.on_joined(topic, response, self)
                else:
                    del self._channels[topic]
                    self._handler.on_join_error(topic, response, self)

            elif (
                channel is not None
                and channel.status is ChannelStatus.LEAVING
                and message.ref == channel.leave_ref
            ):
                del self._channels[topic]
                self._handler.on_channel_closed(topic, response, self)

            else:
                self._handler.on_reply(topic, message.ref, payload, self)

        elif event in ("phx_close", "phx_error"):
            if channel is None:
                self._logger.debug(f"{event} for unknown topic {topic} ignored")
                return

            del self._channels[topic]
            self._handler.on_channel_closed(topic, payload, self)

        else:
            self._handler.on_message(topic, event, payload, self)

    def _connect(self) -> None:
        url = build_url(self._url, self._query_params)
        self._logger.debug(f"Connecting to {url}")
        self._transport.open(url, self)

    def _next_ref(self) -> str:
        return str(next(self._refs))

    def _write(self, message: Message) -> Ok[str] | Error:
        encoded = self._serializer.encode_message(message.to_wire())
        if isinstance(encoded, Error):
            self._logger.warning(f"Cannot encode {message.event} on {message.topic}: {encoded.reason}")
            return encoded

        self._transport.write(encoded.value)
        return Ok(message.ref)

    def _post(self, event: Any) -> None:
        self._loop.call_soon_threadsafe(self._inbox.put_nowait, event)
