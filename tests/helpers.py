import asyncio
from typing import Any, Callable

from tests.fake.fake_transport import FakeTransport

from gensocket.core.models.result import Connected, Ok
from gensocket.core.ports.serializer import Serializer
from gensocket.core.socket.bridge import ChannelBridge

URL = "ws://localhost:4000/socket/websocket"


async def eventually(predicate: Callable[[], bool], timeout: float = 1.0) -> None:
    """Yield to the event loop until `predicate()` holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not reached in time")
        await asyncio.sleep(0.001)


async def connected_bridge(
    transport: FakeTransport,
    serializer: Serializer,
    **kwargs: Any,
) -> ChannelBridge:
    bridge = ChannelBridge.start(transport, serializer, URL, **kwargs)
    await transport.wait_open()
    transport.accept()
    assert await bridge.wait_connect_status(1.0) == Connected()
    return bridge


async def joined_bridge(
    transport: FakeTransport,
    serializer: Serializer,
    topic: str = "room:1",
    **kwargs: Any,
) -> ChannelBridge:
    bridge = await connected_bridge(transport, serializer, **kwargs)
    task = asyncio.create_task(bridge.join(topic, {}, 1.0))
    request = await transport.next_message()
    transport.reply(request, "ok", {})
    assert await task == Ok((topic, {}))
    return bridge
