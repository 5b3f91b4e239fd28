import asyncio
import logging
from urllib.parse import parse_qs, urlsplit

import pytest

from tests.helpers import eventually

from gensocket.core.helpers.spawn import TaskSpawner
from gensocket.core.models.message import Frame, Message
from gensocket.core.models.result import Error, Ok
from gensocket.core.socket.client import SocketClient


def make_client(handler, transport, serializer, spawner=None):
    return SocketClient(
        handler=handler,
        transport=transport,
        serializer=serializer,
        spawner=spawner,
        loop=asyncio.get_running_loop(),
    )


async def started(handler, transport, serializer):
    client = make_client(handler, transport, serializer)
    client.start()
    transport.accept()
    await eventually(lambda: client.connected)
    return client


async def joined(client, transport, topic="room:1"):
    assert isinstance(client.join(topic, {}), Ok)
    transport.reply(await transport.next_message(), "ok", {})
    await eventually(lambda: client.joined(topic))


@pytest.mark.ut
@pytest.mark.asyncio
async def test_start_connects_with_params_and_version(handler, transport, serializer):
    client = make_client(handler, transport, serializer)
    client.start()

    assert len(transport.urls) == 1
    query = parse_qs(urlsplit(transport.urls[0]).query)
    assert query == {"token": ["abc"], "vsn": ["2.0.0"]}
    assert client.running

    await client.stop()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_start_without_connect(handler, transport, serializer):
    handler.connect = False
    client = make_client(handler, transport, serializer)
    client.start()

    assert transport.urls == []

    client.send("connect")
    await eventually(lambda: transport.urls)

    assert ("control", "connect") in handler.calls
    await client.stop()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_start_twice_fails(handler, transport, serializer):
    client = make_client(handler, transport, serializer)
    client.start()

    with pytest.raises(RuntimeError):
        client.start()

    await client.stop()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_connection_events_reach_handler(handler, transport, serializer):
    client = await started(handler, transport, serializer)
    await joined(client, transport)

    transport.drop("closed by peer")
    await eventually(lambda: not client.connected)

    assert handler.calls[0] == ("connected",)
    assert handler.calls[-1] == ("disconnected", "closed by peer")
    assert not client.joined("room:1")
    await client.stop()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_channel_operations_require_connection(handler, transport, serializer):
    handler.connect = False
    client = make_client(handler, transport, serializer)
    client.start()

    assert client.join("room:1", {}) == Error("not_connected")
    assert client.push("room:1", "ping", {}) == Error("not_connected")
    assert client.leave("room:1", {}) == Error("not_joined")
    assert transport.frames == []

    await client.stop()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_join_accepted(handler, transport, serializer):
    client = await started(handler, transport, serializer)

    result = client.join("room:1", {"user": "u1"})
    request = await transport.next_message()

    assert request == Message("room:1", "phx_join", {"user": "u1"}, ref=result.value, join_ref=result.value)
    assert not client.joined("room:1")

    transport.reply(request, "ok", {"id": 1})
    await eventually(lambda: client.joined("room:1"))

    assert handler.calls[-1] == ("joined", "room:1", {"id": 1})
    await client.stop()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_join_rejected(handler, transport, serializer):
    client = await started(handler, transport, serializer)

    client.join("room:1", {})
    transport.reply(await transport.next_message(), "error", {"reason": "unauthorized"})
    await eventually(lambda: handler.calls[-1][0] == "join_error")

    assert handler.calls[-1] == ("join_error", "room:1", {"reason": "unauthorized"})
    assert not client.joined("room:1")
    # the topic can be joined again after a rejection
    assert isinstance(client.join("room:1", {}), Ok)
    await client.stop()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_join_twice_is_refused(handler, transport, serializer):
    client = await started(handler, transport, serializer)

    assert isinstance(client.join("room:1", {}), Ok)
    assert client.join("room:1", {}) == Error("already_joined")
    assert len(transport.frames) == 1

    await client.stop()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_refs_are_unique(handler, transport, serializer):
    client = await started(handler, transport, serializer)
    await joined(client, transport)

    refs = [client.push("room:1", "ping", {}).value for _ in range(5)]

    assert len(set(refs)) == 5
    await client.stop()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_push_requires_joined_topic(handler, transport, serializer):
    client = await started(handler, transport, serializer)

    assert client.push("room:1", "ping", {}) == Error("not_joined")

    client.join("room:1", {})
    # still waiting for the join reply
    assert client.push("room:1", "ping", {}) == Error("not_joined")
    await client.stop()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_push_and_reply(handler, transport, serializer):
    client = await started(handler, transport, serializer)
    await joined(client, transport)

    ref = client.push("room:1", "ping", {"n": 1}).value
    request = await transport.next_message()
    assert (request.event, request.payload, request.ref) == ("ping", {"n": 1}, ref)
    assert request.join_ref is not None

    transport.reply(request, "ok", {"pong": 1})
    await eventually(lambda: handler.calls[-1][0] == "reply")

    assert handler.calls[-1] == ("reply", "room:1", ref, {"status": "ok", "response": {"pong": 1}})
    await client.stop()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_push_encode_error_is_returned(handler, transport, serializer):
    client = await started(handler, transport, serializer)
    await joined(client, transport)
    written = len(transport.frames)

    result = client.push("room:1", "ping", {"bad": object()})

    assert isinstance(result, Error)
    assert len(transport.frames) == written
    await client.stop()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_leave_closes_channel_once(handler, transport, serializer):
    client = await started(handler, transport, serializer)
    await joined(client, transport)

    ref = client.leave("room:1", {}).value
    request = await transport.next_message()
    assert (request.event, request.ref) == ("phx_leave", ref)

    transport.reply(request, "ok", {"bye": True})
    transport.close_channel("room:1")
    transport.broadcast("room:2", "marker", {})
    await eventually(lambda: handler.calls[-1][0] == "message")

    closed = [c for c in handler.calls if c[0] == "channel_closed"]
    assert closed == [("channel_closed", "room:1", {"bye": True})]
    assert not client.joined("room:1")
    await client.stop()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_server_closes_channel(handler, transport, serializer):
    client = await started(handler, transport, serializer)
    await joined(client, transport)

    transport.deliver(Message("room:1", "phx_error", {"reason": "crash"}))
    await eventually(lambda: not client.joined("room:1"))

    assert handler.calls[-1] == ("channel_closed", "room:1", {"reason": "crash"})
    await client.stop()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_broadcast_reaches_on_message(handler, transport, serializer):
    client = await started(handler, transport, serializer)

    transport.broadcast("room:1", "new_msg", {"body": "hi"})
    await eventually(lambda: handler.calls[-1][0] == "message")

    assert handler.calls[-1] == ("message", "room:1", "new_msg", {"body": "hi"})
    await client.stop()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_call_returns_handler_answer(handler, transport, serializer):
    client = await started(handler, transport, serializer)
    handler.answer = lambda message: ("answer", message)

    assert await client.call("question", 1.0) == ("answer", "question")
    await client.stop()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_call_propagates_handler_error(handler, transport, serializer):
    client = await started(handler, transport, serializer)

    def fail(message):
        raise ValueError(message)

    handler.answer = fail

    with pytest.raises(ValueError):
        await client.call("boom", 1.0)

    # the client survives a failing query
    handler.answer = None
    assert await client.call("again", 1.0) == "again"
    await client.stop()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_call_times_out_when_not_running(handler, transport, serializer):
    client = make_client(handler, transport, serializer)

    with pytest.raises(asyncio.TimeoutError):
        await client.call("question", 0.05)


@pytest.mark.ut
@pytest.mark.asyncio
async def test_undecodable_frame_stops_client(handler, transport, serializer, caplog):
    spawner = TaskSpawner(asyncio.get_running_loop())
    client = make_client(handler, transport, serializer, spawner=spawner)
    client.start()
    transport.accept()
    await eventually(lambda: client.connected)

    with caplog.at_level(logging.ERROR, logger="core.helpers.spawn"):
        transport.listener.frame_received(Frame.text("{not json"))
        await eventually(lambda: not client.running)
        await asyncio.sleep(0)

    assert "Error occurred in task" in caplog.text
    await client.stop()


@pytest.mark.ut
@pytest.mark.asyncio
async def test_stop_closes_transport(handler, transport, serializer):
    client = await started(handler, transport, serializer)

    await client.stop()
    await client.stop()

    assert transport.closed
    assert not client.running
    assert not client.connected
