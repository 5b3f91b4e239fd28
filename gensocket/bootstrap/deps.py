import json
from typing import Any, Callable

from pydantic import ValidationError

from gensocket.bootstrap.config.settings import SocketSettings
from gensocket.core.helpers.utils import setup_logging
from gensocket.core.ports.serializer import Serializer
from gensocket.core.ports.transport import Transport
from gensocket.core.socket.bridge import ChannelBridge
from gensocket.infra.json_serializer import GzipJsonSerializer, JsonSerializer
from gensocket.infra.msgpack_serializer import MsgPackSerializer
from gensocket.sync.bridge import SyncChannelBridge

SERIALIZERS: dict[str, Callable[[], Serializer]] = {
    "json": JsonSerializer,
    "gzip_json": GzipJsonSerializer,
    "msgpack": MsgPackSerializer,
}


def get_serializer(name: str) -> Serializer:
    try:
        return SERIALIZERS[name]()
    except KeyError:
        raise ValueError(
            f"Unknown serializer '{name}', expected one of: {', '.join(SERIALIZERS)}"
        ) from None


def get_settings(**overrides: Any) -> SocketSettings:
    try:
        return SocketSettings(**overrides)
    except ValidationError as ex:
        msg = ["Configuration validation failed:"]
        errs = json.loads(ex.json())
        for err in errs:
            msg.append(f"  {'.'.join(str(p) for p in err['loc'])}: {err['msg']}")
        raise SystemExit("\n".join(msg))


def build_bridge(settings: SocketSettings, transport: Transport, **kwargs: Any) -> ChannelBridge:
    """Start a ChannelBridge configured from `settings`. Must run inside an event loop."""
    setup_logging(settings.log_level)
    return ChannelBridge.start(
        transport,
        get_serializer(settings.serializer),
        settings.url,
        settings.query_params,
        settings.auto_connect,
        **kwargs,
    )


def build_sync_bridge(settings: SocketSettings, transport: Transport) -> SyncChannelBridge:
    setup_logging(settings.log_level)
    return SyncChannelBridge.start(
        transport,
        get_serializer(settings.serializer),
        settings.url,
        settings.query_params,
        settings.auto_connect,
    )
