from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class SocketInit:
    """
    Result of `SocketHandler.init()`: whether to connect right away,
    and the endpoint to use.
    """
    connect: bool
    url: str
    query_params: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ConnectRequest:
    """
    Returned by `SocketHandler.on_control()` to make the client (re)connect.
    None fields keep the values currently configured on the client.
    """
    url: str | None = None
    query_params: dict[str, str] | None = None


@dataclass(frozen=True)
class Connect:
    url: str | None = None
    query_params: dict[str, str] | None = None


@dataclass(frozen=True)
class Join:
    topic: str
    payload: Any


@dataclass(frozen=True)
class Leave:
    topic: str
    payload: Any


@dataclass(frozen=True)
class Push:
    topic: str
    event: str
    payload: Any


@dataclass(frozen=True)
class IsJoined:
    topic: str
