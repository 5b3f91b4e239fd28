from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class FrameKind(str, Enum):
    TEXT = "text"
    BINARY = "binary"


@dataclass(frozen=True)
class Frame:
    """
    Wire-level encoded form of a message, as produced by a Serializer
    and written by a Transport. Text frames carry a `str`, binary frames
    carry `bytes`.
    """
    kind: FrameKind
    data: str | bytes

    @classmethod
    def text(cls, data: str) -> "Frame":
        return cls(FrameKind.TEXT, data)

    @classmethod
    def binary(cls, data: bytes) -> "Frame":
        return cls(FrameKind.BINARY, data)


@dataclass
class Message:
    """
    Channel protocol message exchanged with the server.
    The serializer only sees the wire form returned by `to_wire()`,
    while the socket client manipulates this native Python form.
    """
    topic: str
    """
    Topic the message is scoped to, e.g. "room:lobby"
    """

    event: str
    """
    Event name, e.g. "phx_join", "phx_reply" or any application event
    """

    payload: Any = field(default_factory=dict)
    """
    Arbitrary serializable payload
    """

    ref: str | None = None
    """
    Correlation token minted by the client for each outgoing message
    """

    join_ref: str | None = None
    """
    Ref of the join that opened the channel this message belongs to
    """

    def to_wire(self) -> list[Any]:
        """Return the array form `[join_ref, ref, topic, event, payload]`."""
        return [self.join_ref, self.ref, self.topic, self.event, self.payload]

    @classmethod
    def from_wire(cls, data: Any) -> "Message":
        if isinstance(data, dict):
            return cls(
                topic=data["topic"],
                event=data["event"],
                payload=data.get("payload"),
                ref=data.get("ref"),
                join_ref=data.get("join_ref"),
            )

        join_ref, ref, topic, event, payload = data
        return cls(topic=topic, event=event, payload=payload, ref=ref, join_ref=join_ref)
