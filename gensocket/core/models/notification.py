from dataclasses import dataclass
from enum import Enum
from typing import Any


class NotificationKind(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    JOIN_OK = "join_ok"
    JOIN_ERROR = "join_error"
    LEAVE_REF = "leave_ref"
    LEAVE_ERROR = "leave_error"
    CHANNEL_CLOSED = "channel_closed"
    MESSAGE = "message"
    REPLY = "reply"


@dataclass(frozen=True)
class Notification:
    """
    Event forwarded by a bridge into its owner's mailbox.

    Every notification carries the id of the emitting bridge, so an owner
    driving several bridges through one mailbox can tell them apart.

    Payload shapes per kind:
    - CONNECTED: None
    - DISCONNECTED: reason
    - JOIN_OK: (topic, payload)
    - JOIN_ERROR / LEAVE_ERROR: reason
    - LEAVE_REF: ref
    - CHANNEL_CLOSED: (topic, payload)
    - MESSAGE: (topic, event, payload)
    - REPLY: (topic, ref, payload)
    """
    source: str
    kind: NotificationKind
    payload: Any = None
