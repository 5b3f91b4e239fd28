from typing import Any, Mapping, Protocol

from gensocket.core.models.message import Frame
from gensocket.core.models.result import Error, Ok


class Serializer(Protocol):
    """
    Defines the interface for encoding/decoding messages exchanged
    over the socket transport.

    Implementations must be:
    - pure (no side effects, no state)
    - exact: decode_message(encode_message(m)) == m for every message
      representable by the underlying format
    """

    def decode_message(self, frame: Frame, options: Mapping[str, Any] | None = None) -> Any:
        """
        Decode a frame received from the server.

        Only trusted, protocol-conformant frames are expected here: a
        malformed frame raises and is not turned into an error value.
        """

    def encode_message(self, message: Any) -> Ok[Frame] | Error:
        """
        Encode a message into a frame suitable for the transport.

        Returns an Error when the message holds values the format
        cannot represent.
        """
