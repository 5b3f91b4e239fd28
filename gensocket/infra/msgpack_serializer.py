import msgpack
from typing import Any, Mapping

from gensocket.core.models.message import Frame
from gensocket.core.models.result import Error, Ok
from gensocket.core.ports.serializer import Serializer


class MsgPackSerializer(Serializer):
    """
    MsgPack-based implementation of the Serializer interface.

    - binary frames
    - compact
    - str and bytes stay distinct on the wire (use_bin_type)
    """
    def decode_message(self, frame: Frame, options: Mapping[str, Any] | None = None) -> Any:
        return msgpack.unpackb(frame.data, raw=False)

    def encode_message(self, message: Any) -> Ok[Frame] | Error:
        try:
            return Ok(Frame.binary(msgpack.packb(message, use_bin_type=True)))
        except (TypeError, ValueError, OverflowError) as ex:
            return Error(str(ex))
