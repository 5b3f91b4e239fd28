import gzip
import json
from typing import Any, Mapping

from gensocket.core.models.message import Frame
from gensocket.core.models.result import Error, Ok
from gensocket.core.ports.serializer import Serializer


def _dumps(message: Any) -> str:
    # NaN and Infinity are not valid JSON, the server would reject them
    return json.dumps(message, separators=(",", ":"), allow_nan=False)


class JsonSerializer(Serializer):
    """
    Plain JSON implementation of the Serializer interface.
    Messages travel as text frames.
    """
    def decode_message(self, frame: Frame, options: Mapping[str, Any] | None = None) -> Any:
        return json.loads(frame.data)

    def encode_message(self, message: Any) -> Ok[Frame] | Error:
        try:
            return Ok(Frame.text(_dumps(message)))
        except (TypeError, ValueError) as ex:
            return Error(str(ex))


class GzipJsonSerializer(Serializer):
    """
    Gzip compressed JSON. Messages travel as binary frames:

        encode = gzip(json(message))
        decode = json(gunzip(frame))
    """
    def decode_message(self, frame: Frame, options: Mapping[str, Any] | None = None) -> Any:
        return json.loads(gzip.decompress(frame.data))

    def encode_message(self, message: Any) -> Ok[Frame] | Error:
        try:
            encoded = _dumps(message).encode("utf-8")
        except (TypeError, ValueError) as ex:
            return Error(str(ex))

        return Ok(Frame.binary(gzip.compress(encoded)))
