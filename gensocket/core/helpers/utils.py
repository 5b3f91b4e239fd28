import logging
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

PROTOCOL_VSN = "2.0.0"


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)-8s [%(name)s:%(funcName)s] : %(message)s',
    )


def build_url(url: str, query_params: dict[str, str] | None = None) -> str:
    """
    Return `url` with `query_params` and the protocol version appended
    to its query string. Parameters already present in `url` are kept.
    """
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    query.extend((str(k), str(v)) for k, v in (query_params or {}).items())
    query.append(("vsn", PROTOCOL_VSN))

    return urlunsplit(parts._replace(query=urlencode(query)))
