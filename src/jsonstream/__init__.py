"""jsonstream: send and receive lines of JSON data over asyncio byte streams."""

from jsonstream.codec import DecodeResult, decode, decode_line, encode
from jsonstream.config import StreamConfig
from jsonstream.connection import (
    JSONConnection,
    ServerHandle,
    StreamWriterSink,
    open_connection,
    open_unix_connection,
    start_server,
    start_unix_server,
)
from jsonstream.errors import (
    ConfigurationError,
    DecodeError,
    EncodeError,
    JSONStreamError,
    MissingHandlerError,
    NotWritableError,
    PendingReadError,
    StreamClosedError,
)
from jsonstream.stream import ByteSink, JSONStream
from jsonstream.version import get_jsonstream_version

__version__ = get_jsonstream_version()

__all__ = [
    "ByteSink",
    "ConfigurationError",
    "DecodeError",
    "DecodeResult",
    "EncodeError",
    "JSONConnection",
    "JSONStream",
    "JSONStreamError",
    "MissingHandlerError",
    "NotWritableError",
    "PendingReadError",
    "ServerHandle",
    "StreamClosedError",
    "StreamConfig",
    "StreamWriterSink",
    "decode",
    "decode_line",
    "encode",
    "open_connection",
    "open_unix_connection",
    "start_server",
    "start_unix_server",
]
