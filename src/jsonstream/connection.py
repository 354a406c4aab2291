"""asyncio stream adapter for JSON line streams.

Connects a ``JSONStream`` to an ``asyncio.StreamReader`` / ``StreamWriter``
pair, over TCP or Unix domain sockets.  ``open_connection`` and
``open_unix_connection`` dial out; ``start_server`` and ``start_unix_server``
accept connections and hand each one to a coroutine.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import platform
from dataclasses import dataclass
from typing import TYPE_CHECKING

from jsonstream.stream import JSONStream

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine
    from typing import Any

    from jsonstream.codec import JSONType
    from jsonstream.config import StreamConfig

    ConnectionHandler = Callable[["JSONConnection"], Coroutine[Any, Any, None]]

logger = logging.getLogger(__name__)

_LOCALHOST = "127.0.0.1"


# ---------------------------------------------------------------------------
# Byte sink
# ---------------------------------------------------------------------------


class StreamWriterSink:
    """``ByteSink`` over an ``asyncio.StreamWriter``.

    The transport's high-water mark is set to zero, so the completion
    returned by ``write`` resolves only once the transport's own buffer is
    empty, i.e. every byte has been handed to the kernel.
    """

    def __init__(self, writer: asyncio.StreamWriter) -> None:
        self._writer = writer
        with contextlib.suppress(AttributeError, NotImplementedError):
            writer.transport.set_write_buffer_limits(high=0)

    def write(
        self,
        data: bytes,
        /,
        *,
        on_flush: Callable[[], None] | None = None,
    ) -> asyncio.Task[None]:
        """Write *data* and return a task that completes once it is flushed.

        Args:
            data: Bytes to submit as a single write.
            on_flush: Optional callable invoked when these bytes are flushed.
        """
        self._writer.write(data)
        return asyncio.get_running_loop().create_task(self._drain(on_flush))

    async def _drain(self, on_flush: Callable[[], None] | None) -> None:
        await self._writer.drain()
        if on_flush is not None:
            on_flush()


# ---------------------------------------------------------------------------
# Connection
# ---------------------------------------------------------------------------


class JSONConnection:
    """A ``JSONStream`` bound to an asyncio reader/writer pair.

    Usage::

        async with await open_connection("127.0.0.1", 12345, oneshot=True) as conn:
            await conn.write_json(["data", {"goes": "here"}])
            reply = await conn.read_json()

    Incoming bytes are pumped into the stream by a background task started
    with ``start()``.  When the peer closes, the stream sees end-of-stream and
    any outstanding ``read_json()`` fails with ``StreamClosedError``.
    """

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        *,
        readable: bool = True,
        **config: Any,
    ) -> None:
        self._reader = reader
        self._writer = writer
        self._stream = JSONStream(StreamWriterSink(writer), readable=readable, **config)
        self._read_task: asyncio.Task[None] | None = None

    async def __aenter__(self) -> JSONConnection:
        self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    @property
    def stream(self) -> JSONStream:
        return self._stream

    @property
    def config(self) -> StreamConfig:
        return self._stream.config

    @property
    def peername(self) -> Any:
        return self._writer.get_extra_info("peername")

    @property
    def is_closing(self) -> bool:
        return self._writer.is_closing()

    def configure(self, **updates: Any) -> None:
        self._stream.configure(**updates)

    def start(self) -> None:
        """Start pumping incoming bytes into the stream (idempotent)."""
        if self._read_task is not None or not self._stream.readable:
            return
        self._read_task = asyncio.get_running_loop().create_task(self._read_loop())

    def write_json(self, data: Any, **options: Any) -> asyncio.Future[None]:
        return self._stream.write_json(data, **options)

    def read_json(self) -> asyncio.Future[JSONType]:
        return self._stream.read_json()

    async def wait_closed(self) -> None:
        """Wait until the read side reaches end-of-stream.

        Re-raises any exception an event handler raised while dispatching.
        """
        if self._read_task is not None:
            await self._read_task

    async def close(self) -> None:
        """Stop reading and close the underlying writer."""
        task = self._read_task
        if task is not None and not task.done():
            task.cancel()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

        if not self._writer.is_closing():
            self._writer.close()
        with contextlib.suppress(ConnectionError, OSError):
            await self._writer.wait_closed()
        logger.debug("JSON connection closed: peer=%s", self.peername)

    async def _read_loop(self) -> None:
        chunk_size = self._stream.config.read_chunk_size
        try:
            while chunk := await self._reader.read(chunk_size):
                self._stream.feed_data(chunk)
        except (ConnectionError, OSError):
            logger.warning("JSON connection read failed", exc_info=True)
        finally:
            self._stream.feed_eof()


# ---------------------------------------------------------------------------
# Dialing out
# ---------------------------------------------------------------------------


def _connected(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    config: dict[str, Any],
) -> JSONConnection:
    try:
        connection = JSONConnection(reader, writer, **config)
    except Exception:
        writer.close()
        raise
    connection.start()
    return connection


async def open_connection(host: str, port: int, **config: Any) -> JSONConnection:
    """Open a TCP connection and return a started ``JSONConnection``.

    Keyword arguments configure the stream (see ``StreamConfig``).
    """
    reader, writer = await asyncio.open_connection(host, port)
    logger.debug("Connected to %s:%d", host, port)
    return _connected(reader, writer, config)


async def open_unix_connection(path: str, **config: Any) -> JSONConnection:
    """Open a Unix domain socket connection and return a started ``JSONConnection``."""
    if platform.system() == "Windows":
        msg = "Unix sockets are not supported on Windows"
        raise NotImplementedError(msg)
    reader, writer = await asyncio.open_unix_connection(path)
    logger.debug("Connected to Unix socket at %s", path)
    return _connected(reader, writer, config)


# ---------------------------------------------------------------------------
# Accepting connections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ServerHandle:
    """A listening JSON server.

    ``transport_type`` is ``"tcp"`` or ``"socket"``.  For TCP, ``address``
    is the bound host and ``port`` the bound port (useful with ``port=0``);
    for Unix sockets ``address`` is the socket path and ``port`` is ``None``.
    Await ``close()`` to stop accepting clients.
    """

    transport_type: str
    address: str
    port: int | None = None
    close: Callable[[], Coroutine[Any, Any, None]] | None = None


def _client_handler(
    handler: ConnectionHandler,
    config: dict[str, Any],
) -> Callable[[asyncio.StreamReader, asyncio.StreamWriter], Coroutine[Any, Any, None]]:
    async def _client_connected(
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        connection = _connected(reader, writer, config)
        logger.debug("Accepted JSON connection: peer=%s", connection.peername)
        try:
            await handler(connection)
        finally:
            await connection.close()

    return _client_connected


async def start_server(
    handler: ConnectionHandler,
    host: str = _LOCALHOST,
    port: int = 0,
    **config: Any,
) -> ServerHandle:
    """Accept TCP connections, passing each to *handler* as a ``JSONConnection``.

    With ``port=0`` the OS picks a free port; it is reported on the handle.
    The connection is closed when *handler* returns.
    """
    # Fail on bad configuration here rather than once per accepted client.
    JSONStream(**config)
    server = await asyncio.start_server(_client_handler(handler, config), host=host, port=port)

    addrs = server.sockets[0].getsockname() if server.sockets else (host, port)
    bound_port: int = addrs[1]
    logger.info("JSON server listening on %s:%d", host, bound_port)

    async def _close() -> None:
        server.close()
        await server.wait_closed()
        logger.info("JSON server stopped")

    return ServerHandle(transport_type="tcp", address=host, port=bound_port, close=_close)


async def start_unix_server(
    handler: ConnectionHandler,
    path: str,
    **config: Any,
) -> ServerHandle:
    """Accept Unix domain socket connections at *path*.

    Any stale socket file is removed before binding and after shutdown.
    """
    if platform.system() == "Windows":
        msg = "Unix sockets are not supported on Windows"
        raise NotImplementedError(msg)
    JSONStream(**config)

    # A socket file left behind by a crashed server would make bind() fail.
    with contextlib.suppress(FileNotFoundError):
        os.unlink(path)
    server = await asyncio.start_unix_server(_client_handler(handler, config), path=path)
    logger.info("JSON server listening on %s", path)

    async def _close() -> None:
        server.close()
        await server.wait_closed()
        with contextlib.suppress(FileNotFoundError):
            os.unlink(path)
        logger.info("JSON server stopped")

    return ServerHandle(transport_type="socket", address=path, port=None, close=_close)


__all__ = [
    "JSONConnection",
    "ServerHandle",
    "StreamWriterSink",
    "open_connection",
    "open_unix_connection",
    "start_server",
    "start_unix_server",
]
