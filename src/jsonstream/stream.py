"""Line-delimited JSON framing over an abstract byte stream.

``JSONStream`` sits between a transport and application code.  The transport
pushes bytes in with ``feed_data`` / ``feed_eof`` and receives encoded lines
through a ``ByteSink``; the application consumes decoded values either through
the ``on_json`` / ``on_json_error`` events or one at a time with
``read_json()``.

Usage::

    stream = JSONStream(sink, on_json=handle, on_json_error=report)
    stream.feed_data(b'{"data":"for","x":"event"}\\n')  # calls handle({...})
    await stream.write_json(["the", "data", "here"])
"""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import TYPE_CHECKING, Any, Protocol

from jsonstream.buffer import LineBuffer
from jsonstream.codec import decode_line, encode
from jsonstream.config import StreamConfig
from jsonstream.errors import (
    ConfigurationError,
    EncodeError,
    MissingHandlerError,
    NotWritableError,
    PendingReadError,
    StreamClosedError,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from jsonstream.codec import DecodeResult, JSONType
    from jsonstream.errors import DecodeError

logger = logging.getLogger(__name__)

_EVENTS = ("on_json", "on_json_error")


class ByteSink(Protocol):
    """Outbound side of a transport.

    ``write`` submits *data* as a single write and returns an awaitable that
    completes once the bytes are flushed.  Keyword *options* are sink-specific
    and passed through untouched by ``JSONStream.write_json``.
    """

    def write(self, data: bytes, /, **options: Any) -> Awaitable[Any]: ...


def _chain_flush(flushed: asyncio.Future[None], completion: asyncio.Future[Any]) -> None:
    # The sink outcome is always retrieved, even after *flushed* was cancelled.
    if completion.cancelled():
        if not flushed.done():
            flushed.cancel()
        return
    exc = completion.exception()
    if flushed.done():
        return
    if exc is not None:
        flushed.set_exception(exc)
    else:
        flushed.set_result(None)


class JSONStream:
    """Send and receive JSON values as delimiter-terminated lines.

    Event handlers may be supplied as callables (``on_json=...``) or by
    overriding the ``on_json`` / ``on_json_error`` methods in a subclass.
    A readable stream must have both handlers unless it is configured with
    ``oneshot=True``, in which case lines are only consumed by ``read_json()``.
    """

    def __init__(
        self,
        sink: ByteSink | None = None,
        *,
        readable: bool = True,
        **config: Any,
    ) -> None:
        self._sink = sink
        self._readable = readable
        self._buffer = LineBuffer()
        self._pending: asyncio.Future[JSONType] | None = None
        self._draining = False
        self._eof = False
        self._config = StreamConfig()
        self.configure(**config)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(eol={self._config.eol!r}, "
            f"buffered={len(self._buffer)}, pending_read={self.has_pending_read})"
        )

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    @property
    def config(self) -> StreamConfig:
        return self._config

    @property
    def sink(self) -> ByteSink | None:
        return self._sink

    @property
    def readable(self) -> bool:
        return self._readable

    @property
    def buffered_bytes(self) -> int:
        """Number of received bytes not yet consumed into lines."""
        return len(self._buffer)

    @property
    def at_eof(self) -> bool:
        return self._eof

    @property
    def has_pending_read(self) -> bool:
        return self._live_pending() is not None

    def configure(self, **updates: Any) -> None:
        """Apply configuration *updates*.

        Raises:
            pydantic.ValidationError: If a value is invalid.
            MissingHandlerError: If the stream is readable, not in oneshot
                mode, and an event handler is missing.  The previous
                configuration stays in force.
        """
        config = self._config.merged(**updates)
        if self._readable and not config.oneshot:
            for event in _EVENTS:
                if not self._can_event(config, event):
                    raise MissingHandlerError(event)
        self._config = config
        if self._readable and self._buffer:
            # A changed eol or a switch out of oneshot mode can expose lines.
            self._drain()

    def _can_event(self, config: StreamConfig, event: str) -> bool:
        if getattr(config, event) is not None:
            return True
        return getattr(type(self), event) is not getattr(JSONStream, event)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_json(self, data: JSONType) -> None:
        """Handle a decoded value; invokes the configured ``on_json`` callback."""
        callback = self._config.on_json
        if callback is None:
            msg = "No on_json handler configured"
            raise ConfigurationError(msg)
        callback(data)

    def on_json_error(self, error: DecodeError, line: str) -> None:
        """Handle an undecodable line; invokes the configured ``on_json_error`` callback."""
        callback = self._config.on_json_error
        if callback is None:
            msg = "No on_json_error handler configured"
            raise ConfigurationError(msg)
        callback(error, line)

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    def feed_data(self, data: bytes) -> int:
        """Buffer *data* and dispatch every complete line it completes.

        Returns:
            The number of bytes (lines plus delimiters) consumed by this pass.
        """
        self._check_readable()
        if self._eof:
            msg = "Cannot feed data after end-of-stream"
            raise StreamClosedError(msg)
        self._buffer.feed(data)
        return self._drain()

    def feed_eof(self) -> None:
        """Mark end-of-stream.

        A trailing partial line is discarded, never decoded.  An outstanding
        ``read_json()`` that no buffered line can satisfy fails with
        ``StreamClosedError``.
        """
        if self._eof:
            return
        self._eof = True
        dropped = self._buffer.discard_partial(self._config.eol_bytes)
        if dropped:
            logger.debug("Discarding %d bytes of unterminated trailing line at EOF", len(dropped))
        pending = self._live_pending()
        if pending is not None and not self._buffer.has_line(self._config.eol_bytes):
            self._pending = None
            logger.debug("Failing pending read_json() at EOF")
            pending.set_exception(StreamClosedError("Stream reached end-of-stream"))

    def read_json(self) -> asyncio.Future[JSONType]:
        """Claim the next decoded line.

        The returned future resolves with the next decoded value, or fails
        with ``DecodeError`` if that line is malformed.  The line is delivered
        here instead of to ``on_json`` / ``on_json_error``.  If a complete
        line is already buffered the future is resolved before returning.

        Raises:
            PendingReadError: If another ``read_json()`` is still outstanding.
        """
        self._check_readable()
        if self._live_pending() is not None:
            msg = "A read_json() request is already outstanding"
            raise PendingReadError(msg)

        future: asyncio.Future[JSONType] = asyncio.get_running_loop().create_future()
        buffered = self._buffer.has_line(self._config.eol_bytes)
        if self._eof and not buffered:
            future.set_exception(StreamClosedError("Stream reached end-of-stream"))
            return future

        self._pending = future
        future.add_done_callback(self._release_pending)
        if buffered:
            self._drain()
        return future

    def _check_readable(self) -> None:
        if not self._readable:
            msg = "Stream was not opened for reading"
            raise ConfigurationError(msg)

    def _live_pending(self) -> asyncio.Future[JSONType] | None:
        # A cancelled waiter loses its claim before its done-callbacks run.
        if self._pending is not None and self._pending.done():
            self._pending = None
        return self._pending

    def _release_pending(self, future: asyncio.Future[JSONType]) -> None:
        if self._pending is future:
            self._pending = None
        if future.cancelled():
            logger.debug("Pending read_json() cancelled")

    def _drain(self) -> int:
        if self._draining:
            return 0
        self._draining = True
        consumed = 0
        try:
            while True:
                pending = self._live_pending()
                if pending is None and self._config.oneshot:
                    break
                eol = self._config.eol_bytes
                line = self._buffer.pop_line(eol)
                if line is None:
                    break
                consumed += len(line) + len(eol)
                self._dispatch(decode_line(line, encoding=self._config.encoding), pending)
        finally:
            self._draining = False
        return consumed

    def _dispatch(
        self,
        result: DecodeResult,
        pending: asyncio.Future[JSONType] | None,
    ) -> None:
        if pending is not None:
            self._pending = None
            if result.error is None:
                pending.set_result(result.value)
            else:
                logger.debug("Failing pending read_json(): %s", result.error.reason)
                pending.set_exception(result.error)
            return

        if result.error is None:
            self.on_json(result.value)
        else:
            logger.debug("Undecodable line: %s", result.error.reason)
            self.on_json_error(result.error, result.error.line)

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    def write_json(self, data: Any, **options: Any) -> asyncio.Future[None]:
        """Write *data* as one JSON line.

        *options* are passed to the sink's ``write``.  The returned future
        resolves once the sink reports the line flushed; a transport failure
        is set on it, so callers that do not await it should add a done
        callback to observe the failure.

        Raises:
            EncodeError: If *data* cannot be encoded; nothing is written.
            NotWritableError: If the stream has no sink.
        """
        if self._sink is None:
            msg = "Stream has no byte sink to write to"
            raise NotWritableError(msg)

        config = self._config
        payload = encode(data, encoding=config.encoding, ensure_ascii=config.ensure_ascii)
        eol = config.eol_bytes
        frame = payload + eol
        # The first delimiter must be the appended one, including matches
        # that start in the payload and end inside the delimiter.
        if frame.find(eol) != len(payload):
            msg = f"Encoded value collides with the line ending {config.eol!r}"
            raise EncodeError(msg)

        completion = asyncio.ensure_future(self._sink.write(frame, **options))
        flushed: asyncio.Future[None] = completion.get_loop().create_future()
        completion.add_done_callback(functools.partial(_chain_flush, flushed))
        return flushed


__all__ = ["ByteSink", "JSONStream"]
