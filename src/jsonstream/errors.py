"""Exception hierarchy for JSON line streams.

Every error carries a machine-readable ``code`` so callers can branch on the
failure kind without string matching.  Decode failures additionally carry a
fixed ``category`` that distinguishes them from other stream failures.
"""

from __future__ import annotations


class JSONStreamError(Exception):
    """Base class for all errors raised by this package."""

    code: str = "JSONSTREAM"


class ConfigurationError(JSONStreamError, ValueError):
    """Raised when a stream is configured in a way it cannot operate."""

    code: str = "CONFIGURATION"


class MissingHandlerError(ConfigurationError):
    """Raised when a readable stream has no way to consume incoming lines."""

    code: str = "MISSING_HANDLER"

    def __init__(self, event: str) -> None:
        self.event = event
        super().__init__(f"Expected either an {event} callback or to be able to ->{event}")


class DecodeError(JSONStreamError):
    """A received line could not be decoded.

    Attributes:
        reason: Diagnostic message from the decoder.
        line: The offending line as text (delimiter excluded).
        raw: The offending line exactly as it arrived on the wire.
    """

    code: str = "DECODE"
    category: str = "decode"

    def __init__(self, reason: str, line: str, raw: bytes | None = None) -> None:
        self.reason = reason
        self.line = line
        self.raw = raw if raw is not None else line.encode("utf-8", errors="replace")
        super().__init__(reason)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(reason={self.reason!r}, line={self.line!r})"


class EncodeError(JSONStreamError, TypeError):
    """A value could not be serialized for writing."""

    code: str = "ENCODE"


class PendingReadError(JSONStreamError, RuntimeError):
    """A one-shot read was requested while another is still outstanding."""

    code: str = "READ_PENDING"


class StreamClosedError(JSONStreamError, ConnectionError):
    """The read side of the stream has reached end-of-stream."""

    code: str = "CLOSED"


class NotWritableError(JSONStreamError, RuntimeError):
    """The stream has no byte sink to write to."""

    code: str = "NOT_WRITABLE"


__all__ = [
    "ConfigurationError",
    "DecodeError",
    "EncodeError",
    "JSONStreamError",
    "MissingHandlerError",
    "NotWritableError",
    "PendingReadError",
    "StreamClosedError",
]
