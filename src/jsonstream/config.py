"""Configuration model for JSON line streams."""

from __future__ import annotations

from collections.abc import Callable  # noqa: TC003 - pydantic resolves field types at runtime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from jsonstream.constants import DEFAULT_ENCODING, DEFAULT_EOL, DEFAULT_READ_CHUNK_SIZE


class StreamConfig(BaseModel):
    """Settings shared by the read and write paths of a stream.

    ``on_json`` receives each decoded value; ``on_json_error`` receives the
    ``DecodeError`` and the offending line.  With ``oneshot`` enabled the
    stream is consumed through ``read_json()`` only and lines wait in the
    buffer until a read claims them.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    eol: str = Field(
        default=DEFAULT_EOL,
        min_length=1,
        description="Line ending that terminates every message on the wire",
    )
    encoding: str = Field(
        default=DEFAULT_ENCODING,
        description="Text encoding of JSON lines",
    )
    on_json: Callable[[Any], Any] | None = Field(
        default=None,
        description="Invoked with each successfully decoded value",
    )
    on_json_error: Callable[[Any, str], Any] | None = Field(
        default=None,
        description="Invoked with (error, line) when a line fails to decode",
    )
    oneshot: bool = Field(
        default=False,
        description="Consume lines only through read_json(); no event callbacks needed",
    )
    ensure_ascii: bool = Field(
        default=False,
        description="Escape non-ASCII characters when encoding",
    )
    read_chunk_size: int = Field(
        default=DEFAULT_READ_CHUNK_SIZE,
        gt=0,
        description="Bytes requested per read by the asyncio connection adapter",
    )

    @field_validator("encoding")
    @classmethod
    def _known_encoding(cls, value: str) -> str:
        try:
            "".encode(value)
        except LookupError as exc:
            # Also raised for bytes-to-bytes codecs such as base64 and rot13.
            msg = f"Unknown text encoding: {value}"
            raise ValueError(msg) from exc
        return value

    @property
    def eol_bytes(self) -> bytes:
        """The line ending as it appears on the wire."""
        return self.eol.encode(self.encoding)

    def merged(self, **updates: Any) -> StreamConfig:
        """Return a new validated config with *updates* applied."""
        data = {name: getattr(self, name) for name in type(self).model_fields}
        data.update(updates)
        return type(self)(**data)


__all__ = ["StreamConfig"]
