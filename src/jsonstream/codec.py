"""JSON encode/decode at the line boundary.

``encode`` raises ``EncodeError`` for values the JSON encoder rejects.
``decode_line`` never raises: failures come back as a ``DecodeResult``
carrying a ``DecodeError`` so the dispatch loop can route them like values.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from jsonstream.constants import DEFAULT_ENCODING
from jsonstream.errors import DecodeError, EncodeError

type JSONType = dict[str, Any] | list[Any] | str | int | float | bool | None

_SEPARATORS = (",", ":")


@dataclass(frozen=True, slots=True)
class DecodeResult:
    """Outcome of decoding one line: either ``value`` or ``error``."""

    value: JSONType = None
    error: DecodeError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def encode(
    value: Any,
    *,
    encoding: str = DEFAULT_ENCODING,
    ensure_ascii: bool = False,
) -> bytes:
    """Serialize *value* to compact JSON bytes.

    Raises:
        EncodeError: If the value is not JSON-serializable (unsupported type,
            circular reference, NaN/Infinity) or cannot be represented in
            *encoding*.
    """
    try:
        text = json.dumps(
            value,
            ensure_ascii=ensure_ascii,
            separators=_SEPARATORS,
            allow_nan=False,
        )
        return text.encode(encoding)
    except (TypeError, ValueError) as exc:
        # UnicodeEncodeError is a ValueError
        msg = f"Cannot encode {type(value).__name__} as JSON: {exc}"
        raise EncodeError(msg) from exc


def decode_line(raw: bytes, *, encoding: str = DEFAULT_ENCODING) -> DecodeResult:
    """Decode one line of JSON text without raising."""
    try:
        text = raw.decode(encoding)
    except UnicodeDecodeError as exc:
        line = raw.decode(encoding, errors="replace")
        return DecodeResult(error=DecodeError(str(exc), line, raw))

    try:
        return DecodeResult(value=json.loads(text))
    except (json.JSONDecodeError, RecursionError) as exc:
        return DecodeResult(error=DecodeError(str(exc), text, raw))


def decode(raw: bytes, *, encoding: str = DEFAULT_ENCODING) -> JSONType:
    """Decode one line of JSON text, raising ``DecodeError`` on failure."""
    result = decode_line(raw, encoding=encoding)
    if result.error is not None:
        raise result.error
    return result.value


__all__ = ["DecodeResult", "JSONType", "decode", "decode_line", "encode"]
