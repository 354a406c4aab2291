"""Accumulation buffer for delimiter-terminated lines."""

from __future__ import annotations

_COMPACT_THRESHOLD = 64 * 1024


class LineBuffer:
    """Growable byte arena with a read cursor.

    Extracted lines advance the cursor instead of shifting the remaining
    bytes, so draining many short lines from one large chunk stays linear.
    The consumed prefix is dropped once it dominates the arena.
    """

    __slots__ = ("_data", "_start")

    def __init__(self) -> None:
        self._data = bytearray()
        self._start = 0

    def __len__(self) -> int:
        return len(self._data) - self._start

    def __bool__(self) -> bool:
        return len(self) > 0

    def feed(self, data: bytes) -> None:
        """Append *data* to the unconsumed tail."""
        if data:
            self._data += data

    def has_line(self, eol: bytes) -> bool:
        """Whether a complete *eol*-terminated line is buffered."""
        return self._data.find(eol, self._start) != -1

    def pop_line(self, eol: bytes) -> bytes | None:
        """Remove and return the next line, delimiter excluded.

        Returns ``None`` when no complete line is buffered; the partial tail
        is left untouched for the next ``feed``.
        """
        end = self._data.find(eol, self._start)
        if end == -1:
            return None
        line = bytes(self._data[self._start : end])
        self._start = end + len(eol)
        self._compact()
        return line

    def pending(self) -> bytes:
        """Return the unconsumed bytes without removing them."""
        return bytes(self._data[self._start :])

    def discard_partial(self, eol: bytes) -> bytes:
        """Drop and return the bytes after the last complete line."""
        last = self._data.rfind(eol, self._start)
        if last == -1:
            return self.clear()
        keep = last + len(eol)
        tail = bytes(self._data[keep:])
        del self._data[keep:]
        return tail

    def clear(self) -> bytes:
        """Discard and return the unconsumed bytes."""
        tail = self.pending()
        self._data.clear()
        self._start = 0
        return tail

    def _compact(self) -> None:
        if self._start == len(self._data):
            self._data.clear()
            self._start = 0
        elif self._start >= _COMPACT_THRESHOLD and self._start * 2 >= len(self._data):
            del self._data[: self._start]
            self._start = 0


__all__ = ["LineBuffer"]
