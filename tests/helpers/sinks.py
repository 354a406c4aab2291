"""In-memory byte sinks for driving JSONStream without a transport."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any


@dataclass
class RecordedWrite:
    data: bytes
    options: dict[str, Any]
    completion: asyncio.Future[None] = field(repr=False)


class RecordingSink:
    """``ByteSink`` that records every write.

    Completions stay pending until ``flush()`` (or ``fail()``) is called, so
    tests can observe that a write future waits for the flush.
    """

    def __init__(self, *, auto_flush: bool = False) -> None:
        self.auto_flush = auto_flush
        self.writes: list[RecordedWrite] = []

    @property
    def data(self) -> bytes:
        return b"".join(w.data for w in self.writes)

    def write(self, data: bytes, /, **options: Any) -> asyncio.Future[None]:
        completion: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self.writes.append(RecordedWrite(data=data, options=options, completion=completion))
        if self.auto_flush:
            completion.set_result(None)
        return completion

    def flush(self) -> None:
        for w in self.writes:
            if not w.completion.done():
                w.completion.set_result(None)

    def fail(self, exc: BaseException) -> None:
        for w in self.writes:
            if not w.completion.done():
                w.completion.set_exception(exc)
