"""Shared framing constants."""

from __future__ import annotations

DEFAULT_EOL = "\n"
DEFAULT_ENCODING = "utf-8"
DEFAULT_READ_CHUNK_SIZE = 64 * 1024  # bytes requested per transport read

__all__ = ["DEFAULT_ENCODING", "DEFAULT_EOL", "DEFAULT_READ_CHUNK_SIZE"]
