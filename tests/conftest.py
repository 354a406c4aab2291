"""Pytest fixtures for jsonstream tests."""

from __future__ import annotations

import os
import shutil
import sys
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
from hypothesis import Phase, Verbosity, settings

from tests.helpers.sinks import RecordingSink

if TYPE_CHECKING:
    from collections.abc import Generator


settings.register_profile(
    "ci",
    max_examples=100,
    deadline=None,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
)
settings.register_profile(
    "dev",
    max_examples=20,
    deadline=500,
)
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    deadline=None,
)
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


@pytest.fixture
def sink() -> RecordingSink:
    """A byte sink that records writes and flushes only when told to."""
    return RecordingSink()


@pytest.fixture
def short_tmp() -> Generator[Path, None, None]:
    """Create a short temp directory for Unix socket paths (macOS 104-byte limit)."""
    if sys.platform == "win32":
        pytest.skip("Unix sockets unavailable on Windows")
    d = tempfile.mkdtemp(prefix="js-", dir="/tmp")
    yield Path(d)
    shutil.rmtree(d, ignore_errors=True)
