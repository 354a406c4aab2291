"""Test helpers package."""

from tests.helpers.sinks import RecordingSink
from tests.helpers.wait import wait_until

__all__ = ["RecordingSink", "wait_until"]
