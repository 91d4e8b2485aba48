"""Test-only utilities for deterministic crawl assertions."""

from .fake_driver import ScriptedDriver
from .time_control import ManualClock, SleepRecorder

__all__ = [
    "ManualClock",
    "ScriptedDriver",
    "SleepRecorder",
]
