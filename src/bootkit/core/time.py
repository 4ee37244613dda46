from __future__ import annotations

"""
bootkit.core.time
=================

Clock abstractions used for init timings:
- Clock Protocol for dependency injection.
- SystemClock: production default.
- ManualClock: deterministic time control for tests.
"""

import time
from typing import Protocol


class Clock(Protocol):
    """Minimal clock protocol: process-local monotonic milliseconds."""

    def mono_ms(self) -> float: ...


class SystemClock:
    """Monotonic clock backed by `time.perf_counter_ns`."""

    def mono_ms(self) -> float:
        return time.perf_counter_ns() / 1_000_000


class ManualClock:
    """
    Controllable clock for tests.

    Time starts at `start_ms` and moves only when `advance()` is called.
    """

    def __init__(self, start_ms: float = 0.0) -> None:
        self._now = float(start_ms)

    def mono_ms(self) -> float:
        return self._now

    def advance(self, ms: float) -> None:
        if ms < 0:
            raise ValueError("cannot move a clock backwards")
        self._now += ms
