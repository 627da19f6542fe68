"""
Ledger time sources.

Callers never pass timestamps to the ledger; it reads an injected `Clock`.
Readings are whole UNIX seconds. The ledger additionally clamps every reading
against the last time it persisted, so time never runs backwards across
restarts even if the wall clock does.
"""

from __future__ import annotations

import threading
import time
from typing import Protocol, runtime_checkable


@runtime_checkable
class Clock(Protocol):
    def now(self) -> int: ...


class SystemClock:
    """Wall-clock seconds, never decreasing within this process."""

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        t = int(time.time())
        with self._lock:
            if t < self._last:
                t = self._last
            self._last = t
        return t


class ManualClock:
    """Test/demo clock moved explicitly with `advance` or `set`."""

    def __init__(self, start: int = 1_700_000_000) -> None:
        if start < 0:
            raise ValueError("start must be non-negative")
        self._t = int(start)

    def now(self) -> int:
        return self._t

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("cannot move the clock backwards")
        self._t += int(seconds)
        return self._t

    def set(self, t: int) -> int:
        if t < self._t:
            raise ValueError(f"cannot move the clock backwards ({t} < {self._t})")
        self._t = int(t)
        return self._t

    def __repr__(self) -> str:
        return f"ManualClock({self._t})"


__all__ = ["Clock", "SystemClock", "ManualClock"]
