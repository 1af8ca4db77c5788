"""
Progress model for a single content search.

A search owns one ``ProgressTracker`` and passes it explicitly into each
phase. Each phase owns a disjoint slice of [0, 1]:

    0.05            started, before any I/O
    0.25            commit timeline resolved
    0.25 -> 0.625   last-match search
    0.625 -> 1.0    first-match search
    1.0             finished (every exit path, emitted exactly once)
"""

from __future__ import annotations

import math
from collections.abc import Callable

ProgressSink = Callable[[float], None]

STARTED = 0.05
TIMELINE_RESOLVED = 0.25
LAST_MATCH_DONE = 0.625
FINISHED = 1.0


def expected_probes(window: int) -> int:
    """Probes a binary search over *window* commits is expected to need."""
    return max(1, math.ceil(math.log2(max(1, window))))


class ProgressTracker:
    """Monotonic progress fraction forwarded to a one-way sink.

    Values below the last reported one are dropped, and 1.0 is only ever
    sent by ``finish()``, so observers see a non-decreasing sequence that
    ends with a single 1.0.
    """

    def __init__(self, sink: ProgressSink | None = None):
        self._sink = sink
        self._current = 0.0
        self._finished = False

    @property
    def current(self) -> float:
        return self._current

    @property
    def finished(self) -> bool:
        return self._finished

    def report(self, value: float) -> None:
        if self._finished or value >= FINISHED or value <= self._current:
            return
        self._current = value
        if self._sink is not None:
            self._sink(value)

    def advance(self, start: float, end: float, done: int, expected: int) -> None:
        """Report *done* of *expected* probes as a position inside [start, end]."""
        fraction = min(1.0, done / max(1, expected))
        self.report(start + fraction * (end - start))

    def finish(self) -> None:
        if self._finished:
            return
        self._finished = True
        self._current = FINISHED
        if self._sink is not None:
            self._sink(FINISHED)
