from __future__ import annotations

from typing import Callable, Optional

ProgressFn = Callable[[float], None]


def _noop(_pct: float) -> None:
    return None


def scaled(on_progress: Optional[ProgressFn], start: float, end: float) -> ProgressFn:
    """Map a stage's 0..100 progress onto the [start, end] slice of the caller's bar."""

    if on_progress is None:
        return _noop
    span = float(end) - float(start)

    def _report(pct: float) -> None:
        pct = max(0.0, min(100.0, float(pct)))
        on_progress(float(start) + span * pct / 100.0)

    return _report


class MonotonicProgress:
    """Progress sink wrapper that never reports a smaller value than before."""

    def __init__(self, sink: Optional[ProgressFn]) -> None:
        self.sink = sink or _noop
        self.last = 0.0

    def __call__(self, pct: float) -> None:
        pct = max(0.0, min(100.0, float(pct)))
        if pct < self.last:
            pct = self.last
        self.last = pct
        self.sink(pct)
