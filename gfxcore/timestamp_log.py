"""Hierarchical frame timing: log start/stop events, then sum them into a report."""

from __future__ import annotations

import enum
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator, Optional, Sequence

FRAME_LABEL = "Frame"


class TimestampType(enum.Enum):
    MARKER = 0
    START = 1
    STOP = 2


@dataclass(frozen=True, slots=True)
class TimestampLogEntry:
    """One logged event; stop events carry no label."""

    label: Optional[str]
    type: TimestampType


@dataclass(slots=True)
class Range:
    """One timed span within a frame.

    ``which`` is how many completed spans with the same label path came before
    this one in the frame. ``t_stop`` is None for a span that was never stopped.
    """

    label: str
    depth: int
    t_start: int
    t_stop: Optional[int] = None
    which: int = 0


@dataclass(slots=True)
class RangeSum:
    """Total time of all spans sharing one label path."""

    label: str
    depth: int
    t_sum: int = 0
    t_sum_count: int = 0


@dataclass
class TimestampReport:
    ranges: list = field(default_factory=list)
    range_sums: list = field(default_factory=list)


class TimestampLog:
    """Ordered record of timing events for one frame."""

    def __init__(self):
        self.entries: list[TimestampLogEntry] = []

    def clear(self) -> None:
        self.entries.clear()

    def marker(self, label: str) -> None:
        self.entries.append(TimestampLogEntry(label, TimestampType.MARKER))

    def start(self, label: str) -> None:
        self.entries.append(TimestampLogEntry(label, TimestampType.START))

    def stop(self) -> None:
        self.entries.append(TimestampLogEntry(None, TimestampType.STOP))

    def report(self, t_frame_start: int, t_frame_start_next: int,
               timestamps: Sequence[int]) -> TimestampReport:
        """Build ranges and per-path sums from one timestamp per logged entry.

        Spans with the same label under the same chain of parents are summed
        together; sums are listed in order of first appearance, beginning with
        the whole frame. Markers are recorded but not reported.
        """
        if len(timestamps) != len(self.entries):
            raise ValueError(
                f"{len(timestamps)} timestamps given for {len(self.entries)} entries"
            )

        frame = Range(FRAME_LABEL, 0, t_frame_start, t_frame_start_next, 0)
        ranges = [frame]
        frame_key = (FRAME_LABEL,)
        sums: dict[tuple, RangeSum] = {
            frame_key: RangeSum(FRAME_LABEL, 0, t_frame_start_next - t_frame_start, 1)
        }
        range_stack = [0]
        key_stack = [frame_key]

        for entry, t in zip(self.entries, timestamps):
            if entry.type is TimestampType.MARKER:
                continue
            if entry.type is TimestampType.START:
                depth = len(range_stack)
                key = key_stack[-1] + (entry.label,)
                s = sums.get(key)
                if s is None:
                    s = sums[key] = RangeSum(entry.label, depth)
                ranges.append(Range(entry.label, depth, t, None, s.t_sum_count))
                range_stack.append(len(ranges) - 1)
                key_stack.append(key)
            else:
                if len(range_stack) <= 1:
                    raise ValueError("stop without a matching start")
                r = ranges[range_stack.pop()]
                r.t_stop = t
                s = sums[key_stack.pop()]
                s.t_sum += r.t_stop - r.t_start
                s.t_sum_count += 1

        return TimestampReport(ranges, list(sums.values()))


class CpuTimestampLog:
    """Times spans with a monotonic clock and reports them once per frame."""

    def __init__(self, clock: Callable[[], int] = time.perf_counter_ns):
        self.clock = clock
        self.log = TimestampLog()
        self.report = TimestampReport()
        self.show_timeline = False
        self.timestamps: list[int] = []
        self.t_frame_start = 0

    def new_frame(self) -> TimestampReport:
        """Close the current frame, store its report and start the next one."""
        t_next = self.clock()
        self.report = self.log.report(self.t_frame_start, t_next, self.timestamps)
        self.timestamps.clear()
        self.log.clear()
        self.t_frame_start = t_next
        return self.report

    def marker(self, label: str) -> None:
        self.log.marker(label)
        self.timestamps.append(self.clock())

    def start(self, label: str) -> None:
        self.log.start(label)
        self.timestamps.append(self.clock())

    def stop(self) -> None:
        self.timestamps.append(self.clock())
        self.log.stop()

    @contextmanager
    def timed(self, label: str) -> Iterator[None]:
        """Time the body of a with-statement as a span named ``label``."""
        self.start(label)
        try:
            yield
        finally:
            self.stop()