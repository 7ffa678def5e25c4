from __future__ import annotations

import time
from typing import Callable, Optional


def _sleep_ms(ms: float) -> None:
    time.sleep(ms / 1000.0)


class PacingClock:
    """
    Per-frame wall-clock deadlines anchored at a single start time.

    Deadlines are ``start + index * interval`` so latency on one frame never
    accumulates into the next. A deadline that already passed yields a zero
    wait; there is no catch-up and no frame is ever skipped.
    """

    def __init__(
        self,
        fps: int,
        *,
        clock: Callable[[], int] = time.monotonic_ns,
        sleep_ms: Optional[Callable[[float], None]] = None,
        start_ns: Optional[int] = None,
    ):
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")
        self.fps = fps
        self.frame_interval_ms = 1000.0 / fps
        self._clock = clock
        self._sleep_ms = sleep_ms or _sleep_ms
        self.start_ns = clock() if start_ns is None else start_ns

    def deadline_ns(self, frame_index: int) -> int:
        return self.start_ns + int(round(frame_index * self.frame_interval_ms * 1_000_000))

    def remaining_ms(self, frame_index: int) -> float:
        return max(0.0, (self.deadline_ns(frame_index) - self._clock()) / 1e6)

    def wait_for_frame(self, frame_index: int) -> float:
        remaining = self.remaining_ms(frame_index)
        if remaining > 0:
            self._sleep_ms(remaining)
        return remaining
