"""
Frame budget planning.

Turns the per-run parameters into an ordered list of segments. Everything in
here is pure so the capture strategies can be checked without a browser.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .constants import (
    SCROLL_SETTLE_MAX_MS,
    SCROLL_SETTLE_MIN_MS,
    WHEEL_CAPTURE_RESERVE_MS,
    WHEEL_LONG_DURATION_MS,
    WHEEL_MAX_INTERVAL_MS,
    WHEEL_MIN_INTERVAL_MS,
    WHEEL_SETTLE_FLOOR_MS,
    WHEEL_SHORT_DURATION_MS,
)


@dataclass(frozen=True)
class CaptureSession:
    viewport_height: int
    fps: int
    duration_ms: int

    def __post_init__(self):
        if self.viewport_height <= 0:
            raise ValueError(f"viewport_height must be positive, got {self.viewport_height}")
        if self.fps <= 0:
            raise ValueError(f"fps must be positive, got {self.fps}")
        if self.duration_ms <= 0:
            raise ValueError(f"duration_ms must be positive, got {self.duration_ms}")

    @property
    def total_frames(self) -> int:
        return max(1, math.floor(self.duration_ms / 1000 * self.fps))

    @property
    def frame_interval_ms(self) -> float:
        return 1000.0 / self.fps


@dataclass(frozen=True)
class Segment:
    index: int
    frame_count: int
    scroll_target: Optional[int] = None


def allocate_frames(total_frames: int, segment_count: int) -> List[int]:
    """Split ``total_frames`` over ``segment_count`` segments, front-loading the remainder."""
    if segment_count < 1:
        raise ValueError(f"segment_count must be >= 1, got {segment_count}")
    base, remainder = divmod(total_frames, segment_count)
    return [base + (1 if idx < remainder else 0) for idx in range(segment_count)]


def paged_scroll_plan(session: CaptureSession, total_height: int) -> List[Segment]:
    total_frames = session.total_frames
    scroll_max = max(0, total_height - session.viewport_height)
    steps = max(1, math.ceil(total_height / session.viewport_height))
    count = max(1, min(steps, total_frames))

    segments = []
    for idx, frames in enumerate(allocate_frames(total_frames, count)):
        target = round(scroll_max * idx / (count - 1)) if count > 1 else 0
        segments.append(Segment(index=idx, frame_count=frames, scroll_target=target))
    return segments


def paged_settle_ms(frame_interval_ms: float) -> int:
    return max(SCROLL_SETTLE_MIN_MS, min(SCROLL_SETTLE_MAX_MS, round(frame_interval_ms)))


def wheel_interval_ms(duration_ms: float) -> float:
    # 10s -> 1.2s per screen, 30s -> 2.0s, linear in between.
    span = WHEEL_LONG_DURATION_MS - WHEEL_SHORT_DURATION_MS
    ratio = min(1.0, max(0.0, (duration_ms - WHEEL_SHORT_DURATION_MS) / span))
    return WHEEL_MIN_INTERVAL_MS + ratio * (WHEEL_MAX_INTERVAL_MS - WHEEL_MIN_INTERVAL_MS)


def wheel_settle_ms(interval_ms: float) -> float:
    return max(WHEEL_SETTLE_FLOOR_MS, interval_ms - WHEEL_CAPTURE_RESERVE_MS)


def wheel_plan(session: CaptureSession) -> Tuple[float, List[Segment]]:
    interval = wheel_interval_ms(session.duration_ms)
    total_frames = session.total_frames
    count = max(1, math.floor(session.duration_ms / interval))
    count = min(count, total_frames)
    segments = [
        Segment(index=idx, frame_count=frames)
        for idx, frames in enumerate(allocate_frames(total_frames, count))
    ]
    return interval, segments
