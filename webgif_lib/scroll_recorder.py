from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from .classifier import MotionMethod, MotionVerdict
from .frame_sink import FrameSink
from .pacing import PacingClock
from .planning import (
    CaptureSession,
    Segment,
    paged_scroll_plan,
    paged_settle_ms,
    wheel_plan,
    wheel_settle_ms,
)
from .surface import VIEWPORT_WIDTH_SCRIPT, RenderSurface


class CaptureFailure(RuntimeError):
    pass


class PersistFailure(RuntimeError):
    pass


@dataclass
class FrameRecord:
    frame_index: int
    t_ns: int
    locator: Any
    size_bytes: int
    segment_index: int = 0
    scroll_target: Optional[int] = None


@dataclass
class CaptureResult:
    strategy: str
    planned_frames: int
    frames: List[FrameRecord] = field(default_factory=list)
    failed_captures: int = 0
    terminated_early: bool = False

    @property
    def locators(self) -> List[Any]:
        return [fr.locator for fr in self.frames]


class ScrollRecorder:
    """Runs the capture strategy matching a session's MotionVerdict."""

    def __init__(
        self,
        surface: RenderSurface,
        session: CaptureSession,
        sink: FrameSink,
        *,
        clock: Callable[[], int] = time.monotonic_ns,
    ):
        self.surface = surface
        self.session = session
        self.sink = sink
        self.clock = clock

    def record(self, verdict: MotionVerdict, total_height: Optional[int] = None) -> CaptureResult:
        if verdict.method is MotionMethod.NATIVE:
            height = total_height if total_height is not None else verdict.content_height
            if height is None:
                height = self.surface.content_height()
            recorder = PagedScrollRecorder(self.surface, self.session, self.sink, clock=self.clock)
            return recorder.capture(height)
        if verdict.method is MotionMethod.WHEEL:
            recorder = WheelDrivenRecorder(self.surface, self.session, self.sink, clock=self.clock)
            return recorder.capture()
        recorder = FixedViewportRecorder(self.surface, self.session, self.sink, clock=self.clock)
        return recorder.capture()


class _BaseCaptureRecorder:
    strategy = "base"

    def __init__(
        self,
        surface: RenderSurface,
        session: CaptureSession,
        sink: FrameSink,
        *,
        clock: Callable[[], int] = time.monotonic_ns,
    ):
        self.surface = surface
        self.session = session
        self.sink = sink
        self.clock = clock
        self.result = CaptureResult(strategy=self.strategy, planned_frames=session.total_frames)

    @property
    def frame_index(self) -> int:
        return len(self.result.frames)

    def _start_pacing(self) -> PacingClock:
        return PacingClock(self.session.fps, clock=self.clock, sleep_ms=self.surface.wait)

    def _grab(self) -> bytes:
        try:
            shot = self.surface.screenshot()
        except Exception as exc:
            raise CaptureFailure(str(exc)) from exc
        if not shot:
            raise CaptureFailure("empty screenshot")
        return shot

    def _try_grab(self) -> Optional[bytes]:
        try:
            return self._grab()
        except CaptureFailure as exc:
            self.result.failed_captures += 1
            print(f"Warning: screenshot failed (frame {self.frame_index}): {exc}", flush=True)
            return None

    def _persist(self, shot: bytes, segment: Segment) -> FrameRecord:
        index = self.frame_index
        t_ns = self.clock()
        try:
            locator = self.sink.store(index, shot)
        except Exception as exc:
            print(f"❌ Failed to save frame {index}: {exc}", flush=True)
            raise PersistFailure(f"could not store frame {index}: {exc}") from exc
        record = FrameRecord(
            frame_index=index,
            t_ns=t_ns,
            locator=locator,
            size_bytes=len(shot),
            segment_index=segment.index,
            scroll_target=segment.scroll_target,
        )
        self.result.frames.append(record)
        if index == 0:
            print(f"📸 First frame: {len(shot)} bytes", flush=True)
        elif index == self.session.total_frames // 2:
            print(f"📸 Middle frame ({index}): {len(shot)} bytes", flush=True)
        return record

    def _finish(self) -> CaptureResult:
        frames = self.result.frames
        if frames:
            print(f"📸 Last frame ({frames[-1].frame_index}): {frames[-1].size_bytes} bytes", flush=True)
        print(
            f"📊 {self.strategy} capture done: {len(frames)}/{self.result.planned_frames} frames, "
            f"failed: {self.result.failed_captures}",
            flush=True,
        )
        return self.result


class FixedViewportRecorder(_BaseCaptureRecorder):
    strategy = "fixed"

    def capture(self) -> CaptureResult:
        total = self.session.total_frames
        print(f"📊 Fixed viewport capture: {total} frames", flush=True)
        segment = Segment(index=0, frame_count=total)
        pacing = self._start_pacing()
        for _ in range(total):
            shot = self._try_grab()
            if shot is None:
                continue
            self._persist(shot, segment)
            pacing.wait_for_frame(self.frame_index)
        return self._finish()


class PagedScrollRecorder(_BaseCaptureRecorder):
    strategy = "paged"

    def capture(self, total_height: int) -> CaptureResult:
        segments = paged_scroll_plan(self.session, total_height)
        settle_ms = paged_settle_ms(self.session.frame_interval_ms)
        print(
            f"📊 Page analysis: {len(segments)} segments, {self.session.total_frames} frames, "
            f"height {total_height}px",
            flush=True,
        )
        pacing = self._start_pacing()
        for segment in segments:
            self.surface.scroll_to(segment.scroll_target or 0)
            self.surface.wait(settle_ms)
            for _ in range(segment.frame_count):
                shot = self._try_grab()
                if shot is None:
                    continue
                self._persist(shot, segment)
                pacing.wait_for_frame(self.frame_index)
        return self._finish()


class WheelDrivenRecorder(_BaseCaptureRecorder):
    """
    Wheel-stepped capture for pages without a usable scroll height.

    Each segment after the first starts with one viewport-sized wheel step.
    The first frame of a segment is compared byte-for-byte with the first
    frame of the previous one; identical bytes mean the page stopped moving,
    so that frame is kept as the last one and capture ends there.
    """

    strategy = "wheel"

    def capture(self) -> CaptureResult:
        interval_ms, segments = wheel_plan(self.session)
        settle_ms = wheel_settle_ms(interval_ms)
        delta = self.session.viewport_height
        print(
            f"📊 Wheel mode: {len(segments)} planned steps (every {interval_ms / 1000:.2f}s), "
            f"{self.session.total_frames} frames",
            flush=True,
        )

        self._center_cursor()
        last_leading: Optional[bytes] = None
        reached_end = False
        pacing = self._start_pacing()

        for segment in segments:
            if reached_end:
                print(f"🏁 Page end reached, stopping early (step {segment.index}/{len(segments)})", flush=True)
                break
            if segment.index > 0:
                self.surface.wheel(delta)
                self.surface.wait(settle_ms)

            leading_seen = False
            for _ in range(segment.frame_count):
                shot = self._try_grab()
                if shot is None:
                    continue
                if not leading_seen:
                    leading_seen = True
                    if segment.index > 0 and last_leading is not None and shot == last_leading:
                        print("🛑 Screen stopped changing (end of page)", flush=True)
                        reached_end = True
                    last_leading = shot
                self._persist(shot, segment)
                if reached_end:
                    break
                pacing.wait_for_frame(self.frame_index)

        self.result.terminated_early = reached_end
        return self._finish()

    def _center_cursor(self) -> None:
        try:
            width = float(self.surface.evaluate(VIEWPORT_WIDTH_SCRIPT) or 0)
            self.surface.move_cursor(width / 2, self.session.viewport_height / 2)
        except Exception as exc:
            print(f"Warning: could not move cursor to viewport centre: {exc}", flush=True)
