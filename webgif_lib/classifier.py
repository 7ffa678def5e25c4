from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .constants import LONG_PAGE_RATIO, PROBE_SETTLE_MS
from .surface import VIEWPORT_WIDTH_SCRIPT, RenderSurface


class MotionMethod(Enum):
    NONE = "none"
    NATIVE = "native"
    WHEEL = "wheel"


class ProbeFailure(RuntimeError):
    pass


@dataclass(frozen=True)
class MotionVerdict:
    should_scroll: bool
    method: MotionMethod
    content_height: Optional[int] = None

    @property
    def requires_reload(self) -> bool:
        # The wheel probe moved the page; it has to be reset before capture.
        return self.method is MotionMethod.WHEEL


class MotionClassifier:
    """
    Decides once per session whether the page has to move between frames.

    Long documents scroll natively. Short documents get a visual probe: one
    viewport-sized wheel step, then an exact byte comparison of the before and
    after screenshots. Any change means a snap/virtual scroller that only
    responds to wheel input.
    """

    def __init__(self, long_page_ratio: float = LONG_PAGE_RATIO, probe_settle_ms: float = PROBE_SETTLE_MS):
        self.long_page_ratio = long_page_ratio
        self.probe_settle_ms = probe_settle_ms

    def classify(self, surface: RenderSurface, viewport_height: int) -> MotionVerdict:
        content_height = surface.content_height()
        if content_height > self.long_page_ratio * viewport_height:
            print(f"🔄 Long page ({content_height}px > {self.long_page_ratio}x{viewport_height}px), native scroll", flush=True)
            return MotionVerdict(should_scroll=True, method=MotionMethod.NATIVE, content_height=content_height)

        try:
            moved = self._probe(surface, viewport_height)
        except ProbeFailure as exc:
            print(f"Warning: motion probe failed, recording a fixed viewport: {exc}", flush=True)
            return MotionVerdict(should_scroll=False, method=MotionMethod.NONE, content_height=content_height)

        if moved:
            print("🖱️ Page reacts to the wheel without a scroll height, wheel-driven capture", flush=True)
            return MotionVerdict(should_scroll=True, method=MotionMethod.WHEEL, content_height=content_height)
        print("📱 Short static page, fixed viewport capture", flush=True)
        return MotionVerdict(should_scroll=False, method=MotionMethod.NONE, content_height=content_height)

    def _probe(self, surface: RenderSurface, viewport_height: int) -> bool:
        try:
            width = float(surface.evaluate(VIEWPORT_WIDTH_SCRIPT) or 0)
            surface.move_cursor(width / 2, viewport_height / 2)
            before = surface.screenshot()
            surface.wheel(viewport_height)
            surface.wait(self.probe_settle_ms)
            after = surface.screenshot()
        except Exception as exc:
            raise ProbeFailure(str(exc)) from exc
        return before != after
