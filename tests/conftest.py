"""Shared pytest fixtures: a scripted render surface on a virtual clock and in-memory sinks."""

import sys
from pathlib import Path
from typing import Any, List, Optional, Tuple

import pytest
from PIL import Image

PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from webgif_lib.frame_sink import FrameSink  # noqa: E402
from webgif_lib.surface import RenderSurface  # noqa: E402


class FakeSurface(RenderSurface):
    """
    Deterministic stand-in for a browser page.

    Screenshots encode the current scroll offset, so two captures are byte
    identical exactly when the page has not moved. ``wait`` advances a virtual
    nanosecond clock instead of sleeping.
    """

    def __init__(
        self,
        *,
        content_height: int = 720,
        viewport_width: int = 1280,
        wheel_moves: bool = True,
        wheel_limit: Optional[int] = None,
        fail_on: Tuple[int, ...] = (),
        capture_cost_ms: float = 0.0,
    ):
        self.content_height_px = content_height
        self.viewport_width = viewport_width
        self.wheel_moves = wheel_moves
        self.wheel_limit = wheel_limit
        self.fail_on = set(fail_on)
        self.capture_cost_ms = capture_cost_ms

        self.now_ns = 0
        self.scroll_y = 0
        self.attempts = 0
        self.reloads = 0
        self.waits: List[float] = []
        self.calls: List[Tuple[str, Any]] = []

    def clock(self) -> int:
        return self.now_ns

    def evaluate(self, expression: str, arg: Any = None) -> Any:
        self.calls.append(("evaluate", (expression, arg)))
        if "scrollHeight" in expression:
            return self.content_height_px
        if "innerWidth" in expression:
            return self.viewport_width
        if "scrollTo" in expression and arg is not None:
            self.scroll_y = int(arg)
        return None

    def screenshot(self) -> bytes:
        attempt = self.attempts
        self.attempts += 1
        self.now_ns += int(self.capture_cost_ms * 1_000_000)
        self.calls.append(("screenshot", attempt))
        if attempt in self.fail_on:
            raise RuntimeError(f"screenshot {attempt} failed")
        return f"frame@{self.scroll_y}".encode()

    def scroll_to(self, y: int) -> None:
        self.calls.append(("scroll_to", y))
        self.scroll_y = y

    def wheel(self, delta_y: float) -> None:
        self.calls.append(("wheel", delta_y))
        if not self.wheel_moves:
            return
        target = self.scroll_y + int(delta_y)
        if self.wheel_limit is not None:
            target = min(target, self.wheel_limit)
        self.scroll_y = target

    def move_cursor(self, x: float, y: float) -> None:
        self.calls.append(("move_cursor", (x, y)))

    def wait(self, ms: float) -> None:
        self.calls.append(("wait", ms))
        self.waits.append(ms)
        self.now_ns += int(round(ms * 1_000_000))

    def reload(self) -> None:
        self.calls.append(("reload", None))
        self.reloads += 1
        self.scroll_y = 0

    def goto(self, url: str) -> None:
        self.calls.append(("goto", url))

    def click(self, selector: str) -> None:
        self.calls.append(("click", selector))

    def hover(self, selector: str) -> None:
        self.calls.append(("hover", selector))

    def type_text(self, selector: str, text: str) -> None:
        self.calls.append(("type_text", (selector, text)))

    def wait_for_selector(self, selector: str, timeout_ms: float) -> None:
        self.calls.append(("wait_for_selector", (selector, timeout_ms)))

    def call_names(self) -> List[str]:
        return [name for name, _ in self.calls]


class MemorySink(FrameSink):
    def __init__(self, fail_at: Optional[int] = None):
        self.fail_at = fail_at
        self.stored: List[Tuple[int, bytes]] = []

    def store(self, frame_index: int, image_bytes: bytes) -> str:
        if self.fail_at is not None and frame_index == self.fail_at:
            raise OSError("disk full")
        self.stored.append((frame_index, image_bytes))
        return f"mem://{frame_index}"


@pytest.fixture
def memory_sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def png_frames(tmp_path) -> List[Path]:
    """Three distinct solid-colour 64x48 PNG frames."""
    paths = []
    for idx, color in enumerate([(220, 30, 30), (30, 200, 40), (20, 40, 230)]):
        path = tmp_path / f"frame_{idx:04d}.png"
        Image.new("RGB", (64, 48), color).save(path)
        paths.append(path)
    return paths


@pytest.fixture
def make_surface():
    return FakeSurface


@pytest.fixture
def make_sink():
    return MemorySink
