from __future__ import annotations

import json
import platform
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from .actions import parse_actions, run_actions
from .browser import limit_viewport, open_surface
from .classifier import MotionClassifier, MotionVerdict
from .constants import (
    DEFAULT_DEVICE,
    DEFAULT_DURATION_S,
    DEFAULT_FORMAT,
    DEFAULT_FPS,
    DEFAULT_QUALITY,
    DEFAULT_VIEWPORTS,
    FRAME_CODEC,
    PAGE_STABILIZE_MS,
)
from .encoder import ContainerFormat, FrameEncoder
from .files import cleanup_dir, create_session_dir, output_path_for
from .frame_sink import DirectoryFrameSink, FrameSink
from .planning import CaptureSession
from .scroll_recorder import CaptureResult, FrameRecord, ScrollRecorder
from .surface import RenderSurface


@dataclass
class RecordOptions:
    url: str
    duration_s: int = DEFAULT_DURATION_S
    fps: int = DEFAULT_FPS
    width: Optional[int] = None
    height: Optional[int] = None
    device: str = DEFAULT_DEVICE
    dpi: int = 1
    quality: str = DEFAULT_QUALITY
    fmt: str = DEFAULT_FORMAT
    actions: str = ""
    filename: Optional[str] = None
    output_dir: Path = field(default_factory=lambda: Path("output"))
    temp_root: Path = field(default_factory=lambda: Path("temp"))
    no_cleanup: bool = False
    headless: bool = True

    def viewport(self) -> tuple:
        default_w, default_h = DEFAULT_VIEWPORTS.get(self.device, DEFAULT_VIEWPORTS["pc"])
        return limit_viewport(self.width or default_w, self.height or default_h)


@dataclass
class RecordingResult:
    session_id: str
    output_path: Path
    frame_count: int
    strategy: str
    verdict: MotionVerdict
    terminated_early: bool
    elapsed_s: float


def write_frames(frames: List[FrameRecord], output_dir: Path, *, session_id: str) -> pd.DataFrame:
    rows = [
        {
            "frame_index": fr.frame_index,
            "t_ns": fr.t_ns,
            "segment_index": fr.segment_index,
            "scroll_target": fr.scroll_target,
            "size_bytes": fr.size_bytes,
            "locator": str(fr.locator),
            "session_id": session_id,
        }
        for fr in frames
    ]
    columns = ["frame_index", "t_ns", "segment_index", "scroll_target", "size_bytes", "locator", "session_id"]
    df = pd.DataFrame(rows, columns=columns)
    df = df.sort_values("frame_index", kind="mergesort").reset_index(drop=True)
    # Nullable ints keep scroll_target integral when some rows have no target.
    df["scroll_target"] = df["scroll_target"].astype("Int64")
    df.to_parquet(output_dir / "frames.parquet", compression="snappy")
    df.to_csv(output_dir / "frames.csv", index=False)
    return df


def _compute_fps_from_frame_times(frames: List[FrameRecord]) -> Optional[float]:
    if len(frames) > 1:
        span_ns = frames[-1].t_ns - frames[0].t_ns
        if span_ns > 0:
            return (len(frames) - 1) / (span_ns / 1e9)
    return None


def write_metadata(
    output_dir: Path,
    *,
    session_id: str,
    options: RecordOptions,
    session: CaptureSession,
    verdict: MotionVerdict,
    result: CaptureResult,
    viewport: tuple,
) -> Dict[str, Any]:
    metadata = {
        "format_version": "1.0.0",
        "session_id": session_id,
        "captured_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "url": options.url,
        "device": options.device,
        "viewport": list(viewport),
        "dpi": options.dpi,
        "target_fps": session.fps,
        "measured_fps": _compute_fps_from_frame_times(result.frames),
        "duration_ms": session.duration_ms,
        "codec": FRAME_CODEC,
        "motion": {
            "should_scroll": verdict.should_scroll,
            "method": verdict.method.value,
            "content_height": verdict.content_height,
        },
        "strategy": result.strategy,
        "planned_frames": result.planned_frames,
        "captured_frames": len(result.frames),
        "failed_captures": result.failed_captures,
        "terminated_early": result.terminated_early,
        "output": {"format": options.fmt, "quality": options.quality},
        "env": {"os": platform.platform(), "python": platform.python_version()},
    }
    with open(output_dir / "metadata.json", "w", encoding="utf-8") as f:
        json.dump(metadata, f, indent=2)
    return metadata


def prepare_page(surface: RenderSurface, url: str, actions: str, stabilize_ms: float = PAGE_STABILIZE_MS) -> None:
    print(f"🌐 Loading {url}", flush=True)
    surface.goto(url)
    print("⏳ Waiting for the page to settle...", flush=True)
    surface.wait(stabilize_ms)
    if actions:
        print(f"🎬 Running page actions: {actions}", flush=True)
        run_actions(surface, parse_actions(actions))


def capture_page(
    surface: RenderSurface,
    session: CaptureSession,
    sink: FrameSink,
    *,
    actions: str = "",
    stabilize_ms: float = PAGE_STABILIZE_MS,
    classifier: Optional[MotionClassifier] = None,
) -> tuple:
    """Classify the prepared page, reset it if the probe moved it, and record. Returns (verdict, result)."""
    classifier = classifier or MotionClassifier()
    verdict = classifier.classify(surface, session.viewport_height)
    if verdict.requires_reload:
        print("🔁 Reloading page after motion probe", flush=True)
        surface.reload()
        surface.wait(stabilize_ms)
        if actions:
            run_actions(surface, parse_actions(actions))
    result = ScrollRecorder(surface, session, sink).record(verdict)
    return verdict, result


def run_recording(options: RecordOptions) -> RecordingResult:
    session_id = str(uuid.uuid4())
    started = time.time()
    width, height = options.viewport()
    session = CaptureSession(viewport_height=height, fps=options.fps, duration_ms=options.duration_s * 1000)
    container = ContainerFormat.from_name(options.fmt)
    session_dir = create_session_dir(options.temp_root)
    sink = DirectoryFrameSink(session_dir / "frames")

    print(
        f"🚀 Recording {options.url} (session: {session_id}, {width}x{height}, {options.fps} fps, "
        f"{options.duration_s}s, {options.quality}/{container.value})",
        flush=True,
    )
    try:
        with open_surface(
            width=width, height=height, device=options.device, dpi=options.dpi, headless=options.headless
        ) as surface:
            prepare_page(surface, options.url, options.actions)
            verdict, result = capture_page(surface, session, sink, actions=options.actions)

        write_frames(result.frames, session_dir, session_id=session_id)
        write_metadata(
            session_dir,
            session_id=session_id,
            options=options,
            session=session,
            verdict=verdict,
            result=result,
            viewport=(width, height),
        )

        output_path = output_path_for(options.url, options.device, container.value, options.output_dir, options.filename)
        encoder = FrameEncoder(
            width=width, height=height, fps=options.fps, quality=options.quality, container=container, dpi=options.dpi
        )
        encoder.encode(result.locators, output_path)
    finally:
        if options.no_cleanup:
            print(f"⚠️  Keeping temporary files in {session_dir}", flush=True)
        else:
            cleanup_dir(session_dir)

    elapsed = time.time() - started
    print(
        f"Saved session {session_id} to {output_path} | frames: {len(result.frames)}/{result.planned_frames} | "
        f"strategy: {result.strategy} | early stop: {result.terminated_early} | {elapsed:.1f}s",
        flush=True,
    )
    return RecordingResult(
        session_id=session_id,
        output_path=output_path,
        frame_count=len(result.frames),
        strategy=result.strategy,
        verdict=verdict,
        terminated_early=result.terminated_early,
        elapsed_s=elapsed,
    )
