import json

import pandas as pd
import pytest

import record
from webgif_lib.classifier import MotionMethod, MotionVerdict
from webgif_lib.frame_sink import DirectoryFrameSink
from webgif_lib.planning import CaptureSession
from webgif_lib.scroll_recorder import CaptureResult, FrameRecord
from webgif_lib.session import (
    RecordOptions,
    capture_page,
    prepare_page,
    write_frames,
    write_metadata,
)


def _result():
    frames = [
        FrameRecord(frame_index=0, t_ns=0, locator="f0", size_bytes=10, segment_index=0, scroll_target=0),
        FrameRecord(frame_index=1, t_ns=100_000_000, locator="f1", size_bytes=12, segment_index=1, scroll_target=None),
    ]
    return CaptureResult(strategy="paged", planned_frames=3, frames=frames, failed_captures=1)


def test_write_frames_manifest(tmp_path):
    df = write_frames(_result().frames, tmp_path, session_id="abc")

    assert list(df["frame_index"]) == [0, 1]
    assert (tmp_path / "frames.parquet").exists()
    assert (tmp_path / "frames.csv").exists()
    loaded = pd.read_parquet(tmp_path / "frames.parquet")
    assert list(loaded["locator"]) == ["f0", "f1"]
    assert loaded["scroll_target"].iloc[0] == 0
    assert pd.isna(loaded["scroll_target"].iloc[1])
    assert set(loaded["session_id"]) == {"abc"}


def test_write_metadata(tmp_path):
    options = RecordOptions(url="https://example.com", fps=10, duration_s=1)
    session = CaptureSession(viewport_height=720, fps=10, duration_ms=1000)
    verdict = MotionVerdict(should_scroll=True, method=MotionMethod.NATIVE, content_height=3000)
    meta = write_metadata(
        tmp_path,
        session_id="abc",
        options=options,
        session=session,
        verdict=verdict,
        result=_result(),
        viewport=(1280, 720),
    )

    on_disk = json.loads((tmp_path / "metadata.json").read_text(encoding="utf-8"))
    assert on_disk == meta
    assert meta["motion"] == {"should_scroll": True, "method": "native", "content_height": 3000}
    assert meta["measured_fps"] == pytest.approx(10.0)
    assert meta["captured_frames"] == 2
    assert meta["failed_captures"] == 1
    assert meta["viewport"] == [1280, 720]


def test_record_options_viewport_defaults_and_limits():
    assert RecordOptions(url="https://x.io", device="mobile").viewport() == (375, 667)
    assert RecordOptions(url="https://x.io", width=3840, height=2160).viewport() == (1920, 1080)


def test_prepare_page_loads_settles_and_runs_actions(make_surface):
    surface = make_surface()
    prepare_page(surface, "https://example.com", "click:#accept", stabilize_ms=4000)
    assert surface.calls[:2] == [("goto", "https://example.com"), ("wait", 4000)]
    assert ("click", "#accept") in surface.calls


def test_capture_page_reloads_after_wheel_probe(make_surface, tmp_path):
    surface = make_surface(content_height=600)
    session = CaptureSession(viewport_height=720, fps=5, duration_ms=1000)
    sink = DirectoryFrameSink(tmp_path / "frames")

    verdict, result = capture_page(surface, session, sink, actions="click:#accept", stabilize_ms=10)

    assert verdict.method is MotionMethod.WHEEL
    assert surface.reloads == 1
    names = surface.call_names()
    assert names.index("reload") < names.index("click")
    assert result.strategy == "wheel"
    assert len(result.frames) == 5
    # Reload put the page back at the top before the first frame.
    assert result.frames[0].locator.read_bytes() == b"frame@0"


def test_capture_page_without_reload_for_long_pages(make_surface, tmp_path):
    surface = make_surface(content_height=4000)
    session = CaptureSession(viewport_height=720, fps=5, duration_ms=1000)
    verdict, result = capture_page(surface, session, DirectoryFrameSink(tmp_path / "frames"))

    assert verdict.method is MotionMethod.NATIVE
    assert surface.reloads == 0
    assert result.strategy == "paged"
    assert sorted(p.name for p in (tmp_path / "frames").iterdir()) == [f"frame_{i:04d}.png" for i in range(5)]


def test_cli_defaults_and_ultra_dpi():
    parser = record.build_parser()
    args = parser.parse_args(["--url", "https://example.com", "--quality", "ultra", "--params", "lang:en"])
    options = record.options_from_args(parser, args)
    assert options.dpi == 2
    assert options.url == "https://example.com?lang=en"
    assert (options.width, options.height) == (1280, 720)
    assert options.headless is True


def test_cli_mobile_profile():
    parser = record.build_parser()
    args = parser.parse_args(["--url", "https://example.com", "-d", "mobile", "--format", "MP4"])
    options = record.options_from_args(parser, args)
    assert (options.width, options.height) == (375, 667)
    assert options.fmt == "mp4"
    assert options.dpi == 1


@pytest.mark.parametrize(
    "extra",
    [["--fps", "60"], ["--duration", "0"], ["--quality", "best"], ["--dpi", "4"], ["--filename", "bad name"]],
)
def test_cli_rejects_out_of_range(extra):
    parser = record.build_parser()
    args = parser.parse_args(["--url", "https://example.com"] + extra)
    with pytest.raises(SystemExit):
        record.options_from_args(parser, args)


def test_failure_hints():
    assert "ffmpeg" in record._failure_hint("ffmpeg not found on PATH")
    assert "playwright install" in record._failure_hint("Executable doesn't exist at /x")
    assert record._failure_hint("something else") == ""
