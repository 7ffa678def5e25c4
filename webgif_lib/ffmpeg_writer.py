from __future__ import annotations

import shutil
import subprocess
import time
from pathlib import Path
from typing import List, Optional


def _candidate_encoders(preferred: Optional[str] = None) -> List[str]:
    if preferred:
        return [preferred]
    return ["libx264", "libopenh264"]


def _read_stderr(proc: subprocess.Popen) -> str:
    if not proc.stderr:
        return ""
    try:
        return proc.stderr.read().decode(errors="ignore")
    except Exception:
        return ""


class FfmpegVideoWriter:
    """Streams raw frames into an ffmpeg H.264 encoder over stdin."""

    def __init__(
        self,
        output_path: Path,
        *,
        width: int,
        height: int,
        fps: int,
        pixel_format: str = "bgr24",
        encoder: Optional[str] = None,
        crf: int = 18,
        preset: str = "slow",
    ):
        ffmpeg = shutil.which("ffmpeg")
        if not ffmpeg:
            raise RuntimeError("ffmpeg not found on PATH; install ffmpeg to write video output.")
        if width % 2 or height % 2:
            raise ValueError(f"yuv420p output needs even dimensions, got {width}x{height}")

        self.output_path = output_path
        self.width = width
        self.height = height
        self.fps = fps
        self.pixel_format = pixel_format
        self.encoder = encoder or _candidate_encoders()[0]
        self.frames_written = 0

        self.proc: Optional[subprocess.Popen] = None
        last_err: Optional[str] = None
        for enc in _candidate_encoders(encoder):
            cmd = [
                ffmpeg,
                "-y",
                "-hide_banner",
                "-loglevel",
                "error",
                "-f",
                "rawvideo",
                "-pix_fmt",
                self.pixel_format,
                "-s",
                f"{self.width}x{self.height}",
                "-framerate",
                str(self.fps),
                "-i",
                "-",
                "-an",
                "-c:v",
                enc,
            ]
            if enc == "libx264":
                cmd += ["-preset", preset, "-crf", str(crf)]
            cmd += ["-pix_fmt", "yuv420p", "-movflags", "+faststart", str(self.output_path)]

            proc = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
            time.sleep(0.15)
            if proc.poll() is None:
                self.proc = proc
                self.encoder = enc
                break
            last_err = _read_stderr(proc)

        if not self.proc:
            raise RuntimeError(f"ffmpeg failed to start any encoder ({_candidate_encoders(encoder)}): {last_err}")
        if not self.proc.stdin:
            raise RuntimeError("ffmpeg stdin not available")

    def write(self, frame_bytes: bytes) -> None:
        if not self.proc or not self.proc.stdin:
            raise RuntimeError("ffmpeg process not initialized or stdin closed")
        expected = self.width * self.height * 3
        if len(frame_bytes) != expected:
            raise ValueError(f"frame is {len(frame_bytes)} bytes, expected {expected} for {self.width}x{self.height}")

        if self.proc.poll() is not None:
            raise RuntimeError(f"ffmpeg process died unexpectedly: {_read_stderr(self.proc)}")

        try:
            self.proc.stdin.write(frame_bytes)
        except BrokenPipeError as exc:
            raise RuntimeError(f"ffmpeg pipe broke: {_read_stderr(self.proc)}") from exc
        self.frames_written += 1

    def close(self, timeout_s: float = 60.0) -> None:
        if not self.proc:
            return
        if self.proc.stdin:
            try:
                self.proc.stdin.close()
            except BrokenPipeError:
                pass
        try:
            self.proc.wait(timeout=timeout_s)
        except subprocess.TimeoutExpired:
            self.proc.kill()
            self.proc.wait(timeout=timeout_s)
        if self.proc.returncode != 0:
            raise RuntimeError(f"ffmpeg exited with {self.proc.returncode}: {_read_stderr(self.proc)}")

    def abort(self) -> None:
        if not self.proc or self.proc.poll() is not None:
            return
        self.proc.kill()
        self.proc.wait(timeout=5)
