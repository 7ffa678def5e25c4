"""
Frame sequence -> animation.

Two containers are supported: a looping palette image (GIF, built with Pillow
from one global palette) and a compressed video (MP4, frames decoded with
OpenCV and streamed into ffmpeg). Encoding is exposed as an iterator of
``EncodeProgress`` so callers decide how, or whether, to show progress.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Sequence, Tuple

import cv2
import numpy as np
from PIL import Image, ImageFilter

from .ffmpeg_writer import FfmpegVideoWriter


class ContainerFormat(Enum):
    LOOPING_PALETTE_IMAGE = "gif"
    COMPRESSED_VIDEO = "mp4"

    @classmethod
    def from_name(cls, name: str) -> "ContainerFormat":
        try:
            return cls(name.lower())
        except ValueError:
            raise ValueError(f"Unknown output format '{name}' (expected gif or mp4)") from None


@dataclass(frozen=True)
class QualityPreset:
    max_colors: int
    dither: Image.Dither
    # UnsharpMask(radius, percent, threshold)
    sharpen: Tuple[float, int, int]
    resample: Image.Resampling
    video_interpolation: int
    palette_samples: int
    final_delay_ms: int


_BASE_PRESET = QualityPreset(
    max_colors=256,
    dither=Image.Dither.FLOYDSTEINBERG,
    sharpen=(1.0, 50, 0),
    resample=Image.Resampling.LANCZOS,
    video_interpolation=cv2.INTER_LANCZOS4,
    palette_samples=16,
    final_delay_ms=500,
)

QUALITY_PRESETS: Dict[str, QualityPreset] = {
    "ultra": replace(_BASE_PRESET, palette_samples=32),
    "high": _BASE_PRESET,
    "medium": replace(_BASE_PRESET, palette_samples=8, final_delay_ms=800),
    "low": replace(_BASE_PRESET, dither=Image.Dither.NONE, palette_samples=4, final_delay_ms=1000),
}


def get_preset(quality: str) -> QualityPreset:
    try:
        return QUALITY_PRESETS[quality.lower()]
    except KeyError:
        raise ValueError(f"Unknown quality tier '{quality}' (expected one of {sorted(QUALITY_PRESETS)})") from None


def even_output_size(width: int, height: int, dpi: int = 1) -> Tuple[int, int]:
    return int(round(width * dpi / 2)) * 2, int(round(height * dpi / 2)) * 2


def gif_frame_durations(count: int, fps: int, hold_ms: int = 0) -> List[int]:
    """Per-frame GIF delays in ms: multiples of 10 whose running total stays within 5 ms of ``n * 1000 / fps``."""
    # GIF stores centiseconds; rounding the running total keeps the loop length exact.
    durations = [
        10 * (round((idx + 1) * 100 / fps) - round(idx * 100 / fps))
        for idx in range(count)
    ]
    if durations:
        durations[-1] += hold_ms
    return durations


@dataclass(frozen=True)
class EncodeProgress:
    stage: str
    done: int
    total: int

    @property
    def percent(self) -> int:
        if self.total <= 0:
            return 100
        return min(100, max(0, int(self.done * 100 / self.total)))


class FrameEncoder:
    def __init__(
        self,
        *,
        width: int,
        height: int,
        fps: int,
        quality: str = "high",
        container: ContainerFormat = ContainerFormat.LOOPING_PALETTE_IMAGE,
        dpi: int = 1,
    ):
        self.width = width
        self.height = height
        self.fps = fps
        self.quality = quality
        self.preset = get_preset(quality)
        self.container = container
        self.dpi = dpi

    def encode(self, locators: Sequence[Any], output_path: Path) -> Path:
        label = self.container.value.upper()
        last_percent = -1
        for progress in self.iter_encode(locators, output_path):
            if progress.percent != last_percent:
                sys.stdout.write(f"\r⏳ {label} {progress.stage}: {progress.percent}% [{progress.done}/{progress.total}]")
                sys.stdout.flush()
                last_percent = progress.percent
        print(f"\n✅ {label} written to {output_path}", flush=True)
        return output_path

    def iter_encode(self, locators: Sequence[Any], output_path: Path) -> Iterator[EncodeProgress]:
        if not locators:
            raise ValueError("No frames captured; nothing to encode")
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        if self.container is ContainerFormat.COMPRESSED_VIDEO:
            yield from self._encode_video(locators, output_path)
        else:
            yield from self._encode_gif(locators, output_path)

    # GIF -------------------------------------------------------------------

    def _load_gif_frame(self, locator: Any) -> Image.Image:
        with Image.open(locator) as img:
            frame = img.convert("RGB")
        if frame.size != (self.width, self.height):
            frame = frame.resize((self.width, self.height), resample=self.preset.resample)
        radius, percent, threshold = self.preset.sharpen
        return frame.filter(ImageFilter.UnsharpMask(radius=radius, percent=percent, threshold=threshold))

    def _build_palette(self, locators: Sequence[Any]) -> Image.Image:
        count = min(len(locators), self.preset.palette_samples)
        if count == 1:
            picks = [0]
        else:
            last = len(locators) - 1
            picks = sorted({round(i * last / (count - 1)) for i in range(count)})
        # Quantize one tall mosaic so every sample contributes to a single global palette.
        mosaic = Image.new("RGB", (self.width, self.height * len(picks)))
        for slot, idx in enumerate(picks):
            frame = self._load_gif_frame(locators[idx])
            mosaic.paste(frame, (0, slot * self.height))
            frame.close()
        return mosaic.quantize(
            colors=self.preset.max_colors,
            method=Image.Quantize.MEDIANCUT,
            dither=Image.Dither.NONE,
        )

    def _encode_gif(self, locators: Sequence[Any], output_path: Path) -> Iterator[EncodeProgress]:
        total = len(locators)
        yield EncodeProgress("palette", 0, total)
        palette = self._build_palette(locators)

        frames: List[Image.Image] = []
        for idx, locator in enumerate(locators):
            rgb = self._load_gif_frame(locator)
            frames.append(rgb.quantize(palette=palette, dither=self.preset.dither))
            rgb.close()
            yield EncodeProgress("frames", idx + 1, total)

        durations = gif_frame_durations(total, self.fps, self.preset.final_delay_ms)

        first, rest = frames[0], frames[1:]
        first.save(
            output_path,
            save_all=True,
            append_images=rest,
            duration=durations,
            loop=0,
            optimize=False,
        )
        for frame in frames:
            frame.close()
        yield EncodeProgress("write", total, total)

    # MP4 -------------------------------------------------------------------

    def _encode_video(self, locators: Sequence[Any], output_path: Path) -> Iterator[EncodeProgress]:
        out_w, out_h = even_output_size(self.width, self.height, self.dpi)
        total = len(locators)
        writer = FfmpegVideoWriter(output_path, width=out_w, height=out_h, fps=self.fps, pixel_format="bgr24")
        try:
            for idx, locator in enumerate(locators):
                frame = cv2.imread(str(locator), cv2.IMREAD_COLOR)
                if frame is None:
                    raise RuntimeError(f"Could not decode frame {locator}")
                if frame.shape[1] != out_w or frame.shape[0] != out_h:
                    frame = cv2.resize(frame, (out_w, out_h), interpolation=self.preset.video_interpolation)
                writer.write(np.ascontiguousarray(frame, dtype=np.uint8).tobytes())
                yield EncodeProgress("frames", idx + 1, total)
        except BaseException:
            writer.abort()
            raise
        writer.close()
        yield EncodeProgress("write", total, total)
