from __future__ import annotations

from pathlib import Path
from typing import Any

from .constants import FRAME_FILE_PATTERN


class FrameSink:
    """Accepts captured frames in index order and returns a durable locator."""

    def store(self, frame_index: int, image_bytes: bytes) -> Any:  # pragma: no cover - interface only
        raise NotImplementedError


class DirectoryFrameSink(FrameSink):
    def __init__(self, frames_dir: Path):
        self.frames_dir = Path(frames_dir)
        self.frames_dir.mkdir(parents=True, exist_ok=True)

    def store(self, frame_index: int, image_bytes: bytes) -> Path:
        path = self.frames_dir / FRAME_FILE_PATTERN.format(index=frame_index)
        path.write_bytes(image_bytes)
        return path
