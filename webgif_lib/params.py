from __future__ import annotations

import re
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from .actions import split_first
from .constants import (
    DPI_RANGE,
    DURATION_RANGE_S,
    FILENAME_MAX_LEN,
    FPS_RANGE,
    HEIGHT_RANGE,
    WIDTH_RANGE,
)
from .encoder import QUALITY_PRESETS, ContainerFormat

_FILENAME_RE = re.compile(r"^[A-Za-z0-9_.-]+$")
_FILENAME_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_.-]")


def apply_url_params(url: str, params: Optional[str]) -> str:
    """Merge ``"lang:en,theme:dark"`` style pairs into the URL query string."""
    if not params:
        return url
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        print(f"Warning: could not apply params to invalid URL '{url}'", flush=True)
        return url

    query = dict(parse_qsl(parts.query, keep_blank_values=True))
    for pair in params.split(","):
        key, value = split_first(pair.strip(), ":")
        if key and value:
            query[key] = value
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))


def validate_url(url: str) -> bool:
    parts = urlsplit(url or "")
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def _in_range(value, bounds) -> bool:
    low, high = bounds
    return low <= value <= high


def validate_duration(seconds: int) -> bool:
    return _in_range(seconds, DURATION_RANGE_S)


def validate_fps(fps: int) -> bool:
    return _in_range(fps, FPS_RANGE)


def validate_resolution(width: int, height: int) -> bool:
    return _in_range(width, WIDTH_RANGE) and _in_range(height, HEIGHT_RANGE)


def validate_filename(filename: str) -> bool:
    if not filename or len(filename) > FILENAME_MAX_LEN:
        return False
    return bool(_FILENAME_RE.match(filename))


def validate_quality(quality: str) -> bool:
    return str(quality or "").lower() in QUALITY_PRESETS


def validate_format(fmt: str) -> bool:
    return str(fmt or "").lower() in {c.value for c in ContainerFormat}


def validate_dpi(dpi: int) -> bool:
    return isinstance(dpi, int) and _in_range(dpi, DPI_RANGE)


def sanitize_filename(filename: str) -> str:
    return _FILENAME_UNSAFE_RE.sub("_", filename or "")
