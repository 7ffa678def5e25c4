from __future__ import annotations

import re
import shutil
import time
import uuid
from datetime import datetime
from pathlib import Path
from typing import Optional
from urllib.parse import urlsplit

from .params import sanitize_filename

_HOST_UNSAFE_RE = re.compile(r"[^A-Za-z0-9-]")
_PATH_UNSAFE_RE = re.compile(r"[^A-Za-z0-9_-]")
URL_PATH_MAX_LEN = 50


def create_session_dir(root: Path) -> Path:
    session_dir = Path(root) / f"{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"
    session_dir.mkdir(parents=True, exist_ok=True)
    return session_dir


def cleanup_dir(path: Path) -> None:
    shutil.rmtree(path, ignore_errors=True)


def output_path_for(
    url: str,
    device: str,
    fmt: str,
    output_dir: Path,
    filename: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Path:
    if filename:
        return Path(output_dir) / f"{sanitize_filename(filename)}.{fmt}"

    prefix = "website"
    url_path = ""
    parts = urlsplit(url or "")
    if parts.hostname:
        host = re.sub(r"^www\.", "", parts.hostname)
        prefix = _HOST_UNSAFE_RE.sub("_", host)
        path = _PATH_UNSAFE_RE.sub("_", parts.path.strip("/"))[:URL_PATH_MAX_LEN]
        url_path = f"_{path}" if path else ""

    device_prefix = "m" if device == "mobile" else "pc"
    stamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return Path(output_dir) / f"{prefix}{url_path}_{device_prefix}_{stamp}.{fmt}"


def file_size_mb(path: Path) -> Optional[float]:
    path = Path(path)
    if not path.exists():
        return None
    return path.stat().st_size / 1024 / 1024
