from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple

from playwright.sync_api import sync_playwright

from .constants import MAX_VIEWPORT_HEIGHT, MAX_VIEWPORT_WIDTH, NAVIGATION_TIMEOUT_MS
from .surface import PlaywrightSurface

USER_AGENTS = {
    "pc": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "mobile": (
        "Mozilla/5.0 (iPhone; CPU iPhone OS 16_0 like Mac OS X) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Version/16.0 Mobile/15E148 Safari/604.1"
    ),
}

CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-blink-features=AutomationControlled",
    "--disable-extensions",
    "--disable-default-apps",
    "--no-first-run",
    "--disable-sync",
    "--disable-background-networking",
    "--disable-background-timer-throttling",
    "--disable-backgrounding-occluded-windows",
    "--disable-renderer-backgrounding",
    "--disable-features=TranslateUI",
    "--disk-cache-size=0",
    "--media-cache-size=0",
    "--disable-smooth-scrolling",
]


def limit_viewport(width: int, height: int) -> Tuple[int, int]:
    """Scale down to fit MAX_VIEWPORT_* while keeping the aspect ratio."""
    if width <= MAX_VIEWPORT_WIDTH and height <= MAX_VIEWPORT_HEIGHT:
        return width, height
    ratio = min(MAX_VIEWPORT_WIDTH / width, MAX_VIEWPORT_HEIGHT / height)
    return round(width * ratio), round(height * ratio)


def resolve_executable_path() -> Optional[str]:
    env_path = os.environ.get("CHROME_PATH")
    if env_path and Path(env_path).exists():
        return env_path
    return None


def context_options(device: str, width: int, height: int, dpi: int = 1) -> Dict[str, Any]:
    mobile = device == "mobile"
    return {
        "viewport": {"width": width, "height": height},
        "device_scale_factor": dpi,
        "is_mobile": mobile,
        "has_touch": mobile,
        "user_agent": USER_AGENTS["mobile" if mobile else "pc"],
    }


@contextmanager
def open_surface(
    *,
    width: int,
    height: int,
    device: str = "pc",
    dpi: int = 1,
    headless: bool = True,
) -> Iterator[PlaywrightSurface]:
    """Launch Chromium with a fresh context and yield its page as a render surface."""
    width, height = limit_viewport(width, height)
    executable = resolve_executable_path()
    print(
        f"🔧 Launching browser ({device}, {width}x{height}, {dpi}x DPI"
        f"{', ' + executable if executable else ''})",
        flush=True,
    )
    with sync_playwright() as playwright:
        browser = playwright.chromium.launch(
            headless=headless,
            executable_path=executable,
            args=CHROMIUM_ARGS + [f"--force-device-scale-factor={dpi}"],
        )
        try:
            context = browser.new_context(**context_options(device, width, height, dpi))
            page = context.new_page()
            page.set_default_timeout(NAVIGATION_TIMEOUT_MS)
            yield PlaywrightSurface(page, navigation_timeout_ms=NAVIGATION_TIMEOUT_MS)
        finally:
            browser.close()
            print("✅ Browser closed", flush=True)
