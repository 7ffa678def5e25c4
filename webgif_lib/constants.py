from __future__ import annotations

DEFAULT_FPS = 15
DEFAULT_DURATION_S = 15
DEFAULT_DEVICE = "pc"
DEFAULT_QUALITY = "high"
DEFAULT_FORMAT = "gif"

DEFAULT_VIEWPORTS = {
    "pc": (1280, 720),
    "mobile": (375, 667),
}
MAX_VIEWPORT_WIDTH = 1920
MAX_VIEWPORT_HEIGHT = 1080

# Validation ranges (inclusive)
DURATION_RANGE_S = (1, 60)
FPS_RANGE = (5, 30)
WIDTH_RANGE = (320, 4096)
HEIGHT_RANGE = (240, 4096)
DPI_RANGE = (1, 3)
FILENAME_MAX_LEN = 100

# Motion classification
LONG_PAGE_RATIO = 1.5
PROBE_SETTLE_MS = 1000

# Paged scroll settle window, clamped
SCROLL_SETTLE_MIN_MS = 150
SCROLL_SETTLE_MAX_MS = 600

# Wheel-driven time budgeting
WHEEL_MIN_INTERVAL_MS = 1200
WHEEL_MAX_INTERVAL_MS = 2000
WHEEL_SHORT_DURATION_MS = 10_000
WHEEL_LONG_DURATION_MS = 30_000
WHEEL_SETTLE_FLOOR_MS = 800
WHEEL_CAPTURE_RESERVE_MS = 500

# Page lifecycle
PAGE_STABILIZE_MS = 4000
NAVIGATION_TIMEOUT_MS = 30_000

FRAME_CODEC = "png"
FRAME_FILE_PATTERN = "frame_{index:04d}.png"
