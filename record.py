"""
Record a web page into a looping GIF or an MP4.

Features:
- Decides per page whether to scroll natively, step with the mouse wheel, or hold still.
- Paces captures to the requested fps and stops early at the end of wheel-driven pages.
- Optional URL params and pre-capture page actions.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from webgif_lib.constants import (
    DEFAULT_DEVICE,
    DEFAULT_DURATION_S,
    DEFAULT_FORMAT,
    DEFAULT_FPS,
    DEFAULT_QUALITY,
    DEFAULT_VIEWPORTS,
)
from webgif_lib.files import file_size_mb
from webgif_lib.params import (
    apply_url_params,
    validate_dpi,
    validate_duration,
    validate_filename,
    validate_format,
    validate_fps,
    validate_quality,
    validate_resolution,
    validate_url,
)
from webgif_lib.session import RecordOptions, run_recording


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Record a website into an animated GIF or MP4.")
    parser.add_argument("--url", required=True, help="Website URL (http/https)")
    parser.add_argument("-d", "--device", choices=["pc", "mobile"], default=DEFAULT_DEVICE, help="Device profile (default: pc)")
    parser.add_argument("--duration", type=int, default=DEFAULT_DURATION_S, help="Recording length in seconds, 1-60 (default: 15)")
    parser.add_argument("--fps", type=int, default=DEFAULT_FPS, help="Capture frame rate, 5-30 (default: 15)")
    parser.add_argument("--width", type=int, default=None, help="Viewport width (default: pc=1280, mobile=375)")
    parser.add_argument("--height", type=int, default=None, help="Viewport height (default: pc=720, mobile=667)")
    parser.add_argument("--dpi", type=int, default=None, help="Device scale factor 1-3 (default: 2 for ultra, else 1)")
    parser.add_argument("--format", dest="fmt", default=DEFAULT_FORMAT, help="Output format: gif or mp4 (default: gif)")
    parser.add_argument("--quality", default=DEFAULT_QUALITY, help="Quality tier: ultra/high/medium/low (default: high)")
    parser.add_argument("--params", default="", help="URL query params, e.g. 'lang:en,theme:dark'")
    parser.add_argument("--actions", default="", help="Page actions, e.g. 'click:#accept,wait:1000,scroll:500'")
    parser.add_argument("--filename", default=None, help="Output file name without extension")
    parser.add_argument("--output-dir", type=Path, default=Path("output"), help="Directory for generated files")
    parser.add_argument("--no-cleanup", action="store_true", help="Keep captured frames and manifests")
    parser.add_argument("--headed", action="store_true", help="Show the browser window while recording")
    return parser


def options_from_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> RecordOptions:
    url = apply_url_params(args.url, args.params)
    quality = args.quality.lower()
    fmt = args.fmt.lower()
    dpi = args.dpi if args.dpi is not None else (2 if quality == "ultra" else 1)
    default_w, default_h = DEFAULT_VIEWPORTS[args.device]
    width = args.width or default_w
    height = args.height or default_h

    if not validate_url(url):
        parser.error(f"invalid URL '{url}': must start with http:// or https://")
    if not validate_duration(args.duration):
        parser.error("--duration must be between 1 and 60 seconds")
    if not validate_fps(args.fps):
        parser.error("--fps must be between 5 and 30")
    if not validate_resolution(width, height):
        parser.error("resolution out of range (320x240 - 4096x4096)")
    if args.filename and not validate_filename(args.filename):
        parser.error("--filename may only contain letters, digits, '_', '-', '.' (1-100 chars)")
    if not validate_quality(quality):
        parser.error("--quality must be one of ultra/high/medium/low")
    if not validate_format(fmt):
        parser.error("--format must be gif or mp4")
    if not validate_dpi(dpi):
        parser.error("--dpi must be an integer between 1 and 3")

    return RecordOptions(
        url=url,
        duration_s=args.duration,
        fps=args.fps,
        width=width,
        height=height,
        device=args.device,
        dpi=dpi,
        quality=quality,
        fmt=fmt,
        actions=args.actions,
        filename=args.filename,
        output_dir=args.output_dir,
        no_cleanup=args.no_cleanup,
        headless=not args.headed,
    )


def _failure_hint(message: str) -> str:
    lowered = message.lower()
    if "ffmpeg" in lowered:
        return "Make sure ffmpeg is installed and on PATH (macOS: brew install ffmpeg)."
    if "timeout" in lowered:
        return "The page took too long to load; check the network connection."
    if "net::" in lowered:
        return "Network error; check the URL and the connection."
    if "executable doesn't exist" in lowered:
        return "Install the browser with: playwright install chromium"
    return ""


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    options = options_from_args(parser, args)

    try:
        result = run_recording(options)
    except Exception as exc:
        print(f"\n❌ Recording failed: {exc}", file=sys.stderr, flush=True)
        hint = _failure_hint(str(exc))
        if hint:
            print(f"💡 {hint}", file=sys.stderr, flush=True)
        return 1

    size = file_size_mb(result.output_path)
    print("\n✅ Recording complete", flush=True)
    print(f"   - path: {result.output_path}", flush=True)
    print(f"   - size: {size:.2f} MB" if size is not None else "   - size: n/a", flush=True)
    print(f"   - frames: {result.frame_count} ({result.strategy})", flush=True)
    print(f"   - took: {result.elapsed_s:.1f}s", flush=True)
    return 0


if __name__ == "__main__":
    sys.exit(main())
