"""
Web page recording utilities.

Modules:
- planning: frame budget and segment plans.
- pacing: drift-free per-frame deadlines.
- surface / browser: render surface interface and the Playwright backend.
- classifier: decides whether and how the page moves between frames.
- scroll_recorder: fixed, paged-scroll and wheel-driven capture strategies.
- frame_sink: frame persistence.
- encoder / ffmpeg_writer: GIF and MP4 output.
- actions / params / files: page actions, URL params, naming and temp dirs.
- session: orchestration and manifest I/O.
"""
