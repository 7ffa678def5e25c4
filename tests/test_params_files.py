from datetime import datetime
from pathlib import Path

import pytest

from webgif_lib.files import cleanup_dir, create_session_dir, file_size_mb, output_path_for
from webgif_lib.frame_sink import DirectoryFrameSink
from webgif_lib.params import (
    apply_url_params,
    sanitize_filename,
    validate_dpi,
    validate_duration,
    validate_filename,
    validate_format,
    validate_fps,
    validate_quality,
    validate_resolution,
    validate_url,
)

STAMP = datetime(2026, 1, 2, 3, 4, 5)


def test_apply_url_params_merges_query():
    url = apply_url_params("https://example.com/p?a=1", "lang:en, theme:dark")
    assert url == "https://example.com/p?a=1&lang=en&theme=dark"


def test_apply_url_params_overrides_and_ignores_incomplete_pairs():
    url = apply_url_params("https://example.com/?lang=fr", "lang:en,broken,empty:")
    assert url == "https://example.com/?lang=en"


def test_apply_url_params_leaves_bad_urls_alone():
    assert apply_url_params("not a url", "a:b") == "not a url"
    assert apply_url_params("https://example.com", "") == "https://example.com"


@pytest.mark.parametrize(
    "check, value, ok",
    [
        (validate_url, "https://example.com", True),
        (validate_url, "ftp://example.com", False),
        (validate_url, "example.com", False),
        (validate_duration, 1, True),
        (validate_duration, 61, False),
        (validate_fps, 30, True),
        (validate_fps, 4, False),
        (validate_quality, "Ultra", True),
        (validate_quality, "best", False),
        (validate_format, "MP4", True),
        (validate_format, "webm", False),
        (validate_dpi, 3, True),
        (validate_dpi, 1.5, False),
        (validate_filename, "my-clip_v1.final", True),
        (validate_filename, "bad name", False),
        (validate_filename, "x" * 101, False),
    ],
)
def test_validators(check, value, ok):
    assert check(value) is ok


def test_validate_resolution():
    assert validate_resolution(320, 240)
    assert not validate_resolution(319, 240)
    assert not validate_resolution(1280, 5000)


def test_sanitize_filename():
    assert sanitize_filename("my clip!") == "my_clip_"


def test_output_path_from_url():
    path = output_path_for("https://www.example.com/docs/intro/", "mobile", "gif", Path("out"), now=STAMP)
    assert path == Path("out") / "example_com_docs_intro_m_20260102_030405.gif"


def test_output_path_root_url_and_pc():
    path = output_path_for("https://shop.example.com", "pc", "mp4", Path("out"), now=STAMP)
    assert path.name == "shop_example_com_pc_20260102_030405.mp4"


def test_output_path_without_host_falls_back():
    path = output_path_for("file:///tmp/x.html", "pc", "gif", Path("out"), now=STAMP)
    assert path.name.startswith("website_pc_")


def test_output_path_custom_filename():
    assert output_path_for("https://example.com", "pc", "gif", Path("o"), filename="my rec") == Path("o") / "my_rec.gif"


def test_session_dirs_are_unique_and_removable(tmp_path):
    first = create_session_dir(tmp_path)
    second = create_session_dir(tmp_path)
    assert first != second
    assert first.is_dir() and second.is_dir()
    cleanup_dir(first)
    assert not first.exists()


def test_directory_sink_writes_numbered_frames(tmp_path):
    sink = DirectoryFrameSink(tmp_path / "frames")
    path = sink.store(7, b"\x89PNG data")
    assert path == tmp_path / "frames" / "frame_0007.png"
    assert path.read_bytes() == b"\x89PNG data"
    assert file_size_mb(path) == pytest.approx(9 / 1024 / 1024)
    assert file_size_mb(tmp_path / "missing") is None
