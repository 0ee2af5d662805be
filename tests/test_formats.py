"""
Tests for the format menu builder and the display helpers.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from ytgrab.formats import (
    build_format_menu, build_video_info, estimate_file_size,
    format_views, format_duration, audio_label,
)


def stream(itag, container="mp4", video=True, audio=True, height=None, abr=None, bitrate=1000):
    return {
        "itag": str(itag),
        "container": container,
        "has_video": video,
        "has_audio": audio,
        "height": height,
        "audio_bitrate": abr,
        "bitrate": bitrate,
        "quality_label": f"{height}p" if height else None,
        "url": f"https://cdn.example/{itag}",
        "http_headers": {},
        "filesize": None,
    }


# ── A typical YouTube stream set ───────────────────────────────────────

TYPICAL = [
    stream(18, "mp4", True, True, 360, abr=96),
    stream(22, "mp4", True, True, 720, abr=192),
    stream(137, "mp4", True, False, 1080),
    stream(248, "webm", True, False, 1080),
    stream(136, "mp4", True, False, 720),
    stream(313, "webm", True, False, 2160),
    stream(43, "webm", True, True, 360, abr=128),
    stream(46, "webm", True, True, 1080, abr=192),
    stream(140, "mp4", False, True, abr=129),
    stream(251, "webm", False, True, abr=160),
    stream(250, "webm", False, True, abr=70),
    stream(600, "webm", False, True, abr=330),
    stream(601, "mp4", False, True, abr=256),
]


def labels(menu):
    return [(o["quality"], o["format"]) for o in menu]


def test_typical_menu_order():
    menu = build_format_menu(TYPICAL, 212)
    assert labels(menu) == [
        ("720p", "mp4"),
        ("360p", "mp4"),
        ("2160p (No Audio)", "webm"),
        ("1080p (No Audio)", "mp4"),
        ("1080p", "webm"),
        ("320kbps", "mp3"),
        ("256kbps", "mp3"),
        ("128kbps", "mp3"),
    ]


def test_audio_bucket_keeps_highest_bitrate_stream():
    menu = build_format_menu(TYPICAL, 212)
    audio = {o["quality"]: o["itag"] for o in menu if not o["hasVideo"]}
    assert audio == {"320kbps": "600", "256kbps": "601", "128kbps": "251"}


def test_muxed_suppresses_video_only_at_same_height():
    streams = [
        stream(1, "mp4", True, True, 1080),
        stream(2, "mp4", True, False, 1080),
    ]
    menu = build_format_menu(streams, 60)
    assert labels(menu) == [("1080p", "mp4")]
    assert menu[0]["itag"] == "1"
    assert menu[0]["hasAudio"] is True


def test_video_only_mp4_and_webm_collapse_first_seen_wins():
    streams = [
        stream(248, "webm", True, False, 1080),
        stream(137, "mp4", True, False, 1080),
    ]
    menu = build_format_menu(streams, 60)
    assert labels(menu) == [("1080p (No Audio)", "webm")]
    assert menu[0]["itag"] == "248"


def test_low_resolution_muxed_webm_is_excluded():
    streams = [
        stream(43, "webm", True, True, 360),
        stream(44, "webm", True, True, 480),
        stream(45, "webm", True, True, 719),
    ]
    assert build_format_menu(streams, 60) == []


def test_muxed_webm_and_mp4_at_same_height_both_listed():
    streams = [
        stream(22, "mp4", True, True, 720),
        stream(45, "webm", True, True, 720),
    ]
    assert labels(build_format_menu(streams, 60)) == [("720p", "mp4"), ("720p", "webm")]


def test_duplicate_muxed_heights_listed_once():
    streams = [
        stream(18, "mp4", True, True, 360),
        stream(19, "mp4", True, True, 360),
    ]
    menu = build_format_menu(streams, 60)
    assert labels(menu) == [("360p", "mp4")]
    assert menu[0]["itag"] == "18"


def test_streams_without_height_or_bitrate_are_skipped():
    streams = [
        stream(1, "mp4", True, True, None),
        stream(2, "webm", True, False, None),
        stream(3, "mp4", False, True, abr=None),
        stream(4, "other", True, True, 1080),
    ]
    assert build_format_menu(streams, 60) == []


@pytest.mark.parametrize("bitrate, label", [
    (64, "128kbps"),
    (255, "128kbps"),
    (256, "256kbps"),
    (300, "256kbps"),
    (319, "256kbps"),
    (320, "320kbps"),
    (480, "320kbps"),
])
def test_audio_label_boundaries(bitrate, label):
    assert audio_label(bitrate) == label


def test_menu_is_idempotent():
    first = build_format_menu(TYPICAL, 212)
    second = build_format_menu(TYPICAL, 212)
    assert first == second


def test_menu_uniqueness_invariants():
    # Throw in every duplicate we can think of
    noisy = TYPICAL + TYPICAL + [stream(999, "webm", True, True, 2160)] * 2
    menu = build_format_menu(noisy, 500)
    video = [(o["quality"], o["format"]) for o in menu if o["hasVideo"]]
    audio = [o["quality"] for o in menu if not o["hasVideo"]]
    assert len(video) == len(set(video))
    assert len(audio) == len(set(audio))


def test_video_options_precede_audio_options():
    menu = build_format_menu(TYPICAL, 212)
    kinds = [o["hasVideo"] for o in menu]
    assert kinds == sorted(kinds, reverse=True)


def test_empty_input():
    assert build_format_menu([], 0) == []


# ── Size estimates ─────────────────────────────────────────────────────

@pytest.mark.parametrize("quality, fmt, expected", [
    ("2160p", "mp4", "~500MB"),
    ("1080p", "mp4", "~200MB"),
    ("720p", "mp4", "~100MB"),
    ("480p", "mp4", "~50MB"),
    ("360p", "mp4", "~30MB"),
    ("1440p", "mp4", "~100MB"),
    ("1080p", "webm", "~180MB"),
    ("360p", "webm", "~27MB"),
])
def test_video_size_table(quality, fmt, expected):
    assert estimate_file_size(600, quality, fmt) == expected


def test_audio_size_uses_bucket_bitrate_and_duration():
    # 320 kbps for 10 minutes: 320 * 600 / 8192 = 23.4 MB
    assert estimate_file_size(600, "320kbps", "mp3") == "~23MB"
    # 128 kbps for 1 hour: 128 * 3600 / 8192 = 56.25 MB
    assert estimate_file_size(3600, "128kbps", "mp3") == "~56MB"
    assert estimate_file_size(0, "256kbps", "mp3") == "~0MB"


def test_size_rounds_half_up():
    # 256 kbps for 16 seconds: 256 * 16 / 8192 = 0.5 MB
    assert estimate_file_size(16, "256kbps", "mp3") == "~1MB"


def test_menu_size_labels():
    menu = build_format_menu(TYPICAL, 600)
    sizes = {(o["quality"], o["format"]): o["fileSize"] for o in menu}
    assert sizes[("720p", "mp4")] == "~100MB"
    assert sizes[("1080p (No Audio)", "mp4")] == "~200MB"
    assert sizes[("2160p (No Audio)", "webm")] == "~450MB"
    assert sizes[("320kbps", "mp3")] == "~23MB"


# ── Display helpers ────────────────────────────────────────────────────

@pytest.mark.parametrize("views, expected", [
    (0, "0"),
    (999, "999"),
    (1000, "1.0K"),
    (4321, "4.3K"),
    (1250, "1.3K"),
    (999_949, "999.9K"),
    (1_000_000, "1.0M"),
    (1_250_000, "1.3M"),
    (1_234_567, "1.2M"),
    (1_234_567_890, "1234.6M"),
])
def test_format_views(views, expected):
    assert format_views(views) == expected


@pytest.mark.parametrize("seconds, expected", [
    (0, "0:00"),
    (59, "0:59"),
    (212, "3:32"),
    (3600, "1:00:00"),
    (3725, "1:02:05"),
])
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected


def test_build_video_info_shape():
    resolved = {
        "video": {
            "id": "dQw4w9WgXcQ",
            "title": "Never Gonna Give You Up",
            "channel": "Rick Astley",
            "view_count": 1_500_000_000,
            "duration": 212,
            "thumbnail": "https://i.ytimg.com/vi/dQw4w9WgXcQ/maxresdefault.jpg",
            "streams": TYPICAL,
        },
        "client": "IOS",
        "has_high_quality": True,
        "attempts": [],
    }
    info = build_video_info(resolved, "dQw4w9WgXcQ")

    assert info["title"] == "Never Gonna Give You Up"
    assert info["channel"] == "Rick Astley"
    assert info["views"] == "1500.0M"
    assert info["duration"] == "3:32"
    assert info["videoId"] == "dQw4w9WgXcQ"
    assert info["debug"] == {
        "usedClient": "IOS",
        "totalFormatsFound": len(TYPICAL),
        "hasHighQuality": True,
    }
    assert info["formats"] == build_format_menu(TYPICAL, 212)
