"""
Tests for the URL parser.

Every supported URL shape should give back the exact 11-character ID;
anything else should give None without raising.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest

from ytgrab.urls import extract_video_id


VIDEO_ID = "dQw4w9WgXcQ"


@pytest.mark.parametrize("url", [
    "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
    "https://youtube.com/watch?v=dQw4w9WgXcQ&feature=share",
    "https://www.youtube.com/watch?feature=share&v=dQw4w9WgXcQ",
    "https://m.youtube.com/watch?v=dQw4w9WgXcQ",
    "https://youtu.be/dQw4w9WgXcQ",
    "https://youtu.be/dQw4w9WgXcQ?t=42",
    "https://www.youtube.com/embed/dQw4w9WgXcQ",
    "https://www.youtube.com/v/dQw4w9WgXcQ",
    "https://www.youtube.com/shorts/dQw4w9WgXcQ",
    "https://www.youtube.com/live/dQw4w9WgXcQ?si=abc",
    "  https://youtu.be/dQw4w9WgXcQ  ",
])
def test_supported_shapes(url):
    assert extract_video_id(url) == VIDEO_ID


@pytest.mark.parametrize("url", [
    "www.youtube.com/watch?v=dQw4w9WgXcQ",
    "youtube.com/shorts/dQw4w9WgXcQ",
    "youtu.be/dQw4w9WgXcQ",
])
def test_schemeless_urls_use_pattern_fallback(url):
    """Without a scheme urlparse finds no host, so the regexes kick in."""
    assert extract_video_id(url) == VIDEO_ID


def test_malformed_url_falls_back_to_patterns():
    # An unbalanced IPv6 bracket makes urlparse raise ValueError
    url = "http://[::1/youtube.com/watch?v=dQw4w9WgXcQ"
    assert extract_video_id(url) == VIDEO_ID


@pytest.mark.parametrize("url", [
    "https://example.com/",
    "https://www.youtube.com/",
    "https://www.youtube.com/watch",
    "https://youtu.be/",
    "not a url at all",
    "http://[::1",
    "",
    "   ",
    None,
    42,
])
def test_invalid_inputs_return_none(url):
    assert extract_video_id(url) is None
