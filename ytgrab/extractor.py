"""
Extractor module — resolves a video through yt-dlp.

yt-dlp does all the talking to YouTube. This module only:
    - builds yt-dlp options for one client persona (player client, headers,
      cookies, IPv4),
    - turns yt-dlp's format dicts into the flat "raw stream" dicts the rest
      of ytgrab works with,
    - maps yt-dlp failures onto ytgrab's error classes.

A raw stream looks like:
    {
        "itag": "137",
        "container": "mp4",         # "mp4" | "webm" | "other"
        "has_video": True,
        "has_audio": False,
        "height": 1080,             # or None
        "audio_bitrate": None,      # kbps, int or None
        "bitrate": 4400.5,          # total kbps, or None
        "quality_label": "1080p",
        "url": "https://...googlevideo.com/...",
        "http_headers": {...},
        "filesize": 123456789,      # exact bytes, or None
        "filesize_approx": None,    # yt-dlp estimate, or None
    }
"""

import os
import json
import logging
import tempfile
from contextlib import contextmanager
from typing import Optional

import yt_dlp
from yt_dlp.utils import DownloadError, ExtractorError

from config import settings as config
from ytgrab.errors import UpstreamAccessError, UpstreamEmptyResultError


logger = logging.getLogger(__name__)

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"

# yt-dlp "ext" → container family
CONTAINERS = {
    "mp4": "mp4",
    "m4a": "mp4",
    "webm": "webm",
    "weba": "webm",
}


# ---- Cookies ----

def _netscape_lines(cookies: list) -> list[str]:
    lines = ["# Netscape HTTP Cookie File"]
    for c in cookies:
        domain = c.get("domain") or ".youtube.com"
        expires = c.get("expirationDate") or c.get("expires") or 0
        lines.append("\t".join([
            domain,
            "TRUE" if domain.startswith(".") else "FALSE",
            c.get("path") or "/",
            "TRUE" if c.get("secure") else "FALSE",
            str(int(float(expires))),
            str(c["name"]),
            str(c.get("value", "")),
        ]))
    return lines


def cookie_file_text(raw: Optional[str]) -> Optional[str]:
    """
    Convert YOUTUBE_COOKIES into Netscape cookie-file text for yt-dlp.

    Accepts either a JSON list of cookie objects (browser-extension export)
    or text that is already in Netscape format. Returns None when there is
    nothing usable; a bad value is logged, not raised.
    """
    if not raw:
        return None
    if raw.lstrip().startswith("#"):
        return raw if raw.endswith("\n") else raw + "\n"

    try:
        cookies = json.loads(raw)
        if isinstance(cookies, dict):
            cookies = cookies.get("cookies", [])
        if not isinstance(cookies, list):
            raise ValueError("expected a list of cookie objects")
        return "\n".join(_netscape_lines(cookies)) + "\n"
    except (ValueError, TypeError, KeyError, AttributeError) as e:
        logger.error("Failed to parse %s: %s", config.COOKIES_ENV, e)
        return None


@contextmanager
def cookie_file(raw: Optional[str]):
    """Yield a temporary cookie file path (or None) for one yt-dlp call."""
    text = cookie_file_text(raw)
    if text is None:
        yield None
        return

    fd, path = tempfile.mkstemp(prefix="ytgrab_cookies_", suffix=".txt")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        yield path
    finally:
        try:
            os.remove(path)
        except OSError:
            pass


# ---- Options ----

def build_ydl_options(persona: dict, cookiefile: Optional[str] = None, settings: Optional[dict] = None) -> dict:
    """Build yt-dlp options for a metadata-only resolution under one persona."""
    settings = settings or config.load_settings()

    ydl_opts = {
        "quiet": True,
        "no_warnings": True,
        "skip_download": True,
        "noplaylist": True,
        "ignore_no_formats_error": True,
        "extractor_args": {
            "youtube": {
                "player_client": [persona["player_client"]],
                "lang": [settings["lang"]],
            }
        },
    }

    if persona.get("headers"):
        ydl_opts["http_headers"] = dict(persona["headers"])
    if settings.get("force_ipv4"):
        ydl_opts["source_address"] = "0.0.0.0"
    if cookiefile:
        ydl_opts["cookiefile"] = cookiefile

    return ydl_opts


# ---- Normalisation ----

def _has_codec(value) -> bool:
    return value is not None and value != "none"


def normalize_format(f: dict) -> Optional[dict]:
    """Turn one yt-dlp format dict into a raw stream dict (None if unusable)."""
    has_video = _has_codec(f.get("vcodec"))
    has_audio = _has_codec(f.get("acodec"))
    if not has_video and not has_audio:
        return None
    if f.get("format_id") is None:
        return None

    abr = f.get("abr")
    return {
        "itag": str(f["format_id"]),
        "container": CONTAINERS.get((f.get("ext") or "").lower(), "other"),
        "has_video": has_video,
        "has_audio": has_audio,
        "height": f.get("height") or None,
        "audio_bitrate": int(round(abr)) if abr else None,
        "bitrate": f.get("tbr") or f.get("vbr") or abr or None,
        "quality_label": f.get("format_note"),
        "url": f.get("url"),
        "http_headers": f.get("http_headers") or {},
        "filesize": f.get("filesize"),
        "filesize_approx": f.get("filesize_approx"),
    }


def _thumbnail(info: dict) -> Optional[str]:
    thumbnails = info.get("thumbnails") or []
    for thumb in reversed(thumbnails):
        if thumb.get("url"):
            return thumb["url"]
    return info.get("thumbnail")


def normalize_info(info: dict) -> dict:
    """Reduce yt-dlp's info dict to the fields ytgrab uses."""
    streams = []
    for f in info.get("formats") or []:
        stream = normalize_format(f)
        if stream:
            streams.append(stream)

    return {
        "id": info.get("id"),
        "title": info.get("title") or "Unknown Title",
        "channel": info.get("channel") or info.get("uploader") or "Unknown",
        "view_count": int(info.get("view_count") or 0),
        "duration": int(info.get("duration") or 0),
        "thumbnail": _thumbnail(info),
        "streams": streams,
    }


# ---- Resolution ----

def fetch_video(video_id: str, persona: dict, settings: Optional[dict] = None) -> dict:
    """
    Resolve a video's metadata and streams under one client persona.

    Args:
        video_id: 11-character YouTube video ID.
        persona: One entry of config.settings.CLIENT_PERSONAS.
        settings: Loaded settings (read from config when omitted).

    Returns:
        dict: normalize_info() output.

    Raises:
        UpstreamAccessError: yt-dlp could not resolve the video.
        UpstreamEmptyResultError: resolution worked but returned no streams.
    """
    settings = settings or config.load_settings()
    url = WATCH_URL.format(video_id=video_id)

    with cookie_file(config.get_cookies()) as cookiefile:
        ydl_opts = build_ydl_options(persona, cookiefile, settings)
        try:
            with yt_dlp.YoutubeDL(ydl_opts) as ydl:
                info = ydl.extract_info(url, download=False)
        except (DownloadError, ExtractorError) as e:
            raise UpstreamAccessError(str(e)) from e

    if not info:
        raise UpstreamAccessError(f"No information returned for {video_id}")

    video = normalize_info(info)
    if not video["streams"]:
        raise UpstreamEmptyResultError(f"No playable formats found for {video_id}")

    logger.debug("%s client resolved %s with %d streams",
                 persona["name"], video_id, len(video["streams"]))
    return video
