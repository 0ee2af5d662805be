"""
Format menu — turns raw streams into the list of options a user picks from.

yt-dlp reports every variant YouTube offers: muxed mp4, muxed webm,
video-only mp4/webm at each height, and several audio-only streams.
Most of those are redundant for a download menu, so we build the menu in
one pass, in this order:

    1. muxed mp4, highest first          → "1080p"
    2. video-only mp4/webm               → "1080p (No Audio)"
       (skipped where step 1 already claimed the height; mp4 and webm
        at the same height collapse into one entry)
    3. muxed webm at 720p and above      → "720p"
    4. audio-only, bucketed by bitrate   → "320kbps" / "256kbps" / "128kbps"

Video options come first, then audio. Size estimates are rough guesses
from a lookup table, not measured sizes.
"""

import math


# Rough video sizes (MB) per resolution tier
VIDEO_SIZE_MB = {
    "2160p": 500,
    "1080p": 200,
    "720p": 100,
    "480p": 50,
    "360p": 30,
}
DEFAULT_VIDEO_SIZE_MB = 100
WEBM_SIZE_FACTOR = 0.9

AUDIO_BITRATES = {"320kbps": 320, "256kbps": 256, "128kbps": 128}

MIN_WEBM_MUXED_HEIGHT = 720


# ---- Display helpers ----

def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def estimate_file_size(duration: float, quality: str, fmt: str) -> str:
    """
    Estimate a download's size as a label like "~200MB".

    Audio ("mp3") uses the bucket bitrate and the duration; video uses a
    fixed table keyed by resolution, 10% smaller for webm.
    """
    if fmt == "mp3":
        bitrate = AUDIO_BITRATES.get(quality, 128)
        # kbps * seconds / 8 → KB, / 1024 → MB
        size_mb = bitrate * (duration or 0) / (8 * 1024)
    else:
        base = VIDEO_SIZE_MB.get(quality, DEFAULT_VIDEO_SIZE_MB)
        size_mb = base * (WEBM_SIZE_FACTOR if fmt == "webm" else 1)
    return f"~{_round_half_up(size_mb)}MB"


def format_views(views: int) -> str:
    """1234567 → "1.2M", 1250000 → "1.3M", 4321 → "4.3K", 999 → "999"."""
    views = int(views or 0)
    # One decimal, ties rounded up
    if views >= 1_000_000:
        return f"{_round_half_up(views / 100_000) / 10:.1f}M"
    if views >= 1_000:
        return f"{_round_half_up(views / 100) / 10:.1f}K"
    return str(views)


def format_duration(seconds: int) -> str:
    """3725 → "1:02:05", 212 → "3:32"."""
    seconds = int(seconds or 0)
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def audio_label(bitrate: int) -> str:
    """Bucket an audio bitrate (kbps) into a menu label."""
    if bitrate >= 320:
        return "320kbps"
    elif bitrate >= 256:
        return "256kbps"
    else:
        return "128kbps"


# ---- Menu ----

def _option(quality: str, fmt: str, stream: dict, duration: float, size_key: str) -> dict:
    return {
        "quality": quality,
        "format": fmt,
        "itag": stream["itag"],
        "fileSize": estimate_file_size(duration, size_key, fmt),
        "hasVideo": stream["has_video"],
        "hasAudio": stream["has_audio"],
    }


def _by_height(streams: list[dict]) -> list[dict]:
    return sorted(streams, key=lambda s: s.get("height") or 0, reverse=True)


def build_format_menu(streams: list[dict], duration: float) -> list[dict]:
    """
    Build the ordered, de-duplicated download menu.

    Args:
        streams: Raw stream dicts from the extractor.
        duration: Video length in seconds (for size estimates).

    Returns:
        list[dict]: Video options followed by audio options. Video options
        are unique by (quality, format); audio options by quality.
    """
    video_options = []
    audio_options = []
    seen_video = set()     # (quality, format)
    muxed_heights = set()  # heights claimed by muxed mp4
    no_audio_heights = set()

    def add_video(option):
        key = (option["quality"], option["format"])
        if key not in seen_video:
            seen_video.add(key)
            video_options.append(option)

    # 1. Muxed mp4
    muxed_mp4 = [s for s in streams
                 if s["container"] == "mp4" and s["has_video"] and s["has_audio"]]
    for s in _by_height(muxed_mp4):
        height = s.get("height")
        if not height:
            continue
        quality = f"{height}p"
        add_video(_option(quality, "mp4", s, duration, quality))
        muxed_heights.add(height)

    # 2. Video-only, mp4 or webm
    video_only = [s for s in streams
                  if s["container"] in ("mp4", "webm") and s["has_video"] and not s["has_audio"]]
    for s in _by_height(video_only):
        height = s.get("height")
        if not height or height in muxed_heights or height in no_audio_heights:
            continue
        no_audio_heights.add(height)
        add_video(_option(f"{height}p (No Audio)", s["container"], s, duration, f"{height}p"))

    # 3. Muxed webm, high resolution only
    muxed_webm = [s for s in streams
                  if s["container"] == "webm" and s["has_video"] and s["has_audio"]]
    for s in _by_height(muxed_webm):
        height = s.get("height")
        if not height or height < MIN_WEBM_MUXED_HEIGHT:
            continue
        quality = f"{height}p"
        add_video(_option(quality, "webm", s, duration, quality))

    # 4. Audio-only, one per bitrate bucket
    audio_only = [s for s in streams if s["has_audio"] and not s["has_video"]]
    seen_audio = set()
    for s in sorted(audio_only, key=lambda s: s.get("audio_bitrate") or 0, reverse=True):
        bitrate = s.get("audio_bitrate")
        if not bitrate:
            continue
        quality = audio_label(bitrate)
        if quality in seen_audio:
            continue
        seen_audio.add(quality)
        audio_options.append(_option(quality, "mp3", s, duration, quality))

    return video_options + audio_options


def build_video_info(resolved: dict, video_id: str) -> dict:
    """Shape a fallback result into the /api/video-info response body."""
    video = resolved["video"]
    return {
        "title": video["title"],
        "thumbnail": video["thumbnail"],
        "channel": video["channel"],
        "views": format_views(video["view_count"]),
        "duration": format_duration(video["duration"]),
        "formats": build_format_menu(video["streams"], video["duration"]),
        "videoId": video_id,
        "debug": {
            "usedClient": resolved["client"],
            "totalFormatsFound": len(video["streams"]),
            "hasHighQuality": resolved["has_high_quality"],
        },
    }
